from __future__ import annotations

import logging
import time
from typing import Callable

from ..auth.users import get_display_name
from ..llm.groq_client import rank_candidates
from ..places.kakao_client import PlaceSearchError, get_gateway
from .assembler import assemble
from .balancer import balance
from .classifier import classify_all
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .dedup import deduplicate
from .detail_store import remember_places
from .errors import PlacesUnavailableError, UserNotFoundError
from .models import Candidate, RecommendationRequest, RecommendationResponse
from .scoring import score_seeded

logger = logging.getLogger(__name__)

RankingSignal = Callable[..., list[int]]


def generate_recommendations(
    request: RecommendationRequest,
    user_id: int,
    *,
    gateway=None,
    ranking_signal: RankingSignal | None = None,
    display_names: Callable[[int], str | None] = get_display_name,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    session_key: str | None = None,
) -> RecommendationResponse:
    """
    Recommend exactly K places per category near ``request.venue_name``.

    Raises ``UserNotFoundError`` for an unknown user and
    ``PlacesUnavailableError`` when no category could be filled. Provider and
    ranking failures are logged and treated as empty results. When
    ``session_key`` is given the returned places are kept for detail lookups.
    """
    start_time = time.monotonic()
    deadline = start_time + config.time_budget_seconds

    display_name = display_names(user_id)
    if display_name is None:
        raise UserNotFoundError(user_id)

    gateway = gateway or get_gateway()

    # --- Seed search ---
    try:
        raw = gateway.search_near(request.venue_name, config.seed_fetch_count)
    except PlaceSearchError:
        logger.warning("Seed search near %r failed", request.venue_name, exc_info=True)
        raw = []

    candidates = classify_all(deduplicate(raw), config.rules_path)
    logger.info(
        "Venue %r: %d raw places, %d after dedup and classification",
        request.venue_name, len(raw), len(candidates),
    )

    # --- Optional ranking signal ---
    ranking: list[int] = []
    signal = ranking_signal or rank_candidates
    if candidates:
        try:
            ranking = signal(
                candidates,
                request.profile_type,
                request.transportation_method,
                request.custom_conditions,
            )
        except Exception:
            logger.warning("Ranking signal failed, using heuristic scores only", exc_info=True)
            ranking = []

    # --- Scoring and balancing ---
    seeded = score_seeded(
        candidates, request.profile_type, request.custom_conditions, ranking, config,
    )
    balanced = balance(seeded, request, gateway, config, deadline=deadline)

    if not balanced.places:
        total = len(raw) + balanced.fetched
        logger.error(
            "No recommendations for %r (%d places fetched across all rounds)",
            request.venue_name, total,
        )
        raise PlacesUnavailableError(
            f"No places available near {request.venue_name!r}"
        )

    response = assemble(balanced.places, display_name)

    if session_key:
        chosen: list[Candidate] = [c for places in balanced.places.values() for c in places]
        remember_places(session_key, chosen)

    elapsed_ms = round((time.monotonic() - start_time) * 1000, 1)
    logger.info(
        "Recommended %d categories for %r in %.1f ms",
        len(response.recommendations), request.venue_name, elapsed_ms,
    )
    return response
