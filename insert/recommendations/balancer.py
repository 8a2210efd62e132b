from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from ..places.kakao_client import PlaceSearchError
from .classifier import classify
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .dedup import dedup_key, deduplicate
from .models import Candidate, Category, RecommendationRequest
from .scoring import build_relaxed_reason, is_profile_compatible, score_relaxed

logger = logging.getLogger(__name__)


@dataclass
class BalanceResult:
    places: dict[Category, list[Candidate]] = field(default_factory=dict)
    fetched: int = 0  # raw candidates returned by backfill rounds


def _trim_key(candidate: Candidate) -> tuple:
    # rating desc, distance asc, missing values last; score breaks ties
    return (
        candidate.rating is None,
        -(candidate.rating or 0.0),
        candidate.distance_km is None,
        candidate.distance_km or 0.0,
        -candidate.score,
    )


def trim(candidates: list[Candidate], k: int) -> list[Candidate]:
    return sorted(candidates, key=_trim_key)[:k]


def accept_backfill(
    raw: list[Candidate],
    category: Category,
    request: RecommendationRequest,
    held_keys: set[str],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> list[Candidate]:
    """
    Relaxed acceptance for a backfill round.

    Candidates must classify into ``category``, be new to the result, pass
    the profile gate and clear the relaxed floor. Best score first.
    """
    accepted: list[Candidate] = []
    for candidate in deduplicate(raw):
        if classify(candidate, config.rules_path) != category:
            continue
        if dedup_key(candidate) in held_keys:
            continue
        if not is_profile_compatible(candidate, request.profile_type, config.rules_path):
            continue
        # scored under the provider label, so relabelled places miss the category bonus
        score = score_relaxed(
            candidate, category, request.profile_type, request.custom_conditions, config,
        )
        if score < config.relaxed_floor:
            logger.debug("Backfill %r below relaxed floor (%.1f)", candidate.name, score)
            continue
        candidate.category = category
        candidate.score = score
        candidate.ai_reason = build_relaxed_reason(
            candidate, request.profile_type, request.custom_conditions, config,
        )
        accepted.append(candidate)

    accepted.sort(
        key=lambda c: (-c.score, c.distance_km is None, c.distance_km or 0.0),
    )
    return accepted


def balance(
    seeded: dict[Category, list[Candidate]],
    request: RecommendationRequest,
    gateway,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    deadline: float | None = None,
) -> BalanceResult:
    """
    Bring every category to exactly K places.

    Categories with more than K are trimmed. Short categories get one
    backfill round and at most one escalation round; categories still short
    afterwards are omitted. A provider failure counts as an empty round.
    ``deadline`` is a ``time.monotonic()`` value after which no more rounds
    are issued.
    """
    k = config.places_per_category
    result = BalanceResult()
    held_keys = {dedup_key(c) for places in seeded.values() for c in places}

    for category in Category:
        places = list(seeded.get(category, []))

        if len(places) > k:
            places = trim(places, k)
            logger.info("%s trimmed to %d places", category.value, k)

        for multiplier in (config.first_backfill_multiplier, config.second_backfill_multiplier):
            if len(places) >= k:
                break
            if deadline is not None and time.monotonic() >= deadline:
                logger.warning("Time budget exhausted before backfilling %s", category.value)
                break

            needed = k - len(places)
            try:
                raw = gateway.search_near_by_category(
                    request.venue_name, category, needed * multiplier,
                )
            except PlaceSearchError:
                logger.warning("Backfill search for %s failed", category.value, exc_info=True)
                raw = []
            result.fetched += len(raw)

            added = accept_backfill(raw, category, request, held_keys, config)[:needed]
            for candidate in added:
                held_keys.add(dedup_key(candidate))
            places.extend(added)
            logger.info(
                "%s backfill (x%d): fetched %d, added %d, now %d/%d",
                category.value, multiplier, len(raw), len(added), len(places), k,
            )

        if len(places) == k:
            result.places[category] = places
        else:
            logger.info("%s omitted with %d of %d places", category.value, len(places), k)

    return result
