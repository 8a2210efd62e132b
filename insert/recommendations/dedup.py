from __future__ import annotations

import logging
import re

from .models import Candidate

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def _normalise(value: str | None) -> str:
    return _WHITESPACE.sub(" ", (value or "").strip().lower())


def dedup_key(candidate: Candidate) -> str:
    return f"{_normalise(candidate.name)}|{_normalise(candidate.address)}"


def _should_replace(held: Candidate, newcomer: Candidate) -> bool:
    """Prefer higher rating, then shorter distance; otherwise keep the held entry."""
    if (
        held.rating is not None
        and newcomer.rating is not None
        and newcomer.rating != held.rating
    ):
        return newcomer.rating > held.rating
    if held.distance_km is not None and newcomer.distance_km is not None:
        return newcomer.distance_km < held.distance_km
    return False


def deduplicate(candidates: list[Candidate]) -> list[Candidate]:
    """
    Collapse candidates sharing a normalised (name, address) key.

    Candidates without a name are dropped. The surviving entry keeps the
    position of the first occurrence of its key.
    """
    kept: dict[str, Candidate] = {}
    dropped_blank = 0

    for candidate in candidates:
        if not (candidate.name or "").strip():
            dropped_blank += 1
            continue
        key = dedup_key(candidate)
        held = kept.get(key)
        if held is None:
            kept[key] = candidate
        elif _should_replace(held, candidate):
            # dict keeps the first insertion slot on reassignment
            kept[key] = candidate

    logger.debug(
        "Deduplicated %d candidates into %d (%d without a name)",
        len(candidates), len(kept), dropped_blank,
    )
    return list(kept.values())
