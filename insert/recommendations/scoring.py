from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .models import Candidate, Category, ProfileType
from .rules import contains_any, load_rules, matches_keyword_set

logger = logging.getLogger(__name__)

_WORD_SPLIT = re.compile(r"[\s,]+")


def _step_bonus(distance_km: float | None, steps: tuple[tuple[float, float], ...]) -> float:
    if distance_km is None:
        return 0.0
    for limit, bonus in steps:
        if distance_km <= limit:
            return bonus
    return 0.0


def distance_bonus(
    distance_km: float | None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> float:
    """Strictly decreasing step bonus for proximity to the venue."""
    return _step_bonus(distance_km, config.distance_steps)


def ranking_bonus(
    index: int,
    ranking: list[int],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> float:
    """``top_n - rank`` when the candidate is within the top of the ranking signal."""
    top = ranking[: config.ranking_top_n]
    if index in top:
        return float(config.ranking_top_n - top.index(index))
    return 0.0


def is_profile_compatible(
    candidate: Candidate,
    profile: ProfileType,
    rules_path: Path | None = None,
) -> bool:
    excluded = load_rules(rules_path)["profile_exclusions"].get(profile.value, [])
    return not contains_any(candidate.text(), excluded)


def primary_theme(conditions: str, rules: dict[str, Any]) -> dict[str, Any] | None:
    """First theme whose trigger words occur in the condition text."""
    text = conditions.lower()
    for theme in rules["themes"]:
        if contains_any(text, theme["triggers"]):
            return theme
    return None


def is_full_match(
    candidate: Candidate,
    profile: ProfileType,
    conditions: str,
    rules_path: Path | None = None,
) -> bool:
    rules = load_rules(rules_path)
    if not is_profile_compatible(candidate, profile, rules_path):
        return False
    theme = primary_theme(conditions, rules)
    if theme is None:
        return False
    return matches_keyword_set(candidate.text(), rules["keyword_sets"][theme["keyword_set"]])


def detail_score(
    candidate: Candidate,
    conditions: str,
    rules_path: Path | None = None,
) -> float:
    """Stacked sub-scores for the condition families mentioned in ``conditions``."""
    rules = load_rules(rules_path)
    cond = conditions.lower()
    text = candidate.text()
    score = 0.0

    for family in rules["detail_scores"]:
        if not contains_any(cond, family["triggers"]):
            continue
        boosted = contains_any(cond, family["boost_triggers"])
        for tier in family["tiers"]:
            if contains_any(text, tier["terms"]) and not contains_any(text, tier["unless"]):
                score += tier["boosted_weight"] if boosted else tier["weight"]

    return score


def word_overlap(candidate: Candidate, conditions: str) -> float:
    """
    Fraction of condition words found in the candidate text.

    Every word counts towards the total, but one-character words never match.
    """
    words = [w for w in _WORD_SPLIT.split(conditions.lower().strip()) if w]
    if not words:
        return 0.0
    text = candidate.text()
    matched = sum(1 for w in words if len(w) > 1 and w in text)
    return matched / len(words)


def score_strict(
    candidate: Candidate,
    index: int,
    conditions: str,
    ranking: list[int],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> float:
    """Score for a full match on the strict path."""
    return (
        config.full_match_bonus
        + detail_score(candidate, conditions, config.rules_path)
        + distance_bonus(candidate.distance_km, config)
        + ranking_bonus(index, ranking, config)
        + config.strict_category_bonus
    )


def score_partial(
    overlap: float,
    candidate: Candidate,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> float:
    return (
        overlap * config.partial_overlap_weight
        + _step_bonus(candidate.distance_km, config.partial_distance_steps)
        + config.partial_category_bonus
    )


def score_relaxed(
    candidate: Candidate,
    target: Category,
    profile: ProfileType,
    conditions: str,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> float:
    """Lenient score used for backfill rounds, capped at ``relaxed_cap``."""
    rules = load_rules(config.rules_path)
    keyword_sets = rules["keyword_sets"]
    name = (candidate.name or "").lower()
    text = f"{name} {(candidate.description or '').lower()}"
    cond = conditions.lower()

    score = config.relaxed_base
    if candidate.category == target:
        score += config.relaxed_category_bonus

    cue = rules["relaxed_profile_cues"].get(profile.value)
    if cue:
        cue_set = cue.get("keyword_set")
        if contains_any(name, cue["name"]) or (
            cue_set and matches_keyword_set(text, keyword_sets[cue_set])
        ):
            score += config.relaxed_profile_bonus

    for family in rules["relaxed_condition_scores"]:
        if not contains_any(cond, family["triggers"]):
            continue
        for outcome in family["outcomes"]:
            if matches_keyword_set(text, keyword_sets[outcome["keyword_set"]]):
                score += outcome["score"]
                break

    if candidate.distance_km is not None and candidate.distance_km <= config.relaxed_distance_km:
        score += config.relaxed_distance_bonus

    return min(config.relaxed_cap, score)


def build_reason(
    candidate: Candidate,
    profile: ProfileType,
    conditions: str,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> str:
    reason_rules = load_rules(config.rules_path)["reason"]
    cond = conditions.lower()
    parts: list[str] = []

    for entry in reason_rules["profile_phrases"].get(profile.value, []):
        if contains_any(cond, entry["triggers"]):
            parts.append(entry["phrase"])
            break
    for entry in reason_rules["theme_phrases"]:
        if contains_any(cond, entry["triggers"]):
            parts.append(entry["phrase"])
            break
    parts.append(reason_rules["closing"])

    if candidate.distance_km is not None:
        for limit, minutes in config.walk_minutes:
            if candidate.distance_km <= limit:
                parts.append(reason_rules["proximity"].format(minutes=minutes))
                break

    return "".join(parts)


def build_relaxed_reason(
    candidate: Candidate,
    profile: ProfileType,
    conditions: str,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> str:
    reason_rules = load_rules(config.rules_path)["reason"]
    label = reason_rules["profile_labels"].get(profile.value, profile.value)
    return reason_rules["relaxed"].format(
        profile=label, name=candidate.name, conditions=conditions,
    ).strip()


def _distance_key(candidate: Candidate) -> tuple[bool, float]:
    return (candidate.distance_km is None, candidate.distance_km or 0.0)


def score_seeded(
    candidates: list[Candidate],
    profile: ProfileType,
    conditions: str,
    ranking: list[int],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> dict[Category, list[Candidate]]:
    """
    Score the initial candidate pool and group accepted places by category.

    Full matches are ranked by score. When a category has fewer than K full
    matches, partial matches (word overlap above the threshold) fill the
    shortfall, ranked by overlap then distance. Everything else is dropped.
    ``ranking`` holds indices into ``candidates``.
    """
    k = config.places_per_category
    seeded: dict[Category, list[Candidate]] = {}

    for category in Category:
        full: list[Candidate] = []
        partial: list[tuple[float, Candidate]] = []

        for index, candidate in enumerate(candidates):
            if candidate.category != category:
                continue
            if is_full_match(candidate, profile, conditions, config.rules_path):
                candidate.score = score_strict(candidate, index, conditions, ranking, config)
                candidate.ai_reason = build_reason(candidate, profile, conditions, config)
                full.append(candidate)
                continue
            if not is_profile_compatible(candidate, profile, config.rules_path):
                continue
            overlap = word_overlap(candidate, conditions)
            if overlap >= config.partial_overlap_threshold:
                partial.append((overlap, candidate))

        full.sort(key=lambda c: c.score, reverse=True)
        accepted = list(full)

        if len(accepted) < k and partial:
            partial.sort(key=lambda pair: (-pair[0], _distance_key(pair[1])))
            for overlap, candidate in partial[: k - len(accepted)]:
                candidate.score = score_partial(overlap, candidate, config)
                candidate.ai_reason = build_reason(candidate, profile, conditions, config)
                accepted.append(candidate)

        logger.info(
            "Seeded %s: %d full matches, %d partial candidates, %d accepted",
            category.value, len(full), len(partial), len(accepted),
        )
        seeded[category] = accepted

    return seeded
