from __future__ import annotations

import logging
from pathlib import Path

from .models import Candidate, Category
from .rules import load_rules, matches_group

logger = logging.getLogger(__name__)


def _fields(candidate: Candidate) -> tuple[str, str]:
    return (candidate.name or "").lower(), (candidate.description or "").lower()


def is_rejected(candidate: Candidate, rules_path: Path | None = None) -> bool:
    """Transit hubs and public offices are not leisure destinations."""
    rules = load_rules(rules_path)
    name, description = _fields(candidate)
    return matches_group(name, description, rules["reject"])


def classify(candidate: Candidate, rules_path: Path | None = None) -> Category | None:
    """
    Derive the semantic category from name and description keywords.

    Returns ``None`` for rejected places. Rules are evaluated in table order
    and the first match wins; with no match the provider category is kept.
    """
    rules = load_rules(rules_path)
    name, description = _fields(candidate)

    if matches_group(name, description, rules["reject"]):
        return None

    groups = rules["term_groups"]
    for rule in rules["category_rules"]:
        if not any(matches_group(name, description, groups[g]) for g in rule["match"]):
            continue
        if any(matches_group(name, description, groups[g]) for g in rule["unless"]):
            continue
        return Category(rule["category"])

    return candidate.category


def classify_all(
    candidates: list[Candidate],
    rules_path: Path | None = None,
) -> list[Candidate]:
    """Relabel each candidate in place and drop rejected ones."""
    kept: list[Candidate] = []
    for candidate in candidates:
        category = classify(candidate, rules_path)
        if category is None:
            logger.debug("Rejected %r as unsuitable for a visit", candidate.name)
            continue
        if category != candidate.category:
            logger.debug(
                "Reclassified %r: %s -> %s",
                candidate.name, candidate.category.value, category.value,
            )
        candidate.category = category
        kept.append(candidate)
    return kept
