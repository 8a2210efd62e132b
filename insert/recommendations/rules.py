from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .config import DEFAULT_RECOMMENDATION_CONFIG

_rules: dict[Path, dict[str, Any]] = {}

_REQUIRED_SECTIONS = (
    "reject",
    "term_groups",
    "category_rules",
    "profile_exclusions",
    "keyword_sets",
    "themes",
    "detail_scores",
    "relaxed_profile_cues",
    "relaxed_condition_scores",
    "reason",
)


def _load(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as fh:
        rules = json.load(fh)

    missing = [section for section in _REQUIRED_SECTIONS if section not in rules]
    if missing:
        raise ValueError(f"Keyword rules at {path} missing sections: {', '.join(missing)}")

    # Lowercase every term once so matching is a plain substring check
    for group in rules["term_groups"].values():
        group["name"] = [t.lower() for t in group.get("name", [])]
        group["description"] = [t.lower() for t in group.get("description", [])]
    for keyword_set in rules["keyword_sets"].values():
        keyword_set["include"] = [t.lower() for t in keyword_set.get("include", [])]
        keyword_set["exclude"] = [t.lower() for t in keyword_set.get("exclude", [])]
    rules["profile_exclusions"] = {
        profile: [t.lower() for t in terms]
        for profile, terms in rules["profile_exclusions"].items()
    }
    return rules


def load_rules(path: Path | None = None) -> dict[str, Any]:
    """Return the keyword rule tables, loading the JSON file on first call."""
    path = path or DEFAULT_RECOMMENDATION_CONFIG.rules_path
    if path not in _rules:
        _rules[path] = _load(path)
    return _rules[path]


def clear_rules() -> None:
    _rules.clear()


def contains_any(text: str, terms: list[str]) -> bool:
    return any(term in text for term in terms)


def matches_group(name: str, description: str, group: dict[str, list[str]]) -> bool:
    """True when a name term is in ``name`` or a description term is in ``description``."""
    return contains_any(name, group["name"]) or contains_any(description, group["description"])


def matches_keyword_set(text: str, keyword_set: dict[str, list[str]]) -> bool:
    if contains_any(text, keyword_set["exclude"]):
        return False
    return contains_any(text, keyword_set["include"])
