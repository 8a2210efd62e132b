from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_RULES_PATH = Path(__file__).resolve().parent / "keyword_rules.json"


@dataclass(frozen=True)
class RecommendationConfig:
    places_per_category: int = int(os.getenv("RECOMMENDATION_PLACES_PER_CATEGORY", "3"))
    seed_fetch_count: int = 200
    first_backfill_multiplier: int = 15
    second_backfill_multiplier: int = 25

    # Strict path
    full_match_bonus: float = 80.0
    strict_category_bonus: float = 5.0
    distance_steps: tuple[tuple[float, float], ...] = (
        (0.5, 40.0),
        (1.0, 30.0),
        (1.5, 20.0),
        (2.0, 10.0),
    )
    ranking_top_n: int = 10

    # Partial path
    partial_overlap_threshold: float = 0.3
    partial_overlap_weight: float = 30.0
    partial_category_bonus: float = 2.0
    partial_distance_steps: tuple[tuple[float, float], ...] = (
        (0.5, 20.0),
        (1.0, 15.0),
        (1.5, 10.0),
    )

    # Relaxed (backfill) path
    relaxed_base: float = 50.0
    relaxed_floor: float = 50.0
    relaxed_cap: float = 100.0
    relaxed_category_bonus: float = 20.0
    relaxed_profile_bonus: float = 15.0
    relaxed_distance_bonus: float = 10.0
    relaxed_distance_km: float = 2.0

    # Reason proximity clause: (max km, walking minutes)
    walk_minutes: tuple[tuple[float, int], ...] = ((0.5, 5), (1.0, 10), (1.5, 15))

    time_budget_seconds: float = float(os.getenv("RECOMMENDATION_TIME_BUDGET", "20"))
    rules_path: Path = _RULES_PATH


DEFAULT_RECOMMENDATION_CONFIG = RecommendationConfig()
