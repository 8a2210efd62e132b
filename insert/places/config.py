from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class KakaoConfig:
    api_key: str = os.getenv("KAKAO_REST_API_KEY", "")
    base_url: str = os.getenv("KAKAO_API_BASE_URL", "https://dapi.kakao.com")
    timeout: float = 5.0
    radius_m: int = 2000
    incheon_min_radius_m: int = 3000
    page_size: int = 15  # Kakao maximum per page
    max_pages: int = 3


DEFAULT_KAKAO_CONFIG = KakaoConfig()
