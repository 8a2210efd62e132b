from __future__ import annotations

import logging
import math
import re
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

import requests

from ..recommendations.models import Candidate, Category
from .config import DEFAULT_KAKAO_CONFIG, KakaoConfig

logger = logging.getLogger(__name__)
_session = requests.Session()

EARTH_RADIUS_KM = 6371.0
VENUE_MEMO_SIZE = 256

# Kakao category group codes searched for each category
CATEGORY_GROUP_CODES: dict[Category, tuple[str, ...]] = {
    Category.ACTIVITY: ("AT4", "CT1"),  # tourist attractions, culture
    Category.DINING: ("FD6",),
    Category.CAFE: ("CE7",),
}

# Incheon bounding box: (min lat, max lat, min lon, max lon)
_INCHEON_BOUNDS = (37.3, 37.8, 126.4, 126.8)

# Venues the keyword search struggles with; every term must occur in the
# whitespace-free, lower-cased venue name.
KNOWN_VENUES: list[tuple[tuple[str, ...], tuple[float, float]]] = [
    (("인천", "문학"), (37.4344, 126.6941)),
    (("인천", "아시아드"), (37.4344, 126.6941)),
    (("인천", "월드컵"), (37.4344, 126.6941)),
    (("인스파이어",), (37.4560, 126.6750)),
    (("송도", "컨벤션"), (37.3925, 126.6399)),
    (("송도", "아트"), (37.3925, 126.6399)),
    (("송도", "공연"), (37.3925, 126.6399)),
    (("인천", "국제공항"), (37.4602, 126.4407)),
    (("인천", "부평"), (37.4894, 126.7245)),
    (("강남",), (37.5172, 127.0473)),
    (("홍대",), (37.5572, 126.9254)),
    (("강북",), (37.6396, 127.0257)),
    (("잠실",), (37.5139, 127.1006)),
    (("명동",), (37.5609, 126.9855)),
    (("동대문",), (37.5714, 127.0098)),
    (("신촌",), (37.5551, 126.9368)),
    (("이태원",), (37.5344, 126.9941)),
    (("건대",), (37.5407, 127.0828)),
    (("신림",), (37.4842, 126.9294)),
    (("서울역",), (37.5547, 126.9706)),
    (("용산",), (37.5298, 126.9645)),
    (("영등포",), (37.5155, 126.9076)),
    (("부천",), (37.4840, 126.7827)),
]

_NON_QUERY_CHARS = re.compile(r"[^가-힣a-zA-Z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_VENUE_SUFFIX = re.compile(
    r"(주경기장|경기장|체육관|공연장|컨벤션센터|컨벤션|아트센터|센터|아레나"
    r"|콘서트|공연|축제|이벤트|문화|예술|스포츠|체육)$"
)


class PlaceSearchError(Exception):
    """The places provider could not be reached or returned a malformed response."""


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def query_variations(venue_name: str) -> list[str]:
    """Progressively looser keyword queries for a venue name."""
    cleaned = _WHITESPACE.sub(" ", _NON_QUERY_CHARS.sub("", venue_name)).strip()
    without_station = re.sub(r"역$", "", cleaned).strip()
    without_district = re.sub(r"(구|동)$", "", without_station).strip()
    without_suffix = _VENUE_SUFFIX.sub("", without_district).strip()
    compact = _WHITESPACE.sub("", without_suffix)

    variations: list[str] = []
    for query in (cleaned, without_station, without_district, without_suffix, compact):
        if query and query not in variations:
            variations.append(query)
    return variations


def known_venue(venue_name: str) -> Coordinates | None:
    normalized = _WHITESPACE.sub("", venue_name.lower())
    for terms, (lat, lon) in KNOWN_VENUES:
        if all(term in normalized for term in terms):
            return Coordinates(lat, lon)
    return None


def is_incheon(coords: Coordinates) -> bool:
    min_lat, max_lat, min_lon, max_lon = _INCHEON_BOUNDS
    return min_lat <= coords.latitude <= max_lat and min_lon <= coords.longitude <= max_lon


def _to_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class KakaoPlacesClient:
    """Places search gateway backed by the Kakao Local REST API."""

    def __init__(self, config: KakaoConfig = DEFAULT_KAKAO_CONFIG) -> None:
        self.config = config
        self._venues: OrderedDict[str, Coordinates | None] = OrderedDict()
        self._venues_lock = threading.Lock()

    # ── HTTP ────────────────────────────────────────────────────────────

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        if not self.config.api_key:
            raise PlaceSearchError("KAKAO_REST_API_KEY is not configured")
        try:
            resp = _session.get(
                f"{self.config.base_url}{path}",
                params=params,
                headers={"Authorization": f"KakaoAK {self.config.api_key}"},
                timeout=self.config.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise PlaceSearchError(f"Kakao request to {path} failed: {exc}") from exc

        if not isinstance(data, dict) or not isinstance(data.get("documents", []), list):
            raise PlaceSearchError(f"Malformed Kakao response from {path}")
        return data

    # ── Venue resolution ────────────────────────────────────────────────

    def resolve_venue(self, venue_name: str) -> Coordinates | None:
        """
        Venue coordinates from keyword search, then the known-venue table.

        A failed query moves on to the next variation. ``PlaceSearchError`` is
        raised only when queries failed and the table has no entry either.
        """
        with self._venues_lock:
            if venue_name in self._venues:
                self._venues.move_to_end(venue_name)
                return self._venues[venue_name]

        coords = None
        last_error: PlaceSearchError | None = None
        for query in query_variations(venue_name):
            try:
                data = self._get(
                    "/v2/local/search/keyword.json",
                    {"query": query, "size": self.config.page_size, "page": 1, "sort": "accuracy"},
                )
            except PlaceSearchError as exc:
                logger.warning("Keyword search for %r failed: %s", query, exc)
                last_error = exc
                continue
            documents = data.get("documents", [])
            if documents:
                lat = _to_float(documents[0].get("y"))
                lon = _to_float(documents[0].get("x"))
                if lat is not None and lon is not None:
                    coords = Coordinates(lat, lon)
                    logger.info("Resolved venue %r via query %r", venue_name, query)
                    break

        if coords is None:
            coords = known_venue(venue_name)
            if coords:
                logger.info("Resolved venue %r from the known-venue table", venue_name)
            elif last_error is not None:
                # not a genuine miss, so nothing is memoised
                raise last_error
            else:
                logger.warning("Could not resolve venue %r", venue_name)

        with self._venues_lock:
            self._venues[venue_name] = coords
            if len(self._venues) > VENUE_MEMO_SIZE:
                self._venues.popitem(last=False)
        return coords

    def search_radius(self, coords: Coordinates) -> int:
        if is_incheon(coords):
            return max(self.config.radius_m, self.config.incheon_min_radius_m)
        return self.config.radius_m

    # ── Category search ─────────────────────────────────────────────────

    def _to_candidate(
        self,
        doc: dict[str, Any],
        category: Category,
        venue: Coordinates,
    ) -> Candidate | None:
        lat = _to_float(doc.get("y"))
        lon = _to_float(doc.get("x"))
        if not doc.get("id") or lat is None or lon is None:
            return None

        distance_m = _to_float(doc.get("distance"))
        if distance_m is not None:
            distance_km = round(distance_m / 1000.0, 3)
        else:
            distance_km = round(haversine_km(venue, Coordinates(lat, lon)), 3)

        return Candidate(
            id=str(doc["id"]),
            name=doc.get("place_name"),
            description=doc.get("category_name"),
            address=doc.get("road_address_name") or doc.get("address_name"),
            category=category,
            latitude=lat,
            longitude=lon,
            distance_km=distance_km,
            phone=doc.get("phone") or None,
            place_url=doc.get("place_url") or None,
        )

    def _search_code(
        self,
        venue: Coordinates,
        code: str,
        category: Category,
        limit: int,
    ) -> list[Candidate]:
        radius = self.search_radius(venue)
        found: list[Candidate] = []

        for page in range(1, self.config.max_pages + 1):
            data = self._get(
                "/v2/local/search/category.json",
                {
                    "category_group_code": code,
                    "x": venue.longitude,
                    "y": venue.latitude,
                    "radius": radius,
                    "size": self.config.page_size,
                    "page": page,
                    "sort": "distance",
                },
            )
            for doc in data.get("documents", []):
                candidate = self._to_candidate(doc, category, venue)
                if candidate is not None:
                    found.append(candidate)
            if len(found) >= limit or data.get("meta", {}).get("is_end", True):
                break

        return found[:limit]

    def _search(
        self,
        venue_name: str,
        categories: list[Category],
        approx_count: int,
    ) -> list[Candidate]:
        venue = self.resolve_venue(venue_name)
        if venue is None:
            return []

        codes = [(code, category) for category in categories for code in CATEGORY_GROUP_CODES[category]]
        per_code = max(1, math.ceil(approx_count / len(codes)))

        candidates: list[Candidate] = []
        for code, category in codes:
            candidates.extend(self._search_code(venue, code, category, per_code))

        logger.info(
            "Kakao search near %r (%s) returned %d places",
            venue_name, ", ".join(c.value for c in categories), len(candidates),
        )
        return candidates

    def search_near(self, venue_name: str, approx_count: int) -> list[Candidate]:
        return self._search(venue_name, list(Category), approx_count)

    def search_near_by_category(
        self,
        venue_name: str,
        category: Category,
        approx_count: int,
    ) -> list[Candidate]:
        return self._search(venue_name, [category], approx_count)


_client: KakaoPlacesClient | None = None


def get_gateway() -> KakaoPlacesClient:
    """Return the shared Kakao client, creating it on first call."""
    global _client
    if _client is None:
        _client = KakaoPlacesClient()
    return _client
