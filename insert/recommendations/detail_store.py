from __future__ import annotations

import threading
import time
from typing import Any

from .models import Candidate, PlaceDetail

_store: dict[str, dict[str, Any]] = {}
_lock = threading.Lock()
_DEFAULT_TTL = 600  # 10 minutes


def _purge_expired(now: float) -> None:
    # caller holds _lock
    expired = [key for key, entry in _store.items() if now - entry["created_at"] >= _DEFAULT_TTL]
    for key in expired:
        _store.pop(key, None)


def remember_places(session_key: str, places: list[Candidate]) -> None:
    """Replace the session's stored places with the latest recommendation."""
    details = {
        c.id: PlaceDetail(
            id=c.id,
            name=c.name or "",
            description=c.description,
            address=c.address,
            latitude=c.latitude,
            longitude=c.longitude,
            rating=c.rating,
            ai_reason=c.ai_reason,
            distance_from_venue=c.distance_km,
            category=c.category,
            phone=c.phone,
            place_url=c.place_url,
        )
        for c in places
    }
    now = time.time()
    with _lock:
        _purge_expired(now)
        _store[session_key] = {"places": details, "created_at": now}


def lookup_place(session_key: str, place_id: str) -> PlaceDetail | None:
    now = time.time()
    with _lock:
        entry = _store.get(session_key)
        if entry is None:
            return None
        if now - entry["created_at"] >= _DEFAULT_TTL:
            _store.pop(session_key, None)
            return None
        return entry["places"].get(place_id)


def get_store_stats() -> dict:
    with _lock:
        return {
            "sessions": len(_store),
            "places": sum(len(entry["places"]) for entry in _store.values()),
        }


def clear_store() -> None:
    with _lock:
        _store.clear()
