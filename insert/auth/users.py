from __future__ import annotations

from typing import Any

import bcrypt

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _seed_users() -> None:
    """Pre-seed demo users on import."""
    _users["user"] = {
        "id": 1,
        "display_name": "인시트",
        "password_hash": _hash_password("user123"),
        "role": "user",
    }
    _users["admin"] = {
        "id": 2,
        "display_name": "관리자",
        "password_hash": _hash_password("admin123"),
        "role": "admin",
    }


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{id, username, display_name, role}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {
            "id": record["id"],
            "username": username,
            "display_name": record["display_name"],
            "role": record["role"],
        }
    return None


def get_display_name(user_id: int) -> str | None:
    for record in _users.values():
        if record["id"] == user_id:
            return record["display_name"]
    return None


_seed_users()
