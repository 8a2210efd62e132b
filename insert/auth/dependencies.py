from __future__ import annotations

from fastapi import HTTPException, Request

from .users import get_display_name


def get_current_user(request: Request) -> dict | None:
    """Session user, or ``None`` when the session is empty or its user is gone."""
    user = request.session.get("user")
    if not user or get_display_name(user.get("id")) is None:
        return None
    return user


def require_user(request: Request) -> dict:
    user = get_current_user(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(request: Request) -> dict:
    """401 without a session user, 403 for non-admins."""
    user = require_user(request)
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
