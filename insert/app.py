from __future__ import annotations

import os
import secrets

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.middleware.sessions import SessionMiddleware

from .auth.dependencies import require_admin, require_user
from .auth.users import authenticate
from .recommendations.detail_store import get_store_stats, lookup_place
from .recommendations.errors import PlacesUnavailableError, UserNotFoundError
from .recommendations.models import (
    LoginRequest,
    PlaceDetail,
    RecommendationRequest,
    RecommendationResponse,
)
from .recommendations.pipeline import generate_recommendations

app = FastAPI(title="InSert Place Recommendation API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "insert-secret-change-in-production"),
)


def _session_key(request: Request) -> str:
    """Random per-session key partitioning the place detail store."""
    key = request.session.get("detail_key")
    if not key:
        key = secrets.token_hex(16)
        request.session["detail_key"] = key
    return key


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── User endpoints ───────────────────────────────────────────────────────


@app.post("/place-recommendations", response_model=RecommendationResponse)
def place_recommendations(
    body: RecommendationRequest,
    request: Request,
    user: dict = Depends(require_user),
) -> RecommendationResponse:
    try:
        return generate_recommendations(
            body, user["id"], session_key=_session_key(request),
        )
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PlacesUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@app.get("/place-recommendations/places/{place_id}", response_model=PlaceDetail)
def place_detail(
    place_id: str,
    request: Request,
    user: dict = Depends(require_user),
) -> PlaceDetail:
    detail = lookup_place(_session_key(request), place_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Place not found")
    return detail


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/place-recommendations/store/stats")
def store_stats(user: dict = Depends(require_admin)) -> dict:
    return get_store_stats()
