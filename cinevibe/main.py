"""FastAPI entrypoint exposing mood recommendations and browse rows."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from cinevibe.container import Services, build_services
from cinevibe.core.config import get_settings
from cinevibe.core.langchain_config import configure_langchain_env
from cinevibe.db import get_session, init_models
from cinevibe.services.errors import (
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from cinevibe.services.models import MovieRecord


logger = logging.getLogger(__name__)

VERSION = "2.2.0"
FEATURES = ["recommendations", "trending", "detailed-info", "more-like-this", "rooms", "history"]
AVAILABLE_ENDPOINTS = [
    "GET /api/health",
    "GET /api/trending",
    "GET /api/trending/all",
    "GET /api/now-playing",
    "GET /api/upcoming",
    "POST /api/recommend",
    "GET /api/movie/:title",
    "GET /api/details/:id",
    "GET /api/recommendations/:id",
    "POST /api/room/create",
    "GET /api/room/join/:id",
    "GET /api/history",
    "DELETE /api/history",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure tracing, ensure tables and warm the trending cache."""

    configure_langchain_env()
    init_models()
    services = get_services_from_app(app)
    warmup = None
    if get_settings().warm_trending_on_startup:
        warmup = asyncio.create_task(services.trending.get_trending())
    yield
    if warmup is not None and not warmup.done():
        warmup.cancel()
    await services.aclose()


app = FastAPI(title="CineVibe", version=VERSION, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RecommendRequest(BaseModel):
    mood: str | None = Field(default=None, description="Free-text description of the vibe")


def get_services_from_app(app: FastAPI) -> Services:
    services = getattr(app.state, "services", None)
    if services is None:
        services = build_services()
        app.state.services = services
    return services


def get_services(request: Request) -> Services:
    return get_services_from_app(request.app)


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra})


def _movies(movies: list[MovieRecord]) -> list[dict[str, Any]]:
    return [movie.to_payload() for movie in movies]


@app.exception_handler(ValidationError)
async def handle_validation_error(_: Request, exc: ValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")


@app.exception_handler(NotFoundError)
async def handle_not_found(_: Request, exc: NotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(ConflictError)
async def handle_conflict(_: Request, exc: ConflictError) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, str(exc))


@app.exception_handler(UpstreamError)
async def handle_upstream(_: Request, exc: UpstreamError) -> JSONResponse:
    logger.warning("Upstream %s failure: %s", exc.kind, exc)
    if exc.kind == "ai":
        return _error(exc.status_code, "AI service temporarily unavailable")
    return _error(exc.status_code, str(exc))


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return _error(exc.status_code, "Endpoint not found", availableEndpoints=AVAILABLE_ENDPOINTS)
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.get("/api/health")
async def health() -> dict[str, Any]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "features": FEATURES,
    }


@app.get("/api/trending")
async def trending(services: Services = Depends(get_services)) -> dict[str, Any]:
    movies = await services.trending.get_trending()
    return {
        "success": True,
        "count": len(movies),
        "movies": _movies(movies),
        "cached": services.trending.is_fresh(),
    }


@app.get("/api/trending/all")
async def trending_all(services: Services = Depends(get_services)) -> dict[str, Any]:
    rows = await services.catalog.trending_all()
    return {"success": True, **{name: _movies(movies) for name, movies in rows.items()}}


@app.get("/api/now-playing")
async def now_playing(services: Services = Depends(get_services)) -> dict[str, Any]:
    rows = await services.catalog.now_playing()
    return {"success": True, **{name: _movies(movies) for name, movies in rows.items()}}


@app.get("/api/upcoming")
async def upcoming(services: Services = Depends(get_services)) -> dict[str, Any]:
    rows = await services.catalog.upcoming()
    return {"success": True, **{name: _movies(movies) for name, movies in rows.items()}}


@app.post("/api/recommend")
async def recommend(
    payload: RecommendRequest,
    services: Services = Depends(get_services),
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    """Turn a mood into movies; the mood is remembered once it succeeds."""

    result = await services.recommender.recommend(payload.mood or "")
    try:
        services.history.record(session, result.mood)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.warning("Could not save search history", exc_info=True)
    return {
        "success": True,
        "mood": result.mood,
        "count": result.count,
        "movies": _movies(result.movies),
        "processingTime": result.processing_time_ms,
    }


@app.get("/api/movie/{title}")
async def movie_by_title(title: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    if not title.strip():
        raise ValidationError("Movie title is required")
    movie = await services.catalog.movie_by_title(title.strip())
    return {"success": True, "movie": movie.to_payload()}


@app.get("/api/details/{tmdb_id}")
async def details(tmdb_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    if not tmdb_id.strip():
        raise ValidationError("ID is required")
    movie = await services.catalog.details_by_id(tmdb_id.strip())
    return {"success": True, "movie": movie.to_payload()}


@app.get("/api/recommendations/{tmdb_id}")
async def recommendations(tmdb_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    if not tmdb_id.strip():
        raise ValidationError("ID is required")
    movies = await services.catalog.recommendations_by_id(tmdb_id.strip())
    return {"success": True, "count": len(movies), "movies": _movies(movies)}


@app.post("/api/room/create")
def create_room(
    services: Services = Depends(get_services),
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    room = services.rooms.create(session)
    return {"success": True, "roomId": room.id}


@app.get("/api/room/join/{room_id}")
def join_room(
    room_id: str,
    services: Services = Depends(get_services),
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    room = services.rooms.get(session, room_id)
    if room is None:
        raise NotFoundError("Room not found")
    return {"success": True, "roomId": room.id}


@app.get("/api/history")
def list_history(
    services: Services = Depends(get_services),
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    items = services.history.list_recent(session)
    return {
        "success": True,
        "count": len(items),
        "history": [
            {"id": item.id, "mood": item.mood, "timestamp": item.created_at.isoformat()}
            for item in items
        ],
    }


@app.delete("/api/history")
def clear_history(
    services: Services = Depends(get_services),
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    services.history.clear(session)
    return {"success": True}
