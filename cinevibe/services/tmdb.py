"""Async wrapper around the TMDb API used for enrichment and list rows."""

from __future__ import annotations

import logging
from typing import Any, Literal

from cinevibe.core.config import Settings, get_settings
from cinevibe.services.http import HTTPClientError, HttpStatusError, RetryingHTTPClient
from cinevibe.services.models import MediaType, MovieRecord
from cinevibe.services.normalizer import DETAIL_NORMALIZERS


logger = logging.getLogger(__name__)

Relation = Literal["recommendations", "similar"]


class TMDbError(Exception):
    """Base exception for TMDb-related failures."""


class TMDbNotFound(TMDbError):
    """Raised when TMDb has no record for the given title or id."""


class TMDbClient:
    """TMDb HTTP client supporting v4 bearer tokens and v3 API keys."""

    def __init__(
        self,
        http: RetryingHTTPClient,
        *,
        settings: Settings | None = None,
        api_key: str | None = None,
        v4_token: str | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.http = http
        self.api_key = api_key or settings.tmdb_api_key
        self.v4_token = v4_token or settings.tmdb_v4_token
        self.base_url = settings.tmdb_base_url.rstrip("/")
        self.language = settings.tmdb_language
        self.region = settings.tmdb_region
        self.image_base = settings.tmdb_image_base.rstrip("/")
        self.timeout = settings.tmdb_timeout

    async def _request(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        if not (self.v4_token or self.api_key):
            raise TMDbError("TMDB_V4_TOKEN or TMDB_API_KEY is not configured")
        query: dict[str, Any] = {"language": self.language}
        headers: dict[str, str] | None = None
        if self.v4_token:
            headers = {"Authorization": f"Bearer {self.v4_token}"}
        else:
            query["api_key"] = self.api_key
        if params:
            query.update({k: v for k, v in params.items() if v is not None})
        try:
            return await self.http.get(
                f"{self.base_url}{path}", params=query, headers=headers, timeout=self.timeout
            )
        except HttpStatusError as exc:
            if exc.status_code == 404:
                raise TMDbNotFound(f"TMDb has no resource at {path}") from exc
            raise TMDbError(f"TMDb answered {exc.status_code} for {path}") from exc
        except HTTPClientError as exc:
            raise TMDbError(f"TMDb request for {path} failed: {exc}") from exc

    async def search_movie(self, title: str) -> int:
        """Return the id of the first search hit for ``title``."""

        payload = await self._request("/search/movie", params={"query": title})
        results = payload.get("results") or []
        if not results:
            raise TMDbNotFound(f"TMDb search returned no results for '{title}'")
        first = results[0] if isinstance(results[0], dict) else {}
        if first.get("id") is None:
            raise TMDbNotFound(f"TMDb search hit for '{title}' has no id")
        return first["id"]

    async def details(self, media_type: MediaType, tmdb_id: int | str, *, include_videos: bool = True) -> MovieRecord:
        append = "videos,credits,watch/providers" if include_videos else "credits,watch/providers"
        payload = await self._request(f"/{media_type}/{tmdb_id}", params={"append_to_response": append})
        logger.debug("TMDb %s details fetched for id=%s", media_type, tmdb_id)
        try:
            return DETAIL_NORMALIZERS[media_type](payload, image_base=self.image_base, region=self.region)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise TMDbError(f"Unexpected TMDb {media_type} payload for id={tmdb_id}") from exc

    async def movie_details(self, movie_id: int | str, *, include_videos: bool = True) -> MovieRecord:
        return await self.details("movie", movie_id, include_videos=include_videos)

    async def tv_details(self, tv_id: int | str, *, include_videos: bool = True) -> MovieRecord:
        return await self.details("tv", tv_id, include_videos=include_videos)

    async def find_movie(self, title: str, *, include_videos: bool = True) -> MovieRecord:
        """Search by title and fetch full details of the first hit."""

        movie_id = await self.search_movie(title)
        return await self.movie_details(movie_id, include_videos=include_videos)

    async def trending_movies(self) -> list[dict[str, Any]]:
        payload = await self._request("/trending/movie/week")
        return payload.get("results") or []

    async def discover(self, media_type: MediaType, filters: dict[str, Any]) -> list[dict[str, Any]]:
        payload = await self._request(f"/discover/{media_type}", params={"page": 1, **filters})
        return payload.get("results") or []

    async def now_playing(self, region: str) -> list[dict[str, Any]]:
        payload = await self._request("/movie/now_playing", params={"region": region, "page": 1})
        return payload.get("results") or []

    async def upcoming(self, region: str) -> list[dict[str, Any]]:
        payload = await self._request("/movie/upcoming", params={"region": region, "page": 1})
        return payload.get("results") or []

    async def related(self, media_type: MediaType, tmdb_id: int | str, relation: Relation) -> list[dict[str, Any]]:
        payload = await self._request(f"/{media_type}/{tmdb_id}/{relation}")
        return payload.get("results") or []
