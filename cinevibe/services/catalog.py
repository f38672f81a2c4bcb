"""Browse rows and per-id lookups served next to mood recommendations."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Awaitable, Callable

from cinevibe.services.errors import NotFoundError, UpstreamError
from cinevibe.services.models import MediaType, MovieRecord
from cinevibe.services.normalizer import normalize_summary
from cinevibe.services.tmdb import Relation, TMDbClient, TMDbError, TMDbNotFound


logger = logging.getLogger(__name__)

RELATED_MIN_RATING = 5.0
RELATED_LIMIT = 18
ANIMATION_GENRE = "16"
BROWSE_FAILURE_STATUS = 502


class CatalogService:
    """Thin layer turning TMDb list endpoints into ``MovieRecord`` rows."""

    def __init__(self, tmdb: TMDbClient, *, today: Callable[[], date] = date.today) -> None:
        self.tmdb = tmdb
        self.today = today

    async def movie_by_title(self, title: str) -> MovieRecord:
        try:
            return await self.tmdb.find_movie(title)
        except TMDbNotFound as exc:
            raise NotFoundError("Movie not found") from exc
        except TMDbError as exc:
            raise UpstreamError("metadata", "Failed to search for movie") from exc

    async def details_by_id(self, tmdb_id: str) -> MovieRecord:
        """Look the id up as a movie first, then as a TV show."""

        for media_type in ("movie", "tv"):
            try:
                return await self.tmdb.details(media_type, tmdb_id, include_videos=False)
            except TMDbError as exc:
                logger.debug("No %s details for id=%s: %s", media_type, tmdb_id, exc)
        raise NotFoundError("Movie/TV not found")

    async def recommendations_by_id(self, tmdb_id: str) -> list[MovieRecord]:
        """Merge recommendations and similar titles for a movie or TV id."""

        sources: list[tuple[MediaType, Relation]] = [
            ("movie", "recommendations"),
            ("movie", "similar"),
            ("tv", "recommendations"),
            ("tv", "similar"),
        ]
        merged: dict[Any, MovieRecord] = {}
        for media_type, relation in sources:
            try:
                rows = await self.tmdb.related(media_type, tmdb_id, relation)
            except TMDbError as exc:
                logger.debug("Skipping %s %s for id=%s: %s", media_type, relation, tmdb_id, exc)
                continue
            for row in rows:
                merged[row.get("id")] = normalize_summary(row, image_base=self.tmdb.image_base)
        strong = [movie for movie in merged.values() if movie.rating > RELATED_MIN_RATING]
        return strong[:RELATED_LIMIT]

    async def trending_all(self) -> dict[str, list[MovieRecord]]:
        try:
            hollywood = await self.tmdb.trending_movies()
            bollywood = await self.tmdb.discover(
                "movie",
                {"with_original_language": "hi", "sort_by": "popularity.desc", "vote_count.gte": 50},
            )
        except TMDbError as exc:
            raise UpstreamError("metadata", "Failed to fetch trending", status_code=BROWSE_FAILURE_STATUS) from exc
        return {
            "hollywood": self._rows(hollywood),
            "bollywood": self._rows(bollywood),
            "anime": await self.anime_trending(),
        }

    async def now_playing(self) -> dict[str, list[MovieRecord]]:
        try:
            us = await self.tmdb.now_playing("US")
            india = await self.tmdb.now_playing("IN")
        except TMDbError as exc:
            raise UpstreamError("metadata", "Failed to fetch now playing", status_code=BROWSE_FAILURE_STATUS) from exc
        return {"us": self._rows(us), "in": self._rows(india)}

    async def upcoming(self) -> dict[str, list[MovieRecord]]:
        today = self.today().isoformat()
        try:
            us = await self.tmdb.upcoming("US")
            india = await self.tmdb.upcoming("IN")
            hindi = await self.tmdb.discover(
                "movie",
                {
                    "with_original_language": "hi",
                    "sort_by": "primary_release_date.asc",
                    "primary_release_date.gte": today,
                },
            )
        except TMDbError as exc:
            raise UpstreamError("metadata", "Failed to fetch upcoming", status_code=BROWSE_FAILURE_STATUS) from exc

        by_id: dict[Any, dict[str, Any]] = {}
        for row in [*india, *hindi]:
            by_id[row.get("id")] = row
        return {
            "hollywood": self._rows(us),
            "bollywood": self._rows(list(by_id.values())),
            "anime": await self.anime_upcoming(),
        }

    async def anime_trending(self) -> list[MovieRecord]:
        popular = {"with_genres": ANIMATION_GENRE, "sort_by": "popularity.desc", "vote_count.gte": 20}
        return await self._first_non_empty(
            lambda: self.tmdb.discover("movie", {"with_original_language": "ja", **popular}),
            lambda: self.tmdb.discover("movie", popular),
            lambda: self.tmdb.discover("tv", popular),
        )

    async def anime_upcoming(self) -> list[MovieRecord]:
        today = self.today().isoformat()
        by_release = {
            "with_genres": ANIMATION_GENRE,
            "sort_by": "primary_release_date.asc",
            "primary_release_date.gte": today,
        }
        return await self._first_non_empty(
            lambda: self.tmdb.discover("movie", {"with_original_language": "ja", **by_release}),
            lambda: self.tmdb.upcoming("JP"),
            lambda: self.tmdb.discover("movie", by_release),
            lambda: self.tmdb.discover(
                "tv",
                {"with_genres": ANIMATION_GENRE, "sort_by": "first_air_date.asc", "first_air_date.gte": today},
            ),
        )

    async def _first_non_empty(self, *fetchers: Callable[[], Awaitable[list[dict[str, Any]]]]) -> list[MovieRecord]:
        for fetch in fetchers:
            try:
                rows = await fetch()
            except TMDbError as exc:
                logger.debug("Anime source failed, trying next: %s", exc)
                continue
            if rows:
                return self._rows(rows)
        return []

    def _rows(self, rows: list[dict[str, Any]]) -> list[MovieRecord]:
        return [normalize_summary(row, image_base=self.tmdb.image_base) for row in rows]
