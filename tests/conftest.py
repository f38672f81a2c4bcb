import asyncio
from typing import Any

import pytest

from cinevibe.services.models import MovieRecord
from cinevibe.services.tmdb import TMDbError, TMDbNotFound


def make_movie(movie_id: str, *, rating: float = 7.0, title: str | None = None) -> MovieRecord:
    return MovieRecord(id=movie_id, title=title or f"Movie {movie_id}", rating=rating)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTMDb:
    """In-memory stand-in for ``TMDbClient`` that records every call."""

    image_base = "https://image.tmdb.org/t/p"

    def __init__(
        self,
        *,
        by_title: dict[str, MovieRecord] | None = None,
        failing_titles: set[str] | None = None,
        details: dict[str, MovieRecord] | None = None,
        trending_rows: list[dict[str, Any]] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.by_title = by_title or {}
        self.failing_titles = failing_titles or set()
        self.details_by_id = details or {}
        self.trending_rows = trending_rows or []
        self.delays = delays or {}
        self.trending_error: Exception | None = None
        self.lists: dict[str, list[dict[str, Any]]] = {}
        self.list_errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, Any]] = []

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    async def find_movie(self, title: str, *, include_videos: bool = True) -> MovieRecord:
        self.calls.append(("find_movie", title))
        if title in self.delays:
            await asyncio.sleep(self.delays[title])
        if title in self.failing_titles:
            raise TMDbError(f"search failed for {title}")
        if title not in self.by_title:
            raise TMDbNotFound(title)
        return self.by_title[title]

    async def details(self, media_type: str, tmdb_id: Any, *, include_videos: bool = True) -> MovieRecord:
        self.calls.append(("details", (media_type, str(tmdb_id))))
        movie = self.details_by_id.get(f"{media_type}:{tmdb_id}")
        if movie is None:
            raise TMDbNotFound(f"{media_type}/{tmdb_id}")
        return movie

    async def movie_details(self, movie_id: Any, *, include_videos: bool = True) -> MovieRecord:
        return await self.details("movie", movie_id, include_videos=include_videos)

    async def trending_movies(self) -> list[dict[str, Any]]:
        self.calls.append(("trending_movies", None))
        if self.trending_error is not None:
            raise self.trending_error
        return self.trending_rows

    async def _list(self, key: str) -> list[dict[str, Any]]:
        self.calls.append(("list", key))
        if key in self.list_errors:
            raise self.list_errors[key]
        return self.lists.get(key, [])

    async def discover(self, media_type: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        language = filters.get("with_original_language", "any")
        genre = filters.get("with_genres", "any")
        return await self._list(f"discover:{media_type}:{language}:{genre}")

    async def now_playing(self, region: str) -> list[dict[str, Any]]:
        return await self._list(f"now_playing:{region}")

    async def upcoming(self, region: str) -> list[dict[str, Any]]:
        return await self._list(f"upcoming:{region}")

    async def related(self, media_type: str, tmdb_id: Any, relation: str) -> list[dict[str, Any]]:
        return await self._list(f"{media_type}:{relation}")


class FakeCurator:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[str] = []

    async def suggest(self, mood: str) -> str:
        self.calls.append(mood)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def clock():
    return FakeClock()
