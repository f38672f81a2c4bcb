"""Time-bounded snapshot of this week's trending movies."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from cinevibe.services.limiter import ConcurrencyLimiter
from cinevibe.services.models import MovieRecord
from cinevibe.services.tmdb import TMDbClient, TMDbError


logger = logging.getLogger(__name__)

TRENDING_MIN_RATING = 6.0
TRENDING_LIMIT = 20
TRENDING_CONCURRENCY = 4


@dataclass(frozen=True)
class TrendingCacheEntry:
    data: tuple[MovieRecord, ...] | None = None
    timestamp: float = 0.0


class TrendingCache:
    """Serve trending movies, refreshing at most once per ``ttl`` seconds.

    A failed refresh keeps serving whatever was cached before, with its old
    timestamp, so the next read tries again. Reads never raise.
    """

    def __init__(
        self,
        tmdb: TMDbClient,
        *,
        ttl: float = 60 * 60,
        limiter: ConcurrencyLimiter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.tmdb = tmdb
        self.ttl = ttl
        self.limiter = limiter or ConcurrencyLimiter(TRENDING_CONCURRENCY)
        self.clock = clock
        self._entry = TrendingCacheEntry()

    @property
    def entry(self) -> TrendingCacheEntry:
        return self._entry

    def is_fresh(self) -> bool:
        return self._entry.data is not None and self.clock() - self._entry.timestamp < self.ttl

    def prime(self, movies: list[MovieRecord]) -> None:
        """Replace the snapshot as if a refresh had just succeeded."""

        self._entry = TrendingCacheEntry(data=tuple(movies), timestamp=self.clock())

    async def get_trending(self) -> list[MovieRecord]:
        if self.is_fresh():
            return list(self._entry.data or ())
        try:
            movies = await self._fetch()
        except TMDbError as exc:
            logger.warning("Trending refresh failed, serving previous snapshot: %s", exc)
            return list(self._entry.data or ())
        except Exception:
            logger.exception("Unexpected error refreshing trending, serving previous snapshot")
            return list(self._entry.data or ())
        self.prime(movies)
        logger.info("Trending cache refreshed with %d movies", len(movies))
        return movies

    async def _fetch(self) -> list[MovieRecord]:
        rows = await self.tmdb.trending_movies()
        ids = [
            row["id"]
            for row in rows
            if row.get("id") is not None
            and isinstance(row.get("vote_average"), (int, float))
            and row["vote_average"] > TRENDING_MIN_RATING
        ][:TRENDING_LIMIT]

        def _detail(movie_id: int):
            return lambda: self.tmdb.movie_details(movie_id, include_videos=False)

        results = await self.limiter.map(_detail(movie_id) for movie_id in ids)
        movies: list[MovieRecord] = []
        for movie_id, result in zip(ids, results):
            if isinstance(result, MovieRecord):
                movies.append(result)
            else:
                logger.debug("Dropping trending id=%s: %s", movie_id, result)
        return movies
