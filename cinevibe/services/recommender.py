"""Mood -> movies pipeline.

The curator proposes titles, every title is resolved against TMDb in
parallel, weak or missing matches are dropped and, when too few survive, the
list is topped up from the trending cache.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Callable

from cinevibe.services.errors import UpstreamError, ValidationError
from cinevibe.services.limiter import ConcurrencyLimiter
from cinevibe.services.llm import CuratorError, MoodCurator
from cinevibe.services.models import MovieRecord, RecommendationResult, TitleLookup
from cinevibe.services.tmdb import TMDbClient, TMDbError, TMDbNotFound
from cinevibe.services.trending import TrendingCache


logger = logging.getLogger(__name__)

MAX_MOOD_LENGTH = 500
MAX_CANDIDATES = 30
MIN_RATING = 5.0
MIN_RESULTS = 8
TARGET_RESULTS = 15

_ENUMERATION = re.compile(r"^[0-9]+[.)\-\s]*")


def validate_mood(mood: str | None) -> str:
    """Return the trimmed mood or raise ``ValidationError``."""

    normalized = (mood or "").strip()
    if not normalized:
        raise ValidationError("Mood is required and must be non-empty")
    if len(normalized) > MAX_MOOD_LENGTH:
        raise ValidationError(f"Mood too long (max {MAX_MOOD_LENGTH} chars)")
    return normalized


def parse_titles(text: str, *, limit: int = MAX_CANDIDATES) -> list[str]:
    """Split a free-text answer into titles, dropping list numbering and blanks."""

    titles = []
    for line in text.splitlines():
        title = _ENUMERATION.sub("", line.strip()).strip()
        if title:
            titles.append(title)
    return titles[:limit]


def supplement(movies: list[MovieRecord], extra: list[MovieRecord], *, target: int = TARGET_RESULTS) -> list[MovieRecord]:
    """Append ``extra`` entries with unseen ids until ``target`` is reached."""

    seen = {movie.id for movie in movies}
    combined = list(movies)
    for movie in extra:
        if len(combined) >= target:
            break
        if movie.id in seen:
            continue
        seen.add(movie.id)
        combined.append(movie)
    return combined


class Recommender:
    def __init__(
        self,
        *,
        curator: MoodCurator,
        tmdb: TMDbClient,
        trending: TrendingCache,
        limiter: ConcurrencyLimiter | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.curator = curator
        self.tmdb = tmdb
        self.trending = trending
        self.limiter = limiter or ConcurrencyLimiter(None)
        self.clock = clock

    async def recommend(self, mood: str) -> RecommendationResult:
        normalized = validate_mood(mood)
        started = self.clock()

        titles = await self._suggest_titles(normalized)
        lookups = await self.enrich(titles)

        if lookups and all(lookup.failed for lookup in lookups):
            raise UpstreamError("metadata", "Movie database temporarily unavailable")

        movies: list[MovieRecord] = []
        seen: set[str] = set()
        for lookup in lookups:
            movie = lookup.movie
            if movie is None or movie.rating <= MIN_RATING or movie.id in seen:
                continue
            seen.add(movie.id)
            movies.append(movie)

        if len(movies) < MIN_RESULTS:
            logger.info("Only %d strong matches for mood, supplementing from trending", len(movies))
            movies = supplement(movies, await self.trending.get_trending())

        elapsed_ms = int((self.clock() - started) * 1000)
        return RecommendationResult(mood=normalized, movies=movies, processing_time_ms=elapsed_ms)

    async def enrich(self, titles: list[str]) -> list[TitleLookup]:
        """Resolve every title concurrently; results follow ``titles`` order."""

        return list(
            await asyncio.gather(*(self.limiter.schedule(lambda t=title: self._lookup(t)) for title in titles))
        )

    async def _suggest_titles(self, mood: str) -> list[str]:
        try:
            text = await self.curator.suggest(mood)
        except CuratorError as exc:
            raise UpstreamError("ai", "AI service temporarily unavailable") from exc
        titles = parse_titles(text)
        if not titles:
            raise UpstreamError("ai", "No movie recommendations generated")
        logger.debug("Curator proposed %d titles", len(titles))
        return titles

    async def _lookup(self, title: str) -> TitleLookup:
        try:
            movie = await self.tmdb.find_movie(title)
        except TMDbNotFound as exc:
            return TitleLookup(title=title, error=str(exc))
        except TMDbError as exc:
            logger.debug("Lookup failed for %r: %s", title, exc)
            return TitleLookup(title=title, error=str(exc), failed=True)
        except Exception as exc:
            logger.warning("Unexpected error resolving %r: %s", title, exc.__class__.__name__, exc_info=True)
            return TitleLookup(title=title, error=exc.__class__.__name__, failed=True)
        return TitleLookup(title=title, movie=movie)
