"""Long-lived service objects shared by every request."""

from __future__ import annotations

from dataclasses import dataclass

from cinevibe.core.config import Settings, get_settings
from cinevibe.db import RoomRepository, SearchHistoryRepository
from cinevibe.services.catalog import CatalogService
from cinevibe.services.http import RetryingHTTPClient, build_async_client, is_retryable
from cinevibe.services.limiter import ConcurrencyLimiter
from cinevibe.services.llm import MoodCurator
from cinevibe.services.recommender import Recommender
from cinevibe.services.retry import RetryPolicy
from cinevibe.services.tmdb import TMDbClient
from cinevibe.services.trending import TRENDING_CONCURRENCY, TrendingCache


@dataclass
class Services:
    recommender: Recommender
    trending: TrendingCache
    catalog: CatalogService
    rooms: RoomRepository
    history: SearchHistoryRepository
    http: RetryingHTTPClient | None = None

    async def aclose(self) -> None:
        if self.http is not None:
            await self.http.aclose()


def build_services(settings: Settings | None = None) -> Services:
    """Wire one pooled HTTP client into TMDb, the cache and the orchestrator."""

    settings = settings or get_settings()
    policy = RetryPolicy(
        classifier=is_retryable,
        attempts=settings.http_retry_attempts,
        base_delay=settings.http_retry_base_delay,
    )
    http = RetryingHTTPClient(
        build_async_client(timeout=settings.tmdb_timeout, force_ipv4=settings.force_ipv4),
        policy=policy,
        timeout=settings.tmdb_timeout,
    )
    tmdb = TMDbClient(http, settings=settings)
    trending = TrendingCache(
        tmdb,
        ttl=settings.trending_ttl_seconds,
        limiter=ConcurrencyLimiter(TRENDING_CONCURRENCY),
    )
    recommender = Recommender(
        curator=MoodCurator(settings=settings),
        tmdb=tmdb,
        trending=trending,
        limiter=ConcurrencyLimiter(settings.enrich_concurrency),
    )
    return Services(
        recommender=recommender,
        trending=trending,
        catalog=CatalogService(tmdb),
        rooms=RoomRepository(),
        history=SearchHistoryRepository(),
        http=http,
    )
