"""Shared dataclasses for service layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


AvailabilityType = Literal["flatrate", "rent", "buy"]
MediaType = Literal["movie", "tv"]


@dataclass(frozen=True, slots=True)
class ProviderAvailability:
    """One streaming platform offering a title, merged across buckets."""

    name: str
    logo: str | None = None
    available: bool = True
    url: str | None = None
    types: tuple[AvailabilityType, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "logo": self.logo,
            "available": self.available,
            "url": self.url,
            "types": list(self.types),
        }


@dataclass(frozen=True, slots=True)
class MovieRecord:
    """Canonical movie/TV record returned by every endpoint.

    ``rating`` and ``popularity`` are always floats so threshold filters never
    have to special-case missing scores.
    """

    id: str
    title: str
    overview: str = ""
    release_date: str | None = None
    rating: float = 0.0
    vote_count: int | None = None
    poster: str | None = None
    backdrop: str | None = None
    genres: tuple[str, ...] = ()
    director: str | None = None
    cast: tuple[str, ...] = ()
    runtime: int | None = None
    trailer_url: str | None = None
    ott_platforms: tuple[ProviderAvailability, ...] = ()
    popularity: float = 0.0
    media_type: MediaType = "movie"

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "overview": self.overview,
            "releaseDate": self.release_date,
            "rating": self.rating,
            "voteCount": self.vote_count,
            "poster": self.poster,
            "backdrop": self.backdrop,
            "genres": list(self.genres),
            "director": self.director,
            "cast": list(self.cast),
            "runtime": self.runtime,
            "trailerUrl": self.trailer_url,
            "ottPlatforms": [platform.to_payload() for platform in self.ott_platforms],
            "popularity": self.popularity,
            "mediaType": self.media_type,
        }


@dataclass(frozen=True, slots=True)
class TitleLookup:
    """Outcome of resolving one LLM title against the metadata provider."""

    title: str
    movie: MovieRecord | None = None
    error: str | None = None
    failed: bool = False

    @property
    def found(self) -> bool:
        return self.movie is not None


@dataclass(frozen=True, slots=True)
class RecommendationResult:
    mood: str
    movies: list[MovieRecord] = field(default_factory=list)
    processing_time_ms: int = 0

    @property
    def count(self) -> int:
        return len(self.movies)
