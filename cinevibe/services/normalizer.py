"""Turn raw TMDb movie/TV payloads into ``MovieRecord`` values.

TMDb uses different field names for movies (``title``, ``release_date``,
``runtime``) and TV shows (``name``, ``first_air_date``,
``episode_run_time``). Each payload shape gets its own normalizer; list rows
(trending, discover, upcoming...) go through ``normalize_summary`` which
accepts either shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from cinevibe.services.models import AvailabilityType, MediaType, MovieRecord, ProviderAvailability


DEFAULT_IMAGE_BASE = "https://image.tmdb.org/t/p"
AVAILABILITY_BUCKETS: tuple[AvailabilityType, ...] = ("flatrate", "rent", "buy")
CAST_LIMIT = 10
WATCH_REGION = "US"


@dataclass(frozen=True)
class Platform:
    name: str
    logo: str
    base_url: str


OTT_PLATFORMS: tuple[Platform, ...] = (
    Platform("Netflix", "/logos/netflix.png", "https://netflix.com"),
    Platform("Prime Video", "/logos/prime.png", "https://primevideo.com"),
    Platform("Disney+", "/logos/disney.png", "https://disneyplus.com"),
    Platform("Hulu", "/logos/hulu.png", "https://hulu.com"),
    Platform("Max", "/logos/hbo.png", "https://max.com"),
    Platform("Apple TV+", "/logos/apple.png", "https://tv.apple.com"),
    Platform("Paramount+", "/logos/paramount.png", "https://paramountplus.com"),
    Platform("Peacock", "/logos/peacock.png", "https://peacocktv.com"),
    Platform("YouTube", "/logos/youtube.png", "https://youtube.com"),
    Platform("Tubi", "/logos/tubi.png", "https://tubi.tv"),
)


def match_platform(name: str, catalog: Iterable[Platform] = OTT_PLATFORMS) -> Platform | None:
    """Find the catalog platform for an observed provider name."""

    lowered = name.lower()
    platforms = list(catalog)
    rules: tuple[Callable[[str], bool], ...] = (
        lambda known: known == lowered,
        lambda known: known in lowered,
        lambda known: lowered in known,
    )
    for rule in rules:
        for platform in platforms:
            if rule(platform.name.lower()):
                return platform
    return None


def normalize_providers(block: Mapping[str, Any] | None) -> list[ProviderAvailability]:
    """Collapse a region's flatrate/rent/buy buckets into one entry per platform."""

    if not block:
        return []
    seen: dict[str, tuple[str, list[AvailabilityType]]] = {}
    for bucket in AVAILABILITY_BUCKETS:
        for entry in block.get(bucket) or []:
            name = (entry.get("provider_name") or "").strip()
            if not name:
                continue
            key = name.lower()
            if key not in seen:
                seen[key] = (name, [])
            types = seen[key][1]
            if bucket not in types:
                types.append(bucket)

    link = block.get("link") or None
    platforms: list[ProviderAvailability] = []
    for name, types in seen.values():
        match = match_platform(name)
        platforms.append(
            ProviderAvailability(
                name=match.name if match else name,
                logo=match.logo if match else None,
                available=True,
                url=link,
                types=tuple(types),
            )
        )
    return platforms


def pick_first(payload: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the first present, non-empty value among ``keys``."""

    for key in keys:
        value = payload.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def normalize_movie(
    payload: Mapping[str, Any], *, image_base: str = DEFAULT_IMAGE_BASE, region: str = WATCH_REGION
) -> MovieRecord:
    """Normalize a ``/movie/{id}`` payload with appended credits/videos/providers.

    Streaming availability is read from the ``region`` bucket of the appended
    watch providers.
    """

    credits = payload.get("credits") or {}
    return MovieRecord(
        id=str(payload.get("id")),
        title=pick_first(payload, ("title", "original_title")) or "",
        overview=payload.get("overview") or "",
        release_date=payload.get("release_date") or None,
        rating=_as_float(payload.get("vote_average")),
        vote_count=_as_int(payload.get("vote_count")) or 0,
        poster=_image(image_base, "w500", payload.get("poster_path")),
        backdrop=_image(image_base, "w1280", payload.get("backdrop_path")),
        genres=_genres(payload),
        director=_director(credits),
        cast=_cast(credits),
        runtime=_as_int(payload.get("runtime")) or None,
        trailer_url=_trailer(payload),
        ott_platforms=tuple(normalize_providers(_region_providers(payload, region))),
        popularity=_as_float(payload.get("popularity")),
        media_type="movie",
    )


def normalize_tv(
    payload: Mapping[str, Any], *, image_base: str = DEFAULT_IMAGE_BASE, region: str = WATCH_REGION
) -> MovieRecord:
    """Normalize a ``/tv/{id}`` payload; TV shows carry no single director."""

    credits = payload.get("credits") or {}
    run_times = payload.get("episode_run_time") or []
    return MovieRecord(
        id=str(payload.get("id")),
        title=pick_first(payload, ("name", "original_name")) or "",
        overview=payload.get("overview") or "",
        release_date=payload.get("first_air_date") or None,
        rating=_as_float(payload.get("vote_average")),
        vote_count=_as_int(payload.get("vote_count")) or 0,
        poster=_image(image_base, "w500", payload.get("poster_path")),
        backdrop=_image(image_base, "w1280", payload.get("backdrop_path")),
        genres=_genres(payload),
        director=None,
        cast=_cast(credits),
        runtime=_as_int(run_times[0]) if run_times else None,
        trailer_url=_trailer(payload),
        ott_platforms=tuple(normalize_providers(_region_providers(payload, region))),
        popularity=_as_float(payload.get("popularity")),
        media_type="tv",
    )


def normalize_summary(payload: Mapping[str, Any], *, image_base: str = DEFAULT_IMAGE_BASE) -> MovieRecord:
    """Normalize a list row from trending/discover/now-playing/upcoming."""

    media_type: MediaType = "tv" if "first_air_date" in payload or payload.get("media_type") == "tv" else "movie"
    return MovieRecord(
        id=str(payload.get("id")),
        title=pick_first(payload, ("title", "name", "original_title", "original_name")) or "",
        overview=payload.get("overview") or "",
        release_date=pick_first(payload, ("release_date", "first_air_date")),
        rating=_as_float(payload.get("vote_average")),
        vote_count=_as_int(payload.get("vote_count")),
        poster=_image(image_base, "w500", payload.get("poster_path")),
        backdrop=_image(image_base, "w780", payload.get("backdrop_path")),
        popularity=_as_float(payload.get("popularity")),
        media_type=media_type,
    )


DETAIL_NORMALIZERS: dict[MediaType, Callable[..., MovieRecord]] = {
    "movie": normalize_movie,
    "tv": normalize_tv,
}


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _image(base: str, size: str, path: str | None) -> str | None:
    if not path:
        return None
    return f"{base.rstrip('/')}/{size}{path}"


def _genres(payload: Mapping[str, Any]) -> tuple[str, ...]:
    return tuple(g["name"] for g in payload.get("genres") or [] if g.get("name"))


def _director(credits: Mapping[str, Any]) -> str | None:
    for member in credits.get("crew") or []:
        if member.get("job") == "Director" and member.get("name"):
            return member["name"]
    return None


def _cast(credits: Mapping[str, Any], *, limit: int = CAST_LIMIT) -> tuple[str, ...]:
    names = [person.get("name") for person in credits.get("cast") or [] if person.get("name")]
    return tuple(names[:limit])


def _trailer(payload: Mapping[str, Any]) -> str | None:
    videos = (payload.get("videos") or {}).get("results") or []
    for video in videos:
        if video.get("site") == "YouTube" and video.get("type") in {"Trailer", "Teaser"} and video.get("key"):
            return f"https://www.youtube.com/embed/{video['key']}?autoplay=1&mute=1"
    return None


def _region_providers(payload: Mapping[str, Any], region: str) -> Mapping[str, Any] | None:
    results = (payload.get("watch/providers") or {}).get("results") or {}
    return results.get(region)
