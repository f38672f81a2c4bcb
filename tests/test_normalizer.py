from cinevibe.services.normalizer import (
    match_platform,
    normalize_movie,
    normalize_providers,
    normalize_summary,
    normalize_tv,
    pick_first,
)


def test_providers_dedupe_case_insensitively_and_merge_types():
    platforms = normalize_providers(
        {"flatrate": [{"provider_name": "Netflix"}], "buy": [{"provider_name": "netflix"}]}
    )

    assert len(platforms) == 1
    assert platforms[0].name == "Netflix"
    assert set(platforms[0].types) == {"flatrate", "buy"}
    assert platforms[0].available is True
    assert platforms[0].logo == "/logos/netflix.png"


def test_providers_keep_first_observation_order_and_link():
    platforms = normalize_providers(
        {
            "link": "https://www.themoviedb.org/movie/1/watch",
            "buy": [{"provider_name": "Apple TV"}],
            "rent": [{"provider_name": "Amazon Prime Video"}, {"provider_name": "Apple TV"}],
            "flatrate": [{"provider_name": "Kanopy"}],
        }
    )

    assert [p.name for p in platforms] == ["Kanopy", "Prime Video", "Apple TV+"]
    assert platforms[0].logo is None
    assert platforms[2].types == ("rent", "buy")
    assert all(p.url == "https://www.themoviedb.org/movie/1/watch" for p in platforms)


def test_providers_empty_block():
    assert normalize_providers(None) == []
    assert normalize_providers({}) == []


def test_match_platform_rules():
    assert match_platform("max").name == "Max"
    assert match_platform("Netflix basic with Ads").name == "Netflix"
    assert match_platform("Disney").name == "Disney+"
    assert match_platform("Crunchyroll") is None


def test_pick_first_skips_missing_and_empty():
    assert pick_first({"title": "", "name": "Dark"}, ("title", "name")) == "Dark"
    assert pick_first({}, ("title",)) is None


def test_normalize_movie_detail_payload():
    payload = {
        "id": 27205,
        "title": "Inception",
        "overview": "Dreams.",
        "release_date": "2010-07-15",
        "vote_average": 8.4,
        "vote_count": 35000,
        "poster_path": "/poster.jpg",
        "backdrop_path": "/backdrop.jpg",
        "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
        "runtime": 148,
        "popularity": 90.5,
        "credits": {
            "crew": [{"job": "Producer", "name": "Emma Thomas"}, {"job": "Director", "name": "Christopher Nolan"}],
            "cast": [{"name": f"Actor {i}"} for i in range(12)],
        },
        "videos": {
            "results": [
                {"site": "Vimeo", "type": "Trailer", "key": "v"},
                {"site": "YouTube", "type": "Featurette", "key": "f"},
                {"site": "YouTube", "type": "Teaser", "key": "abc"},
            ]
        },
        "watch/providers": {"results": {"US": {"flatrate": [{"provider_name": "Max"}]}}},
    }

    movie = normalize_movie(payload)

    assert movie.id == "27205"
    assert movie.title == "Inception"
    assert movie.poster == "https://image.tmdb.org/t/p/w500/poster.jpg"
    assert movie.backdrop == "https://image.tmdb.org/t/p/w1280/backdrop.jpg"
    assert movie.genres == ("Action", "Science Fiction")
    assert movie.director == "Christopher Nolan"
    assert len(movie.cast) == 10
    assert movie.runtime == 148
    assert movie.trailer_url == "https://www.youtube.com/embed/abc?autoplay=1&mute=1"
    assert [p.name for p in movie.ott_platforms] == ["Max"]
    assert movie.media_type == "movie"


def test_normalize_movie_defaults_scores_to_zero():
    movie = normalize_movie({"id": 1, "title": "Obscure", "vote_average": None})

    assert movie.rating == 0.0
    assert movie.popularity == 0.0
    assert movie.overview == ""
    assert movie.trailer_url is None
    assert movie.ott_platforms == ()


def test_normalize_movie_reads_requested_watch_region():
    payload = {
        "id": 2,
        "title": "Paddington",
        "watch/providers": {
            "results": {
                "US": {"flatrate": [{"provider_name": "Netflix"}]},
                "GB": {"rent": [{"provider_name": "Apple TV"}], "link": "https://tmdb/gb"},
            }
        },
    }

    assert [p.name for p in normalize_movie(payload).ott_platforms] == ["Netflix"]

    platforms = normalize_movie(payload, region="GB").ott_platforms
    assert [(p.name, p.types, p.url) for p in platforms] == [("Apple TV+", ("rent",), "https://tmdb/gb")]
    assert normalize_tv(payload, region="FR").ott_platforms == ()


def test_normalize_tv_uses_tv_field_names():
    movie = normalize_tv(
        {
            "id": 1396,
            "name": "Breaking Bad",
            "first_air_date": "2008-01-20",
            "episode_run_time": [47, 58],
            "vote_average": 8.9,
            "credits": {"crew": [{"job": "Director", "name": "Someone"}], "cast": [{"name": "Bryan Cranston"}]},
        }
    )

    assert movie.title == "Breaking Bad"
    assert movie.release_date == "2008-01-20"
    assert movie.runtime == 47
    assert movie.director is None
    assert movie.cast == ("Bryan Cranston",)
    assert movie.media_type == "tv"


def test_normalize_summary_title_preference_and_payload_keys():
    movie = normalize_summary(
        {"id": 5, "original_name": "Shingeki", "name": "Attack on Titan", "first_air_date": "2013-04-07", "backdrop_path": "/b.jpg"}
    )

    assert movie.title == "Attack on Titan"
    assert movie.media_type == "tv"
    assert movie.backdrop == "https://image.tmdb.org/t/p/w780/b.jpg"
    payload = movie.to_payload()
    assert payload["releaseDate"] == "2013-04-07"
    assert payload["rating"] == 0.0
    assert payload["ottPlatforms"] == []
