import asyncio

import httpx
import pytest

from reelpick.services.errors import NotFound, UpstreamError
from reelpick.services.tmdb import TMDbClient


DETAILS_PAYLOAD = {
    "id": 603,
    "title": "The Matrix",
    "poster_path": "/matrix.jpg",
    "release_date": "1999-03-30",
    "vote_average": 8.217,
    "overview": "A hacker learns the truth.",
    "popularity": 80.5,
    "runtime": 136,
    "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
    "credits": {
        "cast": [{"name": f"Actor {i}"} for i in range(8)],
        "crew": [
            {"job": "Producer", "name": "Joel Silver"},
            {"job": "Director", "name": "Lana Wachowski"},
        ],
    },
    "watch/providers": {
        "results": {
            "US": {"flatrate": [{"provider_name": "Max"}], "rent": [{"provider_name": "Apple TV"}]},
            "DE": {"flatrate": [{"provider_name": "Netflix"}]},
        }
    },
}


def _client(handler, **kwargs) -> TMDbClient:
    return TMDbClient(
        api_key="test-key",
        base_url="https://tmdb.test/3",
        image_base="https://img.test/w500",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_search_cleans_query_and_keeps_relevance_order():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        assert request.url.path == "/3/search/movie"
        return httpx.Response(
            200,
            json={
                "results": [
                    {"id": 2, "title": "Amélie", "poster_path": "/a.jpg", "release_date": "2001-04-25", "vote_average": 7.9},
                    {"id": 1, "title": "Amelie Again", "poster_path": None, "release_date": ""},
                ]
            },
        )

    records = asyncio.run(_client(handler).search("Amélie!", 2001))

    assert seen["query"] == "Amélie"
    assert seen["year"] == "2001"
    assert seen["api_key"] == "test-key"
    assert [r.catalog_id for r in records] == ["2", "1"]
    assert records[0].poster_path == "https://img.test/w500/a.jpg"
    assert records[0].release_year == 2001
    assert records[1].poster_path is None
    assert records[1].release_date is None


def test_search_without_year_omits_param():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"results": []})

    assert asyncio.run(_client(handler).search("Nothing Here")) == []
    assert "year" not in seen


def test_details_normalizes_credits_and_streaming():
    def handler(request):
        assert request.url.path == "/3/movie/603"
        assert request.url.params["append_to_response"] == "credits,watch/providers"
        return httpx.Response(200, json=DETAILS_PAYLOAD)

    movie = asyncio.run(_client(handler).details("603"))

    assert movie.catalog_id == "603"
    assert movie.runtime_minutes == 136
    assert movie.genres == ["Action", "Science Fiction"]
    assert movie.director == "Lana Wachowski"
    assert movie.cast == [f"Actor {i}" for i in range(5)]
    assert movie.streaming_services == ["Max"]
    assert movie.poster_path == "https://img.test/w500/matrix.jpg"


def test_details_without_streaming_skips_providers():
    def handler(request):
        assert request.url.params["append_to_response"] == "credits"
        return httpx.Response(200, json=DETAILS_PAYLOAD)

    movie = asyncio.run(_client(handler).details("603", include_streaming=False))
    assert movie.streaming_services == []


def test_details_404_raises_not_found():
    def handler(request):
        return httpx.Response(404, json={"status_message": "not found"})

    with pytest.raises(NotFound):
        asyncio.run(_client(handler).details("0"))


@pytest.mark.parametrize("status_code", [401, 500, 503])
def test_error_status_raises_upstream_error(status_code):
    def handler(request):
        return httpx.Response(status_code)

    with pytest.raises(UpstreamError):
        asyncio.run(_client(handler).search("Heat"))


def test_transport_failure_raises_upstream_error():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(UpstreamError):
        asyncio.run(_client(handler).search("Heat"))


def test_slow_call_times_out_as_upstream_error():
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json={"results": []})

    with pytest.raises(UpstreamError, match="timed out"):
        asyncio.run(_client(handler, timeout=0.05).search("Heat"))


def test_missing_api_key_raises_before_any_request(monkeypatch):
    monkeypatch.setenv("TMDB_API_KEY", "")
    from reelpick.core.config import get_settings

    get_settings.cache_clear()

    def handler(request):  # pragma: no cover - must not be called
        raise AssertionError("request should not be sent")

    client = TMDbClient(transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError, match="TMDB_API_KEY"):
        asyncio.run(client.search("Heat"))


def test_trending_handles_tv_names_and_limit():
    def handler(request):
        assert request.url.path == "/3/trending/tv/week"
        results = [{"id": i, "name": f"Show {i}", "first_air_date": "2020-01-01"} for i in range(15)]
        return httpx.Response(200, json={"results": results})

    shows = asyncio.run(_client(handler).trending("tv"))
    assert len(shows) == 10
    assert shows[0].title == "Show 0"
    assert shows[0].release_date == "2020-01-01"


@pytest.mark.parametrize(
    "body",
    [
        {"title": "no id"},
        {"id": 1, "title": "Bad rating", "vote_average": "N/A"},
        {"id": 1, "title": "Bad runtime", "runtime": "long"},
        ["not", "an", "object"],
    ],
)
def test_details_malformed_body_raises_upstream_error(body):
    def handler(request):
        return httpx.Response(200, json=body)

    with pytest.raises(UpstreamError, match="unexpected payload"):
        asyncio.run(_client(handler).details("1"))


@pytest.mark.parametrize(
    "body",
    [
        {"results": [{"id": 1, "title": "Heat", "vote_average": "N/A"}]},
        {"results": [{"id": 1, "title": "Heat", "popularity": "very"}]},
        {"results": ["Heat"]},
        {"results": 7},
    ],
)
def test_search_malformed_results_raise_upstream_error(body):
    def handler(request):
        return httpx.Response(200, json=body)

    with pytest.raises(UpstreamError):
        asyncio.run(_client(handler).search("Heat"))


def test_trending_malformed_body_raises_upstream_error():
    def handler(request):
        return httpx.Response(200, json="trending")

    with pytest.raises(UpstreamError):
        asyncio.run(_client(handler).trending("movie"))
