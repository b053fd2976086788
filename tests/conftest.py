from __future__ import annotations

import pytest

from fakes import details
from reelpick.core.config import get_settings


@pytest.fixture(autouse=True)
def reset_env(monkeypatch):
    # Keep real keys and LangSmith tracing out of the test run
    monkeypatch.setenv("LANGCHAIN_TRACING_V2", "false")
    monkeypatch.delenv("LANGCHAIN_API_KEY", raising=False)
    monkeypatch.delenv("LANGCHAIN_PROJECT", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("TMDB_API_KEY", "test-key")
    monkeypatch.setenv("ENRICHMENT_BATCH_PAUSE_SECONDS", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def arrival():
    return details(
        "329865",
        "Arrival",
        poster_path="https://image.tmdb.org/t/p/w500/arrival.jpg",
        release_date="2016-11-10",
        rating=7.6,
        overview="A linguist is recruited to talk to visitors from space.",
        runtime_minutes=116,
        genres=["Drama", "Science Fiction", "Mystery"],
        director="Denis Villeneuve",
        cast=["Amy Adams", "Jeremy Renner", "Forest Whitaker"],
        streaming_services=["Netflix", "Paramount Plus"],
    )
