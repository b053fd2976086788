import asyncio
from types import SimpleNamespace

import pytest

from reelpick.services import generator
from reelpick.services.errors import MalformedResponse, UpstreamError
from reelpick.services.models import RecommendationQuery


class FakeLLM:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.messages = None

    async def ainvoke(self, messages):
        self.messages = messages
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


def test_parse_candidates_reads_recommendations_object():
    raw = (
        '{"recommendations": ['
        '{"title": " Arrival ", "year": 2016, "description": "Aliens.", "director": "Villeneuve"},'
        '{"title": "Moon", "year": "2009"}'
        "]}"
    )
    candidates = generator.parse_candidates(raw)
    assert [(c.title, c.year, c.description) for c in candidates] == [
        ("Arrival", 2016, "Aliens."),
        ("Moon", 2009, None),
    ]
    assert all(c.record is None for c in candidates)


def test_parse_candidates_accepts_fenced_list():
    raw = '```json\n[{"title": "Solaris"}]\n```'
    assert [c.title for c in generator.parse_candidates(raw)] == ["Solaris"]


def test_parse_candidates_empty_list_is_valid():
    assert generator.parse_candidates('{"recommendations": []}') == []


@pytest.mark.parametrize(
    "raw",
    [
        "Here are some movies: Arrival, Moon",
        "",
        '{"movies": []}',
        '{"recommendations": [{"year": 2016}]}',
        '{"recommendations": [{"title": "   "}]}',
        '{"recommendations": [{"title": "Moon", "year": "soon"}]}',
        '"just a string"',
    ],
)
def test_parse_candidates_rejects_malformed_replies(raw):
    with pytest.raises(MalformedResponse):
        generator.parse_candidates(raw)


def test_build_prompt_includes_all_filters():
    query = RecommendationQuery(
        preferences="slow burn",
        liked_movies=["Heat", "Collateral"],
        genres=["Crime", "Thriller", "Drama"],
        min_rating=7.5,
        min_year=1990,
        max_year=2010,
    )
    prompt = generator.build_prompt(query, count=5)
    assert prompt.startswith('Recommend 5 movies for someone who likes "Heat", "Collateral"')
    assert "in the Crime, Thriller and Drama genres" in prompt
    assert "minimum rating of 7.5/10" in prompt
    assert "released after 1990 and before or during 2010" in prompt
    assert "Preferences: slow burn" in prompt


def test_build_prompt_single_liked_movie_and_genre():
    prompt = generator.build_prompt(
        RecommendationQuery(liked_movies=["Alien"], genres=["Horror"]), count=3
    )
    assert prompt.startswith('Recommend 3 movies similar to "Alien" in the Horror genre')


def test_generate_without_openai_key_returns_nothing():
    assert asyncio.run(generator.GenerativeProvider().generate(RecommendationQuery("sci-fi"))) == []


def test_generate_uses_llm_reply():
    llm = FakeLLM(content='{"recommendations": [{"title": "Arrival", "year": 2016}]}')
    provider = generator.GenerativeProvider(llm=llm)

    candidates = asyncio.run(provider.generate(RecommendationQuery("thoughtful sci-fi", count=4)))

    assert [c.title for c in candidates] == ["Arrival"]
    assert "Recommend 4 movies" in llm.messages[1].content


def test_generate_builds_model_when_key_present(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "fake-key")
    from reelpick.core.config import get_settings

    get_settings.cache_clear()
    llm = FakeLLM(content='{"recommendations": []}')
    monkeypatch.setattr(generator, "build_chat_model", lambda: llm)

    assert asyncio.run(generator.GenerativeProvider().generate(RecommendationQuery("drama"))) == []
    assert llm.messages is not None


def test_generate_wraps_transport_errors():
    provider = generator.GenerativeProvider(llm=FakeLLM(error=ConnectionError("offline")))
    with pytest.raises(UpstreamError):
        asyncio.run(provider.generate(RecommendationQuery("drama")))


def test_generate_surfaces_malformed_reply():
    provider = generator.GenerativeProvider(llm=FakeLLM(content="Sure! Try Arrival."))
    with pytest.raises(MalformedResponse):
        asyncio.run(provider.generate(RecommendationQuery("drama")))
