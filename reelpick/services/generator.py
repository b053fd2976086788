"""Ask the chat model for movie suggestions and parse its reply strictly."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from reelpick.core.config import get_settings
from reelpick.core.langchain_config import build_chat_model
from reelpick.services.errors import MalformedResponse, UpstreamError
from reelpick.services.models import Candidate, RecommendationQuery


logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a helpful movie recommendation assistant. Provide accurate"
    " recommendations of real, released films based on the user's preferences."
    ' Reply with a JSON object of the form {"recommendations": [{"title": str,'
    ' "year": int, "description": str}]} and nothing else.'
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class _SuggestedMovie(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    year: int | None = None
    description: str | None = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class _SuggestionReply(BaseModel):
    recommendations: list[_SuggestedMovie]


def build_prompt(query: RecommendationQuery, *, count: int) -> str:
    """Turn the structured query into a single natural-language request."""

    prompt = f"Recommend {count} movies"
    liked = [title.strip() for title in query.liked_movies if title.strip()]
    if len(liked) == 1:
        prompt += f' similar to "{liked[0]}"'
    elif liked:
        prompt += " for someone who likes " + ", ".join(f'"{title}"' for title in liked)

    genres = [genre.strip() for genre in query.genres if genre.strip()]
    if len(genres) == 1:
        prompt += f" in the {genres[0]} genre"
    elif genres:
        prompt += f" in the {', '.join(genres[:-1])} and {genres[-1]} genres"

    if query.min_rating:
        prompt += f" with a minimum rating of {query.min_rating:g}/10"
    if query.min_year or query.max_year:
        prompt += " released"
        if query.min_year:
            prompt += f" after {query.min_year}"
        if query.min_year and query.max_year:
            prompt += " and"
        if query.max_year:
            prompt += f" before or during {query.max_year}"

    if query.preferences.strip():
        prompt += f". Preferences: {query.preferences.strip()}"
    prompt += ". For each movie give the title, release year and a one-sentence description."
    return prompt


def parse_candidates(raw: str) -> list[Candidate]:
    """Parse the model reply into candidates or raise ``MalformedResponse``.

    Accepts ``{"recommendations": [...]}`` or a bare JSON list, optionally
    wrapped in a markdown code fence. Missing titles or non-integer years are
    rejected rather than defaulted.
    """

    text = (raw or "").strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        payload: Any = json.loads(text)
    except ValueError as exc:
        raise MalformedResponse(f"Model reply is not valid JSON: {exc}") from exc

    if isinstance(payload, list):
        payload = {"recommendations": payload}
    try:
        reply = _SuggestionReply.model_validate(payload)
    except ValidationError as exc:
        raise MalformedResponse(f"Model reply has an unexpected shape: {exc}") from exc

    return [
        Candidate(title=item.title, year=item.year, description=item.description or None)
        for item in reply.recommendations
    ]


class GenerativeProvider:
    """Suggests candidate titles through LangChain's ChatOpenAI."""

    def __init__(self, llm: Any | None = None) -> None:
        self._llm = llm

    async def generate(self, query: RecommendationQuery) -> list[Candidate]:
        settings = get_settings()
        llm = self._llm
        if llm is None:
            if not settings.openai_api_key:
                logger.info("OPENAI_API_KEY missing, skipping model suggestions")
                return []
            llm = build_chat_model()

        count = query.count or settings.recommendation_count
        messages = [
            SystemMessage(content=_SYSTEM_PROMPT),
            HumanMessage(content=build_prompt(query, count=count)),
        ]
        try:
            ai_message = await llm.ainvoke(messages)
        except Exception as exc:  # openai/httpx errors vary by version
            raise UpstreamError(f"Chat model call failed: {exc}") from exc

        content = _extract_text(ai_message)
        logger.debug("Model suggestion reply: %s", content)
        candidates = parse_candidates(content)
        logger.info("Model suggested %d candidates", len(candidates))
        return candidates


def _extract_text(message: Any) -> str:
    content = getattr(message, "content", "")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for chunk in content:
            if isinstance(chunk, dict) and chunk.get("type") == "text":
                parts.append(str(chunk.get("text", "")))
            elif isinstance(chunk, str):
                parts.append(chunk)
        return "".join(parts)
    return str(content)
