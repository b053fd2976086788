"""FastAPI entrypoint exposing recommendations, movie details and trending lists."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reelpick.core.langchain_config import configure_langchain_env
from reelpick.services.errors import InvalidInput, MalformedResponse, NotFound, UpstreamError
from reelpick.services.models import RecommendationQuery
from reelpick.services.recommender import (
    RecommendationService,
    run_recommendation_events,
    validate_query,
)
from reelpick.services.tmdb import TMDbClient


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Configure LangChain tracing before serving."""

    configure_langchain_env()
    yield


app = FastAPI(title="ReelPick", lifespan=lifespan)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecommendationRequest(_CamelModel):
    preferences: str = Field("", description="Free-text description of what the user wants to watch")
    liked_movies: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    min_rating: float | None = Field(default=None, ge=0, le=10)
    min_year: int | None = None
    max_year: int | None = None
    count: int | None = Field(default=None, ge=1, le=20)

    def to_query(self) -> RecommendationQuery:
        return RecommendationQuery(
            preferences=self.preferences,
            liked_movies=list(self.liked_movies),
            genres=list(self.genres),
            min_rating=self.min_rating,
            min_year=self.min_year,
            max_year=self.max_year,
            count=self.count,
        )


class RecommendationPayload(_CamelModel):
    id: str
    title: str
    matched: bool
    description: str | None = None
    year: int | None = None
    catalog_id: str | None = None
    poster_path: str | None = None
    release_date: str | None = None
    rating: float | None = None
    runtime_minutes: int | None = None
    formatted_runtime: str | None = None
    genres: list[str] = Field(default_factory=list)
    director: str | None = None
    cast: list[str] = Field(default_factory=list)
    streaming_services: list[str] = Field(default_factory=list)
    genre_match_score: float = Field(0.0, ge=0.0, le=1.0)
    is_on_preferred_service: bool = False


class RecommendationResponse(_CamelModel):
    recommendations: list[RecommendationPayload]
    source: str


class MoviePayload(_CamelModel):
    catalog_id: str
    title: str
    poster_path: str | None = None
    release_date: str | None = None
    rating: float | None = None
    overview: str | None = None


class MovieDetailsResponse(MoviePayload):
    runtime_minutes: int = 0
    genres: list[str] = Field(default_factory=list)
    director: str | None = None
    cast: list[str] = Field(default_factory=list)
    streaming_services: list[str] = Field(default_factory=list)


class TrendingResponse(_CamelModel):
    movies: list[MoviePayload]
    shows: list[MoviePayload]


def get_recommendation_service() -> RecommendationService:
    return RecommendationService()


def get_catalog() -> TMDbClient:
    return TMDbClient()


def _sse_event(event: str, payload: dict | None = None) -> str:
    data = json.dumps(payload or {}, ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


def _to_payload(item) -> dict:
    return RecommendationPayload.model_validate(asdict(item)).model_dump(mode="json", by_alias=True)


def _to_movie(record, model: type[MoviePayload] = MoviePayload) -> MoviePayload:
    data = {key: value for key, value in asdict(record).items() if key in model.model_fields}
    return model.model_validate(data)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/recommendations", response_model=RecommendationResponse)
async def create_recommendations(
    payload: RecommendationRequest,
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationResponse:
    """Suggest movies for the request and enrich them with TMDb metadata."""

    try:
        result = await service.recommend(payload.to_query())
    except InvalidInput as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except MalformedResponse as exc:
        logger.warning("Model reply could not be parsed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The recommendation model returned an unreadable answer.",
        ) from exc
    except UpstreamError as exc:
        logger.warning("Recommendation provider unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate recommendations.",
        ) from exc

    return RecommendationResponse(
        recommendations=[
            RecommendationPayload.model_validate(asdict(item)) for item in result.recommendations
        ],
        source=result.source,
    )


@app.post("/recommendations/stream")
async def stream_recommendations(
    payload: RecommendationRequest,
    service: RecommendationService = Depends(get_recommendation_service),
) -> StreamingResponse:
    query = payload.to_query()
    try:
        validate_query(query)
    except InvalidInput as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc

    async def event_stream():
        yield _sse_event("start", {"message": "Starting recommendations."})
        try:
            async for event in run_recommendation_events(query, service=service):
                etype = event.pop("type")
                if etype == "recommendation":
                    event["recommendation"] = _to_payload(event["recommendation"])
                yield _sse_event(etype, event)
        except MalformedResponse:
            yield _sse_event(
                "error",
                {"message": "The recommendation model returned an unreadable answer."},
            )
        except UpstreamError:
            yield _sse_event("error", {"message": "Failed to generate recommendations."})
        except Exception as exc:  # pragma: no cover
            logger.exception("Recommendation stream failed")
            yield _sse_event("error", {"message": f"Unexpected error: {exc}"})
        finally:
            yield _sse_event("end")

    return StreamingResponse(event_stream(), media_type="text/event-stream")


@app.get("/movies/{catalog_id}", response_model=MovieDetailsResponse)
async def get_movie(
    catalog_id: str,
    catalog: TMDbClient = Depends(get_catalog),
) -> MovieDetailsResponse:
    try:
        details = await catalog.details(catalog_id)
    except NotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Movie not found.",
        ) from exc
    except UpstreamError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch movie details.",
        ) from exc
    return _to_movie(details, MovieDetailsResponse)


@app.get("/trending", response_model=TrendingResponse)
async def get_trending(catalog: TMDbClient = Depends(get_catalog)) -> TrendingResponse:
    try:
        movies, shows = await asyncio.gather(catalog.trending("movie"), catalog.trending("tv"))
    except (NotFound, UpstreamError) as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch trending content.",
        ) from exc
    return TrendingResponse(
        movies=[_to_movie(record) for record in movies],
        shows=[_to_movie(record) for record in shows],
    )
