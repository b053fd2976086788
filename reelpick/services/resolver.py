"""Resolve one candidate suggestion into an enriched recommendation."""

from __future__ import annotations

import logging
import uuid

from reelpick.services.errors import ReelPickError
from reelpick.services.models import (
    Candidate,
    CatalogDetails,
    CatalogRecord,
    EnrichedRecommendation,
)
from reelpick.services.scoring import score_preferences
from reelpick.services.tmdb import TMDbClient


logger = logging.getLogger(__name__)


class CandidateResolver:
    """Links a candidate to its TMDb entry and attaches details and scores.

    ``resolve`` never raises: every failure path returns a best-effort
    recommendation so that callers can rely on one output per input.
    """

    def __init__(self, catalog: TMDbClient, *, include_streaming: bool = True) -> None:
        self.catalog = catalog
        self.include_streaming = include_streaming

    async def resolve(self, candidate: Candidate, preference_text: str) -> EnrichedRecommendation:
        try:
            return await self._resolve(candidate, preference_text)
        except Exception:  # keep one output per candidate regardless of the failure
            logger.exception("Unexpected failure resolving %r", candidate.title)
            return unmatched_recommendation(candidate)

    async def _resolve(self, candidate: Candidate, preference_text: str) -> EnrichedRecommendation:
        chosen = candidate.record
        prematched = chosen is not None
        if chosen is None:
            chosen = await self._search(candidate)
            if chosen is None:
                return unmatched_recommendation(candidate)

        try:
            details = await self.catalog.details(
                chosen.catalog_id, include_streaming=self.include_streaming
            )
        except ReelPickError as exc:
            logger.warning("TMDb details failed for %s (%s): %s", chosen.catalog_id, candidate.title, exc)
            if prematched:
                return _record_only_recommendation(candidate, chosen)
            return unmatched_recommendation(candidate, partial=chosen)

        return matched_recommendation(candidate, details, preference_text)

    async def _search(self, candidate: Candidate) -> CatalogRecord | None:
        try:
            results = await self.catalog.search(candidate.title, candidate.year)
        except ReelPickError as exc:
            logger.warning("TMDb search failed for %r: %s", candidate.title, exc)
            return None
        if not results:
            logger.info("No TMDb match for %r (year=%s)", candidate.title, candidate.year)
            return None
        # First result wins; TMDb's relevance order is the tie-break.
        return results[0]


def matched_recommendation(
    candidate: Candidate,
    details: CatalogDetails,
    preference_text: str,
) -> EnrichedRecommendation:
    score = score_preferences(preference_text, details)
    runtime = details.runtime_minutes or None
    return EnrichedRecommendation(
        id=catalog_identity(details.catalog_id),
        title=details.title or candidate.title,
        matched=True,
        description=candidate.description or details.overview,
        year=details.release_year or candidate.year,
        catalog_id=details.catalog_id,
        poster_path=details.poster_path,
        release_date=details.release_date,
        rating=_round_rating(details.rating),
        runtime_minutes=runtime,
        formatted_runtime=format_runtime(runtime),
        genres=list(details.genres),
        director=details.director,
        cast=list(details.cast),
        streaming_services=list(details.streaming_services),
        genre_match_score=score.genre_match_score,
        is_on_preferred_service=score.is_on_preferred_service,
    )


def unmatched_recommendation(
    candidate: Candidate,
    *,
    partial: CatalogRecord | None = None,
) -> EnrichedRecommendation:
    """Recommendation built from the candidate alone.

    ``partial`` carries a search hit whose details could not be fetched; its
    poster and rating are kept but the identity stays local.
    """

    return EnrichedRecommendation(
        id=local_identity(),
        title=candidate.title,
        matched=False,
        description=candidate.description,
        year=candidate.year,
        poster_path=partial.poster_path if partial else None,
        rating=_round_rating(partial.rating) if partial else None,
    )


def _record_only_recommendation(candidate: Candidate, record: CatalogRecord) -> EnrichedRecommendation:
    return EnrichedRecommendation(
        id=catalog_identity(record.catalog_id),
        title=record.title or candidate.title,
        matched=True,
        description=candidate.description or record.overview,
        year=record.release_year or candidate.year,
        catalog_id=record.catalog_id,
        poster_path=record.poster_path,
        release_date=record.release_date,
        rating=_round_rating(record.rating),
    )


def catalog_identity(catalog_id: str) -> str:
    return f"tmdb-{catalog_id}"


def local_identity() -> str:
    return f"local-{uuid.uuid4().hex}"


def format_runtime(minutes: int | None) -> str | None:
    """Render a runtime such as 135 minutes as ``2h 15m``."""

    if not minutes:
        return None
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m"


def _round_rating(rating: float | None) -> float | None:
    if rating is None:
        return None
    return round(rating, 1)
