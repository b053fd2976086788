"""Keyword catalog search used when the model suggests nothing."""

from __future__ import annotations

import asyncio
import logging

from reelpick.core.config import get_settings
from reelpick.services.errors import ReelPickError
from reelpick.services.models import Candidate, CatalogRecord
from reelpick.services.tmdb import TMDbClient


logger = logging.getLogger(__name__)

_STRIP_CHARS = ".,;:!?\"'()[]{}"


def extract_keywords(text: str, *, limit: int = 3) -> list[str]:
    """First ``limit`` distinct words longer than three characters."""

    keywords: list[str] = []
    seen: set[str] = set()
    for raw in (text or "").split():
        word = raw.strip(_STRIP_CHARS)
        if len(word) <= 3 or word.lower() in seen:
            continue
        seen.add(word.lower())
        keywords.append(word)
        if len(keywords) >= limit:
            break
    return keywords


class FallbackGenerator:
    """Builds catalog-backed candidates straight from TMDb keyword searches."""

    def __init__(
        self,
        catalog: TMDbClient,
        *,
        keyword_limit: int | None = None,
        results_per_keyword: int | None = None,
        max_candidates: int | None = None,
    ) -> None:
        settings = get_settings()
        self.catalog = catalog
        self.keyword_limit = keyword_limit or settings.fallback_keyword_limit
        self.results_per_keyword = results_per_keyword or settings.fallback_results_per_keyword
        self.max_candidates = max_candidates or settings.fallback_max_candidates

    async def generate(self, preference_text: str) -> list[Candidate]:
        keywords = extract_keywords(preference_text, limit=self.keyword_limit)
        if not keywords:
            logger.info("No usable keywords for fallback search in %r", preference_text)
            return []

        batches = await asyncio.gather(*(self._search_keyword(keyword) for keyword in keywords))
        candidates: list[Candidate] = []
        seen: set[str] = set()
        for records in batches:
            for record in records:
                if record.catalog_id in seen:
                    continue
                seen.add(record.catalog_id)
                candidates.append(
                    Candidate(
                        title=record.title,
                        year=record.release_year,
                        description=record.overview,
                        record=record,
                    )
                )
        logger.info("Fallback search for %s produced %d candidates", keywords, len(candidates))
        return candidates[: self.max_candidates]

    async def _search_keyword(self, keyword: str) -> list[CatalogRecord]:
        try:
            records = await self.catalog.search(keyword)
        except ReelPickError as exc:
            logger.warning("Fallback search for %r failed: %s", keyword, exc)
            return []
        ranked = sorted(records, key=lambda record: record.popularity or 0.0, reverse=True)
        return ranked[: self.results_per_keyword]
