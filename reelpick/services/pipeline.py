"""Batched fan-out of candidate resolution with ordering and dedup guarantees."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Sequence

from reelpick.core.config import get_settings
from reelpick.services.models import Candidate, EnrichedRecommendation
from reelpick.services.resolver import CandidateResolver, unmatched_recommendation


logger = logging.getLogger(__name__)


class EnrichmentPipeline:
    """Resolve and score candidates in small parallel batches.

    Batches run one after another with a short pause in between to stay under
    TMDb's rate limit. Inside a batch every candidate is resolved concurrently
    and independently; the batch completes once all of them are done.
    """

    def __init__(
        self,
        resolver: CandidateResolver,
        *,
        batch_size: int | None = None,
        batch_pause: float | None = None,
    ) -> None:
        settings = get_settings()
        self.resolver = resolver
        self.batch_size = batch_size or settings.enrichment_batch_size
        self.batch_pause = (
            settings.enrichment_batch_pause_seconds if batch_pause is None else batch_pause
        )

    async def enrich(
        self,
        candidates: Sequence[Candidate],
        preference_text: str,
    ) -> list[EnrichedRecommendation]:
        """Return one recommendation per candidate, in input order, minus duplicates."""

        collected: list[EnrichedRecommendation] = []
        async for batch in self.iter_batches(candidates, preference_text):
            collected.extend(batch)
        return deduplicate(collected)

    async def iter_batches(
        self,
        candidates: Sequence[Candidate],
        preference_text: str,
    ) -> AsyncIterator[list[EnrichedRecommendation]]:
        """Yield each finished batch in order; results are not deduplicated."""

        for start in range(0, len(candidates), self.batch_size):
            if start and self.batch_pause:
                await asyncio.sleep(self.batch_pause)
            batch = candidates[start : start + self.batch_size]
            logger.debug("Enriching batch %d-%d of %d", start, start + len(batch) - 1, len(candidates))
            results = await asyncio.gather(
                *(self.resolver.resolve(candidate, preference_text) for candidate in batch),
                return_exceptions=True,
            )
            yield [
                _isolate(candidate, result) for candidate, result in zip(batch, results)
            ]


def deduplicate(recommendations: Sequence[EnrichedRecommendation]) -> list[EnrichedRecommendation]:
    """Drop later matched entries sharing a catalog id; unmatched ones always stay."""

    seen: set[str] = set()
    unique: list[EnrichedRecommendation] = []
    for item in recommendations:
        if item.matched and item.catalog_id:
            if item.catalog_id in seen:
                logger.debug("Dropping duplicate catalog id %s (%s)", item.catalog_id, item.title)
                continue
            seen.add(item.catalog_id)
        unique.append(item)
    return unique


def _isolate(candidate: Candidate, result: EnrichedRecommendation | BaseException) -> EnrichedRecommendation:
    if isinstance(result, BaseException):
        if not isinstance(result, Exception):
            raise result
        logger.warning("Enrichment failed for %r: %s", candidate.title, result)
        return unmatched_recommendation(candidate)
    return result
