"""Top-level recommendation flow: validate, suggest, fall back, enrich."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator

from reelpick.services.errors import InvalidInput
from reelpick.services.fallback import FallbackGenerator
from reelpick.services.generator import GenerativeProvider
from reelpick.services.models import Candidate, EnrichedRecommendation, RecommendationQuery
from reelpick.services.pipeline import EnrichmentPipeline
from reelpick.services.resolver import CandidateResolver
from reelpick.services.tmdb import TMDbClient


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RecommendationResult:
    recommendations: list[EnrichedRecommendation] = field(default_factory=list)
    source: str = "model"


class RecommendationService:
    """Wires the provider, fallback generator and enrichment pipeline together."""

    def __init__(
        self,
        *,
        catalog: TMDbClient | None = None,
        provider: GenerativeProvider | None = None,
        fallback: FallbackGenerator | None = None,
        pipeline: EnrichmentPipeline | None = None,
    ) -> None:
        self.catalog = catalog or TMDbClient()
        self.provider = provider or GenerativeProvider()
        self.fallback = fallback or FallbackGenerator(self.catalog)
        self.pipeline = pipeline or EnrichmentPipeline(CandidateResolver(self.catalog))

    async def recommend(self, query: RecommendationQuery) -> RecommendationResult:
        """Return enriched recommendations for one request.

        Provider failures (``UpstreamError``/``MalformedResponse``) propagate
        unchanged; per-candidate catalog failures never do.
        """

        preference_text = validate_query(query)
        candidates, source = await self.candidates_for(query, preference_text)
        recommendations = await self.pipeline.enrich(candidates, preference_text)
        logger.info(
            "Returning %d recommendations from %d %s candidates",
            len(recommendations),
            len(candidates),
            source,
        )
        return RecommendationResult(recommendations=recommendations, source=source)

    async def candidates_for(
        self,
        query: RecommendationQuery,
        preference_text: str,
    ) -> tuple[list[Candidate], str]:
        candidates = await self.provider.generate(query)
        if candidates:
            return candidates, "model"
        logger.info("Model returned no candidates, using keyword fallback")
        return await self.fallback.generate(preference_text), "fallback"


def validate_query(query: RecommendationQuery) -> str:
    """Return the preference text or raise ``InvalidInput``."""

    preference_text = query.preference_text
    if not preference_text:
        raise InvalidInput("preferences must not be empty")
    if query.min_year and query.max_year and query.min_year > query.max_year:
        raise InvalidInput("minYear must not be greater than maxYear")
    return preference_text


async def run_recommendation_events(
    query: RecommendationQuery,
    *,
    service: RecommendationService | None = None,
) -> AsyncGenerator[dict[str, Any], None]:
    """Yield progress and result events for the streaming endpoint.

    Recommendations are emitted per finished batch; duplicates of an already
    emitted catalog id are skipped so the stream matches ``recommend``.
    """

    service = service or RecommendationService()
    preference_text = validate_query(query)
    yield {"type": "analysis", "message": "Finding movies that match your taste..."}

    candidates, source = await service.candidates_for(query, preference_text)
    yield {
        "type": "candidates",
        "source": source,
        "count": len(candidates),
        "titles": [candidate.title for candidate in candidates],
    }

    emitted = 0
    seen: set[str] = set()
    async for batch in service.pipeline.iter_batches(candidates, preference_text):
        for item in batch:
            if item.matched and item.catalog_id:
                if item.catalog_id in seen:
                    continue
                seen.add(item.catalog_id)
            yield {"type": "recommendation", "index": emitted, "recommendation": item}
            emitted += 1
    yield {"type": "done", "count": emitted}
