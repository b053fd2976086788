"""Shared dataclasses for the recommendation service layer."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class CatalogRecord:
    """One TMDb search hit, normalized."""

    catalog_id: str
    title: str
    poster_path: str | None = None
    release_date: str | None = None
    rating: float | None = None
    overview: str | None = None
    popularity: float | None = None

    @property
    def release_year(self) -> int | None:
        return _year_from_date(self.release_date)


@dataclass(slots=True)
class CatalogDetails(CatalogRecord):
    """Full TMDb movie details including credits and watch providers."""

    runtime_minutes: int = 0
    genres: list[str] = field(default_factory=list)
    director: str | None = None
    cast: list[str] = field(default_factory=list)
    streaming_services: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Candidate:
    """A loosely-specified movie suggestion awaiting catalog verification.

    ``record`` is only set for fallback candidates that were produced straight
    from a catalog search, so the resolver can skip searching again.
    """

    title: str
    year: int | None = None
    description: str | None = None
    record: CatalogRecord | None = None


@dataclass(slots=True)
class PreferenceScore:
    genre_match_score: float = 0.0
    is_on_preferred_service: bool = False
    mentioned_genres: list[str] = field(default_factory=list)
    mentioned_services: list[str] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class EnrichedRecommendation:
    """Candidate + catalog details + preference-match signals; immutable once built."""

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
    genres: list[str] = field(default_factory=list)
    director: str | None = None
    cast: list[str] = field(default_factory=list)
    streaming_services: list[str] = field(default_factory=list)
    genre_match_score: float = 0.0
    is_on_preferred_service: bool = False


@dataclass(slots=True)
class RecommendationQuery:
    """What the user asked for: free text plus optional structured filters."""

    preferences: str = ""
    liked_movies: list[str] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    min_rating: float | None = None
    min_year: int | None = None
    max_year: int | None = None
    count: int | None = None

    @property
    def preference_text(self) -> str:
        """Text the scorer and fallback search read: free text plus picked genres."""

        parts = [self.preferences.strip(), *(genre.strip() for genre in self.genres)]
        return " ".join(part for part in parts if part)


def _year_from_date(raw: str | None) -> int | None:
    if not raw or len(raw) < 4 or not raw[:4].isdigit():
        return None
    return int(raw[:4])
