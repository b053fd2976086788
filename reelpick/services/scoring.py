"""Lexical preference scoring of resolved movies against user text."""

from __future__ import annotations

from typing import Iterable

from reelpick.services.models import CatalogDetails, PreferenceScore
from reelpick.services.vocabulary import GENRE_TERMS, STREAMING_TERMS


def mentioned_genres(text: str) -> list[str]:
    """Canonical genre names whose vocabulary term appears in ``text``."""

    return _mentioned(text, GENRE_TERMS)


def mentioned_services(text: str) -> list[str]:
    """Canonical streaming-service names whose term appears in ``text``."""

    return _mentioned(text, STREAMING_TERMS)


def score_preferences(text: str, details: CatalogDetails | None) -> PreferenceScore:
    """Compute the genre-match score and preferred-service flag for one movie."""

    genres = mentioned_genres(text)
    services = mentioned_services(text)
    if details is None:
        return PreferenceScore(mentioned_genres=genres, mentioned_services=services)

    score = 0.0
    if genres:
        hits = sum(1 for genre in genres if _overlaps(genre, details.genres))
        score = hits / len(genres)
    on_service = bool(services) and any(
        _overlaps(service, services) for service in details.streaming_services
    )
    return PreferenceScore(
        genre_match_score=score,
        is_on_preferred_service=on_service,
        mentioned_genres=genres,
        mentioned_services=services,
    )


def _mentioned(text: str, table: Iterable[tuple[str, str]]) -> list[str]:
    lowered = (text or "").lower()
    found: list[str] = []
    for term, name in table:
        if term in lowered and name not in found:
            found.append(name)
    return found


def _overlaps(value: str, names: Iterable[str]) -> bool:
    needle = value.lower()
    for name in names:
        other = name.lower()
        if other and (needle in other or other in needle):
            return True
    return False
