"""Thin async wrapper around the TMDb API to search and fetch movie metadata."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable

import httpx

from reelpick.core.config import get_settings
from reelpick.services.errors import NotFound, UpstreamError
from reelpick.services.models import CatalogDetails, CatalogRecord


logger = logging.getLogger(__name__)

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


class TMDbClient:
    """TMDb HTTP client using API key auth.

    Every call opens its own short-lived ``httpx.AsyncClient`` and is bounded
    by ``timeout`` seconds end to end.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        default_language: str | None = None,
        watch_region: str | None = None,
        image_base: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.tmdb_api_key
        self.base_url = (base_url or settings.tmdb_base_url).rstrip("/")
        self.default_language = default_language or settings.tmdb_language
        self.watch_region = watch_region or settings.tmdb_watch_region
        self.image_base = (image_base or settings.tmdb_image_base).rstrip("/")
        self.timeout = timeout or settings.tmdb_timeout_seconds
        self._transport = transport

    async def _request(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        if not self.api_key:
            raise UpstreamError("TMDB_API_KEY is not configured")
        try:
            return await asyncio.wait_for(self._send(path, params), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise UpstreamError(f"TMDb request to {path} timed out after {self.timeout}s") from exc

    async def _send(self, path: str, params: dict[str, Any] | None) -> Any:
        url = f"{self.base_url}{path}"
        query = {"api_key": self.api_key}
        if params:
            query.update({k: v for k, v in params.items() if v is not None})
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=query)
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"TMDb request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"TMDb request to {path} failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            raise NotFound(f"TMDb has no resource at {path}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(str(exc)) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"TMDb returned a non-JSON body for {path}") from exc

    async def search(self, query: str, year: int | None = None) -> list[CatalogRecord]:
        """Search TMDb for movies, keeping TMDb's relevance order."""

        cleaned = _PUNCTUATION_RE.sub("", query).strip() or query.strip()
        payload = await self._request(
            "/search/movie",
            params={
                "query": cleaned,
                "include_adult": False,
                "language": self.default_language,
                "year": year,
            },
        )
        logger.debug("TMDb search payload for %r: %s", cleaned, payload)
        return self._normalize("/search/movie", self._to_records, payload)

    async def details(self, catalog_id: str, *, include_streaming: bool = True) -> CatalogDetails:
        """Fetch full movie details, credits and (optionally) watch providers."""

        append = ["credits"]
        if include_streaming:
            append.append("watch/providers")
        payload = await self._request(
            f"/movie/{catalog_id}",
            params={
                "language": self.default_language,
                "append_to_response": ",".join(append),
            },
        )
        logger.debug("TMDb details payload for %s: %s", catalog_id, payload)
        return self._normalize(
            f"/movie/{catalog_id}", self._to_details, payload, include_streaming=include_streaming
        )

    async def trending(self, media_type: str = "movie", *, limit: int = 10) -> list[CatalogRecord]:
        """Return this week's trending movies or TV shows."""

        if media_type not in {"movie", "tv"}:
            raise ValueError(f"unsupported media type: {media_type}")
        path = f"/trending/{media_type}/week"
        payload = await self._request(path)
        return self._normalize(path, self._to_records, payload, limit=limit)

    @staticmethod
    def _normalize(path: str, parse: Callable[..., Any], payload: Any, **kwargs: Any) -> Any:
        try:
            return parse(payload, **kwargs)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise UpstreamError(f"TMDb returned an unexpected payload for {path}: {exc!r}") from exc

    def _to_records(self, payload: dict[str, Any], *, limit: int | None = None) -> list[CatalogRecord]:
        results = payload.get("results") or []
        if limit is not None:
            results = results[:limit]
        return [self._to_record(item) for item in results if item.get("id") is not None]

    def _to_details(self, payload: dict[str, Any], *, include_streaming: bool) -> CatalogDetails:
        record = self._to_record(payload)
        credits = payload.get("credits") or {}
        return CatalogDetails(
            catalog_id=record.catalog_id,
            title=record.title,
            poster_path=record.poster_path,
            release_date=record.release_date,
            rating=record.rating,
            overview=record.overview,
            popularity=record.popularity,
            runtime_minutes=int(payload.get("runtime") or 0),
            genres=[g["name"] for g in payload.get("genres") or [] if g.get("name")],
            director=self._extract_director(credits),
            cast=self._extract_cast(credits),
            streaming_services=(
                self._extract_streaming(payload.get("watch/providers") or {})
                if include_streaming
                else []
            ),
        )

    def _to_record(self, item: dict[str, Any]) -> CatalogRecord:
        rating = item.get("vote_average")
        popularity = item.get("popularity")
        return CatalogRecord(
            catalog_id=str(item["id"]),
            title=item.get("title") or item.get("name") or "",
            poster_path=self._build_poster_url(item.get("poster_path")),
            release_date=item.get("release_date") or item.get("first_air_date") or None,
            rating=float(rating) if rating is not None else None,
            overview=item.get("overview") or None,
            popularity=float(popularity) if popularity is not None else None,
        )

    def _extract_streaming(self, providers: dict[str, Any]) -> list[str]:
        region = (providers.get("results") or {}).get(self.watch_region) or {}
        return [p["provider_name"] for p in region.get("flatrate") or [] if p.get("provider_name")]

    @staticmethod
    def _extract_director(credits: dict[str, Any]) -> str | None:
        crew = credits.get("crew") or []
        for member in crew:
            if member.get("job") == "Director" and member.get("name"):
                return member["name"]
        return None

    @staticmethod
    def _extract_cast(credits: dict[str, Any], *, limit: int = 5) -> list[str]:
        cast = credits.get("cast") or []
        names = [person.get("name") for person in cast if person.get("name")]
        return names[:limit]

    def _build_poster_url(self, path: str | None) -> str | None:
        if not path:
            return None
        return f"{self.image_base}{path}"
