"""Upstream page client for the WordPress job listing endpoint."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import httpx

from job_discovery.models.settings import EngineSettings

logger = logging.getLogger(__name__)

TOTAL_HEADER = "x-wp-total"
TOTAL_PAGES_HEADER = "x-wp-totalpages"


class UpstreamError(Exception):
    """The listing source could not produce a page."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        self.reason = reason
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"Upstream API error {status_code}: {reason}")
        else:
            super().__init__(f"Upstream API error: {reason}")


@dataclass
class PageResult:
    """Raw records of one upstream page plus the totals it reported."""

    records: list[dict] = field(default_factory=list)
    total: int = 0
    total_pages: int = 0


def build_query_params(
    settings: EngineSettings,
    per_page: int,
    search_keywords: list[str] | None = None,
) -> dict[str, str]:
    """Shared query template; the page number is set per request."""
    params = {
        "per_page": str(per_page),
        "_fields": settings.fields,
    }
    if search_keywords:
        params["search"] = " ".join(search_keywords)
    return params


class UpstreamPageClient:
    """Fetches single pages from the listing endpoint. Never retries."""

    def __init__(self, http: httpx.AsyncClient, settings: EngineSettings) -> None:
        self.http = http
        self.settings = settings

    async def fetch_page(self, page: int, params: dict[str, str]) -> PageResult:
        query = {**params, "page": str(page)}
        try:
            response = await self.http.get(
                self.settings.api_url,
                params=query,
                headers={"Cache-Control": f"max-age={self.settings.cache_ttl_seconds}"},
            )
        except httpx.TimeoutException as e:
            raise UpstreamError(f"request timed out ({e.__class__.__name__})") from e
        except httpx.TransportError as e:
            raise UpstreamError(f"request failed: {e}") from e

        if not response.is_success:
            raise UpstreamError(response.reason_phrase or "unknown error", response.status_code)

        try:
            records = response.json()
        except ValueError as e:
            raise UpstreamError("response body is not valid JSON") from e
        if not isinstance(records, list):
            raise UpstreamError("expected a JSON array of listings")

        total = _parse_header_int(response.headers.get(TOTAL_HEADER))
        if total is None:
            total = len(records)

        total_pages = _parse_header_int(response.headers.get(TOTAL_PAGES_HEADER))
        if total_pages is None:
            per_page = int(params.get("per_page", "10"))
            total_pages = math.ceil(total / per_page) if per_page > 0 else 0

        logger.debug(
            "Fetched upstream page %d: %d records (total=%d, pages=%d)",
            page, len(records), total, total_pages,
        )
        return PageResult(records=records, total=total, total_pages=total_pages)


def _parse_header_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None
