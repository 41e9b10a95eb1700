"""Shared fixtures: raw upstream records and a fake listing endpoint."""

from __future__ import annotations

import math

import httpx
import pytest

from job_discovery.engine import SearchEngine
from job_discovery.models.settings import EngineSettings, Gazetteer


def make_record(
    job_id: int,
    title: str = "Assistant Coach",
    content: str = "<p>Join our academy staff.</p>",
    location: dict | None = None,
    job_type: dict | None = None,
    category: dict | None = None,
    employer: str = "Acme Sports",
    **metas,
) -> dict:
    """Helper to create a raw WordPress job_listing record."""
    return {
        "id": job_id,
        "slug": f"job-{job_id}",
        "title": {"rendered": title},
        "link": f"https://example.com/job/{job_id}",
        "content": {"rendered": content},
        "date": "2025-01-15T10:20:30",
        "metas": {
            "_job_employer_name": employer,
            "_job_location": location if location is not None else {"0": "Mumbai"},
            "_job_type": job_type if job_type is not None else {"0": "Full Time"},
            "_job_category": category if category is not None else {"0": "Coaching"},
            **metas,
        },
    }


def _record_text(record: dict) -> str:
    return f"{record['title']['rendered']} {record['content']['rendered']}".lower()


class FakeUpstream:
    """In-memory listing endpoint served through httpx.MockTransport.

    Paginates by per_page/page, emulates the server-side search by
    requiring every search token in the title or content, and reports
    X-WP-Total / X-WP-TotalPages headers unless told not to.
    """

    def __init__(
        self,
        records: list[dict],
        *,
        with_headers: bool = True,
        fail_status: int | None = None,
    ) -> None:
        self.records = records
        self.with_headers = with_headers
        self.fail_status = fail_status
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status)

        params = request.url.params
        per_page = int(params["per_page"])
        page = int(params["page"])

        pool = self.records
        search = params.get("search")
        if search:
            tokens = search.lower().split()
            pool = [r for r in pool if all(tok in _record_text(r) for tok in tokens)]

        total = len(pool)
        chunk = pool[(page - 1) * per_page : page * per_page]
        headers = {}
        if self.with_headers:
            headers = {
                "X-WP-Total": str(total),
                "X-WP-TotalPages": str(math.ceil(total / per_page)),
            }
        return httpx.Response(200, json=chunk, headers=headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def pages_requested(self) -> list[int]:
        return [int(r.url.params["page"]) for r in self.requests]

    def searches_requested(self) -> list[str | None]:
        return [r.url.params.get("search") for r in self.requests]


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings(api_url="https://jobs.example.com/wp-json/wp/v2/job_listing")


@pytest.fixture
def make_engine(settings: EngineSettings):
    """Build an engine wired to a fake upstream."""

    def _make(upstream: FakeUpstream, **overrides) -> SearchEngine:
        engine_settings = settings.model_copy(update=overrides) if overrides else settings
        return SearchEngine(
            settings=engine_settings,
            gazetteer=Gazetteer(),
            transport=upstream.transport,
        )

    return _make
