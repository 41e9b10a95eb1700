"""Job discovery engine: paginated aggregation with a keyword-free fallback pass."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

import httpx

from job_discovery.models.listing import Listing
from job_discovery.models.search import SearchRequest, SearchResponse
from job_discovery.models.settings import EngineSettings, Gazetteer, load_settings
from job_discovery.report.response import build_failure_response, build_response
from job_discovery.stages.cleaner import clean_listings
from job_discovery.stages.filters import FilterContext, apply_filters
from job_discovery.stages.query import NormalizedQuery, normalize_query
from job_discovery.stages.relevance import annotate_relevance
from job_discovery.tools.upstream import PageResult, UpstreamError, UpstreamPageClient, build_query_params

logger = logging.getLogger(__name__)


class SearchCancelled(Exception):
    """The caller's cancellation signal fired mid-search."""


# =============================================================================
# Aggregation state
# =============================================================================


class Phase(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"
    DONE = "done"


@dataclass
class AggregationState:
    """Collector shared by the primary and fallback phases of one search."""

    limit: int
    collected: list[Listing] = field(default_factory=list)
    seen_ids: set[int] = field(default_factory=set)
    pages_fetched: int = 0
    current_page: int = 1
    total: int = 0
    total_pages: int = 0
    dropped: int = 0
    phase: Phase = Phase.PRIMARY

    @property
    def full(self) -> bool:
        return len(self.collected) >= self.limit

    def add(self, listings: list[Listing]) -> int:
        """Append unseen listings in order until the limit is reached."""
        added = 0
        for listing in listings:
            if self.full:
                break
            if listing.id in self.seen_ids:
                continue
            self.seen_ids.add(listing.id)
            self.collected.append(listing)
            added += 1
        return added

    def record_totals(self, result: PageResult) -> None:
        if self.phase is Phase.FALLBACK:
            self.total = max(self.total, result.total)
            self.total_pages = max(self.total_pages, result.total_pages)
        else:
            self.total = result.total
            self.total_pages = result.total_pages


# =============================================================================
# Page pipeline
# =============================================================================


async def fetch_clean_filter_page(
    client: UpstreamPageClient,
    page: int,
    params: dict[str, str],
    context: FilterContext,
    settings: EngineSettings,
) -> tuple[list[Listing], PageResult, int]:
    """Fetch one page, clean its records and apply the phase's filters.

    Returns the surviving listings, the raw page result and how many
    records the cleaner dropped.
    """
    result = await client.fetch_page(page, params)
    listings, dropped = clean_listings(result.records, settings)
    return apply_filters(listings, context, settings.keyword_coverage), result, dropped


async def race_cancel(work, cancel_event: asyncio.Event | None, page: int):
    """Await work, abandoning it as soon as cancel_event fires."""
    if cancel_event is None:
        return await work

    task = asyncio.ensure_future(work)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        pending = [t for t in (task, waiter) if not t.done()]
        for t in pending:
            t.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    if waiter in done:
        if task.done() and not task.cancelled():
            task.exception()  # consume a page failure that raced the cancel
        raise SearchCancelled(f"cancelled while fetching page {page}")
    return task.result()


async def run_phase(
    state: AggregationState,
    client: UpstreamPageClient,
    start_page: int,
    params: dict[str, str],
    context: FilterContext,
    settings: EngineSettings,
    cancel_event: asyncio.Event | None = None,
) -> None:
    """Fetch pages from start_page until the limit, the last page or the fetch ceiling."""
    state.current_page = start_page

    while not state.full and state.pages_fetched < settings.max_page_fetches:
        if cancel_event is not None and cancel_event.is_set():
            raise SearchCancelled(f"cancelled before page {state.current_page}")

        listings, result, dropped = await race_cancel(
            fetch_clean_filter_page(client, state.current_page, params, context, settings),
            cancel_event,
            state.current_page,
        )
        if cancel_event is not None and cancel_event.is_set():
            raise SearchCancelled(f"cancelled after page {state.current_page}")
        state.pages_fetched += 1
        state.dropped += dropped
        state.record_totals(result)
        added = state.add(listings)

        logger.debug(
            "%s page %d: %d kept after filters, %d new (collected %d/%d)",
            state.phase.value, state.current_page, len(listings), added,
            len(state.collected), state.limit,
        )

        if state.full or state.current_page >= result.total_pages:
            break
        state.current_page += 1


async def aggregate(
    request: SearchRequest,
    query: NormalizedQuery,
    client: UpstreamPageClient,
    settings: EngineSettings,
    cancel_event: asyncio.Event | None = None,
) -> tuple[AggregationState, bool]:
    """Run the primary phase and, when it comes up short, the fallback phase.

    Returns the final state and whether the fallback was triggered.
    """
    per_page = settings.per_page_for(request.limit)
    context = FilterContext(
        location_keywords=query.location_keywords,
        job_type=request.job_type,
        search_keywords=query.search_keywords,
    )
    state = AggregationState(limit=request.limit)

    primary_params = build_query_params(settings, per_page, query.search_keywords)
    await run_phase(state, client, request.page, primary_params, context, settings, cancel_event)

    broadened = bool(query.search_keywords) and not state.full
    if broadened:
        logger.info(
            "Sparse result set; triggering fallback: keywords=%s, locations=%s, limit=%d, collected=%d",
            query.search_keywords, query.location_keywords, request.limit, len(state.collected),
        )
        state.phase = Phase.FALLBACK
        # The server-side search is dropped too so the upstream does not pre-filter
        fallback_params = build_query_params(settings, per_page)
        await run_phase(
            state, client, 1, fallback_params, context.without_keywords(), settings, cancel_event
        )

    state.phase = Phase.DONE
    if state.dropped:
        logger.warning("Dropped %d malformed upstream records", state.dropped)
    return state, broadened


# =============================================================================
# Engine
# =============================================================================


class SearchEngine:
    """Stateless search entry point. One instance may serve concurrent calls."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        gazetteer: Gazetteer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.gazetteer = gazetteer or Gazetteer()
        self.transport = transport

    def search(
        self,
        request: SearchRequest,
        *,
        cancel_event: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> SearchResponse:
        """Blocking form of search_async.

        Raises RuntimeError when called from a running event loop; await
        search_async() there instead.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(
                self.search_async(request, cancel_event=cancel_event, deadline=deadline)
            )
        raise RuntimeError(
            "SearchEngine.search() cannot run inside an event loop; await search_async() instead"
        )

    async def search_async(
        self,
        request: SearchRequest,
        *,
        cancel_event: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> SearchResponse:
        """Run one search. Never raises; failures become a success=False response."""
        settings = self.settings
        query = normalize_query(request.search, request.location, self.gazetteer)
        general_keywords = request.general_keywords or query.search_keywords

        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=settings.request_timeout,
                headers={"User-Agent": settings.user_agent},
                follow_redirects=True,
            ) as http:
                client = UpstreamPageClient(http, settings)
                work = aggregate(request, query, client, settings, cancel_event)
                if deadline is not None:
                    state, broadened = await asyncio.wait_for(work, timeout=deadline)
                else:
                    state, broadened = await work
        except UpstreamError as e:
            logger.error("Error fetching jobs: %s", e)
            return build_failure_response(request, settings)
        except SearchCancelled as e:
            logger.warning("Job search cancelled: %s", e)
            return build_failure_response(request, settings)
        except asyncio.TimeoutError:
            logger.warning("Job search exceeded its %.1fs deadline", deadline)
            return build_failure_response(request, settings)
        except Exception as e:
            logger.error("Unexpected error during job search: %s", e, exc_info=True)
            return build_failure_response(request, settings)

        jobs = annotate_relevance(
            state.collected[: request.limit], request.skill_keywords, general_keywords
        )
        return build_response(
            request,
            query,
            jobs,
            total=state.total,
            total_pages=state.total_pages,
            broadened=broadened,
            general_keywords=general_keywords,
            settings=settings,
        )


def search(request: SearchRequest, **options) -> SearchResponse:
    """Search with default settings from the environment. Not for use inside an event loop."""
    return SearchEngine().search(request, **options)
