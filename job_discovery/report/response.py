"""Response assembler: build the final search payload."""

from __future__ import annotations

import logging

from job_discovery.models.listing import Listing
from job_discovery.models.search import ResponseMeta, SearchRequest, SearchResponse
from job_discovery.models.settings import EngineSettings
from job_discovery.stages.query import NormalizedQuery

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No jobs found matching your criteria."
TIP_BROADER_TERMS = "Try broader search terms."
TIP_REMOVE_LOCATION = "Try removing location filters."


def build_response(
    request: SearchRequest,
    query: NormalizedQuery,
    listings: list[Listing],
    *,
    total: int,
    total_pages: int,
    broadened: bool,
    general_keywords: list[str],
    settings: EngineSettings,
) -> SearchResponse:
    """Assemble a successful response from the aggregated listings."""
    jobs = listings[: request.limit]
    count = len(jobs)

    low_result_count = None
    if count < settings.low_result_threshold:
        low_result_count = count
        logger.info(
            "Sparse final job results: count=%d, limit=%d, keywords=%s, locations=%s, "
            "job_type=%s, fallback=%s",
            count, request.limit, query.search_keywords, query.location_keywords,
            request.job_type, broadened,
        )

    telemetry = request.telemetry
    meta = ResponseMeta(
        telemetry_id=telemetry.request_id if telemetry else None,
        conversation_id=telemetry.conversation_id if telemetry else None,
        broadened_search=True if broadened else None,
        low_result_count=low_result_count,
        requested_count=request.limit,
        search_keywords=query.search_keywords,
        skill_keywords=request.skill_keywords,
        general_keywords=general_keywords,
    )

    message = None
    tips = None
    if count == 0:
        message = NO_RESULTS_MESSAGE
        tips = []
        if query.search_keywords:
            tips.append(TIP_BROADER_TERMS)
        if query.location_keywords:
            tips.append(TIP_REMOVE_LOCATION)

    return SearchResponse(
        success=True,
        count=count,
        total=total,
        total_pages=total_pages,
        current_page=request.page,
        jobs=jobs,
        message=message,
        tips=tips,
        meta=meta,
    )


def build_failure_response(request: SearchRequest, settings: EngineSettings) -> SearchResponse:
    """Degraded response for an upstream failure, cancellation or deadline."""
    requested = (request.search or "").strip() or settings.default_search_hint
    telemetry = request.telemetry

    return SearchResponse(
        success=False,
        count=0,
        total=0,
        total_pages=0,
        current_page=request.page,
        jobs=[],
        message=(
            f"Couldn't reach {settings.source_name} jobs right now. Please try again in a "
            f'moment. If it keeps failing, try a broader keyword like "{requested}" and '
            "no location filter."
        ),
        meta=ResponseMeta(
            telemetry_id=telemetry.request_id if telemetry else None,
            conversation_id=telemetry.conversation_id if telemetry else None,
        ),
    )
