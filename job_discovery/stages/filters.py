"""Client-side filters applied to cleaned listings."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace

from job_discovery.models.listing import Listing


@dataclass(frozen=True)
class FilterContext:
    """Filters for one aggregation phase. Empty values match everything."""

    location_keywords: list[str] = field(default_factory=list)
    job_type: str | None = None
    search_keywords: list[str] = field(default_factory=list)

    def without_keywords(self) -> "FilterContext":
        return replace(self, search_keywords=[])


def matches_location(listing: Listing, location_keywords: list[str]) -> bool:
    if not location_keywords:
        return True
    location = listing.location.lower()
    return any(loc in location for loc in location_keywords)


def matches_job_type(listing: Listing, job_type: str | None) -> bool:
    if not job_type:
        return True
    return job_type.lower() in listing.job_type.lower()


def required_keyword_matches(keyword_count: int, coverage: float) -> int:
    """Minimum number of keywords a listing must contain (at least one)."""
    return max(1, math.ceil(keyword_count * coverage))


def matches_keywords(listing: Listing, search_keywords: list[str], coverage: float) -> bool:
    keywords = list(dict.fromkeys(kw.lower() for kw in search_keywords if kw))
    if not keywords:
        return True
    text = listing.filter_text()
    hits = sum(1 for kw in keywords if kw in text)
    return hits >= required_keyword_matches(len(keywords), coverage)


def apply_filters(
    listings: list[Listing],
    context: FilterContext,
    coverage: float = 0.6,
) -> list[Listing]:
    """Keep listings that pass every supplied filter, preserving order."""
    return [
        listing
        for listing in listings
        if matches_location(listing, context.location_keywords)
        and matches_job_type(listing, context.job_type)
        and matches_keywords(listing, context.search_keywords, coverage)
    ]
