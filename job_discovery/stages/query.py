"""Query normalizer: split free text into keyword and location tokens."""

from __future__ import annotations

from dataclasses import dataclass, field

from job_discovery.models.settings import Gazetteer


@dataclass(frozen=True)
class NormalizedQuery:
    search_keywords: list[str] = field(default_factory=list)
    location_keywords: list[str] = field(default_factory=list)


def normalize_query(
    search: str | None,
    location: str | None,
    gazetteer: Gazetteer,
) -> NormalizedQuery:
    """Classify each search token as a location, a broad term, or a keyword.

    Broad terms ("india", "nationwide") are dropped so no location filter
    applies. An explicit location is added unless it is itself broad.
    """
    search_keywords: list[str] = []
    location_keywords: list[str] = []

    for token in (search or "").lower().split():
        if gazetteer.is_location(token):
            location_keywords.append(token)
        elif gazetteer.is_broad(token):
            continue
        else:
            search_keywords.append(token)

    if location:
        loc = location.strip().lower()
        if loc and not gazetteer.is_broad(loc):
            location_keywords.append(loc)

    return NormalizedQuery(search_keywords=search_keywords, location_keywords=location_keywords)
