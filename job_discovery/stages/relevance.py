"""Relevance annotator: tag listings with the caller keywords they mention."""

from __future__ import annotations

from job_discovery.models.listing import Listing, Relevance


def collect_matches(haystack: str, keywords: list[str]) -> list[str]:
    """Keywords (original casing) whose lowercase form occurs in haystack.

    A keyword repeated with different casing is only counted once.
    """
    matches: list[str] = []
    seen: set[str] = set()
    for keyword in keywords:
        normalized = keyword.strip().lower()
        if not normalized or normalized in seen:
            continue
        if normalized in haystack:
            matches.append(keyword)
            seen.add(normalized)
    return matches


def compute_relevance(
    listing: Listing,
    skill_keywords: list[str],
    general_keywords: list[str],
) -> Relevance | None:
    haystack = listing.relevance_text()
    skill_matches = collect_matches(haystack, skill_keywords)
    general_matches = collect_matches(haystack, general_keywords)
    if not skill_matches and not general_matches:
        return None
    return Relevance(skill_matches=skill_matches, general_matches=general_matches)


def annotate_relevance(
    listings: list[Listing],
    skill_keywords: list[str],
    general_keywords: list[str],
) -> list[Listing]:
    """Return listings in the same order, with relevance set where anything matched."""
    if not listings or (not skill_keywords and not general_keywords):
        return listings

    annotated: list[Listing] = []
    for listing in listings:
        relevance = compute_relevance(listing, skill_keywords, general_keywords)
        if relevance is None:
            annotated.append(listing)
        else:
            annotated.append(listing.model_copy(update={"relevance": relevance}))
    return annotated
