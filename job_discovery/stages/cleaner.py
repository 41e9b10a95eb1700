"""Listing cleaner: map raw upstream records to normalized Listings."""

from __future__ import annotations

import logging
from datetime import datetime

from job_discovery.models.listing import NOT_SPECIFIED, Listing
from job_discovery.models.settings import EngineSettings
from job_discovery.tools.html_cleaner import clean_html, decode_entities, truncate

logger = logging.getLogger(__name__)

# strftime-free so day/month stay unpadded where the locale does so
DATE_FORMATS = {
    "en-IN": "{day}/{month}/{year}",
    "en-GB": "{day:02d}/{month:02d}/{year}",
    "en-US": "{month}/{day}/{year}",
    "de-DE": "{day}.{month}.{year}",
    "iso": "{year}-{month:02d}-{day:02d}",
}


def clean_listing(raw: dict, settings: EngineSettings) -> Listing | None:
    """Build a Listing from one raw record, or None if the record is unusable."""
    try:
        metas = raw.get("metas")
        if not isinstance(metas, dict):
            metas = {}

        description = clean_html(_rendered(raw.get("content")))
        link = raw.get("link") or ""

        return Listing(
            id=raw["id"],
            slug=raw.get("slug") or "",
            title=decode_entities(_rendered(raw.get("title")) or "No title"),
            link=link,
            employer=meta_text(metas.get("_job_employer_name")) or NOT_SPECIFIED,
            employer_logo=meta_text(metas.get("_job_logo")) or None,
            employer_url=meta_text(metas.get("_job_employer_url")) or None,
            location=flatten_values(metas.get("_job_location")),
            job_type=flatten_values(metas.get("_job_type")),
            category=flatten_values(metas.get("_job_category")),
            qualification=meta_text(metas.get("_job_qualification")) or NOT_SPECIFIED,
            experience=meta_text(metas.get("_job_experience")) or NOT_SPECIFIED,
            salary=format_salary(metas.get("_job_salary"), metas.get("_job_max_salary")),
            description=truncate(description, settings.description_max_chars),
            posted_date=format_posted_date(raw.get("date"), settings.date_locale),
            full_description_url=link,
        )
    except Exception as e:
        logger.debug("Failed to clean listing %r: %s", raw.get("id") if isinstance(raw, dict) else raw, e)
        return None


def clean_listings(records: list, settings: EngineSettings) -> tuple[list[Listing], int]:
    """Clean a batch. Returns the surviving listings and the dropped count."""
    listings: list[Listing] = []
    dropped = 0
    for raw in records:
        listing = clean_listing(raw, settings) if isinstance(raw, dict) else None
        if listing is None:
            dropped += 1
            continue
        listings.append(listing)
    return listings, dropped


# =============================================================================
# Field helpers
# =============================================================================


def _rendered(field: object) -> str:
    """WordPress wraps rendered text as {"rendered": "..."}."""
    if isinstance(field, dict):
        return field.get("rendered") or ""
    return ""


def flatten_values(value: object) -> str:
    """Join the values of an object-valued meta field."""
    if isinstance(value, dict):
        items = list(value.values())
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        return NOT_SPECIFIED

    parts = [str(v) for v in items if v]
    return ", ".join(parts) if parts else NOT_SPECIFIED


def meta_text(value: object) -> str:
    """Scalar meta value as text; empty string for missing or falsy values."""
    if not value:
        return ""
    if isinstance(value, (dict, list, tuple)):
        flattened = flatten_values(value)
        return "" if flattened == NOT_SPECIFIED else flattened
    return str(value).strip()


def format_salary(min_salary: object, max_salary: object) -> str:
    """'min - max', a single bound, or NOT_SPECIFIED."""
    low = str(min_salary).strip() if min_salary is not None else ""
    high = str(max_salary).strip() if max_salary is not None else ""
    if low and high:
        return f"{low} - {high}"
    return low or high or NOT_SPECIFIED


def format_posted_date(value: str | None, locale: str = "en-IN") -> str | None:
    """Render an upstream ISO timestamp in the locale's numeric date style."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        logger.debug("Could not parse date: %s", value)
        return None
    template = DATE_FORMATS.get(locale, DATE_FORMATS["iso"])
    return template.format(day=dt.day, month=dt.month, year=dt.year)
