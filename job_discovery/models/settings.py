"""Engine configuration: tunable constants and the location gazetteer."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://sportsnaukri.com/wp-json/wp/v2/job_listing"
DEFAULT_FIELDS = "id,slug,title,link,content,metas,date"


class EngineSettings(BaseModel):
    """Tunable constants for one engine instance."""

    model_config = ConfigDict(frozen=True)

    api_url: str = DEFAULT_API_URL
    fields: str = DEFAULT_FIELDS
    max_per_page: int = Field(default=40, ge=1)
    max_page_fetches: int = Field(default=5, ge=1)

    # Fraction of distinct search keywords a listing must contain
    keyword_coverage: float = Field(default=0.6, ge=0.0, le=1.0)
    low_result_threshold: int = Field(default=3, ge=0)

    description_max_chars: int = Field(default=800, ge=1)
    cache_ttl_seconds: int = 300
    request_timeout: float = 30.0
    date_locale: str = "en-IN"
    source_name: str = "SportsNaukri"
    default_search_hint: str = "sports jobs"
    user_agent: str = "JobDiscoveryEngine/1.0"

    def per_page_for(self, limit: int) -> int:
        """Upstream page size: twice the requested count, capped."""
        return min(limit * 2, self.max_per_page)


def load_settings() -> EngineSettings:
    """Build settings from defaults overlaid with JOB_* environment variables."""
    env_map = {
        "api_url": "JOB_API_URL",
        "request_timeout": "JOB_REQUEST_TIMEOUT",
        "date_locale": "JOB_DATE_LOCALE",
        "keyword_coverage": "JOB_KEYWORD_COVERAGE",
        "low_result_threshold": "JOB_LOW_RESULT_THRESHOLD",
        "max_page_fetches": "JOB_MAX_PAGE_FETCHES",
    }
    overrides = {
        field: os.environ[var] for field, var in env_map.items() if os.getenv(var)
    }
    settings = EngineSettings(**overrides)
    if overrides:
        logger.info("Settings overridden from environment: %s", ", ".join(sorted(overrides)))
    return settings


# =============================================================================
# Gazetteer
# =============================================================================

DEFAULT_LOCATION_KEYWORDS = (
    "mumbai", "delhi", "bangalore", "bengaluru", "hyderabad", "chennai",
    "kolkata", "pune", "ahmedabad", "jaipur", "gurgaon", "gurugram", "noida",
    "chandigarh", "kochi", "lucknow", "indore", "bhopal", "nagpur",
    "visakhapatnam", "patna", "vadodara", "goa", "remote",
)

DEFAULT_BROAD_TERMS = (
    "india", "indian", "nationwide", "any location", "anywhere", "all cities",
)


class Gazetteer(BaseModel):
    """Known location names and terms that mean "no location filter"."""

    model_config = ConfigDict(frozen=True)

    location_keywords: frozenset[str] = frozenset(DEFAULT_LOCATION_KEYWORDS)
    broad_terms: frozenset[str] = frozenset(DEFAULT_BROAD_TERMS)

    @field_validator("location_keywords", "broad_terms", mode="before")
    @classmethod
    def lowercase_terms(cls, v):
        return frozenset(str(term).strip().lower() for term in (v or ()) if str(term).strip())

    @model_validator(mode="after")
    def check_disjoint(self) -> "Gazetteer":
        overlap = self.location_keywords & self.broad_terms
        if overlap:
            raise ValueError(f"Terms cannot be both a location and broad: {sorted(overlap)}")
        return self

    def is_location(self, token: str) -> bool:
        return token in self.location_keywords

    def is_broad(self, token: str) -> bool:
        return token in self.broad_terms


def load_gazetteer(filepath: str | None = None) -> Gazetteer:
    """Load the gazetteer from YAML, or return built-in defaults.

    Expected layout::

        location_keywords: [mumbai, delhi, ...]
        broad_terms: [india, nationwide, ...]

    Either key may be omitted to keep its default list.
    """
    if filepath is None:
        return Gazetteer()

    path = Path(filepath)
    if not path.exists():
        logger.warning("Gazetteer file not found at %s, using defaults", filepath)
        return Gazetteer()

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    gazetteer = Gazetteer(**{k: v for k, v in data.items() if k in Gazetteer.model_fields})
    logger.info(
        "Loaded gazetteer from %s: %d locations, %d broad terms",
        filepath,
        len(gazetteer.location_keywords),
        len(gazetteer.broad_terms),
    )
    return gazetteer
