"""Pydantic models for search requests and responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from job_discovery.models.listing import Listing

MIN_LIMIT = 5
MAX_LIMIT = 30
DEFAULT_LIMIT = 10


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_payload(self) -> dict:
        """Serialize with camelCase keys, leaving out unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TelemetryContext(_CamelModel):
    """Identifiers the caller wants echoed back for tracking."""

    request_id: str
    conversation_id: str | None = None
    requested_at: str | None = None  # ISO 8601


class SearchRequest(_CamelModel):
    """One search call. All filters are optional; omitting them matches everything."""

    search: str | None = None
    location: str | None = None
    job_type: str | None = None
    limit: int = DEFAULT_LIMIT
    page: int = 1
    skill_keywords: list[str] = Field(default_factory=list)
    general_keywords: list[str] = Field(default_factory=list)
    telemetry: TelemetryContext | None = None

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, v: int) -> int:
        return max(MIN_LIMIT, min(MAX_LIMIT, v))

    @field_validator("page")
    @classmethod
    def min_page(cls, v: int) -> int:
        return max(v, 1)

    @field_validator("skill_keywords", "general_keywords")
    @classmethod
    def drop_blank(cls, v: list[str]) -> list[str]:
        return [kw for kw in v if kw and kw.strip()]


class ResponseMeta(_CamelModel):
    """Metadata about how a search was executed."""

    telemetry_id: str | None = None
    conversation_id: str | None = None
    broadened_search: bool | None = None
    low_result_count: int | None = None
    requested_count: int | None = None
    search_keywords: list[str] | None = None
    skill_keywords: list[str] | None = None
    general_keywords: list[str] | None = None


class SearchResponse(_CamelModel):
    """Final payload returned to the caller."""

    success: bool
    count: int = 0
    total: int = 0
    total_pages: int = 0
    current_page: int = 1
    jobs: list[Listing] = Field(default_factory=list)
    message: str | None = None
    tips: list[str] | None = None
    meta: ResponseMeta | None = None
