"""Per-skill job previews: one small search for each resume skill."""

from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from job_discovery.engine import SearchEngine
from job_discovery.models.listing import Listing
from job_discovery.models.search import SearchRequest

logger = logging.getLogger(__name__)

MAX_SKILLS = 5
MIN_PREVIEW_LIMIT = 3
MAX_PREVIEW_LIMIT = 10


class SkillPreview(BaseModel):
    """Search outcome for a single skill."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    skill: str
    success: bool
    count: int = 0
    total: int = 0
    jobs: list[Listing] = Field(default_factory=list)
    message: str | None = None


def normalize_skills(skills: list[str]) -> list[str]:
    """Trim, drop one-character entries, keep the first MAX_SKILLS, dedupe in order."""
    trimmed = [s.strip() for s in skills if isinstance(s, str)]
    kept = [s for s in trimmed if len(s) > 1][:MAX_SKILLS]
    return list(dict.fromkeys(kept))


async def preview_skills_async(
    skills: list[str],
    limit: int = MIN_PREVIEW_LIMIT,
    location: str | None = None,
    job_type: str | None = None,
    engine: SearchEngine | None = None,
) -> list[SkillPreview]:
    """Run one search per skill concurrently and trim each result to limit."""
    if not skills:
        raise ValueError("Provide at least one skill keyword.")

    normalized = normalize_skills(skills)
    if not normalized:
        raise ValueError("No valid skills received.")

    limit = max(MIN_PREVIEW_LIMIT, min(MAX_PREVIEW_LIMIT, round(limit)))
    engine = engine or SearchEngine()
    logger.info("Previewing %d skills (limit=%d)", len(normalized), limit)

    responses = await asyncio.gather(
        *(
            engine.search_async(
                SearchRequest(search=skill, location=location, job_type=job_type, limit=limit)
            )
            for skill in normalized
        )
    )

    return [
        SkillPreview(
            skill=skill,
            success=response.success,
            count=response.count,
            total=response.total,
            jobs=response.jobs[:limit],
            message=response.message,
        )
        for skill, response in zip(normalized, responses)
    ]


def preview_skills(skills: list[str], **options) -> list[SkillPreview]:
    """Blocking form of preview_skills_async."""
    return asyncio.run(preview_skills_async(skills, **options))
