"""Pydantic models for normalized job listings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NOT_SPECIFIED = "Not specified"


class Relevance(BaseModel):
    """Which caller-supplied keywords were found in a listing's text."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    skill_matches: list[str] = Field(default_factory=list)
    general_matches: list[str] = Field(default_factory=list)


class Listing(BaseModel):
    """Normalized job listing built from one upstream record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    slug: str = ""
    title: str
    link: str = ""
    employer: str = NOT_SPECIFIED
    employer_logo: str | None = None
    employer_url: str | None = None
    location: str = NOT_SPECIFIED
    job_type: str = NOT_SPECIFIED
    category: str = NOT_SPECIFIED
    qualification: str = NOT_SPECIFIED
    experience: str = NOT_SPECIFIED
    salary: str = NOT_SPECIFIED
    description: str = ""
    posted_date: str | None = None
    full_description_url: str = ""

    # Populated by the relevance annotator; None means "no scoring data"
    relevance: Relevance | None = None

    def filter_text(self) -> str:
        """Lowercased text searched by the keyword filter."""
        return " ".join(
            [self.title, self.description, self.employer, self.category, self.qualification]
        ).lower()

    def relevance_text(self) -> str:
        """Lowercased text searched by the relevance annotator."""
        return " ".join(
            [
                self.title,
                self.description,
                self.employer,
                self.category,
                self.qualification,
                self.experience,
                self.job_type,
                self.location,
            ]
        ).lower()
