"""Tests for mapping raw upstream records to Listings."""

from __future__ import annotations

import pytest

from conftest import make_record
from job_discovery.models.listing import NOT_SPECIFIED
from job_discovery.models.settings import EngineSettings
from job_discovery.stages.cleaner import (
    clean_listing,
    clean_listings,
    flatten_values,
    format_posted_date,
    format_salary,
)
from job_discovery.tools.html_cleaner import clean_html, decode_entities


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings()


class TestSalary:
    """Test suite for salary formatting."""

    def test_min_only(self) -> None:
        assert format_salary("10000", None) == "10000"

    def test_max_only(self) -> None:
        assert format_salary(None, "25000") == "25000"

    def test_both_bounds(self) -> None:
        assert format_salary(" 10000 ", "25000") == "10000 - 25000"

    def test_neither(self) -> None:
        assert format_salary(None, None) == NOT_SPECIFIED
        assert format_salary("  ", "") == NOT_SPECIFIED

    def test_from_record(self, settings: EngineSettings) -> None:
        """A record with only _job_salary cleans to that single bound."""
        listing = clean_listing(make_record(1, _job_salary="10000"), settings)
        assert listing.salary == "10000"


class TestHtml:
    """Test suite for tag stripping and entity decoding."""

    def test_strips_tags_and_collapses_whitespace(self) -> None:
        html = "<h2>Role</h2>\n<p>Coach   the <b>U-19</b> squad</p>"
        assert clean_html(html) == "Role Coach the U-19 squad"

    def test_decodes_fixed_entities(self) -> None:
        text = "Sales &#8211; Marketing &amp; PR &#8220;Lead&#8221; &rsquo;"
        assert decode_entities(text) == "Sales – Marketing & PR \"Lead\" '"

    def test_decodes_numeric_entities(self) -> None:
        assert decode_entities("Caf&#233; &#38; Bar") == "Café & Bar"

    def test_script_content_removed(self) -> None:
        assert clean_html("<p>Apply</p><script>alert(1)</script>") == "Apply"

    def test_empty_input(self) -> None:
        assert clean_html(None) == ""
        assert decode_entities("") == ""


class TestCleanListing:
    """Test suite for the full record mapping."""

    def test_basic_fields(self, settings: EngineSettings) -> None:
        record = make_record(
            42,
            title="Physio &amp; Rehab Lead",
            location={"a": "Mumbai", "b": "Pune"},
            _job_logo="https://cdn.example.com/logo.png",
            _job_experience="2-4 years",
        )

        listing = clean_listing(record, settings)

        assert listing.id == 42
        assert listing.slug == "job-42"
        assert listing.title == "Physio & Rehab Lead"
        assert listing.location == "Mumbai, Pune"
        assert listing.job_type == "Full Time"
        assert listing.employer == "Acme Sports"
        assert listing.employer_logo == "https://cdn.example.com/logo.png"
        assert listing.employer_url is None
        assert listing.experience == "2-4 years"
        assert listing.qualification == NOT_SPECIFIED
        assert listing.full_description_url == "https://example.com/job/42"
        assert listing.relevance is None

    def test_description_truncated(self, settings: EngineSettings) -> None:
        """Descriptions over 800 characters are cut and marked."""
        record = make_record(1, content="<p>" + "x" * 900 + "</p>")
        listing = clean_listing(record, settings)
        assert len(listing.description) == 803
        assert listing.description.endswith("...")

    def test_short_description_untouched(self, settings: EngineSettings) -> None:
        listing = clean_listing(make_record(1, content="<p>Short</p>"), settings)
        assert listing.description == "Short"

    def test_missing_metas_default(self, settings: EngineSettings) -> None:
        """Records without metas still clean, with every meta field defaulted."""
        record = {"id": 7, "title": {"rendered": "Scout"}, "link": "https://example.com/7"}

        listing = clean_listing(record, settings)

        assert listing.employer == NOT_SPECIFIED
        assert listing.location == NOT_SPECIFIED
        assert listing.category == NOT_SPECIFIED
        assert listing.salary == NOT_SPECIFIED
        assert listing.description == ""
        assert listing.posted_date is None

    def test_missing_title(self, settings: EngineSettings) -> None:
        record = make_record(3)
        record["title"] = None
        assert clean_listing(record, settings).title == "No title"

    def test_missing_id_returns_none(self, settings: EngineSettings) -> None:
        record = make_record(1)
        del record["id"]
        assert clean_listing(record, settings) is None

    def test_numeric_metas_kept(self, settings: EngineSettings) -> None:
        """Numeric meta values are rendered as text instead of dropping the listing."""
        record = make_record(7, _job_experience=2, _job_qualification=12, _job_employer_url=0)

        listing = clean_listing(record, settings)

        assert listing is not None
        assert listing.experience == "2"
        assert listing.qualification == "12"
        assert listing.employer_url is None

    def test_numeric_employer_name(self, settings: EngineSettings) -> None:
        listing = clean_listing(make_record(8, employer=1860), settings)
        assert listing.employer == "1860"

    def test_batch_counts_dropped(self, settings: EngineSettings) -> None:
        bad = make_record(2)
        bad["id"] = None
        listings, dropped = clean_listings([make_record(1), bad, "not a record"], settings)
        assert [listing.id for listing in listings] == [1]
        assert dropped == 2


class TestFlattenAndDates:
    """Test suite for meta flattening and date formatting."""

    def test_flatten_dict(self) -> None:
        assert flatten_values({"x": "Full Time", "y": "Internship"}) == "Full Time, Internship"

    def test_flatten_skips_empty_values(self) -> None:
        assert flatten_values({"x": "", "y": "Goa"}) == "Goa"

    def test_flatten_empty_or_scalar(self) -> None:
        assert flatten_values({}) == NOT_SPECIFIED
        assert flatten_values(None) == NOT_SPECIFIED
        assert flatten_values("Mumbai") == NOT_SPECIFIED

    def test_indian_date_format(self) -> None:
        assert format_posted_date("2025-03-05T09:00:00", "en-IN") == "5/3/2025"

    def test_us_and_british_formats(self) -> None:
        assert format_posted_date("2025-03-05T09:00:00", "en-US") == "3/5/2025"
        assert format_posted_date("2025-03-05T09:00:00", "en-GB") == "05/03/2025"

    def test_unknown_locale_falls_back_to_iso(self) -> None:
        assert format_posted_date("2025-03-05T09:00:00Z", "xx-XX") == "2025-03-05"

    def test_absent_or_invalid_date(self) -> None:
        assert format_posted_date(None) is None
        assert format_posted_date("yesterday") is None
