"""Tests for pattern schemas, boundary coercion and slug normalisation."""

import datetime

import pytest
from pydantic import ValidationError

from patternport.core.slug import slugify
from patternport.schemas.error import MCPError
from patternport.schemas.io import ImportResult
from patternport.schemas.pattern import PatternCreate, PatternRead, PatternUpdate


class TestSlugify:
    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Hero Banner", "hero-banner"),
            ("  Hero   Banner  ", "hero-banner"),
            ("Pricing: 3 tiers!", "pricing-3-tiers"),
            ("Café Crème", "cafe-creme"),
            ("../etc/passwd", "etc-passwd"),
            (".hidden", "hidden"),
            ("a---b", "a-b"),
        ],
    )
    def test_normalisation(self, title, expected):
        assert slugify(title) == expected

    def test_title_without_usable_characters_gets_stable_fallback(self):
        slug = slugify("!!!")

        assert slug.startswith("pattern-")
        assert slug == slugify("!!!")
        assert slug != slugify("???")

    def test_slug_is_filesystem_safe(self):
        for title in ["a/b", "a\\b", ".", "..", "ångström/..", "日本語"]:
            slug = slugify(title)
            assert "/" not in slug and "\\" not in slug
            assert not slug.startswith(".")
            assert slug


class TestPatternCreate:
    def test_defaults(self):
        pattern = PatternCreate(title="Hero")

        assert pattern.description == ""
        assert pattern.categories == []
        assert pattern.viewport_width == 1280
        assert pattern.inserter is True
        assert pattern.content == ""
        assert pattern.status == "publish"
        assert pattern.slug == "hero"

    def test_title_is_required_after_trimming(self):
        with pytest.raises(ValidationError):
            PatternCreate(title="   ")

    def test_text_is_collapsed_to_one_line(self):
        pattern = PatternCreate(title="  Big\n  Hero ", description="Line one\nline two")

        assert pattern.title == "Big Hero"
        assert pattern.description == "Line one line two"

    def test_comment_close_marker_is_rejected(self):
        with pytest.raises(ValidationError):
            PatternCreate(title="Evil */ title")
        with pytest.raises(ValidationError):
            PatternCreate(title="Ok", keywords=["fine", "*/"])

    def test_sets_accept_comma_separated_strings(self):
        pattern = PatternCreate(title="T", categories="featured, banner,, featured")
        assert pattern.categories == ["featured", "banner"]

    def test_sets_split_embedded_commas_and_dedupe(self):
        pattern = PatternCreate(title="T", keywords=["a, b", " b ", "", "c"])
        assert pattern.keywords == ["a", "b", "c"]

    def test_none_values_fall_back_to_defaults(self):
        pattern = PatternCreate(
            title="T", description=None, categories=None, viewport_width=None, inserter=None, content=None
        )

        assert pattern.description == ""
        assert pattern.categories == []
        assert pattern.viewport_width == 1280
        assert pattern.inserter is True
        assert pattern.content == ""

    def test_viewport_width_is_coerced_to_int(self):
        assert PatternCreate(title="T", viewport_width="960").viewport_width == 960
        assert PatternCreate(title="T", viewport_width=" ").viewport_width == 1280
        with pytest.raises(ValidationError):
            PatternCreate(title="T", viewport_width="wide")

    def test_viewport_width_must_fit_the_stored_integer(self):
        assert PatternCreate(title="T", viewport_width=2**31 - 1).viewport_width == 2**31 - 1
        with pytest.raises(ValidationError):
            PatternCreate(title="T", viewport_width=2**31)
        with pytest.raises(ValidationError):
            PatternCreate(title="T", viewport_width=-1)
        with pytest.raises(ValidationError):
            PatternUpdate(viewport_width=10**20)

    def test_inserter_is_coerced_to_bool(self):
        assert PatternCreate(title="T", inserter="false").inserter is False
        assert PatternCreate(title="T", inserter=0).inserter is False

    def test_camel_case_input_is_accepted(self):
        pattern = PatternCreate.model_validate(
            {"title": "T", "viewportWidth": 600, "blockTypes": ["core/group"], "templateTypes": "404"}
        )

        assert pattern.viewport_width == 600
        assert pattern.block_types == ["core/group"]
        assert pattern.template_types == ["404"]

    def test_content_is_kept_verbatim(self):
        content = "\n  <!-- wp:paragraph -->\n<p>x</p>\n"
        assert PatternCreate(title="T", content=content).content == content

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationError):
            PatternCreate(title="T", status="private")


class TestPatternUpdate:
    def test_only_set_fields_are_dumped(self):
        update = PatternUpdate(description="New", categories="a, b")

        assert update.model_dump(exclude_unset=True) == {"description": "New", "categories": ["a", "b"]}

    def test_empty_title_is_rejected(self):
        with pytest.raises(ValidationError):
            PatternUpdate(title=" ")


class TestPatternRead:
    def test_serializes_with_camel_case_aliases(self):
        now = datetime.datetime(2026, 1, 1, 12, 0, 0)
        read = PatternRead(id=3, slug="hero", title="Hero", created=now, last_updated=now, viewport_width=800)

        payload = read.model_dump(by_alias=True)

        assert payload["viewportWidth"] == 800
        assert payload["blockTypes"] == []
        assert payload["lastUpdated"] == now
        assert payload["slug"] == "hero"


def test_import_result_message():
    result = ImportResult(success=["Hero", "Footer"], errors=["Could not parse pattern file: broken.php"])

    assert result.succeeded == 2
    assert result.message == (
        "Successfully imported 2 patterns\n"
        "Some patterns failed to import:\n"
        "Could not parse pattern file: broken.php"
    )
    assert result.model_dump()["message"] == result.message


def test_mcp_error_from_exception():
    error = MCPError.from_exception(ValueError("boom"), slug="hero")

    assert error.error == "boom"
    assert error.details == {"slug": "hero"}
    assert MCPError.from_exception(ValueError("plain")).details is None
