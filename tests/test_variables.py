"""Tests for variables.build_variable_context and flatten_schema_org."""

from datetime import datetime, timezone

from app.models.page import ExtractedPage
from app.services.variables import build_variable_context, flatten_schema_org

_NOW = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)

_FIXED_KEYS = {
    "title", "url", "domain", "author", "published", "description",
    "image", "favicon", "content", "wordCount",
}


def _page(**overrides) -> ExtractedPage:
    fields = {
        "title": "Hello World",
        "author": "Jane Doe",
        "description": "A greeting.",
        "published": "2024-04-30",
        "domain": "example.com",
        "url": "https://example.com/hello",
        "content": "# Hello\n\nBody text.",
        "html": "<h1>Hello</h1><p>Body text.</p>",
        "favicon": "https://example.com/favicon.ico",
        "image": "https://example.com/cover.png",
        "word_count": 4,
    }
    fields.update(overrides)
    return ExtractedPage(**fields)


class TestBuildVariableContext:
    def test_copies_page_metadata(self):
        context = build_variable_context(_page(), now=_NOW)
        assert context["title"] == "Hello World"
        assert context["url"] == "https://example.com/hello"
        assert context["domain"] == "example.com"
        assert context["author"] == "Jane Doe"
        assert context["published"] == "2024-04-30"
        assert context["description"] == "A greeting."
        assert context["image"] == "https://example.com/cover.png"
        assert context["favicon"] == "https://example.com/favicon.ico"
        assert context["content"] == "# Hello\n\nBody text."
        assert context["wordCount"] == 4

    def test_missing_fields_are_absent(self):
        page = _page(author=None, description=None, published=None, image=None, favicon=None)
        context = build_variable_context(page, now=_NOW)
        for key in ("author", "description", "published", "image", "favicon"):
            assert key not in context

    def test_only_expected_keys(self):
        context = build_variable_context(_page(), now=_NOW)
        assert set(context) == _FIXED_KEYS | {"date", "time"}

    def test_date_is_iso_timestamp_with_milliseconds(self):
        context = build_variable_context(_page(), now=_NOW)
        assert context["date"] == "2024-05-01T12:30:45.123Z"

    def test_time_is_local_clock_time(self):
        context = build_variable_context(_page(), now=_NOW)
        assert context["time"] == _NOW.astimezone().strftime("%H:%M:%S")

    def test_date_and_time_come_from_one_instant(self):
        context = build_variable_context(_page())
        stamp = datetime.fromisoformat(str(context["date"]).replace("Z", "+00:00"))
        assert stamp.astimezone().strftime("%H:%M:%S") == context["time"]

    def test_does_not_mutate_page(self):
        schema = {"@type": "Article", "author": {"name": "Jane"}}
        page = _page(schema_org_data=schema)
        before = page.model_dump()
        build_variable_context(page, now=_NOW)
        assert page.model_dump() == before

    def test_schema_entries_are_merged(self):
        page = _page(
            schema_org_data={"@type": "Article", "author": {"name": "Jane"}, "ignored": [1, 2]}
        )
        context = build_variable_context(page, now=_NOW)
        assert context["schema:author"] == "Jane"
        assert "schema:@type" not in context
        assert "schema:ignored" not in context


class TestFlattenSchemaOrg:
    def test_strings_are_copied(self):
        assert flatten_schema_org({"headline": "Big news"}) == {"schema:headline": "Big news"}

    def test_numbers_are_stringified(self):
        result = flatten_schema_org({"wordCount": 1200, "rating": 4.5, "pages": 3.0})
        assert result == {"schema:wordCount": "1200", "schema:rating": "4.5", "schema:pages": "3"}

    def test_objects_contribute_their_name(self):
        result = flatten_schema_org({"publisher": {"@type": "Organization", "name": "ACME"}})
        assert result == {"schema:publisher": "ACME"}

    def test_keyword_keys_are_skipped(self):
        assert flatten_schema_org({"@context": "https://schema.org", "@id": "#a"}) == {}

    def test_other_shapes_are_dropped(self):
        data = {
            "keywords": ["a", "b"],
            "image": {"url": "https://example.com/a.png"},
            "isAccessibleForFree": True,
            "dateModified": None,
        }
        assert flatten_schema_org(data) == {}

    def test_nested_objects_are_not_flattened(self):
        data = {"author": {"name": "Jane", "affiliation": {"name": "Uni"}}}
        assert flatten_schema_org(data) == {"schema:author": "Jane"}
