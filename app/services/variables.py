"""Variable context built from an extracted page for template rendering."""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from app.models.page import ExtractedPage
from app.services.numbers import format_number

VariableContext = Dict[str, Union[str, int, float]]

# (context key, ExtractedPage attribute), in the order they appear in the context
_PAGE_FIELDS = (
    ("title", "title"),
    ("url", "url"),
    ("domain", "domain"),
    ("author", "author"),
    ("published", "published"),
    ("description", "description"),
    ("image", "image"),
    ("favicon", "favicon"),
    ("content", "content"),
)


def build_variable_context(
    page: ExtractedPage, now: Optional[datetime] = None
) -> VariableContext:
    """Return the flat mapping of template variables for *page*.

    ``date`` and ``time`` are taken from a single instant captured here, so
    every expression rendered against the same context sees the same clock.
    Page fields that are ``None`` are left out of the mapping.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    context: VariableContext = {}
    for key, attr in _PAGE_FIELDS:
        value = getattr(page, attr)
        if value is not None:
            context[key] = value

    context["date"] = _iso_timestamp(now)
    context["time"] = now.astimezone().strftime("%H:%M:%S")
    context["wordCount"] = page.word_count

    if page.schema_org_data:
        context.update(flatten_schema_org(page.schema_org_data))

    return context


def flatten_schema_org(data: Mapping[str, Any]) -> Dict[str, str]:
    """Turn the top level of a schema.org object into ``schema:<key>`` entries.

    Strings are copied, numbers are stringified and objects contribute their
    ``name``.  JSON-LD keywords (``@type``, ``@context`` ...) and every other
    shape are skipped; nested objects are not descended into.
    """
    result: Dict[str, str] = {}
    for key, value in data.items():
        if not isinstance(key, str) or key.startswith("@"):
            continue

        if isinstance(value, str):
            result[f"schema:{key}"] = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            result[f"schema:{key}"] = format_number(value)
        elif isinstance(value, Mapping) and "name" in value:
            result[f"schema:{key}"] = _stringify(value["name"])

    return result


def _iso_timestamp(moment: datetime) -> str:
    """Format *moment* as a UTC ISO-8601 timestamp with milliseconds (``...000Z``)."""
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, (bool, int, float)):
        return format_number(value)
    return str(value)
