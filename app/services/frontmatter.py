"""YAML frontmatter serialization for rendered template properties.

Each property becomes one ``key: value`` line (or a key followed by a block
list for ``multitext``).  Formatting is best effort: a value that cannot be
interpreted for its declared type is written as an empty value instead of
raising, so a badly shaped template never breaks the conversion.
"""

import json
import re
from typing import Iterable, List, Literal, Mapping, NamedTuple, Optional, Tuple

from app.models.template import PropertyType, RenderedProperty
from app.services.numbers import format_number

# Characters (plus whitespace) that make a YAML key ambiguous when left bare
_KEY_SPECIAL_RE = re.compile(r"[:\s{}\[\],&*#?|<>=!%@-]")
_KEY_RESERVED_RE = re.compile(r"^(true|false|null|yes|no|on|off)$", re.IGNORECASE)

# A comma that is not inside a [[wikilink, with commas]]
_MULTITEXT_SPLIT_RE = re.compile(r",(?![^\[]*\]\])")

_NON_NUMERIC_RE = re.compile(r"[^0-9.-]")
# Longest leading float, as JavaScript's parseFloat reads it
_LEADING_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)")


class MultitextItems(NamedTuple):
    """Items parsed from a ``multitext`` value and the branch that produced them."""

    items: List[str]
    source: Literal["json", "csv"]


def generate_frontmatter(
    properties: Iterable[RenderedProperty],
    property_types: Optional[Mapping[str, str]] = None,
) -> str:
    """Serialize *properties* into a ``---`` delimited YAML block.

    *property_types* supplies a type for properties that do not declare one.
    Returns ``""`` for an empty list, and for a block in which no property
    ended up with a value.
    """
    properties = list(properties)
    if not properties:
        return ""

    lines: List[str] = []
    has_content = False
    for prop in properties:
        tag = prop.type or (property_types or {}).get(prop.name)
        value_lines, filled = _format_value(PropertyType.from_tag(tag), prop.value)
        lines.append(f"{quote_key(prop.name)}:{value_lines[0]}")
        lines.extend(value_lines[1:])
        has_content = has_content or filled

    if not has_content:
        return ""

    return "---\n" + "\n".join(lines) + "\n---\n"


def quote_key(name: str) -> str:
    """Return *name* as a YAML mapping key, quoted only when it has to be."""
    needs_quotes = (
        bool(_KEY_SPECIAL_RE.search(name))
        or (name[:1].isdigit() and name[:1].isascii())
        or bool(_KEY_RESERVED_RE.match(name.strip()))
    )
    if not needs_quotes:
        return name
    if '"' in name:
        return "'" + name.replace("'", "''") + "'"
    return f'"{name}"'


def parse_multitext(value: str) -> MultitextItems:
    """Split a ``multitext`` value into list items.

    A value written as a JSON string array (``["a", "b, c"]``) is parsed as
    JSON.  Anything else is split on commas, leaving commas inside
    ``[[wikilinks]]`` alone.  Split items are stripped; empty items are
    dropped on both branches.
    """
    stripped = value.strip()
    if stripped.startswith('["') and stripped.endswith('"]'):
        try:
            parsed = json.loads(stripped)
        except ValueError:
            # Looked like JSON but was not: plain comma split, wikilinks ignored
            raw_items = value.split(",")
        else:
            if isinstance(parsed, list):
                # JSON items are kept as written, only empty strings are dropped
                items = [_item_text(item) for item in parsed]
                return MultitextItems([item for item in items if item != ""], "json")
            raw_items = value.split(",")
    else:
        raw_items = _MULTITEXT_SPLIT_RE.split(value)

    return MultitextItems(_clean_items(raw_items), "csv")


def parse_number(value: str) -> Optional[str]:
    """Return the numeric part of *value* formatted as a YAML number, or None.

    Everything except digits, ``.`` and ``-`` is discarded first, so
    ``"$1,234.50 USD"`` becomes ``1234.5``.
    """
    digits = _NON_NUMERIC_RE.sub("", value)
    match = _LEADING_FLOAT_RE.match(digits)
    if not match:
        return None
    return format_number(float(match.group(0)))


def escape_double_quotes(value: str) -> str:
    return value.replace('"', '\\"')


def _format_value(kind: PropertyType, value) -> Tuple[List[str], bool]:
    """Return the text following ``key:`` (first item) plus any extra lines.

    The boolean tells whether the property produced a value at all.
    """
    if kind is PropertyType.CHECKBOX:
        checked = value is True or value == "true"
        return [f" {'true' if checked else 'false'}"], True

    text = value if isinstance(value, str) else _item_text(value)

    if kind is PropertyType.MULTITEXT:
        items = parse_multitext(text).items
        return [""] + [f'  - "{escape_double_quotes(item)}"' for item in items], bool(items)

    if kind is PropertyType.NUMBER:
        number = parse_number(text)
        return ([f" {number}"], True) if number is not None else ([""], False)

    if kind in (PropertyType.DATE, PropertyType.DATETIME):
        stripped = text.strip()
        return ([f" {stripped}"], True) if stripped else ([""], False)

    if text.strip():
        return [f' "{escape_double_quotes(text)}"'], True
    return [""], False


def _clean_items(items: Iterable[str]) -> List[str]:
    return [item for item in (raw.strip() for raw in items) if item]


def _item_text(item) -> str:
    if isinstance(item, str):
        return item
    if item is None:
        return "null"
    if isinstance(item, (bool, int, float)):
        return format_number(item)
    return json.dumps(item, ensure_ascii=False)
