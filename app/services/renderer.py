"""Template rendering for clipper-style expressions.

Templates are written in the Obsidian Web Clipper syntax::

    {{title|lower}}  {{schema:author}}  {{date|date:"YYYY-MM-DD"}}
    {{tags|split:","|wikilink|join:", "}}

Each ``{{ ... }}`` tag is rewritten into an equivalent Jinja2 expression and
the result is rendered by a sandboxed Jinja2 environment, so ``{% if %}`` /
``{% for %}`` blocks work as well.  Variable names may contain ``:`` and are
looked up in the flat variable context; unknown variables render as ``""``.
Lists render as JSON arrays, which is the form ``multitext`` properties
expect.
"""

import json
import logging
import re
from datetime import datetime
from typing import Any, List, Mapping, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from jinja2 import TemplateError, Undefined, pass_context
from jinja2.sandbox import SandboxedEnvironment
from markdownify import markdownify

from app.services.numbers import format_number

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_VARIABLE_RE = re.compile(r"^[A-Za-z_@][\w:@.\-]*$")
_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_FILTER_RE = re.compile(r"^([A-Za-z_]\w*)(?:\s*:(.*))?$", re.DOTALL)

# Context keys passed alongside the clipper variables
_LOOKUP_KEY = "__var__"
_URL_KEY = "__url__"

_UNSAFE_NAME_RE = re.compile(r'[#|^:%\[\]{}<>*?\\/"]')

_DATE_TOKEN_RE = re.compile(
    r"\[([^\]]*)\]|YYYY|YY|MMMM|MMM|MM|M|DD|D|dddd|ddd|HH|H|hh|h|mm|m|ss|s|SSS|A|a|Z"
)

_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class RenderError(Exception):
    """A template expression could not be compiled or evaluated."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def render_template(expression: str, variables: Mapping[str, Any], url: str) -> str:
    """Render a clipper template *expression* against *variables*.

    *url* is the address of the clipped page; filters that produce links use
    it to resolve relative URLs.

    Raises:
        RenderError: on a malformed expression, an unknown filter or a
            filter that fails on its input.
    """
    try:
        source = translate_expression(expression)
        template = _ENV.from_string(source)
        context = {key: value for key, value in variables.items() if key.isidentifier()}
        context[_LOOKUP_KEY] = _lookup_function(variables)
        context[_URL_KEY] = url
        return await template.render_async(context)
    except RenderError:
        raise
    except (
        TemplateError,
        TypeError,
        ValueError,
        ArithmeticError,
        AttributeError,
        IndexError,
        KeyError,
    ) as exc:
        logger.warning("Template rendering failed: %s", exc)
        raise RenderError(f"Failed to render template: {exc}") from exc


def _lookup_function(variables: Mapping[str, Any]):
    # Missing names are undefined, never dict attributes such as ``items``
    def lookup(name: str) -> Any:
        if name in variables:
            return variables[name]
        return _ENV.undefined(name=name)

    return lookup


def translate_expression(expression: str) -> str:
    """Rewrite every clipper ``{{ ... }}`` tag in *expression* as Jinja2 syntax."""
    return _TAG_RE.sub(lambda match: "{{ " + _translate_tag(match.group(1)) + " }}", expression)


# ---------------------------------------------------------------------------
# Clipper -> Jinja2 translation
# ---------------------------------------------------------------------------

def _translate_tag(body: str) -> str:
    parts = _split_top_level(body, "|")
    head = parts[0].strip()
    if not head:
        raise RenderError("Empty variable in template tag.")

    translated = [_translate_head(head)]
    for part in parts[1:]:
        translated.append(_translate_filter(part.strip()))
    return "|".join(translated)


def _translate_head(head: str) -> str:
    if head[0] in "\"'" or _NUMBER_RE.match(head):
        return head
    if _VARIABLE_RE.match(head):
        return f"{_LOOKUP_KEY}({json.dumps(head)})"
    # Anything else is taken to be a Jinja2 expression already
    return head


def _translate_filter(part: str) -> str:
    match = _FILTER_RE.match(part)
    if not match:
        # e.g. replace("a", "b"), already in Jinja2 call syntax
        return part
    name, args = match.group(1), match.group(2)
    if args is None:
        return name

    args = args.strip()
    if args.startswith("(") and args.endswith(")"):
        args = args[1:-1]
    tokens = _split_top_level(args, ",:")
    return f"{name}({', '.join(_translate_argument(token.strip()) for token in tokens)})"


def _translate_argument(token: str) -> str:
    if not token:
        return "none"
    if token[0] in "\"'" and token[-1] == token[0] and len(token) > 1:
        return token
    if _NUMBER_RE.match(token):
        return token
    if token in ("true", "false"):
        return token
    return json.dumps(token)


def _split_top_level(text: str, separators: str) -> List[str]:
    """Split *text* on any of *separators* outside quotes and parentheses."""
    parts: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    depth = 0
    escaped = False

    for char in text:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char in separators and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)

    if quote:
        raise RenderError(f"Unterminated string in template tag: {text!r}")
    parts.append("".join(current))
    return parts


# ---------------------------------------------------------------------------
# Output finalisation
# ---------------------------------------------------------------------------

def _finalize(value: Any) -> Any:
    if isinstance(value, Undefined) or value is None:
        return ""
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (bool, int, float)):
        return format_number(value)
    return value


def _text(value: Any) -> str:
    if isinstance(value, Undefined) or value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(_finalize(value))


def _items(value: Any) -> List[Any]:
    """Return *value* as a list; JSON array strings are decoded."""
    if isinstance(value, (list, tuple)):
        return list(value)
    text = _text(value)
    stripped = text.strip()
    if stripped.startswith("[") and stripped.endswith("]"):
        try:
            parsed = json.loads(stripped)
        except ValueError:
            pass
        else:
            if isinstance(parsed, list):
                return parsed
    return [text] if text else []


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def _replace(value: Any, *pairs: Any) -> str:
    text = _text(value)
    for index in range(0, len(pairs) - 1, 2):
        text = text.replace(_text(pairs[index]), _text(pairs[index + 1]))
    return text


def _split(value: Any, separator: Optional[str] = ",") -> List[str]:
    text = _text(value)
    if not text:
        return []
    if separator is None or separator == "":
        return list(text)
    return text.split(separator)


def _join(value: Any, separator: Optional[str] = ",") -> str:
    return (separator if separator is not None else ",").join(_text(item) for item in _items(value))


def _first(value: Any) -> Any:
    if not isinstance(value, (list, tuple)):
        return value
    return value[0] if value else ""


def _last(value: Any) -> Any:
    if not isinstance(value, (list, tuple)):
        return value
    return value[-1] if value else ""


def _slice(value: Any, start: Optional[int] = None, end: Optional[int] = None) -> Any:
    if isinstance(value, (list, tuple)):
        return list(value)[start:end]
    return _text(value)[start:end]


def _list(value: Any) -> str:
    return "\n".join(f"- {_text(item)}" for item in _items(value))


def _wikilink(value: Any, alias: Optional[str] = None) -> Any:
    def link(target: Any) -> str:
        target = _text(target)
        return f"[[{target}|{alias}]]" if alias else f"[[{target}]]"

    if isinstance(value, (list, tuple)):
        return [link(item) for item in value if _text(item)]
    text = _text(value)
    return link(text) if text else ""


def _link(value: Any, text: Optional[str] = None) -> Any:
    def make(target: Any) -> str:
        target = _text(target)
        return f"[{text or target}]({target})"

    if isinstance(value, (list, tuple)):
        return [make(item) for item in value if _text(item)]
    target = _text(value)
    return make(target) if target else ""


def _blockquote(value: Any) -> str:
    text = _text(value)
    if not text:
        return ""
    return "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))


def _safe_name(value: Any) -> str:
    return _UNSAFE_NAME_RE.sub("", _text(value)).strip()


def _strip_md(value: Any) -> str:
    text = _text(value)
    text = re.sub(r"!\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = re.sub(r"\[\[([^\]|]*)\|([^\]]*)\]\]", r"\2", text)
    text = re.sub(r"\[\[([^\]]*)\]\]", r"\1", text)
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = re.sub(r"^#{1,6}\s+", "", text, flags=re.MULTILINE)
    text = re.sub(r"^>\s?", "", text, flags=re.MULTILINE)
    text = re.sub(r"(\*\*|__)(.*?)\1", r"\2", text)
    text = re.sub(r"(\*|_)(.*?)\1", r"\2", text)
    text = re.sub(r"~~(.*?)~~", r"\1", text)
    text = re.sub(r"`([^`]*)`", r"\1", text)
    return text.strip()


@pass_context
def _markdown(context, value: Any) -> str:
    """Convert an HTML fragment to Markdown, resolving links against the page URL."""
    html = _text(value)
    if not html:
        return ""
    base_url = context.get(_URL_KEY) or ""
    soup = BeautifulSoup(html, "lxml")
    for tag, attr in (("a", "href"), ("img", "src")):
        for node in soup.find_all(tag):
            if node.get(attr):
                node[attr] = urljoin(base_url, str(node[attr]))
    body = soup.body or soup
    return markdownify(body.decode_contents(), heading_style="ATX").strip()


def _date(value: Any, fmt: Optional[str] = "YYYY-MM-DD", input_format: Optional[str] = None) -> str:
    """Reformat a date string using dayjs-style tokens.

    Without *input_format* the value is parsed leniently (ISO 8601, RFC 2822,
    "April 30, 2024").  Unparseable input is returned unchanged.
    """
    text = _text(value).strip()
    if not text:
        return ""
    try:
        if input_format:
            moment = datetime.strptime(text, _to_strptime(input_format))
        else:
            moment = date_parser.parse(text)
    except (ValueError, OverflowError):
        return text
    return format_date(moment, fmt or "YYYY-MM-DD")


def format_date(moment: datetime, fmt: str) -> str:
    """Format *moment* with dayjs tokens (``YYYY-MM-DD HH:mm:ss``, ``[literal]``)."""

    def token(match: "re.Match[str]") -> str:
        if match.group(1) is not None:
            return match.group(1)
        tok = match.group(0)
        hour12 = moment.hour % 12 or 12
        offset = moment.strftime("%z")
        return {
            "YYYY": f"{moment.year:04d}",
            "YY": f"{moment.year % 100:02d}",
            "MMMM": _MONTHS[moment.month - 1],
            "MMM": _MONTHS[moment.month - 1][:3],
            "MM": f"{moment.month:02d}",
            "M": str(moment.month),
            "DD": f"{moment.day:02d}",
            "D": str(moment.day),
            "dddd": _WEEKDAYS[moment.weekday()],
            "ddd": _WEEKDAYS[moment.weekday()][:3],
            "HH": f"{moment.hour:02d}",
            "H": str(moment.hour),
            "hh": f"{hour12:02d}",
            "h": str(hour12),
            "mm": f"{moment.minute:02d}",
            "m": str(moment.minute),
            "ss": f"{moment.second:02d}",
            "s": str(moment.second),
            "SSS": f"{moment.microsecond // 1000:03d}",
            "A": "AM" if moment.hour < 12 else "PM",
            "a": "am" if moment.hour < 12 else "pm",
            "Z": f"{offset[:3]}:{offset[3:]}" if offset else "",
        }[tok]

    return _DATE_TOKEN_RE.sub(token, fmt)


def _to_strptime(fmt: str) -> str:
    mapping = {
        "YYYY": "%Y", "YY": "%y", "MMMM": "%B", "MMM": "%b", "MM": "%m", "M": "%m",
        "DD": "%d", "D": "%d", "dddd": "%A", "ddd": "%a", "HH": "%H", "H": "%H",
        "hh": "%I", "h": "%I", "mm": "%M", "m": "%M", "ss": "%S", "s": "%S",
        "SSS": "%f", "A": "%p", "a": "%p", "Z": "%z",
    }

    def token(match: "re.Match[str]") -> str:
        if match.group(1) is not None:
            return match.group(1).replace("%", "%%")
        return mapping[match.group(0)]

    return _DATE_TOKEN_RE.sub(token, fmt)


def _build_environment() -> SandboxedEnvironment:
    env = SandboxedEnvironment(
        enable_async=True,
        # Markdown output, not HTML: escaping would mangle quotes and ampersands
        autoescape=False,
        finalize=_finalize,
        keep_trailing_newline=True,
    )
    env.filters.update(
        {
            "replace": _replace,
            "split": _split,
            "join": _join,
            "first": _first,
            "last": _last,
            "slice": _slice,
            "list": _list,
            "wikilink": _wikilink,
            "link": _link,
            "blockquote": _blockquote,
            "safe_name": _safe_name,
            "strip_md": _strip_md,
            "markdown": _markdown,
            "date": _date,
        }
    )
    return env


_ENV = _build_environment()
