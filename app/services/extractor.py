"""Page extraction: metadata, schema.org data and readable Markdown content."""

import json
import logging
import re
from typing import Any, Dict, Iterator, List, Literal, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag
from markdownify import markdownify

from app.models.page import ExtractedPage
from app.services.browser_fetcher import fetch_url_with_browser
from app.services.fetcher import fetch_url
from app.services.sanitizer import sanitize

logger = logging.getLogger(__name__)

RenderMode = Literal["http", "browser"]

# schema.org types that describe the page's main content, most specific first
_ARTICLE_TYPES = (
    "Article",
    "NewsArticle",
    "BlogPosting",
    "TechArticle",
    "ScholarlyArticle",
    "Report",
    "Recipe",
    "WebPage",
)

_MAIN_CONTENT_SELECTORS = (
    "article",
    "main",
    '[role="main"]',
    "#content",
    ".entry-content",
    ".post-content",
    ".article-content",
    ".article-body",
)

_BLANK_LINES_RE = re.compile(r"\n{3,}")


def _meta(soup: BeautifulSoup, *keys: str) -> Optional[str]:
    """Return the first non-empty ``<meta>`` content matching any of *keys*.

    Each key is looked up as both ``name`` and ``property``.
    """
    for key in keys:
        for attr in ("name", "property"):
            tag = soup.find("meta", attrs={attr: key})
            if tag and tag.get("content") and str(tag["content"]).strip():
                return str(tag["content"]).strip()
    return None


def _iter_json_ld(soup: BeautifulSoup) -> Iterator[Dict[str, Any]]:
    """Yield every JSON-LD object on the page, unwrapping lists and ``@graph``."""
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("Skipping malformed JSON-LD block")
            continue

        pending: List[Any] = [data]
        while pending:
            item = pending.pop(0)
            if isinstance(item, list):
                pending.extend(item)
            elif isinstance(item, dict):
                if isinstance(item.get("@graph"), list):
                    pending.extend(item["@graph"])
                    continue
                yield item


def _schema_types(item: Dict[str, Any]) -> List[str]:
    types = item.get("@type")
    if isinstance(types, str):
        return [types]
    if isinstance(types, list):
        return [t for t in types if isinstance(t, str)]
    return []


def _extract_schema_org(soup: BeautifulSoup) -> Optional[Dict[str, Any]]:
    """Return the JSON-LD object that best describes the page, if any."""
    objects = list(_iter_json_ld(soup))
    if not objects:
        return None
    for wanted in _ARTICLE_TYPES:
        for item in objects:
            if wanted in _schema_types(item):
                return item
    return objects[0]


def _schema_name(value: Any) -> Optional[str]:
    """Return a person/organisation name from a schema.org value."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        return _schema_name(value.get("name"))
    if isinstance(value, list):
        names = [name for name in (_schema_name(v) for v in value) if name]
        return ", ".join(names) or None
    return None


def _extract_title(soup: BeautifulSoup) -> str:
    og_title = _meta(soup, "og:title", "twitter:title")
    if og_title:
        return og_title
    title_tag = soup.find("title")
    if title_tag and title_tag.get_text(strip=True):
        return title_tag.get_text(strip=True)
    h1 = soup.find("h1")
    if h1:
        return h1.get_text(strip=True)
    return ""


def _extract_author(soup: BeautifulSoup, schema: Optional[Dict[str, Any]]) -> Optional[str]:
    author = _meta(soup, "author", "article:author", "byl")
    if author:
        return author
    if schema:
        return _schema_name(schema.get("author"))
    return None


def _extract_published(soup: BeautifulSoup, schema: Optional[Dict[str, Any]]) -> Optional[str]:
    published = _meta(soup, "article:published_time", "date", "publish-date")
    if published:
        return published
    if schema and isinstance(schema.get("datePublished"), str):
        return schema["datePublished"]
    time_tag = soup.find("time", attrs={"datetime": True})
    if time_tag:
        return str(time_tag["datetime"]).strip() or None
    return None


def _extract_favicon(soup: BeautifulSoup, base_url: str) -> str:
    for link in soup.find_all("link", href=True):
        rel = [r.lower() for r in (link.get("rel") or [])]
        if "icon" in rel or "apple-touch-icon" in rel:
            return urljoin(base_url, str(link["href"]))
    return urljoin(base_url, "/favicon.ico")


def _extract_image(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    image = _meta(soup, "og:image", "twitter:image")
    return urljoin(base_url, image) if image else None


def _find_main_content(soup: BeautifulSoup) -> Tag:
    """Return the most likely main-content element, falling back to ``<body>``."""
    for selector in _MAIN_CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node and node.get_text(strip=True):
            return node
    return soup.find("body") or soup


def _absolutize_links(node: Tag, base_url: str) -> None:
    for tag, attr in (("a", "href"), ("img", "src")):
        for element in node.find_all(tag):
            value = element.get(attr)
            if value and not str(value).startswith(("#", "javascript:", "mailto:", "data:")):
                element[attr] = urljoin(base_url, str(value))


def domain_of(url: str) -> str:
    """Return the hostname of *url* without a leading ``www.``."""
    hostname = urlparse(url).hostname or ""
    return re.sub(r"^www\.", "", hostname)


def extract_page(html: str, url: str) -> ExtractedPage:
    """Extract metadata and readable Markdown content from *html*."""
    # Metadata lives in <head> and in scripts, which sanitizing removes
    raw_soup = BeautifulSoup(html, "lxml")
    schema = _extract_schema_org(raw_soup)

    clean_soup = sanitize(html)
    main_node = _find_main_content(clean_soup)
    _absolutize_links(main_node, url)

    main_html = str(main_node)
    content = markdownify(main_html, heading_style="ATX").strip()
    content = _BLANK_LINES_RE.sub("\n\n", content)

    return ExtractedPage(
        title=_extract_title(raw_soup),
        author=_extract_author(raw_soup, schema),
        description=_meta(raw_soup, "description", "og:description", "twitter:description"),
        published=_extract_published(raw_soup, schema),
        domain=domain_of(url),
        url=url,
        content=content,
        html=main_html,
        favicon=_extract_favicon(raw_soup, url),
        image=_extract_image(raw_soup, url),
        word_count=len(content.split()),
        schema_org_data=schema,
    )


async def fetch_and_extract_page(url: str, render_mode: RenderMode = "http") -> ExtractedPage:
    """Fetch *url* and extract it.

    Raises whatever the selected fetcher raises (``ValueError`` for rejected
    URLs, ``httpx.HTTPError`` / ``RuntimeError`` for fetch failures).
    """
    if render_mode == "browser":
        html = await fetch_url_with_browser(url)
    else:
        html = await fetch_url(url)

    page = extract_page(html, url)
    logger.info("Extracted page: %s (mode=%s, %d words)", url, render_mode, page.word_count)
    return page
