import re

from bs4 import BeautifulSoup, Comment, Tag

# Matches `display:none` or `visibility:hidden` in inline style attributes
_HIDDEN_STYLE_RE = re.compile(
    r"(display\s*:\s*none|visibility\s*:\s*hidden)", re.IGNORECASE
)

# Tags whose entire subtree never holds readable article content
_REMOVE_TAGS = {
    "script",
    "style",
    "noscript",
    "iframe",
    "object",
    "embed",
    "link",
    "meta",
    "svg",
    "canvas",
    "template",
    "nav",
    "aside",
    "form",
    "button",
}

# Page chrome that is only noise when it belongs to the page, not the article
_SITE_CHROME_TAGS = {"header", "footer"}

# Containers never dropped on class/id alone (themes put "has-sidebar" on <body>)
_PROTECTED_TAGS = {"html", "body", "main", "article"}

_JUNK_ATTRS = re.compile(r"^(style|on\w+)$", re.IGNORECASE)

# CSS classes / ids that strongly indicate non-content elements
_NOISE_KEYWORDS = {
    "navbar",
    "navigation",
    "menu",
    "sidebar",
    "banner",
    "popup",
    "modal",
    "cookie",
    "gdpr",
    "advert",
    "newsletter",
    "subscribe",
    "share",
    "social",
    "breadcrumb",
    "pagination",
    "related",
    "comment",
    "widget",
    "promo",
}


def _has_noise_attr(tag: Tag) -> bool:
    """Return True when a tag's id or class suggests it is non-content."""
    if not tag.attrs or tag.name in _PROTECTED_TAGS:
        return False
    attrs_to_check = []
    if tag.get("id"):
        attrs_to_check.append(str(tag["id"]).lower())
    for cls in tag.get("class", []):
        attrs_to_check.append(cls.lower())

    return any(keyword in attr for attr in attrs_to_check for keyword in _NOISE_KEYWORDS)


def _is_site_chrome(tag: Tag) -> bool:
    """Return True for a header/footer that is not inside the article itself."""
    if tag.name not in _SITE_CHROME_TAGS:
        return False
    return tag.find_parent(("article", "main")) is None


def sanitize(html: str) -> BeautifulSoup:
    """Remove noise elements from *html* and return the cleaned BeautifulSoup tree."""
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(_REMOVE_TAGS):
        tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        # Children of an element removed earlier in this loop are skipped
        if not isinstance(tag, Tag) or tag.decomposed:
            continue
        if _is_site_chrome(tag) or _has_noise_attr(tag):
            tag.decompose()
            continue
        inline_style = tag.get("style", "")
        if inline_style and _HIDDEN_STYLE_RE.search(inline_style):
            tag.decompose()
            continue
        junk = [attr for attr in tag.attrs if _JUNK_ATTRS.match(attr)]
        for attr in junk:
            del tag[attr]

    return soup
