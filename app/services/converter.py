"""Document assembly: template properties and body rendered into Markdown."""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Mapping, Optional

from app.models.page import ExtractedPage
from app.models.template import RenderedProperty, Template
from app.services.frontmatter import generate_frontmatter
from app.services.renderer import render_template
from app.services.variables import build_variable_context

logger = logging.getLogger(__name__)

Renderer = Callable[[str, Mapping[str, Any], str], Awaitable[str]]


async def convert_to_markdown(
    page: ExtractedPage,
    template: Template,
    renderer: Renderer = render_template,
    now: Optional[datetime] = None,
) -> str:
    """Render *template* against *page* and return the Markdown document.

    Properties are rendered one after another in the order the template
    declares them.  Errors raised by *renderer* propagate unchanged, so a
    failing expression aborts the whole conversion.
    """
    variables = build_variable_context(page, now=now)

    rendered: List[RenderedProperty] = []
    for prop in template.properties:
        value = await renderer(prop.value, variables, page.url)
        rendered.append(RenderedProperty(name=prop.name, value=value, type=prop.type))

    frontmatter = generate_frontmatter(rendered)

    content = ""
    if template.note_content_format:
        content = await renderer(template.note_content_format, variables, page.url)

    logger.debug(
        "Converted page: %s (%d properties, body %d chars)", page.url, len(rendered), len(content)
    )

    if frontmatter:
        return f"{frontmatter}\n{content}"
    return content
