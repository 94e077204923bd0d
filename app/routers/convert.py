import logging
from urllib.parse import urlparse

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from playwright.async_api import Error as PlaywrightError
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.models.convert_request import ConvertRequest
from app.models.convert_response import ConvertMetadata, ConvertResponse, ErrorCode, ErrorResponse
from app.services.converter import convert_to_markdown
from app.services.extractor import fetch_and_extract_page
from app.services.renderer import RenderError

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


@router.post(
    "/convert",
    response_model=ConvertResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
    summary="Clip a web page into Markdown using a template",
    description=(
        "Fetches *url*, extracts its readable content and metadata, and renders "
        "the template's properties into YAML frontmatter followed by the "
        "template's note content."
    ),
)
@limiter.limit("10/minute")
async def convert(request: Request, body: ConvertRequest) -> ConvertResponse | JSONResponse:
    if not body.url:
        return _error(400, "URL is required", "INVALID_URL")
    if body.template is None:
        return _error(400, "Template is required", "TEMPLATE_ERROR")

    url = body.url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return _error(400, "Invalid URL format. Must be http:// or https://", "INVALID_URL")

    logger.info(
        "Convert request received: %s (mode=%s, %d properties)",
        url,
        body.render_mode,
        len(body.template.properties),
    )

    # ── Step 1: fetch and extract the page ───────────────────────────────────
    try:
        page = await fetch_and_extract_page(url, render_mode=body.render_mode)
    except ValueError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        return _error(400, str(exc), "INVALID_URL")
    except httpx.TimeoutException:
        logger.error("Timeout fetching URL: %s", url)
        return _error(504, "Failed to fetch URL: the target URL timed out.", "FETCH_ERROR")
    except httpx.HTTPStatusError as exc:
        logger.error("HTTP error fetching URL %s: %s", url, exc)
        return _error(
            502,
            f"Failed to fetch URL: target returned HTTP {exc.response.status_code}.",
            "FETCH_ERROR",
        )
    except (httpx.RequestError, RuntimeError, PlaywrightError) as exc:
        logger.error("Error fetching URL %s: %s", url, exc)
        return _error(502, f"Failed to fetch URL: {exc}", "FETCH_ERROR")
    except Exception as exc:
        logger.exception("Extraction failed for %s", url)
        return _error(500, f"Failed to extract page content: {exc}", "EXTRACTION_ERROR")

    # ── Step 2: render the template ──────────────────────────────────────────
    try:
        markdown = await convert_to_markdown(page, body.template)
    except RenderError as exc:
        logger.warning("Template error for %s: %s", url, exc)
        return _error(400, f"Template error: {exc}", "TEMPLATE_ERROR")

    return ConvertResponse(
        markdown=markdown,
        metadata=ConvertMetadata(
            title=page.title,
            author=page.author,
            published_date=page.published,
            domain=page.domain,
            word_count=page.word_count,
        ),
    )


def _error(status_code: int, message: str, code: ErrorCode) -> JSONResponse:
    payload = ErrorResponse(error=message, code=code)
    return JSONResponse(status_code=status_code, content=payload.model_dump(by_alias=True))
