"""Playwright-based fetcher for pages whose content is rendered by JavaScript."""

from playwright.async_api import async_playwright

from app.services.fetcher import MAX_CONTENT_SIZE, USER_AGENT, validate_url

TIMEOUT_MS = 30_000  # 30 s in milliseconds


async def fetch_url_with_browser(url: str) -> str:
    """Render *url* with a headless Chromium browser and return the final HTML.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        RuntimeError: if the rendered HTML exceeds MAX_CONTENT_SIZE.
        playwright.async_api.Error: on browser/network errors.
    """
    validate_url(url)

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=True,
            # --no-sandbox is required when running as root inside a container.
            args=["--no-sandbox", "--disable-dev-shm-usage", "--disable-gpu"],
        )
        context = await browser.new_context(user_agent=USER_AGENT)
        page = await context.new_page()
        try:
            await page.goto(url, wait_until="networkidle", timeout=TIMEOUT_MS)
            html = await page.content()
        finally:
            await context.close()
            await browser.close()

    if len(html.encode()) > MAX_CONTENT_SIZE:
        raise RuntimeError("Rendered HTML exceeds the maximum allowed size.")

    return html
