from typing import Literal, Optional

from pydantic import BaseModel

from app.models.template import Template


class ConvertRequest(BaseModel):
    # Both fields are optional here so the router can answer with its own
    # error codes instead of a generic 422.
    url: Optional[str] = None
    template: Optional[Template] = None
    render_mode: Literal["http", "browser"] = "http"
    """How the target page is fetched.

    ``"http"`` (default)
        Plain HTTP request.  Fast, but only sees server-rendered HTML.

    ``"browser"``
        Render the page in a headless Chromium browser first.  Slower, but
        returns content produced by client-side JavaScript.
    """
