from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ExtractedPage(BaseModel):
    """Readable content and metadata extracted from one fetched page."""

    model_config = ConfigDict(frozen=True)

    title: str
    author: Optional[str] = None
    description: Optional[str] = None
    published: Optional[str] = None
    domain: str
    url: str
    content: str  # Markdown body
    html: str  # main-content HTML the body was converted from
    favicon: Optional[str] = None
    image: Optional[str] = None
    word_count: int = 0
    schema_org_data: Optional[Dict[str, Any]] = None
