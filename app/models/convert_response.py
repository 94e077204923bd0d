from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

ErrorCode = Literal["INVALID_URL", "FETCH_ERROR", "TEMPLATE_ERROR", "EXTRACTION_ERROR"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConvertMetadata(_CamelModel):
    title: str
    author: Optional[str] = None
    published_date: Optional[str] = None
    domain: str
    word_count: int


class ConvertResponse(_CamelModel):
    success: Literal[True] = True
    markdown: str
    metadata: ConvertMetadata


class ErrorResponse(_CamelModel):
    success: Literal[False] = False
    error: str
    code: ErrorCode


class HealthResponse(_CamelModel):
    status: Literal["ok"] = "ok"
    version: str
    renderer_version: str
