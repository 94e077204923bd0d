from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PropertyType(str, Enum):
    """Value types a template property can declare."""

    TEXT = "text"
    MULTITEXT = "multitext"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    DATE = "date"
    DATETIME = "datetime"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "PropertyType":
        """Return the member for *tag*, treating missing or unknown tags as text."""
        try:
            return cls(tag)
        except ValueError:
            return cls.TEXT


class PropertyDefinition(BaseModel):
    name: str
    value: str = ""
    # Kept as a plain string so templates with unknown types are still accepted.
    type: Optional[str] = None


class RenderedProperty(BaseModel):
    name: str
    value: Union[bool, str] = ""
    type: Optional[str] = None


class Template(BaseModel):
    """A clipping template: frontmatter properties plus an optional body format."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    properties: List[PropertyDefinition] = Field(default_factory=list)
    note_content_format: Optional[str] = Field(default=None, alias="noteContentFormat")
