"""
Inline formatting models for tasknotes.

A FormattedSegment is a run of text plus the marks the collaborative editor
should render on it. Attribute sets compose by union as inline tokens nest,
so they are immutable and compared structurally.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Link(BaseModel):
    """
    Link mark. The editor expects a nested object rather than a bare URL.
    """

    model_config = ConfigDict(frozen=True)

    href: str = Field(
        ...,
        description="Link target, preserved verbatim from the source markup"
    )


class TextAttributes(BaseModel):
    """
    Sparse set of formatting marks carried by a text run.
    """

    model_config = ConfigDict(frozen=True)

    bold: Optional[bool] = Field(None, description="Bold mark")
    italic: Optional[bool] = Field(None, description="Italic mark")
    underline: Optional[bool] = Field(None, description="Underline mark")
    strikethrough: Optional[bool] = Field(None, description="Strikethrough mark")
    code: Optional[bool] = Field(None, description="Inline code mark")
    link: Optional[Link] = Field(None, description="Link mark")

    def with_mark(self, **marks: Any) -> "TextAttributes":
        """Return a new attribute set with the given marks added."""
        return self.model_copy(update=marks)

    def with_link(self, href: str) -> "TextAttributes":
        """Return a new attribute set linking to href."""
        return self.model_copy(update={"link": Link(href=href)})

    def is_empty(self) -> bool:
        return not self.to_crdt()

    def to_crdt(self) -> Dict[str, Any]:
        """Attribute map in the shape the collaborative editor stores on text runs."""
        return self.model_dump(exclude_none=True)


class FormattedSegment(BaseModel):
    """
    A run of text with optional formatting attributes.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(
        ...,
        description="The text content"
    )

    attributes: Optional[TextAttributes] = Field(
        None,
        description="Formatting marks; None when the run is unformatted"
    )

    @field_validator("attributes")
    @classmethod
    def _normalize_empty(cls, value: Optional[TextAttributes]) -> Optional[TextAttributes]:
        # One representation for "no formatting"
        if value is not None and value.is_empty():
            return None
        return value
