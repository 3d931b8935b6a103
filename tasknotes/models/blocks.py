"""
Block-level document model for tasknotes.

This is the intermediate representation shared by both conversion
directions: Markdown is parsed into a list of DocumentBlock values, which the
collaborative tree builder then turns into editor elements.
"""

from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from .segments import FormattedSegment


class ParagraphBlock(BaseModel):
    """A paragraph of formatted text. Headings are also mapped here."""

    type: Literal["paragraph"] = "paragraph"

    segments: List[FormattedSegment] = Field(
        default_factory=list,
        description="Merged inline runs of the paragraph"
    )


class CodeBlock(BaseModel):
    """A fenced or indented code block."""

    type: Literal["codeBlock"] = "codeBlock"

    segments: List[FormattedSegment] = Field(
        default_factory=list,
        description="Code text, a single run carrying the code mark"
    )

    language: Optional[str] = Field(
        None,
        description="Info string of a fenced block, if any"
    )


class BlockquoteBlock(BaseModel):
    """A block quote. Only paragraphs survive inside a quote."""

    type: Literal["blockquote"] = "blockquote"

    children: List[ParagraphBlock] = Field(
        default_factory=list,
        description="Paragraphs inside the quote"
    )


class ListItem(BaseModel):
    """A single entry of a bullet or ordered list."""

    segments: List[FormattedSegment] = Field(
        default_factory=list,
        description="The item's inline content flattened into one run list"
    )


class BulletListBlock(BaseModel):
    type: Literal["bulletList"] = "bulletList"

    items: List[ListItem] = Field(default_factory=list)


class OrderedListBlock(BaseModel):
    type: Literal["orderedList"] = "orderedList"

    items: List[ListItem] = Field(default_factory=list)

    start: Optional[int] = Field(
        None,
        description="First ordinal when it differs from 1"
    )


class HorizontalRuleBlock(BaseModel):
    type: Literal["horizontalRule"] = "horizontalRule"


DocumentBlock = Annotated[
    Union[
        ParagraphBlock,
        CodeBlock,
        BlockquoteBlock,
        BulletListBlock,
        OrderedListBlock,
        HorizontalRuleBlock,
    ],
    Field(discriminator="type"),
]
