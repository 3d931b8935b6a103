"""Data models for tasknotes."""

from .segments import Link, TextAttributes, FormattedSegment
from .blocks import (
    DocumentBlock,
    ParagraphBlock,
    CodeBlock,
    BlockquoteBlock,
    ListItem,
    BulletListBlock,
    OrderedListBlock,
    HorizontalRuleBlock,
)
from .snapshot import CollabSnapshot, SnapshotState, SnapshotUpdate, doc_name_for_task
from .notes import NotesContent, NotesPayload, UpdateTaskNotesInput

__all__ = [
    "Link",
    "TextAttributes",
    "FormattedSegment",
    "DocumentBlock",
    "ParagraphBlock",
    "CodeBlock",
    "BlockquoteBlock",
    "ListItem",
    "BulletListBlock",
    "OrderedListBlock",
    "HorizontalRuleBlock",
    "CollabSnapshot",
    "SnapshotState",
    "SnapshotUpdate",
    "doc_name_for_task",
    "NotesContent",
    "NotesPayload",
    "UpdateTaskNotesInput",
]
