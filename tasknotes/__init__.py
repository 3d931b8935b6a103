"""
tasknotes: Task notes conversion and collaborative editing snapshots.

Converts task notes between HTML and Markdown and builds the collaborative
document snapshot a web editor loads for a task's notes.
"""

__version__ = "0.1.0"
__author__ = "tasknotes Project"

# Import main components
from .conversion import html_to_markdown, markdown_to_html, parse_markdown_to_blocks, parse_markdown_to_segments
from .collab import CrdtEngine, PycrdtEngine, InMemoryEngine, create_collab_snapshot, create_updated_collab_snapshot
from .models import CollabSnapshot, NotesContent, UpdateTaskNotesInput
from .notes import NotesManager

__all__ = [
    "html_to_markdown",
    "markdown_to_html",
    "parse_markdown_to_blocks",
    "parse_markdown_to_segments",
    "CrdtEngine",
    "PycrdtEngine",
    "InMemoryEngine",
    "create_collab_snapshot",
    "create_updated_collab_snapshot",
    "CollabSnapshot",
    "NotesContent",
    "UpdateTaskNotesInput",
    "NotesManager",
]
