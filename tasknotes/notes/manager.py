"""
Notes manager for tasknotes.

Builds the values a transport layer sends when a task is created with notes or
when a task's notes are replaced: both text renderings plus the collaborative
snapshot the web editor will load.
"""

import logging
import re
from typing import Any, Callable, Dict, Optional, Tuple, Union

from ..collab import CrdtEngine, PycrdtEngine, create_collab_snapshot, rebuild_collab_snapshot
from ..config import config
from ..conversion import html_to_markdown, markdown_to_html
from ..exceptions import MissingCollabSnapshotError, ValidationError
from ..models import CollabSnapshot, NotesContent, NotesPayload, UpdateTaskNotesInput


OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")

SnapshotLike = Union[CollabSnapshot, Dict[str, Any]]
SnapshotSupplier = Callable[[str], Optional[SnapshotLike]]


def validate_task_id(task_id: Any) -> str:
    """
    Check that task_id is a 24 character hexadecimal object id.

    Raises:
        ValidationError: If it is not
    """
    if not isinstance(task_id, str) or not OBJECT_ID_PATTERN.match(task_id):
        raise ValidationError(f"Invalid task ID: {task_id!r}", field="task_id")
    return task_id


class NotesManager:
    """
    Prepares task notes for creation and update requests.
    """

    def __init__(
        self,
        engine: Optional[CrdtEngine] = None,
        snapshot_supplier: Optional[SnapshotSupplier] = None,
        editor_version: Optional[int] = None,
    ):
        """
        Initialize the notes manager.

        Args:
            engine: CRDT engine for snapshots (pycrdt by default)
            snapshot_supplier: Looks up a task's current snapshot when an update
                is built without one, typically by fetching the task
            editor_version: Editor version sent with updates (config notes.editor_version)
        """
        self.engine = engine or PycrdtEngine()
        self.snapshot_supplier = snapshot_supplier
        self.editor_version = editor_version if editor_version is not None else config.editor_version

    def prepare_content(self, content: NotesContent) -> Tuple[str, str]:
        """
        Derive the missing representation of the notes.

        Returns:
            Tuple of (html, markdown)
        """
        if content.format == "html":
            return content.value, html_to_markdown(content.value)
        return markdown_to_html(content.value), content.value

    def build_create_payload(self, task_id: str, html: str = "") -> NotesPayload:
        """
        Build the notes fields for a new task.

        Args:
            task_id: The new task's id
            html: Initial notes as HTML, may be empty

        Returns:
            NotesPayload; empty notes still carry a snapshot with one empty paragraph
        """
        validate_task_id(task_id)
        # A new task may have no notes; whitespace-only HTML counts as none
        markdown = html_to_markdown(html) if html and html.strip() else ""
        snapshot = create_collab_snapshot(task_id, markdown, engine=self.engine)

        return NotesPayload(notes=html, notes_markdown=markdown, collab_snapshot=snapshot)

    def build_update_input(
        self,
        task_id: str,
        content: NotesContent,
        collab_snapshot: Optional[SnapshotLike] = None,
        limit_response_payload: bool = True,
    ) -> UpdateTaskNotesInput:
        """
        Build the input for replacing a task's notes.

        Args:
            task_id: The task to update
            content: New notes, as HTML or Markdown
            collab_snapshot: The task's current snapshot; fetched through the
                snapshot supplier when omitted
            limit_response_payload: Ask the API to omit the task from its response

        Returns:
            UpdateTaskNotesInput ready for the transport layer

        Raises:
            ValidationError: If task_id is invalid or content is empty
            MissingCollabSnapshotError: If the task has no collaborative snapshot
        """
        validate_task_id(task_id)
        html, markdown = self.prepare_content(content)

        previous = collab_snapshot
        if previous is None and self.snapshot_supplier is not None:
            logging.debug(f"Fetching collaborative snapshot for task {task_id}")
            previous = self.snapshot_supplier(task_id)
        if previous is None:
            raise MissingCollabSnapshotError(task_id)

        rebuild = rebuild_collab_snapshot(previous, markdown, engine=self.engine)
        if not rebuild.replayed:
            logging.info(f"Notes for task {task_id} were rebuilt on a fresh collaborative document")

        return UpdateTaskNotesInput(
            task_id=task_id,
            notes=html,
            notes_markdown=markdown,
            editor_version=self.editor_version,
            collab_snapshot=rebuild.snapshot,
            limit_response_payload=limit_response_payload,
        )
