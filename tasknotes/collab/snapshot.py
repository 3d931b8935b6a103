"""
Collaborative snapshot codec for tasknotes.

Builds the CollabSnapshot stored on a task record from Markdown notes, either
for a new task or as a replacement of a task's existing snapshot.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from ..config import config
from ..conversion import parse_markdown_to_blocks
from ..exceptions import ReplayWarning, ValidationError
from ..models import CollabSnapshot, SnapshotState, SnapshotUpdate, doc_name_for_task
from .engine import CrdtEngine, PycrdtEngine
from .tree import build_tree


STATE_VECTOR_VERSION = "v1_sv"
UPDATE_VERSION = "v1"
UPDATE_ACTION = "update"

PreviousSnapshot = Union[CollabSnapshot, Dict[str, Any]]


@dataclass
class SnapshotRebuild:
    """Result of rebuilding a snapshot from a previous one."""

    snapshot: CollabSnapshot
    replay_warning: Optional[ReplayWarning] = None

    @property
    def replayed(self) -> bool:
        """True when every previous update was applied."""
        return self.replay_warning is None


def _encode(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _populate(engine: CrdtEngine, doc: Any, markdown: Optional[str], clear: bool = False) -> None:
    fragment = engine.get_fragment(doc, config.fragment_name)
    blocks = parse_markdown_to_blocks(markdown) if markdown else []
    with engine.transaction(doc):
        if clear:
            engine.clear_children(fragment)
        build_tree(engine, fragment, blocks)


def _snapshot(engine: CrdtEngine, doc: Any, doc_name: str) -> CollabSnapshot:
    return CollabSnapshot(
        state=SnapshotState(
            version=STATE_VECTOR_VERSION,
            doc_name=doc_name,
            clock=0,
            value=_encode(engine.encode_state_vector(doc)),
        ),
        updates=[
            SnapshotUpdate(
                version=UPDATE_VERSION,
                action=UPDATE_ACTION,
                doc_name=doc_name,
                clock=0,
                value=_encode(engine.encode_update(doc)),
            )
        ],
    )


def create_collab_snapshot(task_id: str, markdown: Optional[str] = "", engine: Optional[CrdtEngine] = None) -> CollabSnapshot:
    """
    Create the collaborative snapshot for a new task.

    Args:
        task_id: The task's identifier; the document is named tasks/notes/<task_id>
        markdown: Notes as Markdown; empty notes give one empty paragraph
        engine: CRDT engine to use (pycrdt by default)

    Returns:
        A snapshot with one state vector and exactly one full update
    """
    if not task_id:
        raise ValidationError("Task ID is required to create a collaborative snapshot", field="task_id")

    engine = engine or PycrdtEngine()
    doc_name = doc_name_for_task(task_id)
    doc = engine.create_document()
    _populate(engine, doc, markdown)

    logging.debug(f"Created collaborative snapshot for {doc_name}")
    return _snapshot(engine, doc, doc_name)


def _replay(engine: CrdtEngine, previous: CollabSnapshot) -> Tuple[Any, Optional[ReplayWarning]]:
    """Apply every previous update to a fresh document, or give up and start over."""
    doc = engine.create_document()
    try:
        for update in previous.updates:
            if update.value:
                engine.apply_update(doc, base64.b64decode(update.value, validate=True))
    except Exception as e:
        warning = ReplayWarning(
            f"Could not apply existing collaborative state for {previous.doc_name}, "
            f"creating fresh document: {e}",
            doc_name=previous.doc_name,
            cause=e,
        )
        logging.warning(str(warning))
        return engine.create_document(), warning

    return doc, None


def rebuild_collab_snapshot(previous: PreviousSnapshot, markdown: Optional[str], engine: Optional[CrdtEngine] = None) -> SnapshotRebuild:
    """
    Replace the notes content of an existing snapshot.

    The previous updates are replayed so the new update descends from the
    existing collaborative history, then the root fragment is cleared and
    rebuilt from markdown. A replay failure is not fatal: the rebuild continues
    on a fresh document and the failure is returned as a ReplayWarning.

    Args:
        previous: The task's current snapshot, as a model or wire dict
        markdown: The new notes as Markdown
        engine: CRDT engine to use (pycrdt by default)

    Returns:
        SnapshotRebuild with the new snapshot and any replay warning

    Raises:
        ValidationError: If previous is not a valid snapshot payload
    """
    if not isinstance(previous, CollabSnapshot):
        try:
            previous = CollabSnapshot.from_payload(previous)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid collaborative snapshot: {e}", field="collab_snapshot") from e

    engine = engine or PycrdtEngine()
    doc, warning = _replay(engine, previous)
    _populate(engine, doc, markdown, clear=True)

    # Keep docName and any extra state fields of the previous snapshot
    rebuilt = _snapshot(engine, doc, previous.doc_name)
    state = previous.state.model_copy(update={"clock": 0, "value": rebuilt.state.value})
    snapshot = CollabSnapshot(state=state, updates=rebuilt.updates)

    logging.debug(f"Rebuilt collaborative snapshot for {previous.doc_name}")
    return SnapshotRebuild(snapshot=snapshot, replay_warning=warning)


def create_updated_collab_snapshot(previous: PreviousSnapshot, markdown: Optional[str], engine: Optional[CrdtEngine] = None) -> CollabSnapshot:
    """
    Build the snapshot for a notes update.

    Same as rebuild_collab_snapshot, returning only the snapshot. Replay
    problems have already been logged.
    """
    return rebuild_collab_snapshot(previous, markdown, engine).snapshot
