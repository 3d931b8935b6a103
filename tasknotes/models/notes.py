"""
Task notes models for tasknotes.

Callers hand notes over in one format; the remote task record stores both the
HTML and the Markdown rendering together with the collaborative snapshot.
"""

from typing import Any, Dict, Literal
from pydantic import BaseModel, ConfigDict, Field

from .snapshot import CollabSnapshot


class NotesContent(BaseModel):
    """
    Notes provided by a caller, tagged with their format.
    """

    model_config = ConfigDict(frozen=True)

    format: Literal["html", "markdown"] = Field(
        ...,
        description="Format of value: rich HTML or Markdown"
    )

    value: str = Field(
        ...,
        description="The notes text"
    )

    @classmethod
    def from_html(cls, html: str) -> "NotesContent":
        return cls(format="html", value=html)

    @classmethod
    def from_markdown(cls, markdown: str) -> "NotesContent":
        return cls(format="markdown", value=markdown)


class NotesPayload(BaseModel):
    """
    Both renderings of a task's notes plus their collaborative snapshot.
    """

    model_config = ConfigDict(populate_by_name=True)

    notes: str = Field(..., description="Notes as HTML")
    notes_markdown: str = Field(..., alias="notesMarkdown", description="Notes as Markdown")
    collab_snapshot: CollabSnapshot = Field(..., alias="collabSnapshot")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class UpdateTaskNotesInput(BaseModel):
    """
    Input of the remote updateTaskNotes mutation, ready for the transport layer.
    """

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(..., alias="taskId")
    notes: str = Field(..., description="The new notes content (HTML format)")
    notes_markdown: str = Field(..., alias="notesMarkdown", description="The new notes content (Markdown format)")
    editor_version: int = Field(3, alias="editorVersion", description="Editor version, typically 3")
    collab_snapshot: CollabSnapshot = Field(..., alias="collabSnapshot")
    limit_response_payload: bool = Field(
        True,
        alias="limitResponsePayload",
        description="Ask the API to omit the updated task from its response"
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
