"""
Collaborative snapshot models for tasknotes.

A CollabSnapshot is the persisted form of a task's collaborative notes
document: an encoded state vector plus a single full update, both base64 text.
Field names follow the remote API (camelCase) on the wire.
"""

from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field


DOC_NAME_PREFIX = "tasks/notes/"


def doc_name_for_task(task_id: str) -> str:
    """The collaborative session name the remote editor resolves for a task."""
    return f"{DOC_NAME_PREFIX}{task_id}"


class SnapshotState(BaseModel):
    """
    Encoded state vector of the collaborative document.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: str = Field(
        ...,
        description="Encoding version of the state vector (e.g., 'v1_sv')"
    )

    doc_name: str = Field(
        ...,
        alias="docName",
        description="Collaborative session name, 'tasks/notes/<taskId>'"
    )

    clock: int = Field(
        0,
        description="Snapshot clock, kept at 0 like the web editor does"
    )

    value: str = Field(
        ...,
        description="Base64-encoded state vector"
    )


class SnapshotUpdate(BaseModel):
    """
    Encoded document update carried in a snapshot.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: str = Field(..., description="Encoding version of the update (e.g., 'v1')")
    action: str = Field(..., description="Update action, 'update'")
    doc_name: str = Field(..., alias="docName")
    clock: int = Field(0)
    value: str = Field(..., description="Base64-encoded full document update")


class CollabSnapshot(BaseModel):
    """
    Collaborative editing snapshot stored on a task record.
    """

    model_config = ConfigDict(populate_by_name=True)

    state: SnapshotState

    updates: List[SnapshotUpdate] = Field(
        default_factory=list,
        description="Encoded updates; snapshots produced here always hold exactly one"
    )

    @property
    def doc_name(self) -> str:
        return self.state.doc_name

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation with the remote API's field names."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "CollabSnapshot":
        return cls.model_validate(payload)
