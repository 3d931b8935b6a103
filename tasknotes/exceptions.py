"""
Exceptions for tasknotes.

Validation and conversion failures are fatal and surface to the caller.
Problems replaying a previous collaborative snapshot are reported as a
ReplayWarning instead, because a notes update should never hard-fail on them.
"""

from typing import Optional


class TaskNotesError(Exception):
    """Base class for all tasknotes errors."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ValidationError(TaskNotesError):
    """Raised when input text or identifiers are invalid."""

    def __init__(self, message: str, field: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message, code or "VALIDATION_ERROR")
        self.field = field


class EmptyContentError(ValidationError):
    """Raised when content is empty after trimming."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, field=field, code="EMPTY_CONTENT")


class ConversionError(TaskNotesError):
    """Raised when the HTML or Markdown libraries fail on an input."""

    def __init__(self, message: str):
        super().__init__(message, "CONVERSION_ERROR")


class MissingCollabSnapshotError(TaskNotesError):
    """Raised when notes are updated without any previous collaborative state."""

    def __init__(self, task_id: str):
        super().__init__(
            f"Task {task_id} does not have a collaborative snapshot. "
            "Cannot update notes for a task without existing collaborative editing state.",
            "NO_COLLAB_SNAPSHOT",
        )
        self.task_id = task_id


class ReplayWarning(UserWarning):
    """Previous snapshot updates could not be applied; a fresh document was used."""

    def __init__(self, message: str, doc_name: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.doc_name = doc_name
        self.cause = cause
