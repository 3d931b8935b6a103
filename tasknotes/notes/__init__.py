"""
Task notes creation and update payloads.
"""

from .manager import NotesManager, validate_task_id

__all__ = ["NotesManager", "validate_task_id"]
