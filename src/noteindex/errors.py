"""Exceptions raised by the note index."""

from __future__ import annotations


class NoteIndexError(Exception):
    """Base class for every error raised by :mod:`noteindex`."""


class DocumentReadError(NoteIndexError):
    """The document store could not read a document."""

    def __init__(self, page_id: str, reason: str = "") -> None:
        self.page_id = page_id
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot read document '{page_id}'{detail}")


class SnapshotError(NoteIndexError):
    """The index snapshot could not be serialised or written."""


class UnknownOperationError(NoteIndexError):
    """A worker request named an operation the engine does not know."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Unknown index operation '{operation}'")
