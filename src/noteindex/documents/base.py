"""Abstract document store protocol."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class DocumentInfo:
    page_id: str
    name: str
    #: Modification time in epoch milliseconds
    last_modified: int


@dataclass(frozen=True)
class Document:
    page_id: str
    name: str
    text: str
    last_modified: int


@runtime_checkable
class DocumentStore(Protocol):
    """What the index needs from the host's document storage.

    The index only reads: creating, renaming and rewriting documents stay
    with the host. ``root`` is where the index snapshot is kept.
    """

    root: Path

    async def list_documents(self) -> list[DocumentInfo]:
        """Enumerate every note document with its modification time."""
        ...

    async def read_document(self, page_id: str) -> Document:
        """Return the full text of *page_id*.

        Raises :class:`noteindex.errors.DocumentReadError` when the document
        is missing or unreadable.
        """
        ...
