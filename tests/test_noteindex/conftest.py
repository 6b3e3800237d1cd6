"""Shared fixtures: an in-memory document store."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from noteindex.documents.base import Document, DocumentInfo
from noteindex.engine import NoteIndex
from noteindex.errors import DocumentReadError


class MemoryDocuments:
    """DocumentStore over a dict, with explicit timestamps and read tracking."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.docs: dict[str, tuple[str, int]] = {}
        self.broken: set[str] = set()
        self.reads: list[str] = []

    def put(self, page_id: str, text: str, last_modified: int) -> None:
        self.docs[page_id] = (textwrap.dedent(text), last_modified)

    def delete(self, page_id: str) -> None:
        self.docs.pop(page_id, None)

    async def list_documents(self) -> list[DocumentInfo]:
        return [DocumentInfo(pid, f"{pid}.md", lm) for pid, (_, lm) in self.docs.items()]

    async def read_document(self, page_id: str) -> Document:
        self.reads.append(page_id)
        if page_id in self.broken or page_id not in self.docs:
            raise DocumentReadError(page_id, "gone")
        text, lm = self.docs[page_id]
        return Document(page_id, f"{page_id}.md", text, lm)


@pytest.fixture()
def documents(tmp_path: Path) -> MemoryDocuments:
    return MemoryDocuments(tmp_path)


@pytest.fixture()
def index() -> NoteIndex:
    return NoteIndex(clock=lambda: 999)
