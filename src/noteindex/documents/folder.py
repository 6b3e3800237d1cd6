"""Folder-backed document store: one ``<page id><extension>`` file per note."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from noteindex.documents.base import Document, DocumentInfo
from noteindex.errors import DocumentReadError

log = logging.getLogger(__name__)


def _mtime_ms(path: Path) -> int:
    return path.stat().st_mtime_ns // 1_000_000


class FolderDocumentStore:
    """Reads notes from a flat directory; hidden files and folders are ignored."""

    def __init__(self, root: Path | str, *, extension: str = ".md") -> None:
        self.root = Path(root)
        self.extension = extension if extension.startswith(".") else f".{extension}"

    def path_for(self, page_id: str) -> Path:
        return self.root / f"{page_id}{self.extension}"

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _scan(self) -> list[DocumentInfo]:
        infos: list[DocumentInfo] = []
        if not self.root.is_dir():
            log.warning("Document folder %s does not exist", self.root)
            return infos
        for path in sorted(self.root.iterdir(), key=lambda p: p.name.lower()):
            if path.name.startswith(".") or path.suffix != self.extension:
                continue
            try:
                if not path.is_file():
                    continue
                infos.append(DocumentInfo(page_id=path.stem, name=path.name, last_modified=_mtime_ms(path)))
            except OSError as exc:
                log.warning("Skipping %s: %s", path.name, exc)
        return infos

    def _read(self, page_id: str) -> Document:
        path = self.path_for(page_id)
        try:
            last_modified = _mtime_ms(path)
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentReadError(page_id, str(exc)) from exc
        return Document(page_id=page_id, name=path.name, text=text, last_modified=last_modified)

    # ------------------------------------------------------------------
    # DocumentStore
    # ------------------------------------------------------------------

    async def list_documents(self) -> list[DocumentInfo]:
        return await asyncio.to_thread(self._scan)

    async def read_document(self, page_id: str) -> Document:
        return await asyncio.to_thread(self._read, page_id)
