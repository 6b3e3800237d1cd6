"""Tests for noteindex.documents.FolderDocumentStore, alone and driving NoteIndex."""

import asyncio
import os
import textwrap
from pathlib import Path

import pytest

from noteindex.documents import DocumentStore, FolderDocumentStore
from noteindex.engine import NoteIndex
from noteindex.errors import DocumentReadError


def _write(root: Path, name: str, text: str, mtime_ms: int) -> Path:
    path = root / name
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    os.utime(path, ns=(mtime_ms * 1_000_000, mtime_ms * 1_000_000))
    return path


@pytest.fixture()
def folder(tmp_path: Path) -> Path:
    _write(tmp_path, "Alpha.md", "- links to [[Beta]]\n", 1_000)
    _write(tmp_path, "beta.md", "Plain text\n", 2_000)
    _write(tmp_path, "notes.txt", "not a note\n", 3_000)
    _write(tmp_path, ".hidden.md", "- secret\n", 4_000)
    (tmp_path / "folder.md").mkdir()
    return tmp_path


# ---------------------------------------------------------------------------
# FolderDocumentStore
# ---------------------------------------------------------------------------


class TestFolderDocumentStore:
    def test_satisfies_protocol(self, folder: Path):
        assert isinstance(FolderDocumentStore(folder), DocumentStore)

    def test_lists_markdown_files_only(self, folder: Path):
        infos = asyncio.run(FolderDocumentStore(folder).list_documents())
        assert [(i.page_id, i.name, i.last_modified) for i in infos] == [
            ("Alpha", "Alpha.md", 1_000),
            ("beta", "beta.md", 2_000),
        ]

    def test_custom_extension(self, folder: Path):
        infos = asyncio.run(FolderDocumentStore(folder, extension="txt").list_documents())
        assert [i.page_id for i in infos] == ["notes"]

    def test_missing_folder_lists_nothing(self, tmp_path: Path):
        assert asyncio.run(FolderDocumentStore(tmp_path / "nope").list_documents()) == []

    def test_read_document(self, folder: Path):
        doc = asyncio.run(FolderDocumentStore(folder).read_document("Alpha"))
        assert doc.text == "- links to [[Beta]]\n"
        assert doc.last_modified == 1_000

    def test_read_missing_raises(self, folder: Path):
        with pytest.raises(DocumentReadError) as exc_info:
            asyncio.run(FolderDocumentStore(folder).read_document("Gone"))
        assert exc_info.value.page_id == "Gone"

    def test_read_undecodable_raises(self, folder: Path):
        (folder / "Bin.md").write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(DocumentReadError):
            asyncio.run(FolderDocumentStore(folder).read_document("Bin"))


# ---------------------------------------------------------------------------
# NoteIndex over a real folder
# ---------------------------------------------------------------------------


class TestFolderIndexing:
    def test_rebuild_then_edit(self, folder: Path):
        store = FolderDocumentStore(folder)
        index = NoteIndex(clock=lambda: 5)

        stats = asyncio.run(index.rebuild(store))
        assert (stats.scanned, stats.blocks_indexed) == (2, 2)
        # "Beta" and "beta" are different pages
        assert index.store.has_phantom("Beta")
        assert index.get_backlinks("Beta") == ["Alpha"]

        _write(folder, "Alpha.md", "- now [[beta]]\n", 1_500)
        assert asyncio.run(index.update_file(store, "Alpha")) == "Alpha"
        assert index.get_backlinks("beta") == ["Alpha"]
        assert not index.store.has_phantom("Beta")

    def test_second_rebuild_skips_unchanged(self, folder: Path):
        store = FolderDocumentStore(folder)
        index = NoteIndex()
        asyncio.run(index.rebuild(store))

        _write(folder, "beta.md", "Changed\n", 2_500)
        stats = asyncio.run(index.rebuild(store))
        assert (stats.skipped, stats.blocks_indexed) == (1, 1)

    def test_deleted_file_removed(self, folder: Path):
        store = FolderDocumentStore(folder)
        index = NoteIndex()
        asyncio.run(index.rebuild(store))

        (folder / "Alpha.md").unlink()
        stats = asyncio.run(index.rebuild(store))
        assert stats.removed == 1
        assert not index.store.has_page("Alpha")
        assert not index.store.has_phantom("Beta")

    def test_snapshot_survives_restart(self, folder: Path):
        store = FolderDocumentStore(folder)
        first = NoteIndex()
        asyncio.run(first.rebuild(store))
        first.save(store.root)
        assert (folder / ".noteindex" / "index.json").is_file()

        second = NoteIndex()
        assert second.load(store.root)
        stats = asyncio.run(second.rebuild(store))
        assert stats.skipped == 2
        assert [e.id for e in second.store.entries()] == [e.id for e in first.store.entries()]

    def test_snapshot_dir_not_listed(self, folder: Path):
        store = FolderDocumentStore(folder)
        index = NoteIndex()
        asyncio.run(index.rebuild(store))
        index.save(store.root)
        infos = asyncio.run(store.list_documents())
        assert [i.page_id for i in infos] == ["Alpha", "beta"]
