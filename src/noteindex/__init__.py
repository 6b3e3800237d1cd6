"""Incremental search index and link graph over a folder of notes."""

from noteindex.config import IndexConfig, load_config
from noteindex.db import IndexDB
from noteindex.documents import Document, DocumentInfo, DocumentStore, FolderDocumentStore
from noteindex.engine import NoteIndex, RebuildStats
from noteindex.entry import EntryKind, SearchEntry
from noteindex.errors import DocumentReadError, NoteIndexError, SnapshotError, UnknownOperationError
from noteindex.graph import LinkGraph
from noteindex.parser import ParsedDocument, parse_document, parse_wikilinks
from noteindex.ranker import rank
from noteindex.snapshot import IndexSnapshot
from noteindex.store import IndexStore
from noteindex.worker import IndexWorker

__all__ = [
    "Document",
    "DocumentInfo",
    "DocumentReadError",
    "DocumentStore",
    "EntryKind",
    "FolderDocumentStore",
    "IndexConfig",
    "IndexDB",
    "IndexSnapshot",
    "IndexStore",
    "IndexWorker",
    "LinkGraph",
    "NoteIndex",
    "NoteIndexError",
    "ParsedDocument",
    "RebuildStats",
    "SearchEntry",
    "SnapshotError",
    "UnknownOperationError",
    "load_config",
    "parse_document",
    "parse_wikilinks",
    "rank",
]
