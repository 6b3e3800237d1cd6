"""NoteIndex: keeps the search entries and the link graph in sync with a notes folder.

Usage::

    index = NoteIndex()
    index.load(store.root)               # prior file stats make the rebuild incremental
    stats = await index.rebuild(store)   # RebuildStats(scanned=..., skipped=..., ...)

    index.search("meet")                 # ranked SearchEntry list
    index.get_backlinks("Project X")     # pages linking to "Project X"

    await index.update_file(store, "Project X")   # after an edit
    index.remove_file("Old page")                  # after a delete
    index.save(store.root)

Every operation except reading documents is synchronous and works on the
state owned by this instance. A page's entries are swapped in a single step,
so a reader never sees half of a page update.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

from noteindex.config import IndexConfig
from noteindex.documents.base import Document, DocumentStore
from noteindex.entry import SearchEntry
from noteindex.errors import DocumentReadError
from noteindex.graph import LinkGraph
from noteindex.parser import ParsedDocument, parse_document
from noteindex.ranker import rank
from noteindex.snapshot import IndexSnapshot, load_snapshot, save_snapshot
from noteindex.store import IndexStore

if TYPE_CHECKING:
    import networkx as nx

log = logging.getLogger(__name__)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class RebuildStats:
    scanned: int = 0
    skipped: int = 0
    blocks_indexed: int = 0
    removed: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class NoteIndex:
    """Incremental search index and link graph over a document store."""

    def __init__(self, *, config: IndexConfig | None = None, clock: Callable[[], int] | None = None) -> None:
        self.config = config or IndexConfig()
        self._clock = clock or now_ms
        self.store = IndexStore()
        self.graph = LinkGraph()

    def reset(self) -> None:
        """Forget everything; the next rebuild re-parses every document."""
        self.store.clear()
        self.graph.clear()

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def _index_document(self, doc: Document) -> tuple[ParsedDocument, set[str]]:
        """Replace the entries and edges of one page; return the parse and dropped targets."""
        parsed = parse_document(doc.text, doc.page_id, doc.page_id, doc.last_modified)
        page = SearchEntry.page(doc.page_id, doc.page_id, doc.last_modified, parsed.tags)
        # replaces a phantom for this id as well
        self.store.replace_page(doc.page_id, [page, *parsed.blocks])
        _, removed = self.graph.update(doc.page_id, parsed.links)
        self.store.file_stats[doc.page_id] = doc.last_modified
        log.debug("Indexed %s: %d blocks, %d links", doc.page_id, len(parsed.blocks), len(parsed.links))
        return parsed, removed

    async def _read(self, documents: DocumentStore, page_id: str) -> Document | None:
        try:
            return await documents.read_document(page_id)
        except (DocumentReadError, OSError) as exc:
            log.warning("Failed to read %s, dropping it from the index: %s", page_id, exc)
            return None

    async def rebuild(self, documents: DocumentStore) -> RebuildStats:
        """Bring the index in line with *documents*, re-parsing only changed pages."""
        t0 = time.perf_counter()
        stats = RebuildStats()
        seen: set[str] = set()

        for info in await documents.list_documents():
            stats.scanned += 1
            seen.add(info.page_id)
            if self.store.file_stats.get(info.page_id) == info.last_modified and self.store.has_page(info.page_id):
                stats.skipped += 1
                continue
            doc = await self._read(documents, info.page_id)
            if doc is None:
                stats.failed += 1
                self.remove_file(info.page_id)
                continue
            parsed, _ = self._index_document(doc)
            stats.blocks_indexed += len(parsed.blocks)

        known = dict.fromkeys([*self.store.file_stats, *self.store.page_ids()])
        for page_id in known:
            if page_id not in seen:
                self.remove_file(page_id)
                stats.removed += 1

        self._resolve_phantoms()

        dt_ms = (time.perf_counter() - t0) * 1000.0
        log.info(
            "Index rebuilt: %d scanned, %d skipped, %d blocks indexed, %d removed, %d failed in %.2fms",
            stats.scanned,
            stats.skipped,
            stats.blocks_indexed,
            stats.removed,
            stats.failed,
            dt_ms,
        )
        return stats

    async def update_file(self, documents: DocumentStore, page_id: str) -> str | None:
        """Re-index *page_id*; an unreadable page is removed and ``None`` returned."""
        doc = await self._read(documents, page_id)
        if doc is None:
            self.remove_file(page_id)
            return None

        parsed, removed = self._index_document(doc)
        now = self._clock()
        for target in parsed.links:
            if not self.store.has_page(target):
                self.store.add_phantom(target, now)
        self._drop_orphan_phantoms(removed)
        return page_id

    def remove_file(self, page_id: str) -> None:
        """Purge the page, its blocks, its outgoing edges and its file stats.

        Pages that still link to *page_id* get a phantom on their next update,
        not here.
        """
        self.store.remove_page(page_id)
        removed = self.graph.remove_page(page_id)
        self.store.file_stats.pop(page_id, None)
        self._drop_orphan_phantoms(removed)

    def _resolve_phantoms(self) -> None:
        now = self._clock()
        for target in self.graph.targets():
            if not self.store.has_page(target):
                self.store.add_phantom(target, now)
        self._drop_orphan_phantoms(self.store.phantom_ids())

    def _drop_orphan_phantoms(self, targets: Iterable[str]) -> None:
        for target in targets:
            if self.store.has_phantom(target) and not self.graph.has_referrers(target):
                self.store.remove_phantom(target)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(self, query: str) -> list[SearchEntry]:
        return rank(self.store.entries(), query, limit=self.config.search_limit)

    def get_backlinks(self, target: str) -> list[str]:
        return self.graph.backlinks(target)

    def get_rename_affected(self, old_page_id: str) -> list[str]:
        """Pages whose links must be rewritten when *old_page_id* is renamed."""
        return [p for p in self.graph.affected_by_rename(old_page_id) if p != old_page_id]

    def pages_with_tag(self, tag: str) -> list[str]:
        return self.store.pages_with_tag(tag)

    def tag_counts(self) -> dict[str, int]:
        return self.store.tag_counts()

    def local_graph(self, center: str, depth: int = 1) -> "nx.DiGraph":
        return self.graph.local_graph(center, depth)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export(self) -> IndexSnapshot:
        return IndexSnapshot(
            search_index=copy.deepcopy(self.store.entries()),
            file_stats=dict(self.store.file_stats),
            forward={k: list(v) for k, v in self.graph.forward.items()},
            reverse={k: sorted(v) for k, v in self.graph.reverse.items()},
        )

    def import_snapshot(self, snapshot: IndexSnapshot) -> None:
        """Replace the whole index with *snapshot*; nothing is merged."""
        if not self.graph.load(snapshot.forward, snapshot.reverse):
            log.warning("Snapshot reverse links disagreed with forward links; rebuilt them from forward")
        # a page without a forward entry has unknown links; the next rebuild must re-read it
        file_stats = {pid: ts for pid, ts in snapshot.file_stats.items() if pid in self.graph.forward}
        if len(file_stats) < len(snapshot.file_stats):
            log.warning(
                "Snapshot has no links for %d pages; they will be re-read on the next rebuild",
                len(snapshot.file_stats) - len(file_stats),
            )
        self.store.load(copy.deepcopy(snapshot.search_index), file_stats)
        log.info(
            "Imported index snapshot: %d entries, %d pages",
            len(self.store),
            len(self.store.file_stats),
        )

    def snapshot_path(self, root: Path | str) -> Path:
        return self.config.snapshot_path(root)

    def save(self, root: Path | str) -> Path:
        """Write the snapshot under *root*; raises :class:`SnapshotError` on failure."""
        return save_snapshot(self.snapshot_path(root), self.export())

    def load(self, root: Path | str) -> bool:
        """Import the snapshot saved under *root*, if any."""
        snapshot = load_snapshot(self.snapshot_path(root))
        if snapshot is None:
            return False
        self.import_snapshot(snapshot)
        return True
