"""IndexStore: searchable entries grouped per page, plus file stats."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Iterator

from noteindex.entry import EntryKind, SearchEntry

log = logging.getLogger(__name__)


class IndexStore:
    """In-memory collection of page, block and phantom entries.

    Entries are kept in one ordered group per ``page_id``. A phantom occupies
    the group of its target, so a real page and a phantom for the same id
    can never coexist. Replacing a group moves it to the end, which is the
    insertion order the ranker uses to break ties.
    """

    def __init__(self) -> None:
        self._groups: dict[str, list[SearchEntry]] = {}
        self.file_stats: dict[str, int] = {}

    def clear(self) -> None:
        self._groups.clear()
        self.file_stats.clear()

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def replace_page(self, page_id: str, entries: Iterable[SearchEntry]) -> None:
        """Swap the whole entry group of *page_id* for *entries*."""
        group = list(entries)
        self._groups.pop(page_id, None)
        self._groups[page_id] = group

    def remove_page(self, page_id: str) -> bool:
        """Drop the page and its blocks; a phantom under *page_id* stays."""
        group = self._groups.get(page_id)
        if not group or group[0].kind is EntryKind.PHANTOM:
            return False
        del self._groups[page_id]
        return True

    def has_page(self, page_id: str) -> bool:
        return self.page_entry(page_id) is not None

    def page_entry(self, page_id: str) -> SearchEntry | None:
        for entry in self._groups.get(page_id, ()):
            if entry.kind is EntryKind.PAGE:
                return entry
        return None

    def page_ids(self) -> list[str]:
        return [pid for pid, group in self._groups.items() if group and group[0].kind is not EntryKind.PHANTOM]

    def blocks(self, page_id: str) -> list[SearchEntry]:
        return [e for e in self._groups.get(page_id, ()) if e.kind is EntryKind.BLOCK]

    # ------------------------------------------------------------------
    # Phantoms
    # ------------------------------------------------------------------

    def add_phantom(self, target: str, last_modified: int) -> bool:
        """Create a phantom for *target* unless a page or phantom already exists."""
        if target in self._groups:
            return False
        self._groups[target] = [SearchEntry.phantom(target, last_modified)]
        return True

    def remove_phantom(self, target: str) -> bool:
        if not self.has_phantom(target):
            return False
        del self._groups[target]
        return True

    def has_phantom(self, target: str) -> bool:
        group = self._groups.get(target)
        return bool(group) and group[0].kind is EntryKind.PHANTOM

    def phantom_ids(self) -> list[str]:
        return [pid for pid in self._groups if self.has_phantom(pid)]

    # ------------------------------------------------------------------
    # Iteration / tags
    # ------------------------------------------------------------------

    def entries(self) -> list[SearchEntry]:
        return [entry for group in self._groups.values() for entry in group]

    def __iter__(self) -> Iterator[SearchEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return sum(len(group) for group in self._groups.values())

    def pages_with_tag(self, tag: str) -> list[str]:
        tag = tag.lstrip("#")
        result: list[str] = []
        for pid in self.page_ids():
            page = self.page_entry(pid)
            if page is not None and tag in page.tags:
                result.append(pid)
        return result

    def tag_counts(self) -> dict[str, int]:
        """Tag -> number of pages carrying it, most frequent first."""
        counts: Counter[str] = Counter()
        for pid in self.page_ids():
            page = self.page_entry(pid)
            if page is not None:
                counts.update(set(page.tags))
        return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))

    # ------------------------------------------------------------------
    # Bulk load
    # ------------------------------------------------------------------

    def load(self, entries: Iterable[SearchEntry], file_stats: dict[str, int]) -> None:
        """Replace all state with *entries*, regrouped by ``page_id``.

        A phantom whose id also has a page entry is discarded, and so is every
        page entry or block id repeated within a page after its first one.
        """
        groups: dict[str, list[SearchEntry]] = {}
        for entry in entries:
            groups.setdefault(entry.page_id, []).append(entry)
        dropped = 0
        for group in groups.values():
            if any(e.kind is not EntryKind.PHANTOM for e in group):
                kept = _dedupe_page_group(group)
                kept.sort(key=lambda e: e.kind is not EntryKind.PAGE)
            else:
                kept = group[:1]
            dropped += len(group) - len(kept)
            group[:] = kept
        if dropped:
            log.warning("Dropped %d duplicate or shadowed entries while loading the index", dropped)
        self._groups = {pid: group for pid, group in groups.items() if group}
        self.file_stats = dict(file_stats)


def _dedupe_page_group(group: list[SearchEntry]) -> list[SearchEntry]:
    """First page entry and first block per id; phantoms are dropped."""
    kept: list[SearchEntry] = []
    has_page = False
    block_ids: set[str] = set()
    for entry in group:
        if entry.kind is EntryKind.PAGE:
            if has_page:
                continue
            has_page = True
        elif entry.kind is EntryKind.BLOCK:
            if entry.id in block_ids:
                continue
            block_ids.add(entry.id)
        else:
            continue
        kept.append(entry)
    return kept
