"""IndexSnapshot: the exported / persisted form of a whole index.

On disk the snapshot is a single JSON document::

    {
      "version": 1,
      "searchIndex": [{"type": "page", "id": "Alpha", ...}, ...],
      "fileStats": {"Alpha": 1700000000000},
      "forward": {"Alpha": ["Beta"]},
      "reverse": {"Beta": ["Alpha"]}
    }

Loading is forgiving: a missing or malformed structure loads as empty and a
later rebuild fills it back in.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from noteindex.entry import SearchEntry
from noteindex.errors import SnapshotError

log = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class IndexSnapshot:
    search_index: list[SearchEntry] = field(default_factory=list)
    file_stats: dict[str, int] = field(default_factory=dict)
    forward: dict[str, list[str]] = field(default_factory=dict)
    reverse: dict[str, list[str]] = field(default_factory=dict)
    version: int = SNAPSHOT_VERSION

    def copy(self) -> "IndexSnapshot":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "searchIndex": [entry.to_dict() for entry in self.search_index],
            "fileStats": dict(self.file_stats),
            "forward": {k: list(v) for k, v in self.forward.items()},
            "reverse": {k: sorted(v) for k, v in self.reverse.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "IndexSnapshot":
        """Build a snapshot from decoded JSON, defaulting whatever is unusable."""
        if not isinstance(data, dict):
            log.warning("Snapshot is not an object; starting from an empty index")
            return cls()

        version = data.get("version", SNAPSHOT_VERSION)
        if not isinstance(version, int) or version > SNAPSHOT_VERSION:
            log.warning("Unsupported snapshot version %r; starting from an empty index", version)
            return cls()

        return cls(
            search_index=_load_entries(data.get("searchIndex")),
            file_stats=_load_file_stats(data.get("fileStats")),
            forward=_load_adjacency(data.get("forward"), "forward"),
            reverse=_load_adjacency(data.get("reverse"), "reverse"),
        )

    def to_json(self) -> str:
        try:
            return json.dumps(self.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise SnapshotError(f"Cannot serialise index snapshot: {exc}") from exc

    @classmethod
    def from_json(cls, text: str) -> "IndexSnapshot":
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, TypeError) as exc:
            log.warning("Snapshot is not valid JSON (%s); starting from an empty index", exc)
            return cls()
        return cls.from_dict(data)


# ---------------------------------------------------------------------------
# Lenient field loaders
# ---------------------------------------------------------------------------


def _load_entries(raw: Any) -> list[SearchEntry]:
    if raw is None:
        log.warning("Snapshot has no searchIndex; loading it empty")
        return []
    if not isinstance(raw, list):
        log.warning("Snapshot searchIndex is not a list; loading it empty")
        return []
    entries: list[SearchEntry] = []
    dropped = 0
    for item in raw:
        try:
            entries.append(SearchEntry.from_dict(item))
        except (KeyError, ValueError, TypeError):
            dropped += 1
    if dropped:
        log.warning("Dropped %d malformed snapshot entries", dropped)
    return entries


def _load_file_stats(raw: Any) -> dict[str, int]:
    if not isinstance(raw, dict):
        log.warning("Snapshot fileStats missing or malformed; loading it empty")
        return {}
    stats: dict[str, int] = {}
    for page_id, ts in raw.items():
        if isinstance(ts, (int, float)) and not isinstance(ts, bool):
            stats[str(page_id)] = int(ts)
    return stats


def _load_adjacency(raw: Any, name: str) -> dict[str, list[str]]:
    if not isinstance(raw, dict):
        log.warning("Snapshot %s graph missing or malformed; loading it empty", name)
        return {}
    result: dict[str, list[str]] = {}
    for key, values in raw.items():
        if isinstance(values, list):
            result[str(key)] = list(dict.fromkeys(str(v) for v in values))
    return result


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def save_snapshot(path: Path, snapshot: IndexSnapshot) -> Path:
    """Atomically write *snapshot* to *path* (temp file + replace)."""
    text = snapshot.to_json()
    tmp = path.with_name(f"{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)
    except OSError as exc:
        raise SnapshotError(f"Cannot write index snapshot to {path}: {exc}") from exc
    log.debug("Saved index snapshot to %s (%d entries)", path, len(snapshot.search_index))
    return path


def load_snapshot(path: Path) -> IndexSnapshot | None:
    """Read the snapshot at *path*; ``None`` when there is no snapshot file."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        log.warning("Cannot read index snapshot %s: %s", path, exc)
        return None
    return IndexSnapshot.from_json(text)
