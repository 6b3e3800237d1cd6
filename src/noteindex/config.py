"""Index configuration from an optional TOML file and the environment.

TOML layout::

    [index]
    extension     = ".md"
    index_dir     = ".noteindex"
    snapshot_name = "index.json"
    search_limit  = 50
    log_level     = "INFO"

Environment variables (override the file; direct kwargs override both):
    NOTEINDEX_EXTENSION      – note file extension
    NOTEINDEX_INDEX_DIR      – hidden folder inside the notes root
    NOTEINDEX_SNAPSHOT_NAME  – snapshot file name inside ``index_dir``
    NOTEINDEX_SEARCH_LIMIT   – maximum number of search results
    NOTEINDEX_LOG_LEVEL      – logging level name
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

_ENV_PREFIX = "NOTEINDEX_"


@dataclass(frozen=True)
class IndexConfig:
    extension: str = ".md"
    index_dir: str = ".noteindex"
    snapshot_name: str = "index.json"
    search_limit: int = 50
    log_level: str = "INFO"

    def snapshot_path(self, root: Path | str) -> Path:
        return Path(root) / self.index_dir / self.snapshot_name


def _coerce(name: str, value: Any) -> Any:
    if name == "search_limit":
        limit = int(value)
        if limit <= 0:
            raise ValueError(f"search_limit must be positive, got {limit}")
        return limit
    return str(value)


def load_config(path: Path | str | None = None, **overrides: Any) -> IndexConfig:
    """Build an :class:`IndexConfig` from *path*, the environment and *overrides*."""
    known = {f.name for f in fields(IndexConfig)}
    values: dict[str, Any] = {}

    if path is not None:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
        section = data.get("index", data)
        for key, value in section.items():
            if key in known:
                values[key] = value
            else:
                log.debug("Ignoring unknown config key %r in %s", key, path)

    for name in known:
        env_value = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
        if env_value:
            values[name] = env_value

    values.update({k: v for k, v in overrides.items() if k in known and v is not None})
    return replace(IndexConfig(), **{k: _coerce(k, v) for k, v in values.items()})
