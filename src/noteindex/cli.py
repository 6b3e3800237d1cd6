from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from noteindex.config import IndexConfig, load_config
from noteindex.documents.folder import FolderDocumentStore
from noteindex.engine import NoteIndex, RebuildStats
from noteindex.errors import SnapshotError
from noteindex.logging_setup import setup_logging

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="noteindex", description="Incremental index over a folder of notes")
    p.add_argument("--config", type=Path, default=None, help="TOML file with an [index] table")
    p.add_argument("--log-file", type=Path, default=None, help="Also log to this rotating file")
    p.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")

    sub = p.add_subparsers(dest="command", required=True)

    rebuild = sub.add_parser("rebuild", help="Update the saved index and print statistics")
    rebuild.add_argument("folder", type=Path)

    search = sub.add_parser("search", help="Ranked search over pages and blocks")
    search.add_argument("folder", type=Path)
    search.add_argument("query", nargs="?", default="")

    backlinks = sub.add_parser("backlinks", help="Pages linking to TARGET")
    backlinks.add_argument("folder", type=Path)
    backlinks.add_argument("target")

    rename = sub.add_parser("rename-affected", help="Pages to rewrite when PAGE is renamed")
    rename.add_argument("folder", type=Path)
    rename.add_argument("page")

    tags = sub.add_parser("tags", help="Tags with their page counts")
    tags.add_argument("folder", type=Path)

    return p.parse_args(argv)


async def _refresh(folder: Path, config: IndexConfig) -> tuple[NoteIndex, RebuildStats]:
    documents = FolderDocumentStore(folder, extension=config.extension)
    index = NoteIndex(config=config)
    index.load(folder)
    stats = await index.rebuild(documents)
    try:
        index.save(folder)
    except SnapshotError as exc:
        log.error("%s", exc)
    return index, stats


def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    setup_logging("DEBUG" if args.verbose else config.log_level, args.log_file)

    if not args.folder.is_dir():
        log.error("Not a folder: %s", args.folder)
        return 2

    index, stats = asyncio.run(_refresh(args.folder, config))

    if args.command == "rebuild":
        for key, value in stats.to_dict().items():
            print(f"{key}: {value}")
    elif args.command == "search":
        for entry in index.search(args.query):
            where = "" if entry.page_id == entry.id else f"  ({entry.page_name})"
            print(f"[{entry.kind.value}] {entry.title}{where}")
    elif args.command == "backlinks":
        print("\n".join(index.get_backlinks(args.target)))
    elif args.command == "rename-affected":
        print("\n".join(index.get_rename_affected(args.page)))
    elif args.command == "tags":
        for tag, count in index.tag_counts().items():
            print(f"#{tag}\t{count}")
    return 0


def main(argv: list[str] | None = None) -> int:
    return run(parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
