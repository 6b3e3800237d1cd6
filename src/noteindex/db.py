"""IndexDB: SQL view over the note index.

Loads the index entries and the link graph into an in-memory DuckDB
database and returns :mod:`polars` DataFrames, for ad-hoc inspection of a
notes folder.

Usage::

    db = IndexDB(index)

    # Free-form SQL
    df = db.query("SELECT page_id, count(*) FROM entries WHERE kind = 'block' GROUP BY 1")

    # Pre-built views
    pages    = db.entries_view(kind="page", order_by="last_modified DESC")
    degrees  = db.link_counts()
    lonely   = db.orphan_pages()
    missing  = db.dangling_targets()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import duckdb
import polars as pl

if TYPE_CHECKING:
    from noteindex.engine import NoteIndex


class IndexDB:
    """In-memory DuckDB database over a :class:`NoteIndex`."""

    def __init__(self, index: "NoteIndex") -> None:
        self.conn: duckdb.DuckDBPyConnection = duckdb.connect(":memory:")
        self.refresh(index)

    # ------------------------------------------------------------------
    # Build / refresh
    # ------------------------------------------------------------------

    def refresh(self, index: "NoteIndex") -> None:
        """(Re-)populate the database from *index* (call after index updates)."""
        self._index = index
        self._create_schema()
        self._load()

    def _create_schema(self) -> None:
        self.conn.execute("""
            CREATE OR REPLACE TABLE entries (
                id            VARCHAR,
                kind          VARCHAR,
                title         VARCHAR,
                page_id       VARCHAR,
                page_name     VARCHAR,
                last_modified BIGINT,
                tags          VARCHAR[]
            )
        """)
        self.conn.execute("""
            CREATE OR REPLACE TABLE links (
                source VARCHAR,
                target VARCHAR
            )
        """)

    def _load(self) -> None:
        rows = [
            (e.id, e.kind.value, e.title, e.page_id, e.page_name, e.last_modified, e.tags)
            for e in self._index.store.entries()
        ]
        if rows:
            self.conn.executemany("INSERT INTO entries VALUES (?,?,?,?,?,?,?)", rows)
        edges = self._index.graph.edges()
        if edges:
            self.conn.executemany("INSERT INTO links VALUES (?,?)", edges)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def query(self, sql: str) -> pl.DataFrame:
        """Run a raw SQL query and return a Polars DataFrame."""
        return self.conn.execute(sql).pl()

    # ------------------------------------------------------------------
    # Pre-built views
    # ------------------------------------------------------------------

    def entries_view(
        self,
        *,
        kind: str | None = None,
        search: str | None = None,
        order_by: str = "last_modified DESC",
    ) -> pl.DataFrame:
        """Return entries, optionally filtered by kind and title substring."""
        where_clauses: list[str] = []
        params: list[str] = []
        if kind:
            where_clauses.append("kind = ?")
            params.append(kind)
        if search:
            where_clauses.append("title ILIKE ?")
            params.append(f"%{search}%")

        where = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
        safe_order = order_by.replace(";", "").replace("'", "")
        sql = f"SELECT id, kind, title, page_id, last_modified FROM entries {where} ORDER BY {safe_order}"
        return self.conn.execute(sql, params).pl()

    def link_counts(self) -> pl.DataFrame:
        """Outgoing and incoming link counts for every page."""
        return self.conn.execute(
            """
            SELECT
                p.page_id,
                (SELECT COUNT(*) FROM links l WHERE l.source = p.page_id) AS outgoing,
                (SELECT COUNT(*) FROM links l WHERE l.target = p.page_id) AS incoming
            FROM entries p
            WHERE p.kind = 'page'
            ORDER BY incoming DESC, outgoing DESC, p.page_id
            """
        ).pl()

    def orphan_pages(self) -> list[str]:
        """Pages that neither link anywhere nor are linked to."""
        rows = self.conn.execute(
            """
            SELECT page_id FROM entries
            WHERE kind = 'page'
              AND page_id NOT IN (SELECT source FROM links)
              AND page_id NOT IN (SELECT target FROM links)
            ORDER BY page_id
            """
        ).fetchall()
        return [r[0] for r in rows]

    def dangling_targets(self) -> list[str]:
        """Link targets with no page of that name."""
        rows = self.conn.execute(
            """
            SELECT DISTINCT target FROM links
            WHERE target NOT IN (SELECT page_id FROM entries WHERE kind = 'page')
            ORDER BY target
            """
        ).fetchall()
        return [r[0] for r in rows]

    def tag_counts(self) -> pl.DataFrame:
        """Return a tag → page count table sorted by frequency."""
        return self.conn.execute(
            """
            SELECT tag, COUNT(*) AS page_count
            FROM (SELECT unnest(tags) AS tag FROM entries WHERE kind = 'page')
            GROUP BY tag
            ORDER BY page_count DESC, tag
            """
        ).pl()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "IndexDB":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
