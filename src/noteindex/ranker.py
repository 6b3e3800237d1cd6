"""Search ranking over index entries.

Titles are compared case-insensitively against a fixed ladder of match
tiers; the first tier that matches gives the score.
"""

from __future__ import annotations

from typing import Iterable

from noteindex.entry import SearchEntry

DEFAULT_LIMIT = 50

SCORE_EXACT = 100
SCORE_PREFIX = 75
SCORE_WORD = 60
SCORE_SUBSTRING = 50
SCORE_SUBSEQUENCE = 25


def _is_subsequence(query: str, title: str) -> bool:
    chars = iter(title)
    return all(ch in chars for ch in query)


def score(query: str, title: str) -> int:
    """Score *title* against *query*; the first matching tier wins, 0 is no match."""
    q = query.lower()
    t = title.lower()
    if t == q:
        return SCORE_EXACT
    if t.startswith(q):
        return SCORE_PREFIX
    if f" {q}" in t:
        return SCORE_WORD
    if q in t:
        return SCORE_SUBSTRING
    if _is_subsequence(q, t):
        return SCORE_SUBSEQUENCE
    return 0


def rank(entries: Iterable[SearchEntry], query: str, limit: int = DEFAULT_LIMIT) -> list[SearchEntry]:
    """Return up to *limit* entries matching *query*, best first.

    An empty query lists the most recently modified entries. Sorting is
    stable, so equal keys keep the store's insertion order.
    """
    if not query:
        recent = sorted(entries, key=lambda e: e.last_modified, reverse=True)
        return recent[:limit]

    scored = [(score(query, entry.title), entry) for entry in entries]
    matches = [(s, entry) for s, entry in scored if s > 0]
    matches.sort(key=lambda pair: (pair[0], pair[1].last_modified), reverse=True)
    return [entry for _, entry in matches[:limit]]
