"""Document parser: note text -> blocks, WikiLink targets and tags.

The parser never raises. Lines it cannot classify are skipped, and an empty
or non-text document parses to an empty :class:`ParsedDocument`.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from noteindex.entry import EntryKind, SearchEntry

# [[Target]], [[Target|Alias]], [[Target#Heading]], [[Target^block]]
_WIKILINK_RE = re.compile(r"\[\[([^\]|#^]+)(?:[|#^][^\]]*)?\]\]")
# #tag at line start or after whitespace
_TAG_RE = re.compile(r"(?:^|(?<=\s))#([A-Za-z0-9_/-]+)")
# YAML front-matter block
_FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(.*?)\n?---[ \t]*(?:\n|$)", re.DOTALL)
# Trailing " ^block-id"
_BLOCK_ID_RE = re.compile(r"\s\^([A-Za-z0-9-]+)\s*$")

_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}(?:\s|$)")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_RULE_RE = re.compile(r"^\s*([-*_])(?:\s*\1){2,}\s*$")
_LIST_MARKER_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])(?:\s+|$)")
_TASK_BOX_RE = re.compile(r"^\[[ xX]\](?:\s+|$)")


@dataclass
class ParsedDocument:
    blocks: list[SearchEntry] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML front-matter from body text.

    Returns ``(metadata_dict, body)``; ``metadata_dict`` is empty when there
    is no front-matter block or when it is not a YAML mapping.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content
    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, content[match.end() :]


def parse_wikilinks(text: str) -> list[str]:
    """Return all ``[[WikiLink]]`` targets found in *text* (de-duped, ordered)."""
    seen: set[str] = set()
    result: list[str] = []
    for m in _WIKILINK_RE.finditer(text):
        target = m.group(1).strip()
        if target and target not in seen:
            seen.add(target)
            result.append(target)
    return result


def parse_tags(text: str) -> list[str]:
    """Return all ``#tag`` values found in *text* (de-duped, ordered)."""
    seen: set[str] = set()
    result: list[str] = []
    for m in _TAG_RE.finditer(text):
        tag = m.group(1)
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def _frontmatter_tags(meta: dict[str, Any]) -> list[str]:
    raw = meta.get("tags") or []
    if isinstance(raw, str):
        return [t.strip().lstrip("#") for t in raw.split(",") if t.strip()]
    if isinstance(raw, list):
        return [str(t).strip().lstrip("#") for t in raw if str(t).strip()]
    return []


def strip_list_marker(line: str) -> str:
    """Remove a leading bullet / number marker and task checkbox from *line*."""
    text = _LIST_MARKER_RE.sub("", line, count=1)
    return _TASK_BOX_RE.sub("", text, count=1)


def derived_block_id(page_id: str, text: str, occurrence: int = 1) -> str:
    """Content-derived block id; stable while the block text is unchanged."""
    digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:10]
    block_id = f"{page_id}#{digest}"
    return block_id if occurrence == 1 else f"{block_id}-{occurrence}"


def explicit_block_id(page_id: str, ref: str) -> str:
    """Store id for a ``^ref`` block marker; matches the ``[[page^ref]]`` link form."""
    return f"{page_id}^{ref}"


def _body_lines(body: str) -> list[str]:
    """Lines of *body* outside fenced code blocks."""
    lines: list[str] = []
    in_fence = False
    for line in body.splitlines():
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if not in_fence:
            lines.append(line)
    return lines


def _classify_block(line: str) -> tuple[str, str, str | None] | None:
    """Return ``(title, full_content, explicit_id)`` or ``None`` to skip *line*."""
    if not line.strip() or _HEADING_RE.match(line) or _RULE_RE.match(line):
        return None
    explicit_id: str | None = None
    m = _BLOCK_ID_RE.search(line)
    if m:
        explicit_id = m.group(1)
        line = line[: m.start()]
    title = strip_list_marker(line).strip()
    if not title:
        return None
    return title, line, explicit_id


def parse_document(content: Any, page_name: str, page_id: str, last_modified: int) -> ParsedDocument:
    """Parse raw note *content* into block entries, link targets and tags."""
    if not isinstance(content, str) or not content.strip():
        return ParsedDocument()

    content = content.replace("\r\n", "\n").replace("\r", "\n")
    meta, body = parse_frontmatter(content)
    lines = _body_lines(body)
    text = "\n".join(lines)

    blocks: list[SearchEntry] = []
    used_ids: set[str] = set()
    occurrences: dict[str, int] = {}
    for line in lines:
        classified = _classify_block(line)
        if classified is None:
            continue
        title, full_content, ref = classified
        block_id = explicit_block_id(page_id, ref) if ref is not None else None
        if block_id is None or block_id in used_ids:
            occurrences[title] = occurrences.get(title, 0) + 1
            block_id = derived_block_id(page_id, title, occurrences[title])
            while block_id in used_ids:
                occurrences[title] += 1
                block_id = derived_block_id(page_id, title, occurrences[title])
        used_ids.add(block_id)
        blocks.append(
            SearchEntry(
                kind=EntryKind.BLOCK,
                id=block_id,
                title=title,
                page_id=page_id,
                page_name=page_name,
                last_modified=last_modified,
                full_content=full_content,
            )
        )

    tags = list(dict.fromkeys(_frontmatter_tags(meta) + parse_tags(text)))
    return ParsedDocument(blocks=blocks, links=parse_wikilinks(text), tags=tags)
