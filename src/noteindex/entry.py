"""SearchEntry dataclass: one searchable unit of the index."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EntryKind(str, Enum):
    PAGE = "page"
    BLOCK = "block"
    PHANTOM = "phantom"


@dataclass
class SearchEntry:
    """A page, a block of a page, or a placeholder for a dangling link."""

    kind: EntryKind
    id: str
    title: str
    page_id: str
    page_name: str
    last_modified: int
    #: Untrimmed block text (blocks only)
    full_content: str | None = None
    #: Tags found in the page (page entries only)
    tags: list[str] = field(default_factory=list)

    @classmethod
    def page(cls, page_id: str, page_name: str, last_modified: int, tags: list[str] | None = None) -> "SearchEntry":
        return cls(
            kind=EntryKind.PAGE,
            id=page_id,
            title=page_name,
            page_id=page_id,
            page_name=page_name,
            last_modified=last_modified,
            tags=list(tags or []),
        )

    @classmethod
    def phantom(cls, target: str, last_modified: int) -> "SearchEntry":
        return cls(
            kind=EntryKind.PHANTOM,
            id=target,
            title=target,
            page_id=target,
            page_name=target,
            last_modified=last_modified,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.kind.value,
            "id": self.id,
            "title": self.title,
            "pageId": self.page_id,
            "pageName": self.page_name,
            "lastModified": self.last_modified,
        }
        if self.full_content is not None:
            data["fullContent"] = self.full_content
        if self.tags:
            data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchEntry":
        """Build an entry from its snapshot form.

        Raises ``ValueError``/``KeyError``/``TypeError`` on malformed input;
        the snapshot loader decides what to do with those.
        """
        kind = EntryKind(data["type"])
        entry_id = data["id"]
        page_id = data["pageId"]
        if not isinstance(entry_id, str) or not isinstance(page_id, str):
            raise TypeError("entry id and pageId must be strings")
        tags = data.get("tags") or []
        return cls(
            kind=kind,
            id=entry_id,
            title=str(data.get("title", entry_id)),
            page_id=page_id,
            page_name=str(data.get("pageName", page_id)),
            last_modified=int(data.get("lastModified", 0)),
            full_content=data.get("fullContent"),
            tags=[str(t) for t in tags] if isinstance(tags, list) else [],
        )
