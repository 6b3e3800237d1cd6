"""Forward / reverse WikiLink graph with per-page replace semantics.

``forward`` maps a page id to the ordered, de-duplicated targets it links
to; ``reverse`` is its transpose. Every update replaces a page's outgoing
edges wholesale, so ``T in forward[P]`` holds exactly when
``P in reverse[T]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    import networkx as nx


@dataclass
class LinkGraph:
    forward: dict[str, list[str]] = field(default_factory=dict)
    reverse: dict[str, set[str]] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def clear(self) -> None:
        self.forward.clear()
        self.reverse.clear()

    def update(self, page_id: str, new_targets: Iterable[str]) -> tuple[set[str], set[str]]:
        """Replace the outgoing edges of *page_id*; return ``(added, removed)``."""
        ordered = list(dict.fromkeys(new_targets))
        new_set = set(ordered)
        old_set = set(self.forward.get(page_id, ()))

        added = new_set - old_set
        removed = old_set - new_set

        self.forward[page_id] = ordered

        for target in removed:
            sources = self.reverse.get(target)
            if sources is None:
                continue
            sources.discard(page_id)
            if not sources:
                del self.reverse[target]

        for target in added:
            self.reverse.setdefault(target, set()).add(page_id)

        return added, removed

    def load(self, forward: dict[str, list[str]], reverse: dict[str, list[str]] | None = None) -> bool:
        """Replace the whole graph from adjacency mappings.

        ``reverse`` is re-derived from ``forward``; it is only used on its own
        when ``forward`` is empty. Returns ``False`` when the given
        ``reverse`` disagreed with ``forward``.
        """
        reverse = reverse or {}
        if not forward and reverse:
            forward = {}
            for target, sources in reverse.items():
                for src in sorted(sources):
                    forward.setdefault(src, []).append(target)

        self.clear()
        for page_id, targets in forward.items():
            self.update(page_id, targets)

        given = {target: set(sources) for target, sources in reverse.items() if sources}
        return not given or given == self.reverse

    def remove_page(self, page_id: str) -> set[str]:
        """Drop every outgoing edge of *page_id*; return the targets it had."""
        _, removed = self.update(page_id, [])
        self.forward.pop(page_id, None)
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def backlinks(self, target: str) -> list[str]:
        return sorted(self.reverse.get(target, ()), key=str.lower)

    def affected_by_rename(self, old_page_id: str) -> list[str]:
        """Pages whose outgoing links include *old_page_id*."""
        return self.backlinks(old_page_id)

    def targets(self) -> list[str]:
        """Every id that is linked to by at least one page."""
        return list(self.reverse)

    def has_referrers(self, target: str) -> bool:
        return bool(self.reverse.get(target))

    def edges(self) -> list[tuple[str, str]]:
        """Return ``(source, target)`` pairs in forward order."""
        return [(src, dst) for src, targets in self.forward.items() for dst in targets]

    def check_symmetry(self) -> bool:
        forward_pairs = {(src, dst) for src, targets in self.forward.items() for dst in targets}
        reverse_pairs = {(src, dst) for dst, sources in self.reverse.items() for src in sources}
        return forward_pairs == reverse_pairs and all(self.reverse.values())

    # ------------------------------------------------------------------
    # networkx views
    # ------------------------------------------------------------------

    def to_digraph(self) -> "nx.DiGraph":
        import networkx as nx

        G: nx.DiGraph = nx.DiGraph()
        G.add_nodes_from(self.forward)
        G.add_edges_from(self.edges())
        return G

    def local_graph(self, center: str, depth: int = 1) -> "nx.DiGraph":
        """Sub-graph of pages within *depth* undirected hops of *center*.

        Links are followed in both directions so that pages referring to
        *center* are part of its neighbourhood.
        """
        import networkx as nx

        G = self.to_digraph()
        if center not in G:
            G.add_node(center)
        return nx.ego_graph(G, center, radius=max(1, int(depth)), undirected=True)
