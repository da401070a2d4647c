"""Reference graph construction."""

from __future__ import annotations

from typing import Iterable, List, Tuple

from .models import ReferenceGraph, ReferenceMention, Resolution


class GraphBuilder:
    """Assembles the document reference graph in a single pass."""

    def build(self, paths: Iterable[str], mentions: Iterable[ReferenceMention]) -> ReferenceGraph:
        nodes = tuple(sorted(set(paths)))
        edges: List[Tuple[str, str]] = []
        unresolved: List[ReferenceMention] = []
        for mention in mentions:
            if mention.resolution is Resolution.RESOLVED and mention.resolved_path is not None:
                edges.append((mention.source_path, mention.resolved_path))
            else:
                unresolved.append(mention)
        return ReferenceGraph(nodes=nodes, edges=tuple(edges), unresolved=tuple(unresolved))


__all__ = ["GraphBuilder"]
