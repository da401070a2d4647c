"""Tests for doclint.graph."""

from __future__ import annotations

import pytest

from doclint.graph import GraphBuilder
from doclint.models import ReferenceGraph, ReferenceMention, Resolution


def _mention(source: str, target: str, resolved: str | None, resolution: Resolution) -> ReferenceMention:
    return ReferenceMention(
        source_path=source,
        raw_target=target,
        line=1,
        rule="related",
        resolution=resolution,
        resolved_path=resolved,
    )


def test_build_creates_edges_only_for_resolved_mentions() -> None:
    paths = ["b.md", "a.md", "c.md"]
    mentions = [
        _mention("a.md", "b.md", "b.md", Resolution.RESOLVED),
        _mention("a.md", "b.md", "b.md", Resolution.RESOLVED),
        _mention("a.md", "gone.md", None, Resolution.DANGLING),
        _mention("b.md", "x.md", None, Resolution.AMBIGUOUS),
    ]

    graph = GraphBuilder().build(paths, mentions)

    assert graph.nodes == ("a.md", "b.md", "c.md")
    assert graph.edges == (("a.md", "b.md"), ("a.md", "b.md"))
    assert [m.raw_target for m in graph.unresolved] == ["gone.md", "x.md"]
    assert graph.in_degree("b.md") == 2
    assert graph.in_degree("c.md") == 0
    assert graph.inbound("b.md") == ("a.md",)
    assert graph.outbound("a.md") == ("b.md",)


def test_self_references_do_not_count_as_inbound() -> None:
    graph = GraphBuilder().build(
        ["a.md"], [_mention("a.md", "a.md", "a.md", Resolution.RESOLVED)]
    )

    assert graph.edges == (("a.md", "a.md"),)
    assert graph.in_degree("a.md") == 0


def test_cycles_are_allowed() -> None:
    graph = GraphBuilder().build(
        ["a.md", "b.md"],
        [
            _mention("a.md", "b.md", "b.md", Resolution.RESOLVED),
            _mention("b.md", "a.md", "a.md", Resolution.RESOLVED),
        ],
    )

    assert graph.in_degree("a.md") == 1
    assert graph.in_degree("b.md") == 1


def test_graph_rejects_edges_to_unknown_nodes() -> None:
    with pytest.raises(ValueError):
        ReferenceGraph(nodes=("a.md",), edges=(("a.md", "ghost.md"),))


def test_graph_is_immutable() -> None:
    graph = GraphBuilder().build(["a.md"], [])

    with pytest.raises(AttributeError):
        graph.nodes = ("b.md",)  # type: ignore[misc]
