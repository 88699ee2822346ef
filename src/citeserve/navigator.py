"""Sequential navigation and passage lookup over a Work.

Every returned node carries the URNs of its neighbors in the *full* work,
computed from its own absolute position: a node returned as part of a
depth match or a range still points at whatever precedes and follows it
in reading order, even when that neighbor is outside the matched set.
"""
from __future__ import annotations

from citeserve.errors import NoMatchingNodeError
from citeserve.matcher import classify
from citeserve.ranges import resolve_range
from citeserve.types import MatchMode, ResolvedNode, Work
from citeserve.urn import is_range


def annotate(work: Work, index: int) -> ResolvedNode:
    """The node at ``index`` with its absolute previous/next URNs."""
    node = work.nodes[index]
    previous = work.nodes[index - 1].urn if index > 0 else None
    following = work.nodes[index + 1].urn if index + 1 < len(work) else None
    return ResolvedNode(
        urn=node.urn,
        text=node.text,
        previous=previous,
        next=following,
        sequence=node.sequence,
    )


def _require_nodes(work: Work) -> None:
    if not work.nodes:
        raise NoMatchingNodeError(f"Work {work.work_urn} has no nodes")


def _exact_index(work: Work, urn: str) -> int:
    index = work.index_of(urn)
    if index is None:
        raise NoMatchingNodeError(f"Could not find node to {urn} in source.")
    return index


def first_node(work: Work) -> ResolvedNode:
    _require_nodes(work)
    return annotate(work, 0)


def last_node(work: Work) -> ResolvedNode:
    _require_nodes(work)
    return annotate(work, len(work) - 1)


def previous_node(work: Work, urn: str) -> list[ResolvedNode]:
    """The node before ``urn``; empty when ``urn`` is the first node."""
    index = _exact_index(work, urn)
    if index == 0:
        return []
    return [annotate(work, index - 1)]


def next_node(work: Work, urn: str) -> list[ResolvedNode]:
    """The node after ``urn``; empty when ``urn`` is the last node."""
    index = _exact_index(work, urn)
    if index == len(work) - 1:
        return []
    return [annotate(work, index + 1)]


def passage_indices(work: Work, query: str, mode: MatchMode = "compat") -> list[int]:
    """Indices addressed by ``query``: exact, depth 1..4, then range.

    Raises NoMatchingNodeError when no rule applies, and InvalidRangeError
    for a range whose boundaries resolve backwards.
    """
    match = classify(work.urns, query, mode)
    if match is not None:
        return list(match.indices)
    if is_range(query):
        start, end = resolve_range(work, query, mode)
        return list(range(start, end + 1))
    raise NoMatchingNodeError(f"Could not find node to {query} in source.")


def passage(work: Work, query: str, mode: MatchMode = "compat") -> list[ResolvedNode]:
    """Every node ``query`` addresses, each annotated with its neighbors."""
    return [annotate(work, i) for i in passage_indices(work, query, mode)]


def passage_urns(work: Work, query: str, mode: MatchMode = "compat") -> list[str]:
    """URNs of every node ``query`` addresses, in reading order."""
    return [work.nodes[i].urn for i in passage_indices(work, query, mode)]
