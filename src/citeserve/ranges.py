"""Range reference resolution.

``stem:start-end`` resolves to an inclusive slice of a Work. Each boundary
is looked up by the usual precedence (exact, then depth 1..4). A coarse
start boundary takes the *first* node of its subtree and a coarse end
boundary the *last*, so ``1-2`` covers all of book 1 and all of book 2.
A boundary that matches nothing falls back to the start or end of the work.
"""
from __future__ import annotations

from citeserve.errors import InvalidRangeError
from citeserve.matcher import classify
from citeserve.types import MatchMode, TextNode, Work
from citeserve.urn import split_cts, split_range


def start_index(work: Work, boundary_urn: str, mode: MatchMode = "compat") -> int:
    """Lowest index matching ``boundary_urn``, or 0."""
    match = classify(work.urns, boundary_urn, mode)
    if match is None:
        return 0
    return match.indices[0]


def end_index(work: Work, boundary_urn: str, mode: MatchMode = "compat") -> int:
    """Highest index matching ``boundary_urn``, or the last index."""
    match = classify(work.urns, boundary_urn, mode)
    if match is None:
        return len(work) - 1
    return match.indices[-1]


def resolve_range(work: Work, query: str, mode: MatchMode = "compat") -> tuple[int, int]:
    """Zero-based inclusive ``(start, end)`` for a range citation.

    Raises InvalidRangeError for an empty work, a malformed range, or
    boundaries that resolve backwards.
    """
    ctsurn = split_cts(query)
    if ctsurn.reference is None or not ctsurn.is_range:
        raise InvalidRangeError(f"{query} is not a range citation")
    if not work.nodes:
        raise InvalidRangeError(f"Cannot resolve {query} against an empty work")
    start_ref, end_ref = split_range(ctsurn.reference)
    start = start_index(work, f"{ctsurn.stem}:{start_ref}", mode)
    end = end_index(work, f"{ctsurn.stem}:{end_ref}", mode)
    if start > end:
        raise InvalidRangeError(
            f"Range {query} is reversed: {work.nodes[start].urn} comes after "
            f"{work.nodes[end].urn}"
        )
    return start, end


def range_nodes(work: Work, query: str, mode: MatchMode = "compat") -> tuple[TextNode, ...]:
    start, end = resolve_range(work, query, mode)
    return work.nodes[start:end + 1]
