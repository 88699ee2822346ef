"""Hierarchical reference matching.

A node URN is a descendant of a prefix URN at depth ``L`` when the node
starts with the prefix and the rest of it is exactly ``L`` components,
each introduced by one separator (``:`` or ``.``)::

    prefix  urn:cts:ns:work:1
    node    urn:cts:ns:work:1.2        depth 1
    node    urn:cts:ns:work:1.2.a      depth 2
    node    urn:cts:ns:work:12         no match (no separator after prefix)

Component characters are ``0-9`` and ``a-z``. In ``compat`` mode a
literal ``|`` is accepted as well, which is what the character class
``[0-9|a-z]`` of the legacy service matched; ``strict`` mode rejects it.

Resolution precedence for a query against a work is: exact URN equality,
then depth 1, 2, 3, 4. The first rule with any hit wins.
"""
from __future__ import annotations

import re
import string
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from citeserve.types import MatchMode

MAX_DEPTH = 4
SEPARATORS = frozenset(":.")

_SEPARATOR_RE = re.compile(r"[:.]")
_STRICT_CHARS = frozenset(string.digits + string.ascii_lowercase)
_COMPAT_CHARS = _STRICT_CHARS | {"|"}


def component_chars(mode: MatchMode) -> frozenset[str]:
    if mode == "strict":
        return _STRICT_CHARS
    if mode == "compat":
        return _COMPAT_CHARS
    raise ValueError(f"Unknown match mode: {mode!r}")


def descendant_components(
    node_urn: str,
    prefix_urn: str,
    mode: MatchMode = "compat",
) -> list[str] | None:
    """Components of ``node_urn`` below ``prefix_urn``, or None.

    None means ``node_urn`` is not a well-formed descendant: it does not
    start with the prefix, the remainder does not open with a separator,
    two separators are adjacent, the remainder ends in a separator, or a
    component holds a character outside the allowed set.
    """
    if not node_urn.startswith(prefix_urn):
        return None
    remainder = node_urn[len(prefix_urn):]
    if not remainder or remainder[0] not in SEPARATORS:
        return None
    allowed = component_chars(mode)
    components = _SEPARATOR_RE.split(remainder[1:])
    for comp in components:
        if not comp or any(ch not in allowed for ch in comp):
            return None
    return components


def contains_at_level(
    node_urn: str,
    prefix_urn: str,
    level: int,
    mode: MatchMode = "compat",
) -> bool:
    """True if ``node_urn`` sits exactly ``level`` components below ``prefix_urn``."""
    if level < 1:
        raise ValueError(f"level must be >= 1, got {level}")
    components = descendant_components(node_urn, prefix_urn, mode)
    return components is not None and len(components) == level


def level_indices(
    urns: Sequence[str],
    prefix_urn: str,
    level: int,
    mode: MatchMode = "compat",
) -> list[int]:
    """Indices of every URN matching ``prefix_urn`` at ``level``, ascending."""
    return [
        i for i, urn in enumerate(urns)
        if contains_at_level(urn, prefix_urn, level, mode)
    ]


def match_depth(
    urns: Sequence[str],
    prefix_urn: str,
    mode: MatchMode = "compat",
    *,
    max_depth: int = MAX_DEPTH,
) -> int | None:
    """Shallowest depth (1..max_depth) at which any URN descends from the prefix."""
    for level in range(1, max_depth + 1):
        if any(contains_at_level(urn, prefix_urn, level, mode) for urn in urns):
            return level
    return None


def level_contains(
    urns: Sequence[str],
    prefix_urn: str,
    mode: MatchMode = "compat",
) -> bool:
    """True if any URN descends from ``prefix_urn`` at depth 1..4."""
    return match_depth(urns, prefix_urn, mode) is not None


@dataclass(frozen=True, slots=True)
class Match:
    """Outcome of classifying a query against a node sequence.

    ``depth`` is 0 for an exact match. ``indices`` are ascending positions
    of the matched nodes (a single index for an exact match).
    """

    kind: Literal["exact", "level"]
    depth: int
    indices: tuple[int, ...]


def classify(
    urns: Sequence[str],
    query: str,
    mode: MatchMode = "compat",
) -> Match | None:
    """Resolve ``query`` by precedence: exact, then depth 1..4. None if nothing hits."""
    exact = [i for i, urn in enumerate(urns) if urn == query]
    if exact:
        return Match(kind="exact", depth=0, indices=(exact[0],))
    depth = match_depth(urns, query, mode)
    if depth is None:
        return None
    return Match(kind="level", depth=depth, indices=tuple(level_indices(urns, query, depth, mode)))
