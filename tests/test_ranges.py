"""Tests for citeserve.ranges module."""
from __future__ import annotations

import pytest

from citeserve.errors import InvalidRangeError
from citeserve.ranges import end_index, range_nodes, resolve_range, start_index
from citeserve.sequencer import build_work
from citeserve.types import TextRecord, Work

W = "urn:cts:ns:work"


def _work(*refs: str) -> Work:
    return build_work([TextRecord(f"{W}:{r}", f"text {r}") for r in refs], W)


WORK = _work("1.1", "1.2", "1.3", "2.1", "2.2", "3.1")


class TestBoundaries:
    def test_coarse_start_takes_first(self) -> None:
        assert start_index(WORK, f"{W}:2") == 3

    def test_coarse_end_takes_last(self) -> None:
        assert end_index(WORK, f"{W}:1") == 2

    def test_missing_boundaries_fall_back(self) -> None:
        assert start_index(WORK, f"{W}:9") == 0
        assert end_index(WORK, f"{W}:9") == 5


class TestResolveRange:
    def test_fine_range(self) -> None:
        nodes = range_nodes(WORK, f"{W}:1.2-2.1")
        assert [n.urn for n in nodes] == [f"{W}:1.2", f"{W}:1.3", f"{W}:2.1"]

    def test_coarse_range(self) -> None:
        assert resolve_range(WORK, f"{W}:1-2") == (0, 4)

    def test_length_matches_sequence_span(self) -> None:
        nodes = range_nodes(WORK, f"{W}:1.3-3.1")
        assert len(nodes) == nodes[-1].sequence - nodes[0].sequence + 1

    def test_open_ends(self) -> None:
        assert resolve_range(WORK, f"{W}:2-") == (3, 5)
        assert resolve_range(WORK, f"{W}:-1.2") == (0, 1)

    def test_single_node_range(self) -> None:
        assert resolve_range(WORK, f"{W}:1.2-1.2") == (1, 1)

    def test_reversed(self) -> None:
        with pytest.raises(InvalidRangeError, match="reversed"):
            resolve_range(WORK, f"{W}:2.1-1.1")

    def test_not_a_range(self) -> None:
        with pytest.raises(InvalidRangeError):
            resolve_range(WORK, f"{W}:1.1")

    def test_empty_work(self) -> None:
        with pytest.raises(InvalidRangeError, match="empty work"):
            resolve_range(_work(), f"{W}:1-2")

    def test_double_hyphen(self) -> None:
        with pytest.raises(InvalidRangeError):
            resolve_range(WORK, f"{W}:1-2-3")
