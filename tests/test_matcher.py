"""Tests for citeserve.matcher module."""
from __future__ import annotations

import pytest

from citeserve.matcher import (
    Match,
    classify,
    component_chars,
    contains_at_level,
    descendant_components,
    level_contains,
    level_indices,
    match_depth,
)

W = "urn:cts:ns:work"


class TestDescendantComponents:
    def test_components(self) -> None:
        assert descendant_components(f"{W}:1.2.a", f"{W}:1") == ["2", "a"]

    def test_needs_separator_after_prefix(self) -> None:
        assert descendant_components(f"{W}:12", f"{W}:1") is None

    def test_identical_is_not_descendant(self) -> None:
        assert descendant_components(f"{W}:1", f"{W}:1") is None

    def test_empty_component(self) -> None:
        assert descendant_components(f"{W}:1..2", f"{W}:1") is None
        assert descendant_components(f"{W}:1.2.", f"{W}:1") is None

    def test_uppercase_rejected(self) -> None:
        assert descendant_components(f"{W}:1.A", f"{W}:1") is None

    def test_pipe_depends_on_mode(self) -> None:
        assert descendant_components(f"{W}:1.a|b", f"{W}:1", "compat") == ["a|b"]
        assert descendant_components(f"{W}:1.a|b", f"{W}:1", "strict") is None

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError, match="Unknown match mode"):
            component_chars("loose")  # type: ignore[arg-type]


class TestContainsAtLevel:
    def test_levels(self) -> None:
        assert contains_at_level(f"{W}:1.2", f"{W}:1", 1)
        assert not contains_at_level(f"{W}:1.2", f"{W}:1", 2)
        assert contains_at_level(f"{W}:1.2.3", f"{W}:1", 2)

    def test_stem_prefix_uses_colon(self) -> None:
        assert contains_at_level(f"{W}:1", W, 1)
        assert contains_at_level(f"{W}:1.1", W, 2)

    def test_level_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            contains_at_level(f"{W}:1.2", f"{W}:1", 0)


class TestDepth:
    URNS = [f"{W}:1.1.1", f"{W}:1.1.2", f"{W}:1.2.1", f"{W}:2.1.1"]

    def test_shallowest_depth_wins(self) -> None:
        assert match_depth(self.URNS, f"{W}:1") == 2
        assert match_depth(self.URNS, f"{W}:1.1") == 1
        assert match_depth(self.URNS, W) == 3

    def test_no_depth(self) -> None:
        assert match_depth(self.URNS, f"{W}:3") is None
        assert not level_contains(self.URNS, f"{W}:3")

    def test_level_indices_ascending(self) -> None:
        assert level_indices(self.URNS, f"{W}:1", 2) == [0, 1, 2]

    def test_max_depth(self) -> None:
        deep = [f"{W}:1.1.1.1.1"]
        assert match_depth(deep, W) is None
        assert match_depth(deep, f"{W}:1") == 4


class TestClassify:
    def test_exact_first(self) -> None:
        urns = [f"{W}:1", f"{W}:1.1", f"{W}:1.2"]
        assert classify(urns, f"{W}:1") == Match(kind="exact", depth=0, indices=(0,))

    def test_level_match(self) -> None:
        urns = [f"{W}:1.1", f"{W}:1.2", f"{W}:2.1"]
        assert classify(urns, f"{W}:1") == Match(kind="level", depth=1, indices=(0, 1))

    def test_prefix_twelve_does_not_match_one(self) -> None:
        urns = [f"{W}:12.1", f"{W}:1.1"]
        match = classify(urns, f"{W}:1")
        assert match is not None
        assert match.indices == (1,)

    def test_nothing(self) -> None:
        assert classify([f"{W}:1.1"], f"{W}:9") is None
