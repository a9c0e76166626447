"""Tests for transition rules."""

from __future__ import annotations

import pytest

from muloader.domain.transitions import (
    Transition,
    classify,
    demoted,
    needs_activation,
    needs_deactivation,
    plan,
)


class TestNeedsActivation:
    @pytest.mark.parametrize(
        ("cached", "native", "expected"),
        [
            ([], [], True),
            (["x.py"], [], False),
            ([], ["x.py"], False),
            (["x.py"], ["x.py"], False),
        ],
    )
    def test_truth_table(self, cached: list[str], native: list[str], expected: bool) -> None:
        assert needs_activation("x.py", cached, native) is expected


class TestNeedsDeactivation:
    def test_cached_and_not_native(self) -> None:
        assert needs_deactivation("x.py", ["x.py"], []) is True

    def test_native_activation_wins(self) -> None:
        assert needs_deactivation("x.py", ["x.py"], ["x.py"]) is False

    def test_never_cached(self) -> None:
        assert needs_deactivation("x.py", [], []) is False


class TestDemoted:
    def test_cache_minus_promoted_in_cache_order(self) -> None:
        assert demoted(["c.py", "a.py", "b.py"], ["a.py"]) == ["c.py", "b.py"]

    def test_duplicates_in_cache_collapse(self) -> None:
        assert demoted(["a.py", "a.py"], []) == ["a.py"]

    def test_nothing_demoted(self) -> None:
        assert demoted(["a.py"], ["a.py", "b.py"]) == []


class TestClassify:
    def test_new_promotion(self) -> None:
        assert classify("a.py", promoted=["a.py"], cached=[], native=[]) is Transition.NEEDS_ACTIVATION

    def test_already_cached_is_stable(self) -> None:
        assert classify("a.py", promoted=["a.py"], cached=["a.py"], native=[]) is Transition.STABLE

    def test_demotion(self) -> None:
        assert classify("a.py", promoted=[], cached=["a.py"], native=[]) is Transition.NEEDS_DEACTIVATION

    def test_demoted_but_native(self) -> None:
        assert classify("a.py", promoted=[], cached=["a.py"], native=["a.py"]) is Transition.STABLE

    def test_plan_covers_promoted_and_cached(self) -> None:
        result = plan(promoted=["a.py", "b.py"], cached=["b.py", "c.py"], native=[])
        assert result == {
            "a.py": Transition.NEEDS_ACTIVATION,
            "b.py": Transition.STABLE,
            "c.py": Transition.NEEDS_DEACTIVATION,
        }
        assert list(result) == ["a.py", "b.py", "c.py"]
