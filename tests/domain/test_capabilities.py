"""Tests for the capability policy."""

from __future__ import annotations

import pytest

from muloader.domain.capabilities import Operation, operation_for, policy


class TestOperationFor:
    @pytest.mark.parametrize(
        ("capability", "expected"),
        [
            ("activate_plugin", Operation.ACTIVATE),
            ("deactivate_plugin", Operation.DEACTIVATE),
            ("delete_plugin", Operation.DELETE),
            ("delete_plugins", Operation.BULK_DELETE),
        ],
    )
    def test_gated_capabilities(self, capability: str, expected: Operation) -> None:
        assert operation_for(capability) is expected

    def test_ungated_capability(self) -> None:
        assert operation_for("edit_posts") is None


class TestPolicy:
    def test_single_target_promoted(self) -> None:
        assert policy(Operation.DEACTIVATE, ["b/b.py"], ["b/b.py"]) is True

    def test_single_target_not_promoted(self) -> None:
        assert policy(Operation.ACTIVATE, ["a/a.py"], ["b/b.py"]) is False

    def test_single_target_only_first_counts(self) -> None:
        assert policy(Operation.DELETE, ["a/a.py", "b/b.py"], ["b/b.py"]) is False

    def test_no_target(self) -> None:
        assert policy(Operation.DELETE, [], ["b/b.py"]) is False

    def test_bulk_delete_any_intersection(self) -> None:
        assert policy(Operation.BULK_DELETE, ["a/a.py", "b/b.py"], ["b/b.py"]) is True

    def test_bulk_delete_no_intersection(self) -> None:
        assert policy(Operation.BULK_DELETE, ["a/a.py"], ["b/b.py"]) is False
