"""Tests for the Active-Set View Filter."""

from __future__ import annotations

from muloader.config.models import FiltersConfig
from muloader.host.hooks import HookRegistry
from muloader.services.filters import FIRST_PRIORITY, ActiveSetFilter


_OPTIONS = {"active_option": "active_plugins", "network_active_option": "active_sitewide_plugins"}


def _filter(promoted: list[str], **config: object) -> ActiveSetFilter:
    return ActiveSetFilter(lambda: promoted, FiltersConfig(**config))


class TestExclusion:
    def test_single_node_list(self) -> None:
        view = _filter(["b/b.php"])
        assert view.filter_active(["a/a.php", "b/b.php"]) == ["a/a.php"]

    def test_cluster_wide_map(self) -> None:
        view = _filter(["b/b.php"])
        assert view.filter_network_active({"a/a.php": 100, "b/b.php": 200}) == {"a/a.php": 100}

    def test_order_preserved(self) -> None:
        view = _filter(["b.py"])
        assert view.filter_active(["c.py", "b.py", "a.py"]) == ["c.py", "a.py"]

    def test_non_list_passthrough(self) -> None:
        view = _filter(["b.py"])
        assert view.filter_active(False) is False
        assert view.filter_network_active(None) is None

    def test_reads_promoted_set_lazily(self) -> None:
        promoted: list[str] = []
        view = ActiveSetFilter(lambda: promoted)
        promoted.append("b.py")
        assert view.filter_active(["a.py", "b.py"]) == ["a.py"]


class TestCommandContext:
    def test_suppress_filtering_returns_input(self) -> None:
        view = _filter(["b.py"], suppress_filtering=True)
        assert view.filter_active(["a.py", "b.py"]) == ["a.py", "b.py"]
        assert view.filter_network_active({"b.py": 1}) == {"b.py": 1}

    def test_load_all_is_union(self) -> None:
        view = _filter(["b.py", "c.py"], load_all=True)
        assert view.filter_active(["a.py", "b.py"]) == ["a.py", "b.py", "c.py"]

    def test_load_all_map(self) -> None:
        view = _filter(["c.py"], load_all=True)
        assert view.filter_network_active({"a.py": 5}) == {"a.py": 5, "c.py": 0}


class TestInclude:
    def test_include_adds_without_duplicates(self) -> None:
        view = _filter([])
        assert view.include_active(["a.py"], ["b.py", "a.py"]) == ["a.py", "b.py"]

    def test_include_map(self) -> None:
        view = _filter([])
        assert view.include_active({"a.py": 3}, ["b.py"]) == {"a.py": 3, "b.py": 0}

    def test_include_runs_after_exclusion(self) -> None:
        hooks = HookRegistry()
        view = _filter(["b.py"], include=["b.py"])
        view.register(hooks, **_OPTIONS)
        assert hooks.apply_filters("option_active_plugins", ["a.py", "b.py"]) == ["a.py", "b.py"]

    def test_include_not_registered_by_default(self) -> None:
        hooks = HookRegistry()
        view = _filter(["b.py"])
        view.register(hooks, **_OPTIONS)
        assert not hooks.has_filter("option_active_plugins", view.include_active)


class TestRegistration:
    def test_runs_before_default_priority_filters(self) -> None:
        hooks = HookRegistry()
        seen: list[list[str]] = []
        hooks.add_filter("option_active_plugins", lambda v: seen.append(list(v)) or v, -1000)
        view = _filter(["b.py"])
        view.register(hooks, **_OPTIONS)
        hooks.apply_filters("option_active_plugins", ["a.py", "b.py"])
        assert seen == [["a.py"]]
        assert FIRST_PRIORITY < -1000

    def test_both_read_paths(self) -> None:
        hooks = HookRegistry()
        view = _filter(["b.py"])
        view.register(hooks, **_OPTIONS)
        assert hooks.apply_filters("site_option_active_sitewide_plugins", {"b.py": 1}) == {}
