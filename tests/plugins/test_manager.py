"""Tests for ExtensionHooks: registration and targeted dispatch."""

from __future__ import annotations

import types
from typing import Any

import pytest

from muloader.plugins.hookspecs import hookimpl
from muloader.plugins.manager import ExtensionHooks


def _extension(name: str, *, fail: bool = False) -> types.ModuleType:
    """Build an in-memory extension module recording its own hook calls."""
    module = types.ModuleType(name)
    module.calls = []  # type: ignore[attr-defined]

    @hookimpl
    def activate(identifier: str) -> None:
        if fail:
            raise RuntimeError("activation exploded")
        module.calls.append(("activate", identifier))  # type: ignore[attr-defined]

    @hookimpl
    def deactivate(identifier: str) -> None:
        module.calls.append(("deactivate", identifier))  # type: ignore[attr-defined]

    module.activate = activate  # type: ignore[attr-defined]
    module.deactivate = deactivate  # type: ignore[attr-defined]
    return module


class TestRegistration:
    @pytest.mark.parametrize(
        "hook_name",
        ["activate", "deactivate", "extension_loaded", "post_activate", "post_deactivate"],
    )
    def test_all_hookspecs_registered(self, hook_name: str) -> None:
        assert hasattr(ExtensionHooks().hook, hook_name)

    def test_register_extension(self) -> None:
        hooks = ExtensionHooks()
        assert hooks.register_extension("a/a.py", _extension("a")) is True
        assert hooks.is_registered("a/a.py")
        assert "a/a.py" in hooks.list_plugin_names()

    def test_duplicate_identifier_ignored(self) -> None:
        hooks = ExtensionHooks()
        hooks.register_extension("a/a.py", _extension("a"))
        assert hooks.register_extension("a/a.py", _extension("a2")) is False

    def test_module_without_hooks_not_registered(self) -> None:
        hooks = ExtensionHooks()
        assert hooks.register_extension("p/p.py", types.ModuleType("p")) is False
        assert not hooks.is_registered("p/p.py")


class TestTargetedDispatch:
    def test_activate_only_target(self) -> None:
        hooks = ExtensionHooks()
        a, b = _extension("a"), _extension("b")
        hooks.register_extension("a/a.py", a)
        hooks.register_extension("b/b.py", b)

        hooks.fire_activate("a/a.py")

        assert a.calls == [("activate", "a/a.py")]
        assert b.calls == []

    def test_deactivate_broadcasts_post_hook(self, recorder: Any) -> None:
        hooks = ExtensionHooks()
        hooks.register_plugin(recorder, name="recorder")
        ext = _extension("a")
        hooks.register_extension("a/a.py", ext)

        assert hooks.fire_deactivate("a/a.py") is True

        assert ext.calls == [("deactivate", "a/a.py")]
        assert recorder.calls == [("deactivate", "a/a.py")]

    def test_failing_hook_is_warning(
        self, recorder: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        hooks = ExtensionHooks()
        hooks.register_plugin(recorder, name="recorder")
        hooks.register_extension("bad/bad.py", _extension("bad", fail=True))

        with caplog.at_level("WARNING", logger="muloader"):
            assert hooks.fire_activate("bad/bad.py") is False

        assert "failed in its activate hook" in caplog.text
        assert recorder.calls == []

    def test_unregistered_identifier_does_not_broadcast(self, recorder: Any) -> None:
        hooks = ExtensionHooks()
        hooks.register_plugin(recorder, name="recorder")

        assert hooks.fire_activate("plain/plain.py") is False
        assert hooks.fire_deactivate("plain/plain.py") is False
        assert recorder.calls == []

    def test_broadcast_hook_cannot_be_targeted(self) -> None:
        hooks = ExtensionHooks()
        hooks.register_extension("a/a.py", _extension("a"))
        with pytest.raises(ValueError, match="post_activate"):
            hooks._fire_targeted("post_activate", "a/a.py")

    def test_unregister(self, recorder: Any) -> None:
        hooks = ExtensionHooks()
        hooks.register_plugin(recorder, name="recorder")
        hooks.unregister(recorder)
        assert "recorder" not in hooks.list_plugin_names()
