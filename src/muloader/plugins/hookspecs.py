"""Pluggy hook specifications for extension lifecycle events.

``activate`` and ``deactivate`` are fired for a single extension only.
``extension_loaded``, ``post_activate`` and ``post_deactivate`` are
broadcast to every registered plugin.
"""

from __future__ import annotations

import pluggy

PROJECT_NAME = "muloader"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class MuLoaderHookSpec:
    """Hook specifications for promoted extensions and observers."""

    @hookspec
    def activate(self, identifier: str) -> None:
        """Called once when the extension is promoted for the first time."""

    @hookspec
    def deactivate(self, identifier: str) -> None:
        """Called once, from a loopback request, after the extension is demoted."""

    @hookspec
    def extension_loaded(self, identifier: str, path: str) -> None:
        """Called after an extension's code has been loaded."""

    @hookspec
    def post_activate(self, identifier: str) -> None:
        """Called after an extension's activation hook ran."""

    @hookspec
    def post_deactivate(self, identifier: str) -> None:
        """Called after an extension's deactivation hook ran."""
