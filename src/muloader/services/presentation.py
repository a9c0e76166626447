"""Admin list adjustments for promoted extensions.

Cosmetic only: the gate in :mod:`muloader.services.permissions` is what
actually prevents toggling.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from muloader.host.hooks import HookRegistry

BADGE_KEY = "mu_loader"
BADGE_HTML = '<span class="mu-loader-badge">Must-Use</span>'
REMOVED_ACTIONS = ("activate", "deactivate", "delete")

ADMIN_CSS = """\
.plugins tr.mu-loader td,
.plugins tr.mu-loader th { background-color: #f0f6fc; }
.plugins tr.mu-loader th.check-column { border-left: 4px solid #72aee6; }
.mu-loader-badge { color: #50575e; font-weight: 600; }
"""


class Presentation:
    """Action links, row classes and styles for the extensions screen."""

    def __init__(self, promoted: Callable[[], Sequence[str]]) -> None:
        self._promoted = promoted

    def action_links(self, actions: dict[str, str], identifier: str) -> dict[str, str]:
        """Replace toggle/delete links of a promoted extension with a badge."""
        if identifier not in self._promoted():
            return actions
        kept = {k: v for k, v in actions.items() if k not in REMOVED_ACTIONS}
        return {BADGE_KEY: BADGE_HTML, **kept}

    def row_class(self, classes: list[str], identifier: str) -> list[str]:
        """Mark promoted rows as active."""
        if identifier not in self._promoted():
            return classes
        extra = [c for c in ("active", "mu-loader") if c not in classes]
        return [*classes, *extra]

    def admin_styles(self, write: Callable[[str], object]) -> None:
        """``admin_head`` action: emit the stylesheet."""
        write(f"<style>\n{ADMIN_CSS}</style>\n")

    def register(self, hooks: HookRegistry) -> None:
        hooks.add_filter("plugin_action_links", self.action_links)
        hooks.add_filter("network_admin_plugin_action_links", self.action_links)
        hooks.add_filter("plugin_row_class", self.row_class)
        hooks.add_action("admin_head", self.admin_styles)
