"""Extension registration and targeted hook dispatch.

Every loaded extension module is registered with pluggy under its
identifier, so lifecycle hooks can be fired for exactly one extension
through a subset hook caller.
"""

from __future__ import annotations

import inspect
import logging
from types import ModuleType
from typing import Any

import pluggy

from muloader.plugins.hookspecs import PROJECT_NAME, MuLoaderHookSpec

logger = logging.getLogger(__name__)

_TARGETED_HOOKS = frozenset({"activate", "deactivate"})


class ExtensionHooks:
    """Manages extension registration and lifecycle hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(MuLoaderHookSpec)

    def register_extension(self, identifier: str, module: ModuleType | object) -> bool:
        """Register an extension under *identifier*.

        Returns False when the module declares no hookimpls or an extension
        with that identifier is already registered.
        """
        if self._pm.get_plugin(identifier) is not None:
            return False
        if not self._has_hook_impls(module):
            logger.debug("Extension %s declares no lifecycle hooks", identifier)
            return False
        self._pm.register(module, name=identifier)
        logger.debug("Registered extension hooks: %s", identifier)
        return True

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register an observer plugin (receives broadcast hooks)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    def is_registered(self, identifier: str) -> bool:
        """Whether an extension is registered under *identifier*."""
        return self._pm.get_plugin(identifier) is not None

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for broadcast dispatch."""
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def fire_activate(self, identifier: str) -> bool:
        """Run *identifier*'s ``activate`` hook, then broadcast ``post_activate``."""
        if not self._fire_targeted("activate", identifier):
            return False
        self.broadcast("post_activate", identifier=identifier)
        return True

    def fire_deactivate(self, identifier: str) -> bool:
        """Run *identifier*'s ``deactivate`` hook, then broadcast ``post_deactivate``."""
        if not self._fire_targeted("deactivate", identifier):
            return False
        self.broadcast("post_deactivate", identifier=identifier)
        return True

    def broadcast(self, hook_name: str, **payload: Any) -> None:
        """Call a broadcast hook on every plugin.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        hook_fn = getattr(self._pm.hook, hook_name)
        try:
            hook_fn(**payload)
        except Exception:
            logger.warning("Hook %s failed", hook_name, exc_info=True)

    def _fire_targeted(self, hook_name: str, identifier: str) -> bool:
        """Call *hook_name* on the extension registered as *identifier* only.

        Returns True when the hook ran to completion, False when it failed or
        no extension is registered under *identifier*.
        """
        if hook_name not in _TARGETED_HOOKS:
            raise ValueError(f"Not a per-extension hook: {hook_name!r}")
        target = self._pm.get_plugin(identifier)
        if target is None:
            logger.debug("No %s hook registered for %s", hook_name, identifier)
            return False
        others = [p for p in self._pm.get_plugins() if p is not target]
        caller = self._pm.subset_hook_caller(hook_name, remove_plugins=others)
        try:
            caller(identifier=identifier)
        except Exception:
            logger.warning(
                "Extension %s failed in its %s hook",
                identifier,
                hook_name,
                exc_info=True,
            )
            return False
        return True

    @staticmethod
    def _has_hook_impls(obj: object) -> bool:
        """Check whether *obj* has any members decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("muloader")`` sets a ``muloader_impl``
        attribute on decorated functions.
        """
        for name, member in inspect.getmembers(obj):
            if name.startswith("_"):
                continue
            if callable(member) and getattr(member, f"{PROJECT_NAME}_impl", None):
                return True
        return False
