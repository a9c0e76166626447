"""File-based extension loader.

Each extension is a single Python file under the extensions root. Loading
executes the module once per process, registers its hookimpls under the
extension's identifier, and broadcasts ``extension_loaded``.

INVARIANT: A broken extension is a warning, never an error. The request
carries on without it.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import re
import sys
from pathlib import Path
from types import ModuleType

from muloader.plugins.manager import ExtensionHooks

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^0-9A-Za-z_]")


def module_name_for(identifier: str) -> str:
    """Stable, import-safe module name for *identifier*."""
    stem = _UNSAFE.sub("_", identifier.rsplit(".", 1)[0])
    digest = hashlib.sha256(identifier.encode("utf-8")).hexdigest()[:8]
    return f"muloader_ext_{stem}_{digest}"


class FileExtensionLoader:
    """Loads extension files, idempotent by path within one process."""

    def __init__(self, hooks: ExtensionHooks) -> None:
        self._hooks = hooks
        self._modules: dict[str, ModuleType] = {}
        self._paths: dict[Path, str] = {}

    @property
    def hooks(self) -> ExtensionHooks:
        return self._hooks

    def is_loaded(self, identifier: str) -> bool:
        """Whether *identifier* was loaded in this process."""
        return identifier in self._modules

    def module(self, identifier: str) -> ModuleType | None:
        """The loaded module for *identifier*, if any."""
        return self._modules.get(identifier)

    def load(self, identifier: str, path: Path) -> None:
        """Execute *path* as a module registered under *identifier*.

        Second and later calls for the same path are no-ops.
        """
        resolved = path.resolve()
        if resolved in self._paths or identifier in self._modules:
            return

        module_name = module_name_for(identifier)
        try:
            spec = importlib.util.spec_from_file_location(module_name, resolved)
            if spec is None or spec.loader is None:
                logger.warning("Could not create module spec for %s", resolved)
                return
            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            spec.loader.exec_module(module)
        except Exception:
            logger.warning(
                "Failed to load extension %s from %s",
                identifier,
                resolved,
                exc_info=True,
            )
            # Clean up partial module registration
            sys.modules.pop(module_name, None)
            return

        self._modules[identifier] = module
        self._paths[resolved] = identifier
        self._hooks.register_extension(identifier, module)
        logger.debug("Loaded extension %s from %s", identifier, resolved)
        self._hooks.broadcast("extension_loaded", identifier=identifier, path=str(resolved))
