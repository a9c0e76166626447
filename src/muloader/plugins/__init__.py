"""Extension lifecycle hooks via pluggy.

A promoted extension declares ``activate`` / ``deactivate`` hookimpls in its
own module; the loader registers the module under its identifier.
INVARIANT: Extension hook failures are warnings, never errors.
"""

from muloader.plugins.hookspecs import hookimpl
from muloader.plugins.manager import ExtensionHooks

__all__ = ["ExtensionHooks", "hookimpl"]
