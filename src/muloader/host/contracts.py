"""Collaborator contracts consumed by the loader.

Hosts satisfy these structurally; nothing needs to subclass them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from muloader.host.hooks import HookRegistry
from muloader.infrastructure.loader import FileExtensionLoader
from muloader.plugins.manager import ExtensionHooks


@runtime_checkable
class OptionStore(Protocol):
    """Key-value persistence with a single-node / cluster-wide scope flag."""

    def read(self, key: str, *, network: bool = False) -> Any:
        """Return the stored value for *key*, or None when unset."""
        ...

    def write(self, key: str, value: Any, *, network: bool = False) -> bool:
        """Persist *value*; return True when the stored value changed."""
        ...


@runtime_checkable
class ExtensionLoader(Protocol):
    """Loads extension code. Idempotent by path within one process."""

    def load(self, identifier: str, path: Path) -> None:
        """Load the extension at *path*, registered under *identifier*."""
        ...

    def is_loaded(self, identifier: str) -> bool:
        """Whether *identifier* was loaded in this process."""
        ...


@dataclass
class RequestContext:
    """The slice of the current request the loader looks at.

    Attributes:
        form: Submitted form fields (``checked`` holds bulk selections).
        cookies: Ambient session cookies, forwarded on loopback calls.
        user_id: Acting user, or None for anonymous requests.
    """

    form: dict[str, Any] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    user_id: int | None = None

    def selected(self) -> list[str]:
        """Identifiers selected for a bulk action."""
        checked = self.form.get("checked") or []
        if isinstance(checked, str):
            return [checked]
        return [str(item) for item in checked]


@dataclass
class Host:
    """Bundle of host collaborators handed to :class:`~muloader.MuLoader`."""

    hooks: HookRegistry
    options: OptionStore
    loader: ExtensionLoader
    extensions: ExtensionHooks = field(default_factory=ExtensionHooks)
    request: RequestContext = field(default_factory=RequestContext)
    network: bool = False

    @classmethod
    def create(cls, options: OptionStore, **kwargs: Any) -> Host:
        """Host with a fresh hook registry and a file loader sharing *extensions*."""
        extensions = kwargs.pop("extensions", None) or ExtensionHooks()
        return cls(
            hooks=kwargs.pop("hooks", None) or HookRegistry(),
            options=options,
            loader=FileExtensionLoader(extensions),
            extensions=extensions,
            **kwargs,
        )

    def get_option(self, key: str, default: Any = None) -> Any:
        """Read a single-node option through its ``option_<key>`` filter."""
        value = self.options.read(key)
        if value is None:
            value = default
        return self.hooks.apply_filters(f"option_{key}", value)

    def get_network_option(self, key: str, default: Any = None) -> Any:
        """Read a cluster-wide option through its ``site_option_<key>`` filter."""
        value = self.options.read(key, network=True)
        if value is None:
            value = default
        return self.hooks.apply_filters(f"site_option_{key}", value)
