"""Active-Set View Filter.

Rewrites the host's "which extensions are active" reads so promoted
extensions never show up as independently toggled. An opt-in companion
filter adds a supplied list back for consumers that want the full
effective set; it runs after exclusion.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from muloader.config.models import FiltersConfig
from muloader.domain.identifiers import dedupe
from muloader.host.hooks import HookRegistry

logger = logging.getLogger(__name__)

# Lowest priority number: runs before every other filter on the same hook.
FIRST_PRIORITY = -(2**31)
INCLUDE_PRIORITY = FIRST_PRIORITY + 1


class ActiveSetFilter:
    """Excludes promoted identifiers from native active-list reads.

    Parameters:
        promoted: Callable returning the current promoted set.
        config: ``suppress_filtering`` returns reads unchanged; ``load_all``
            turns exclusion into a union.
    """

    def __init__(
        self,
        promoted: Callable[[], Sequence[str]],
        config: FiltersConfig | None = None,
    ) -> None:
        self._promoted = promoted
        self._config = config or FiltersConfig()
        self._include: list[str] = list(self._config.include)

    def filter_active(self, native: Any) -> Any:
        """Rewrite the single-node active list."""
        if not isinstance(native, list):
            return native
        if self._config.suppress_filtering:
            return native
        promoted = list(self._promoted())
        if self._config.load_all:
            return dedupe([*native, *promoted])
        return [identifier for identifier in native if identifier not in promoted]

    def filter_network_active(self, native: Any) -> Any:
        """Rewrite the cluster-wide active map (identifier -> activation time)."""
        if not isinstance(native, dict):
            return native
        if self._config.suppress_filtering:
            return native
        promoted = list(self._promoted())
        if self._config.load_all:
            merged = dict(native)
            for identifier in promoted:
                merged.setdefault(identifier, 0)
            return merged
        return {k: v for k, v in native.items() if k not in promoted}

    def include_active(self, active: Any, extra: Sequence[str] | None = None) -> Any:
        """Add *extra* (default: the configured include list) to *active*."""
        additions = list(self._include if extra is None else extra)
        if isinstance(active, dict):
            merged = dict(active)
            for identifier in additions:
                merged.setdefault(identifier, 0)
            return merged
        if not isinstance(active, list):
            return active
        return dedupe([*active, *additions])

    def include_active_plugins(self, extra: Sequence[str]) -> None:
        """Replace the list the companion filter adds back."""
        self._include = list(extra)

    def register(
        self,
        hooks: HookRegistry,
        *,
        active_option: str,
        network_active_option: str,
    ) -> None:
        """Install the exclusion filters, and the companion filter if configured."""
        hooks.add_filter(f"option_{active_option}", self.filter_active, FIRST_PRIORITY)
        hooks.add_filter(
            f"site_option_{network_active_option}",
            self.filter_network_active,
            FIRST_PRIORITY,
        )
        if self._include:
            self.register_include(
                hooks,
                active_option=active_option,
                network_active_option=network_active_option,
            )

    def register_include(
        self,
        hooks: HookRegistry,
        *,
        active_option: str,
        network_active_option: str,
    ) -> None:
        """Install the companion filter on both read paths."""
        for name in (f"option_{active_option}", f"site_option_{network_active_option}"):
            if not hooks.has_filter(name, self.include_active):
                hooks.add_filter(name, self.include_active, INCLUDE_PRIORITY)
        logger.debug("Companion include filter installed: %s", self._include)
