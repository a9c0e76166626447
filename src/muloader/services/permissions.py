"""Permission Gate: deny toggling or deleting promoted extensions.

Hooks the host's ``map_meta_cap`` filter. Denial is additive: the blanket
``do_not_allow`` primitive is appended, other resolved primitives are kept.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from muloader.domain.capabilities import DO_NOT_ALLOW, Operation, operation_for, policy
from muloader.host.contracts import RequestContext
from muloader.host.hooks import HookRegistry

logger = logging.getLogger(__name__)


class PermissionGate:
    """Appends a denial to capability checks that target promoted extensions."""

    def __init__(
        self,
        promoted: Callable[[], Sequence[str]],
        request: Callable[[], RequestContext],
    ) -> None:
        self._promoted = promoted
        self._request = request

    def map_meta_cap(
        self,
        caps: list[str],
        cap: str,
        user_id: int | None = None,
        args: Sequence[Any] = (),
    ) -> list[str]:
        """Filter callback: resolved primitives for meta-capability *cap*."""
        operation = operation_for(cap)
        if operation is None:
            return caps
        return self.check(caps, operation, args)

    def check(
        self,
        caps: list[str],
        operation: Operation,
        args: Sequence[Any] = (),
    ) -> list[str]:
        """Apply :func:`policy` for *operation* and append the denial if needed."""
        if operation is Operation.BULK_DELETE:
            targets = self._request().selected()
        else:
            targets = [str(arg) for arg in args[:1]]
        if not policy(operation, targets, self._promoted()):
            return caps
        logger.debug("Denied %s on promoted extension(s) %s", operation.value, targets)
        return [*caps, DO_NOT_ALLOW]

    def register(self, hooks: HookRegistry) -> None:
        hooks.add_filter("map_meta_cap", self.map_meta_cap)
