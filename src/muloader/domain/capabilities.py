"""Capability policy for promoted extensions.

Host meta-capabilities are mapped onto a closed :class:`Operation` set and
decided by :func:`policy`. Denial is expressed as the host's blanket
``do_not_allow`` primitive, appended to whatever the host resolved.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from enum import StrEnum

DO_NOT_ALLOW = "do_not_allow"


class Operation(StrEnum):
    """Extension-management operations the gate can deny."""

    ACTIVATE = "activate_plugin"
    DEACTIVATE = "deactivate_plugin"
    DELETE = "delete_plugin"
    BULK_DELETE = "delete_plugins"


def operation_for(capability: str) -> Operation | None:
    """Map a host meta-capability name to an :class:`Operation`, if gated."""
    try:
        return Operation(capability)
    except ValueError:
        return None


def policy(
    operation: Operation,
    targets: Iterable[str],
    promoted: Collection[str],
) -> bool:
    """Return True when *operation* on *targets* must be denied.

    Single-target operations inspect only the first target. Bulk delete is
    denied when any selected target is promoted.
    """
    if operation is Operation.BULK_DELETE:
        return any(target in promoted for target in targets)
    first = next(iter(targets), None)
    return first is not None and first in promoted
