"""Priority-ordered filters and actions.

Callbacks run in ascending priority; equal priorities run in registration
order. A filter receives the current value plus any extra arguments and
returns the new value. An action's return value is ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

DEFAULT_PRIORITY = 10

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Callback:
    priority: int
    order: int
    func: Callable[..., Any]


class HookRegistry:
    """Named filter/action hook points."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[_Callback]] = {}
        self._counter = 0
        self._fired: dict[str, int] = {}

    def add_filter(
        self,
        name: str,
        func: Callable[..., Any],
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        """Register *func* on hook *name*."""
        self._counter += 1
        callbacks = self._hooks.setdefault(name, [])
        callbacks.append(_Callback(priority, self._counter, func))
        callbacks.sort(key=lambda cb: (cb.priority, cb.order))

    add_action = add_filter

    def remove_filter(self, name: str, func: Callable[..., Any]) -> bool:
        """Unregister *func* from hook *name*. Returns True if it was registered."""
        callbacks = self._hooks.get(name, [])
        kept = [cb for cb in callbacks if cb.func != func]
        self._hooks[name] = kept
        return len(kept) != len(callbacks)

    remove_action = remove_filter

    def has_filter(self, name: str, func: Callable[..., Any] | None = None) -> bool:
        """Whether anything (or *func* specifically) is registered on *name*."""
        callbacks = self._hooks.get(name, [])
        if func is None:
            return bool(callbacks)
        return any(cb.func == func for cb in callbacks)

    has_action = has_filter

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        """Pass *value* through every callback on *name*."""
        for cb in list(self._hooks.get(name, [])):
            value = cb.func(value, *args)
        return value

    def do_action(self, name: str, *args: Any) -> None:
        """Run every callback on *name*."""
        self._fired[name] = self._fired.get(name, 0) + 1
        for cb in list(self._hooks.get(name, [])):
            cb.func(*args)

    def did_action(self, name: str) -> int:
        """How many times *name* has fired in this process."""
        return self._fired.get(name, 0)
