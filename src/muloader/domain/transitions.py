"""Transition rules for promoted extensions.

Three inputs decide every transition:

- *promoted*: identifiers promoted in the current process
- *cached*: identifiers promoted at the end of the previous process
- *native*: identifiers the host itself records as active

INVARIANT: Native activation always wins. An identifier the host keeps
active on its own never receives an activation or deactivation hook from
this package.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from enum import StrEnum


class Transition(StrEnum):
    """Computed lifecycle decision for one identifier."""

    NEEDS_ACTIVATION = "needs-activation"
    NEEDS_DEACTIVATION = "needs-deactivation"
    STABLE = "stable"


def needs_activation(
    identifier: str,
    cached: Collection[str],
    native: Collection[str],
) -> bool:
    """True when *identifier* was neither promoted last time nor natively active."""
    return identifier not in cached and identifier not in native


def needs_deactivation(
    identifier: str,
    cached: Collection[str],
    native: Collection[str],
) -> bool:
    """True when *identifier* was promoted last time and is not natively active."""
    return identifier in cached and identifier not in native


def demoted(cached: Sequence[str], promoted: Collection[str]) -> list[str]:
    """``cached - promoted``, in cache order, without repeats."""
    seen: set[str] = set()
    result: list[str] = []
    for identifier in cached:
        if identifier in promoted or identifier in seen:
            continue
        seen.add(identifier)
        result.append(identifier)
    return result


def classify(
    identifier: str,
    *,
    promoted: Collection[str],
    cached: Collection[str],
    native: Collection[str],
) -> Transition:
    """Classify one identifier against the three sets.

    Examples:
        >>> classify("a.py", promoted=["a.py"], cached=[], native=[])
        <Transition.NEEDS_ACTIVATION: 'needs-activation'>
        >>> classify("a.py", promoted=[], cached=["a.py"], native=["a.py"])
        <Transition.STABLE: 'stable'>
    """
    if identifier in promoted:
        if needs_activation(identifier, cached, native):
            return Transition.NEEDS_ACTIVATION
        return Transition.STABLE
    if needs_deactivation(identifier, cached, native):
        return Transition.NEEDS_DEACTIVATION
    return Transition.STABLE


def plan(
    *,
    promoted: Sequence[str],
    cached: Sequence[str],
    native: Collection[str],
) -> dict[str, Transition]:
    """Classify every identifier in ``promoted ∪ cached``, promoted first."""
    return {
        identifier: classify(identifier, promoted=promoted, cached=cached, native=native)
        for identifier in dict.fromkeys([*promoted, *cached])
    }
