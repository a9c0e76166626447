"""Cache Store: the promoted set as it stood at the end of the last process.

Read lazily once per process; written at most once, at shutdown, and only
when the value changed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from muloader.errors import PersistenceFailure
from muloader.host.contracts import OptionStore

logger = logging.getLogger(__name__)


class CacheStore:
    """Persisted projection of the promoted set."""

    def __init__(self, options: OptionStore, key: str, *, network: bool = False) -> None:
        self._options = options
        self._key = key
        self._network = network
        self._cached: list[str] | None = None

    def read(self) -> list[str]:
        """Return the cached set, reading the store on first access only."""
        if self._cached is None:
            raw = self._options.read(self._key, network=self._network)
            self._cached = [str(item) for item in raw] if isinstance(raw, list) else []
            logger.debug("Read cached promoted set: %s", self._cached)
        return list(self._cached)

    def commit(self, promoted: Sequence[str]) -> bool:
        """Persist *promoted* if it differs from the value read (order-sensitive).

        Returns True when a write happened. Write failures are logged and
        swallowed; the next process re-attempts the commit.
        """
        value = list(promoted)
        if value == self.read():
            return False
        try:
            self._options.write(self._key, value, network=self._network)
        except PersistenceFailure:
            logger.warning("Could not persist promoted set %s", value, exc_info=True)
            return False
        self._cached = value
        logger.debug("Committed promoted set: %s", value)
        return True
