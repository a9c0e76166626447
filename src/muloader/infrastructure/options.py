"""SQLite-backed option store.

Values are stored as JSON. ``write`` returns False when the stored value is
already equal, mirroring hosts that skip no-op updates.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError

from muloader.errors import PersistenceFailure
from muloader.infrastructure.database.schema import options

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

SITE = "site"
NETWORK = "network"


def _scope(network: bool) -> str:
    return NETWORK if network else SITE


class SqlOptionStore:
    """Option store over the ``options`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def read(self, key: str, *, network: bool = False) -> Any:
        """Return the decoded value for *key*, or None when unset."""
        with self._engine.connect() as conn:
            raw = conn.execute(
                select(options.c.value).where(
                    options.c.scope == _scope(network),
                    options.c.name == key,
                )
            ).scalar_one_or_none()
        if raw is None:
            return None
        return json.loads(raw)

    def write(self, key: str, value: Any, *, network: bool = False) -> bool:
        """Upsert *value* under *key*.

        Raises:
            PersistenceFailure: When the database rejects the write.
        """
        encoded = json.dumps(value)
        scope = _scope(network)
        try:
            with self._engine.begin() as conn:
                current = conn.execute(
                    select(options.c.value).where(
                        options.c.scope == scope,
                        options.c.name == key,
                    )
                ).scalar_one_or_none()
                if current == encoded:
                    return False
                stmt = insert(options).values(
                    scope=scope,
                    name=key,
                    value=encoded,
                    modified=datetime.now(UTC).isoformat(),
                )
                conn.execute(
                    stmt.on_conflict_do_update(
                        index_elements=[options.c.scope, options.c.name],
                        set_={"value": stmt.excluded.value, "modified": stmt.excluded.modified},
                    )
                )
        except SQLAlchemyError as exc:
            msg = f"Could not write option {key!r} ({scope})"
            raise PersistenceFailure(msg) from exc
        return True
