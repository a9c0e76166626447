"""Single-use action tokens for loopback requests.

A token binds an action string (``"deactivate_" + identifier``), an expiry,
a random nonce, and the acting session. The HMAC signature proves it was
issued by a process holding the shared secret; the ``used_tokens`` table
makes a second spend of the same nonce fail.

Token layout: ``<nonce>.<expires>.<signature>``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import time
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert
from sqlalchemy.exc import IntegrityError

from muloader.errors import InvalidToken, PersistenceFailure
from muloader.infrastructure.database.schema import used_tokens

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

    from muloader.host.contracts import OptionStore

logger = logging.getLogger(__name__)

DEACTIVATE_PREFIX = "deactivate_"


def deactivate_action(identifier: str) -> str:
    """Token action scoped to deactivating *identifier*."""
    return f"{DEACTIVATE_PREFIX}{identifier}"


def shared_secret(options: OptionStore, key: str, configured: str = "") -> str:
    """Signing secret shared by every process on the same option store.

    A configured secret wins. Otherwise the secret stored under *key* is
    used, generated and stored on first use. The stored value is read back
    after writing so concurrent first writers settle on the last one.
    """
    if configured:
        return configured
    stored = options.read(key)
    if isinstance(stored, str) and stored:
        return stored

    generated = secrets.token_hex(32)
    try:
        options.write(key, generated)
    except PersistenceFailure:
        logger.warning("Could not store token secret; using a per-process secret", exc_info=True)
        return generated
    stored = options.read(key)
    return stored if isinstance(stored, str) and stored else generated


class TokenService:
    """Issues and spends single-use tokens.

    Parameters:
        engine: Engine with the ``used_tokens`` table.
        secret: Shared signing secret (see :func:`shared_secret`). Empty means a
            per-process random secret, which only verifies tokens issued by
            the same process.
        ttl_seconds: Lifetime of an issued token.
        clock: Time source, seconds since the epoch.
    """

    def __init__(
        self,
        engine: Engine,
        secret: str = "",
        *,
        ttl_seconds: int = 86400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._engine = engine
        self._secret = (secret or secrets.token_hex(32)).encode("utf-8")
        self._ttl = ttl_seconds
        self._clock = clock

    def issue(self, action: str, session: str = "") -> str:
        """Create a token for *action*, bound to *session*."""
        nonce = secrets.token_urlsafe(12)
        expires = int(self._clock()) + self._ttl
        return f"{nonce}.{expires}.{self._sign(action, nonce, expires, session)}"

    def verify(self, token: str, action: str, session: str = "") -> None:
        """Check *token* for *action* and mark it spent.

        Raises:
            InvalidToken: When the token is malformed, forged, bound to a
                different action or session, expired, or already spent.
        """
        try:
            nonce, raw_expires, signature = token.split(".")
            expires = int(raw_expires)
        except (AttributeError, ValueError) as exc:
            raise InvalidToken("malformed token") from exc

        expected = self._sign(action, nonce, expires, session)
        if not hmac.compare_digest(signature, expected):
            raise InvalidToken(f"signature mismatch for {action!r}")
        now = int(self._clock())
        if expires < now:
            raise InvalidToken(f"token for {action!r} expired")

        try:
            with self._engine.begin() as conn:
                conn.execute(delete(used_tokens).where(used_tokens.c.expires < now))
                conn.execute(
                    insert(used_tokens).values(nonce=nonce, action=action, expires=expires)
                )
        except IntegrityError as exc:
            raise InvalidToken(f"token for {action!r} already used") from exc
        logger.debug("Spent token for %s", action)

    def _sign(self, action: str, nonce: str, expires: int, session: str) -> str:
        message = f"{action}|{nonce}|{expires}|{session}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()
