"""Error taxonomy.

Caller errors (``InvalidIdentifier``, ``NotInstalled``) are raised
synchronously from ``promote``. ``PersistenceFailure`` and
``DeactivationDeliveryFailure`` are raised internally and always caught
before they reach the host request.
"""

from __future__ import annotations


class MuLoaderError(Exception):
    """Base class for all mu-loader errors."""


class ConfigError(MuLoaderError):
    """Configuration could not be read."""


class InvalidIdentifier(MuLoaderError, ValueError):
    """Identifier is malformed or not relative-path safe."""

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Invalid extension identifier {identifier!r}: {reason}")


class NotInstalled(MuLoaderError, FileNotFoundError):
    """Identifier is well-formed but no file exists under the extensions root."""

    def __init__(self, identifier: str, path: str) -> None:
        self.identifier = identifier
        self.path = path
        super().__init__(f"Extension {identifier!r} is not installed (missing {path})")


class PersistenceFailure(MuLoaderError):
    """Option store write failed."""


class DeactivationDeliveryFailure(MuLoaderError):
    """Loopback deactivation call failed or timed out."""

    def __init__(self, identifier: str, cause: str) -> None:
        self.identifier = identifier
        super().__init__(f"Deactivation call for {identifier!r} failed: {cause}")


class InvalidToken(MuLoaderError):
    """Single-use token is missing, forged, expired, or already spent."""
