"""Extension identifier validation and path resolution.

An identifier is the extension's path relative to the extensions root,
e.g. ``seo/seo.py``. It is an opaque key everywhere except here.
"""

from __future__ import annotations

import re
from pathlib import Path

from muloader.errors import InvalidIdentifier

DEFAULT_SUFFIX = ".py"

_DRIVE_LETTER = re.compile(r"^[A-Za-z]:")


def validate_identifier(identifier: str, suffix: str = DEFAULT_SUFFIX) -> str:
    """Return *identifier* unchanged if it is relative-path safe.

    Raises:
        InvalidIdentifier: On empty values, traversal or ``./`` sequences,
            absolute paths, drive letters, backslashes, NUL bytes, or a
            missing *suffix*.
    """
    if not isinstance(identifier, str) or not identifier:
        raise InvalidIdentifier(str(identifier), "empty identifier")
    if "\x00" in identifier:
        raise InvalidIdentifier(identifier, "contains a NUL byte")
    if "\\" in identifier:
        raise InvalidIdentifier(identifier, "contains a backslash")
    if ".." in identifier:
        raise InvalidIdentifier(identifier, "contains a traversal sequence")
    if "./" in identifier:
        raise InvalidIdentifier(identifier, "contains a relative segment")
    if identifier.startswith("/"):
        raise InvalidIdentifier(identifier, "absolute paths are not allowed")
    if _DRIVE_LETTER.match(identifier):
        raise InvalidIdentifier(identifier, "drive letters are not allowed")
    if not identifier.endswith(suffix) or identifier == suffix:
        raise InvalidIdentifier(identifier, f"must end with {suffix!r}")
    return identifier


def is_valid_identifier(identifier: str, suffix: str = DEFAULT_SUFFIX) -> bool:
    """Check *identifier* without raising."""
    try:
        validate_identifier(identifier, suffix)
    except InvalidIdentifier:
        return False
    return True


def resolve_identifier(root: Path, identifier: str) -> Path:
    """Resolve *identifier* to a path under *root*.

    The identifier must already be validated; the result is checked again
    against *root* so a symlinked directory cannot escape it.
    """
    base = root.resolve()
    path = (base / identifier).resolve()
    if not path.is_relative_to(base):
        raise InvalidIdentifier(identifier, "resolves outside the extensions root")
    return path


def dedupe(identifiers: list[str]) -> list[str]:
    """Drop repeated identifiers, keeping first-seen order."""
    return list(dict.fromkeys(identifiers))
