"""Config file discovery.

A site keeps its configuration either beside its extensions as
``muloader.toml`` or inside the state directory (``.muloader/muloader.toml``)
next to the option database. Discovery walks up from the start directory and
takes the first directory holding either, preferring the visible file.
``MULOADER_CONFIG`` names a file, or a directory searched the same way.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "muloader.toml"
CONFIG_ENV_VAR = "MULOADER_CONFIG"
STATE_DIRNAME = ".muloader"


def _candidates(directory: Path) -> tuple[Path, Path]:
    return directory / CONFIG_FILENAME, directory / STATE_DIRNAME / CONFIG_FILENAME


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for the site config.

    Returns the path to the config file, or None if not found.
    Checks MULOADER_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        if p.is_dir():
            return next((c for c in _candidates(p) if c.is_file()), None)
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        for candidate in _candidates(current):
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def site_root(config_path: Path) -> Path:
    """Directory the config belongs to: above the state directory when inside it."""
    parent = config_path.parent
    if parent.name == STATE_DIRNAME:
        return parent.parent
    return parent
