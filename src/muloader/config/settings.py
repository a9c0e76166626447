"""Unified settings: init kwargs, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: passed by the composing host
  2. Env vars: ``MULOADER_*`` prefix
  3. TOML file: ``muloader.toml`` discovered via walk-up
  4. Code defaults: baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from muloader.config.discovery import STATE_DIRNAME, find_config, site_root
from muloader.config.models import FiltersConfig, LoaderConfig, LoopbackConfig, TokensConfig
from muloader.errors import ConfigError


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``muloader.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class MuLoaderSettings(BaseSettings):
    """Unified settings for one loader instance.

    Attributes:
        root: Base directory; relative paths in the config resolve against it.
        config_path: TOML file the settings were read from, if any.
        database_path: SQLite file backing the reference option store.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "MULOADER_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None
    database_path: Path | None = None

    verbose: bool = False
    log_json: bool = False

    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    filters: FiltersConfig = Field(default_factory=FiltersConfig)
    loopback: LoopbackConfig = Field(default_factory=LoopbackConfig)
    tokens: TokensConfig = Field(default_factory=TokensConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **overrides: Any,
    ) -> MuLoaderSettings:
        """Construct settings for a host process.

        Discovers ``muloader.toml`` via walk-up (or explicit *config_path*),
        resolves *root* from the config file's parent directory, and merges
        *overrides* as highest-priority values.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(root)

        resolved_root = root
        if resolved_root is None:
            resolved_root = site_root(toml_path) if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                root=resolved_root,
                config_path=toml_path,
                **overrides,
            )
        finally:
            _tls.toml_path = None

    @property
    def extensions_root(self) -> Path:
        """Absolute extensions directory."""
        path = self.loader.extensions_root
        return path if path.is_absolute() else self.root / path

    @property
    def resolved_database_path(self) -> Path:
        """SQLite path for the reference option store."""
        if self.database_path is None:
            return self.root / STATE_DIRNAME / "options.db"
        if self.database_path.is_absolute():
            return self.database_path
        return self.root / self.database_path
