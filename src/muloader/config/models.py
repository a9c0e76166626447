"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, muloader.toml only contains
overrides. A typical deployment needs only ``[loader] plugins``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class LoaderConfig(BaseModel):
    """[loader] section."""

    model_config = {"frozen": True}

    extensions_root: Path = Path("plugins")
    suffix: str = ".py"
    plugins: list[str] = Field(default_factory=list)
    network: bool = False
    cache_option: str = "mu_loader_plugins"
    active_option: str = "active_plugins"
    network_active_option: str = "active_sitewide_plugins"


class FiltersConfig(BaseModel):
    """[filters] section.

    ``suppress_filtering`` and ``load_all`` describe an administrative
    command context: the first skips extension loading entirely (the
    command expects the full installed list), the second loads everything.
    """

    model_config = {"frozen": True}

    suppress_filtering: bool = False
    load_all: bool = False
    include: list[str] = Field(default_factory=list)


class LoopbackConfig(BaseModel):
    """[loopback] section."""

    model_config = {"frozen": True}

    url: str = "http://127.0.0.1/admin-ajax"
    action: str = "mu_loader_deactivate_plugin"
    timeout: float = Field(default=0.01, gt=0, lt=0.05)
    max_workers: int = 2
    verify: bool = False


class TokensConfig(BaseModel):
    """[tokens] section."""

    model_config = {"frozen": True}

    secret: str = ""
    secret_option: str = "mu_loader_token_secret"
    ttl_seconds: int = 86400
