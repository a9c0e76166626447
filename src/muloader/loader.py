"""MuLoader: composition root and host lifecycle wiring.

Explicitly constructed and owned by the host process::

    loader = bootstrap(settings, host)          # construct, seed, schedule
    host.hooks.do_action("plugins_loaded")       # filters, gate, callbacks
    host.hooks.do_action("init")                 # collected activations fire
    ...
    host.hooks.do_action("shutdown")             # commit cache, trigger deactivations
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from muloader.config.logging import configure_logging
from muloader.config.settings import MuLoaderSettings
from muloader.host.contracts import Host, RequestContext
from muloader.infrastructure.cache import CacheStore
from muloader.infrastructure.database.engine import init_database
from muloader.infrastructure.options import SqlOptionStore
from muloader.infrastructure.tokens import TokenService, shared_secret
from muloader.services.deactivation import DeactivationEndpoint, DeactivationTrigger
from muloader.services.filters import ActiveSetFilter
from muloader.services.permissions import PermissionGate
from muloader.services.presentation import Presentation
from muloader.services.reconcile import ReconcileService
from muloader.services.result import ShutdownReport

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Host boundaries the loader attaches to.
PLUGINS_LOADED = "plugins_loaded"
INIT = "init"
SHUTDOWN = "shutdown"


class MuLoader:
    """Promotes extensions to must-use for one host process.

    Parameters:
        settings: Loader configuration.
        host: Host collaborators (hooks, options, loader, request).
        tokens: Token service; built over the option store's database by default.
        transport: httpx transport for loopback calls (tests inject a mock).
        sync_trigger: Deliver loopback calls inline instead of on a worker.
    """

    def __init__(
        self,
        settings: MuLoaderSettings,
        host: Host,
        *,
        tokens: TokenService | None = None,
        transport: httpx.BaseTransport | None = None,
        sync_trigger: bool = False,
    ) -> None:
        self._settings = settings
        self._host = host
        self._hooks_added = False
        cfg = settings.loader

        self._tokens = tokens or TokenService(
            _token_engine(settings, host),
            shared_secret(host.options, settings.tokens.secret_option, settings.tokens.secret),
            ttl_seconds=settings.tokens.ttl_seconds,
        )
        self._cache = CacheStore(host.options, cfg.cache_option, network=cfg.network)
        self._trigger = DeactivationTrigger(
            settings.loopback,
            self._tokens,
            self._current_request,
            transport=transport,
            sync=sync_trigger,
        )
        self._engine = ReconcileService(
            root=settings.extensions_root,
            suffix=cfg.suffix,
            cache=self._cache,
            options=host.options,
            loader=host.loader,
            extensions=host.extensions,
            trigger=self._trigger,
            active_option=cfg.active_option,
            network_active_option=cfg.network_active_option,
            network=cfg.network or host.network,
        )
        self._filter = ActiveSetFilter(self.get_promoted, settings.filters)
        self._gate = PermissionGate(self.get_promoted, self._current_request)
        self._presentation = Presentation(self.get_promoted)
        self._endpoint = DeactivationEndpoint(
            action=settings.loopback.action,
            root=settings.extensions_root,
            suffix=cfg.suffix,
            tokens=self._tokens,
            loader=host.loader,
            extensions=host.extensions,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def settings(self) -> MuLoaderSettings:
        return self._settings

    @property
    def host(self) -> Host:
        return self._host

    @property
    def endpoint(self) -> DeactivationEndpoint:
        return self._endpoint

    @property
    def trigger(self) -> DeactivationTrigger:
        return self._trigger

    def promote(self, identifier: str) -> Path:
        """Promote one extension. See :meth:`ReconcileService.promote`."""
        return self._engine.promote(identifier)

    def seed(self, identifiers: Sequence[str]) -> list[Path]:
        """Promote every identifier in order."""
        return self._engine.promote_many(identifiers)

    def get_cached_set(self) -> list[str]:
        """Promoted set recorded by the previous process."""
        return self._engine.cached()

    def get_promoted(self) -> list[str]:
        """Promoted set of this process."""
        return self._engine.promoted

    def include_active_plugins(self, identifiers: Sequence[str]) -> None:
        """Add *identifiers* back into active-list reads, after exclusion."""
        self._filter.include_active_plugins(identifiers)
        if self._hooks_added:
            self._register_include()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def add_hooks(self) -> None:
        """Register filters, gate, presentation, callbacks and boundaries. Idempotent."""
        if self._hooks_added:
            return
        self._hooks_added = True
        hooks = self._host.hooks
        cfg = self._settings.loader

        self._filter.register(
            hooks,
            active_option=cfg.active_option,
            network_active_option=cfg.network_active_option,
        )
        self._gate.register(hooks)
        self._presentation.register(hooks)
        self._endpoint.register(hooks)

        if hooks.did_action(INIT):
            self.run_activations()
        else:
            hooks.add_action(INIT, self.run_activations)
        hooks.add_action(SHUTDOWN, self.shutdown)
        logger.debug("Hooks added for promoted extensions %s", self.get_promoted())

    def run_activations(self) -> list[str]:
        """Fire activation hooks collected during promotion."""
        return self._engine.run_activations()

    def shutdown(self) -> ShutdownReport:
        """End-of-request reconciliation. Never blocks on loopback delivery."""
        report = self._engine.reconcile_on_shutdown()
        self._trigger.close(wait=False)
        return report

    def _register_include(self) -> None:
        cfg = self._settings.loader
        self._filter.register_include(
            self._host.hooks,
            active_option=cfg.active_option,
            network_active_option=cfg.network_active_option,
        )

    def _current_request(self) -> RequestContext:
        return self._host.request


def _token_engine(settings: MuLoaderSettings, host: Host) -> Engine:
    """Reuse the option store's database when it has one."""
    if isinstance(host.options, SqlOptionStore):
        return host.options.engine
    return init_database(settings.resolved_database_path)


def bootstrap(
    settings: MuLoaderSettings | None = None,
    host: Host | None = None,
    plugins: Sequence[str] | None = None,
    *,
    configure_logs: bool = False,
    tokens: TokenService | None = None,
    transport: httpx.BaseTransport | None = None,
    sync_trigger: bool = False,
) -> MuLoader:
    """Construct a :class:`MuLoader`, seed it, and attach it to the host.

    Defaults: settings from :meth:`MuLoaderSettings.load`, a host over the
    SQLite option store, and ``settings.loader.plugins`` as the promoted set.
    Hook registration is deferred to the host's ``plugins_loaded`` action,
    at the earliest priority.
    """
    settings = settings or MuLoaderSettings.load()
    if configure_logs:
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
    if host is None:
        host = Host.create(SqlOptionStore(init_database(settings.resolved_database_path)))

    loader = MuLoader(settings, host, tokens=tokens, transport=transport, sync_trigger=sync_trigger)
    loader.seed(settings.loader.plugins if plugins is None else plugins)

    if host.hooks.did_action(PLUGINS_LOADED):
        loader.add_hooks()
    else:
        host.hooks.add_action(PLUGINS_LOADED, loader.add_hooks, 0)
    return loader
