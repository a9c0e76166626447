"""Reconciliation Engine.

Decides, per extension, whether an activation or deactivation hook must
fire, and guarantees each fires at most once per real transition.

Lifecycle, strictly sequenced within one process:

1. construction: the cached set is read before any promotion
2. promotion: identifiers are validated, loaded, and activations collected
3. ``init``: collected activations execute (:meth:`run_activations`)
4. shutdown: cache committed if changed, then demoted extensions are
   handed to the out-of-band trigger
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from muloader.config.logging import log_phase
from muloader.domain.identifiers import resolve_identifier, validate_identifier
from muloader.domain.transitions import Transition, demoted, needs_activation, plan
from muloader.errors import NotInstalled
from muloader.host.contracts import ExtensionLoader, OptionStore
from muloader.infrastructure.cache import CacheStore
from muloader.plugins.manager import ExtensionHooks
from muloader.services.deactivation import DeactivationTrigger
from muloader.services.result import ShutdownReport

logger = logging.getLogger(__name__)


class ReconcileService:
    """Tracks promoted, cached, and native state for one process.

    Parameters:
        root: Extensions root directory.
        suffix: Required identifier suffix.
        cache: Cache Store for the previous process's promoted set.
        options: Unfiltered option storage (source of the native active set).
        loader: Loads extension code.
        extensions: Dispatches per-extension lifecycle hooks.
        trigger: Out-of-band deactivation trigger.
        active_option: Option holding the single-node active list.
        network_active_option: Option holding the cluster-wide active map.
        network: Whether the cluster-wide map counts as native activity.
    """

    def __init__(
        self,
        *,
        root: Path,
        suffix: str,
        cache: CacheStore,
        options: OptionStore,
        loader: ExtensionLoader,
        extensions: ExtensionHooks,
        trigger: DeactivationTrigger,
        active_option: str = "active_plugins",
        network_active_option: str = "active_sitewide_plugins",
        network: bool = False,
    ) -> None:
        self._root = root
        self._suffix = suffix
        self._cache = cache
        self._options = options
        self._loader = loader
        self._extensions = extensions
        self._trigger = trigger
        self._active_option = active_option
        self._network_active_option = network_active_option
        self._network = network

        self._promoted: list[str] = []
        self._pending: list[str] = []
        self._activated: set[str] = set()
        self._activations_open = False
        self._report: ShutdownReport | None = None

        # Must happen before the first promotion.
        self._cache.read()

    # ------------------------------------------------------------------
    # State views
    # ------------------------------------------------------------------

    @property
    def promoted(self) -> list[str]:
        """Current promoted set, in promotion order."""
        return list(self._promoted)

    @property
    def pending(self) -> list[str]:
        """Activations collected but not yet executed."""
        return list(self._pending)

    def cached(self) -> list[str]:
        """Promoted set as recorded by the previous process."""
        return self._cache.read()

    def native_active(self) -> set[str]:
        """The host's own active set, read without this package's filters."""
        native: set[str] = set()
        site = self._options.read(self._active_option)
        if isinstance(site, list):
            native.update(str(item) for item in site)
        if self._network:
            network = self._options.read(self._network_active_option, network=True)
            if isinstance(network, dict):
                native.update(str(key) for key in network)
        return native

    # ------------------------------------------------------------------
    # Promotion
    # ------------------------------------------------------------------

    def promote(self, identifier: str) -> Path:
        """Promote *identifier*, load it, and collect its activation if due.

        Promoting an identifier twice re-runs validation but neither appends
        it again nor schedules a second activation.

        Returns:
            The resolved extension file.

        Raises:
            InvalidIdentifier: *identifier* is malformed or unsafe.
            NotInstalled: No file exists for *identifier*.
        """
        with log_phase("promote", identifier):
            return self._promote(identifier)

    def _promote(self, identifier: str) -> Path:
        validate_identifier(identifier, self._suffix)
        path = resolve_identifier(self._root, identifier)
        if not path.is_file():
            raise NotInstalled(identifier, str(path))

        if identifier not in self._promoted:
            self._promoted.append(identifier)
        self._loader.load(identifier, path)

        if identifier in self._activated or identifier in self._pending:
            return path
        if needs_activation(identifier, self.cached(), self.native_active()):
            self._pending.append(identifier)
            logger.debug("Activation scheduled for %s", identifier)
            if self._activations_open:
                self.run_activations()
        return path

    def promote_many(self, identifiers: Sequence[str]) -> list[Path]:
        return [self.promote(identifier) for identifier in identifiers]

    def run_activations(self) -> list[str]:
        """Execute collected activations, each at most once per process.

        After the first call, later promotions activate immediately.
        """
        self._activations_open = True
        with log_phase("activate"):
            return self._run_activations()

    def _run_activations(self) -> list[str]:
        batch, self._pending = self._pending, []
        fired: list[str] = []
        for identifier in batch:
            if identifier in self._activated:
                continue
            self._activated.add(identifier)
            if self._extensions.fire_activate(identifier):
                fired.append(identifier)
        if fired:
            logger.debug("Activated promoted extensions: %s", fired)
        return fired

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def reconcile_on_shutdown(self) -> ShutdownReport:
        """Commit the promoted set and trigger deactivation of demoted extensions.

        Runs once; later calls return the first report. The cache is
        committed before triggering so loopback requests see the new state.
        """
        if self._report is not None:
            return self._report
        with log_phase("shutdown"):
            self._report = self._reconcile()
        return self._report

    def _reconcile(self) -> ShutdownReport:
        cached = self.cached()
        transitions = plan(promoted=self._promoted, cached=cached, native=self.native_active())
        targets: list[str] = []
        skipped: list[str] = []
        for identifier in demoted(cached, self._promoted):
            if transitions[identifier] is Transition.NEEDS_DEACTIVATION:
                targets.append(identifier)
            else:
                skipped.append(identifier)

        committed = self._cache.commit(self._promoted)
        try:
            deactivated = self._trigger.fire(targets)
        except Exception:
            logger.warning("Deactivation trigger failed for %s", targets, exc_info=True)
            deactivated = []
        if skipped:
            logger.debug("Demoted but natively active, left alone: %s", skipped)

        return ShutdownReport(committed=committed, deactivated=deactivated, skipped=skipped)
