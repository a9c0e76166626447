"""Out-of-band deactivation.

The decision to deactivate a demoted extension is made at shutdown, when
that extension's code may not be loaded. :class:`DeactivationTrigger`
therefore sends a fire-and-forget loopback request per extension, and
:class:`DeactivationEndpoint` handles it in a fresh request: it spends the
single-use token, loads the extension and fires its ``deactivate`` hook.

INVARIANT: At most one delivery attempt per extension. Failures are
dropped, never retried, never surfaced to the triggering request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any

import httpx

from muloader.config.logging import log_phase
from muloader.config.models import LoopbackConfig
from muloader.domain.identifiers import resolve_identifier, validate_identifier
from muloader.errors import DeactivationDeliveryFailure, InvalidIdentifier, InvalidToken
from muloader.host.contracts import ExtensionLoader, RequestContext
from muloader.host.hooks import HookRegistry
from muloader.infrastructure.tokens import TokenService, deactivate_action
from muloader.plugins.manager import ExtensionHooks
from muloader.services.result import DeactivationResult, DeactivationStatus

logger = logging.getLogger(__name__)


def session_key(request: RequestContext) -> str:
    """Session binding for tokens: the acting user, ``0`` when anonymous."""
    return str(request.user_id or 0)


class DeactivationTrigger:
    """Fire-and-forget loopback calls to the deactivation endpoint.

    Parameters:
        config: Loopback URL, action name, timeout, and worker count.
        tokens: Issues the per-extension single-use token.
        request: Returns the current request (for cookies and user).
        transport: Optional httpx transport (e.g. ``httpx.MockTransport``).
        sync: Deliver inline instead of on the worker pool.
    """

    def __init__(
        self,
        config: LoopbackConfig,
        tokens: TokenService,
        request: Callable[[], RequestContext],
        *,
        transport: httpx.BaseTransport | None = None,
        sync: bool = False,
    ) -> None:
        self._config = config
        self._tokens = tokens
        self._request = request
        self._transport = transport
        self._sync = sync
        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future[None]] = []

    def fire(self, identifiers: Sequence[str]) -> list[str]:
        """Send one loopback call per identifier. Returns the identifiers sent.

        Never blocks on delivery unless constructed with ``sync=True``.
        """
        if not identifiers:
            return []
        request = self._request()
        cookies = dict(request.cookies)
        sent: list[str] = []
        for identifier in identifiers:
            form = {
                "action": self._config.action,
                "plugin": identifier,
                "_token": self._tokens.issue(
                    deactivate_action(identifier), session_key(request)
                ),
            }
            if self._sync:
                self._deliver(identifier, form, cookies)
            else:
                future = self._pool().submit(self._deliver, identifier, form, cookies)
                self._futures.append(future)
            sent.append(identifier)
        return sent

    def wait(self, timeout: float | None = None) -> None:
        """Block until submitted deliveries finish. Only for tests and teardown."""
        for future in self._futures:
            future.result(timeout=timeout)
        self._futures.clear()

    def close(self, *, wait: bool = False) -> None:
        """Release the worker pool."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
        if wait:
            self._futures.clear()

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._config.max_workers,
                thread_name_prefix="muloader-deactivate",
            )
        return self._executor

    def _deliver(self, identifier: str, form: dict[str, str], cookies: dict[str, str]) -> None:
        with log_phase("shutdown", identifier):
            try:
                self._post(identifier, form, cookies)
            except DeactivationDeliveryFailure as exc:
                logger.debug("%s", exc)
            except Exception:
                logger.debug("Deactivation call for %r failed", identifier, exc_info=True)

    def _post(self, identifier: str, form: dict[str, str], cookies: dict[str, str]) -> None:
        """Single delivery attempt; transport errors become ``DeactivationDeliveryFailure``."""
        try:
            with httpx.Client(
                timeout=self._config.timeout,
                verify=self._config.verify,
                cookies=cookies,
                transport=self._transport,
            ) as client:
                response = client.post(self._config.url, data=form)
        except httpx.HTTPError as exc:
            raise DeactivationDeliveryFailure(identifier, str(exc) or type(exc).__name__) from exc
        logger.debug(
            "Deactivation call for %s answered %s",
            identifier,
            response.status_code,
        )


class DeactivationEndpoint:
    """Receives loopback deactivation calls.

    Registered twice with the host, for authenticated and anonymous
    sessions, so the call works even after the original session closed.
    """

    def __init__(
        self,
        *,
        action: str,
        root: Path,
        suffix: str,
        tokens: TokenService,
        loader: ExtensionLoader,
        extensions: ExtensionHooks,
    ) -> None:
        self._action = action
        self._root = root
        self._suffix = suffix
        self._tokens = tokens
        self._loader = loader
        self._extensions = extensions

    @property
    def callback_names(self) -> tuple[str, str]:
        """Host callback names: authenticated, then anonymous."""
        return f"wp_ajax_{self._action}", f"wp_ajax_nopriv_{self._action}"

    def handle(self, request: RequestContext) -> DeactivationResult:
        """Validate the token, load the extension, fire ``deactivate`` once."""
        identifier = str(request.form.get("plugin") or "")
        with log_phase("deactivate", identifier):
            return self._handle(identifier, request)

    def _handle(self, identifier: str, request: RequestContext) -> DeactivationResult:
        token = str(request.form.get("_token") or "")
        try:
            self._tokens.verify(token, deactivate_action(identifier), session_key(request))
            validate_identifier(identifier, self._suffix)
            path = resolve_identifier(self._root, identifier)
        except (InvalidToken, InvalidIdentifier) as exc:
            logger.warning("Rejected deactivation request for %r: %s", identifier, exc)
            return DeactivationResult(
                status=DeactivationStatus.INVALID,
                identifier=identifier,
                message=str(exc),
            )

        if not path.is_file():
            return DeactivationResult(
                status=DeactivationStatus.NOOP,
                identifier=identifier,
                message=f"{identifier} is not installed",
            )

        self._loader.load(identifier, path)
        self._extensions.fire_deactivate(identifier)
        logger.debug("Deactivated demoted extension %s", identifier)
        return DeactivationResult(
            status=DeactivationStatus.DONE,
            identifier=identifier,
            message=f"{identifier} deactivated",
        )

    def respond(self, request: RequestContext, send: Callable[[int, dict[str, Any]], Any]) -> None:
        """Host callback: handle *request* and pass ``(status, body)`` to *send*."""
        result = self.handle(request)
        send(result.http_status, result.model_dump(mode="json"))

    def register(self, hooks: HookRegistry) -> None:
        for name in self.callback_names:
            hooks.add_action(name, self.respond)
