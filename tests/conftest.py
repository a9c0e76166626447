"""Shared pytest fixtures for mu-loader tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from sqlalchemy.engine import Engine

from muloader.config.settings import MuLoaderSettings
from muloader.host.contracts import Host, RequestContext
from muloader.infrastructure.database.engine import init_database
from muloader.infrastructure.options import SqlOptionStore
from muloader.loader import MuLoader, bootstrap
from muloader.plugins.hookspecs import hookimpl
from muloader.services.result import DeactivationResult, ShutdownReport

TOKEN_SECRET = "test-secret"

EXTENSION_SRC = """\
from muloader.plugins import hookimpl

calls: list[tuple[str, str]] = []


@hookimpl
def activate(identifier: str) -> None:
    calls.append(("activate", identifier))


@hookimpl
def deactivate(identifier: str) -> None:
    calls.append(("deactivate", identifier))
"""


class RecordingPlugin:
    """Observer that records broadcast lifecycle hooks."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    @hookimpl
    def extension_loaded(self, identifier: str, path: str) -> None:
        self.calls.append(("loaded", identifier))

    @hookimpl
    def post_activate(self, identifier: str) -> None:
        self.calls.append(("activate", identifier))

    @hookimpl
    def post_deactivate(self, identifier: str) -> None:
        self.calls.append(("deactivate", identifier))

    def count(self, event: str, identifier: str) -> int:
        return self.calls.count((event, identifier))


@dataclass
class Process:
    """One simulated host process driving a :class:`MuLoader`."""

    loader: MuLoader
    host: Host
    recorder: RecordingPlugin

    def boot(self) -> Process:
        self.host.hooks.do_action("plugins_loaded")
        self.host.hooks.do_action("init")
        return self

    def end(self) -> ShutdownReport:
        self.host.hooks.do_action("shutdown")
        return self.loader.shutdown()


@dataclass
class Loopback:
    """Mock transport target that records loopback deactivation calls.

    When *endpoint_factory* is set, each call is handed to a fresh
    process's endpoint, as the real host would.
    """

    requests: list[dict[str, Any]] = field(default_factory=list)
    results: list[DeactivationResult] = field(default_factory=list)
    endpoint_factory: Callable[[], Process] | None = None
    user_id: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.requests.append({"url": str(request.url), "form": form, "headers": request.headers})
        if self.endpoint_factory is None:
            return httpx.Response(200, json={"status": "done"})
        process = self.endpoint_factory()
        result = process.loader.endpoint.handle(RequestContext(form=form, user_id=self.user_id))
        self.results.append(result)
        return httpx.Response(result.http_status, json=result.model_dump(mode="json"))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def targets(self) -> list[str]:
        return [r["form"]["plugin"] for r in self.requests]


@pytest.fixture
def extensions_root(tmp_path: Path) -> Path:
    root = tmp_path / "plugins"
    root.mkdir()
    return root


@pytest.fixture
def install(extensions_root: Path) -> Callable[..., Path]:
    """Write an extension file under the extensions root."""

    def _install(identifier: str, source: str = EXTENSION_SRC) -> Path:
        path = extensions_root / identifier
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return _install


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / ".muloader" / "options.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def option_store(db_engine: Engine) -> SqlOptionStore:
    return SqlOptionStore(db_engine)


@pytest.fixture
def settings(tmp_path: Path, extensions_root: Path) -> MuLoaderSettings:
    return MuLoaderSettings.load(
        root=tmp_path,
        loader={"extensions_root": extensions_root},
        tokens={"secret": TOKEN_SECRET},
    )


@pytest.fixture
def loopback() -> Loopback:
    return Loopback()


@pytest.fixture
def make_process(
    settings: MuLoaderSettings,
    option_store: SqlOptionStore,
    loopback: Loopback,
) -> Callable[..., Process]:
    """Build a fresh process over the shared option store.

    Each call stands for one request: new hook registry, new loaded-module
    bookkeeping, same persisted options.
    """

    def _make(
        promoted: list[str] | None = None,
        *,
        native: list[str] | None = None,
        request: RequestContext | None = None,
        process_settings: MuLoaderSettings | None = None,
    ) -> Process:
        if native is not None:
            option_store.write("active_plugins", native)
        host = Host.create(option_store, request=request or RequestContext())
        recorder = RecordingPlugin()
        host.extensions.register_plugin(recorder, name="recorder")
        loader = bootstrap(
            process_settings or settings,
            host,
            promoted or [],
            transport=loopback.transport,
            sync_trigger=True,
        )
        return Process(loader=loader, host=host, recorder=recorder)

    return _make


@pytest.fixture
def recorder() -> RecordingPlugin:
    return RecordingPlugin()
