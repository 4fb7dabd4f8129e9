"""Shared pytest fixtures for the codex-telemetry test suite."""

from __future__ import annotations

import io
from typing import Callable

import pytest

from codex_telemetry.config import (
    ENV_API_KEY,
    ENV_LOGGING,
    ENV_PROJECT,
    ENV_STRICT,
    TelemetryRuntimeConfig,
)
from codex_telemetry.session import SessionIdentity
from codex_telemetry.telemetry.context import TelemetryContext
from codex_telemetry.telemetry.logger import DiagnosticLogger
from tests.fakes import FakeSDK


@pytest.fixture(autouse=True)
def _clear_telemetry_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables out of every test."""

    for key in (ENV_API_KEY, ENV_PROJECT, ENV_LOGGING, ENV_STRICT):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def session_identity() -> SessionIdentity:
    """Provide a fixed session identity."""

    return SessionIdentity(cli_version="9.9.9", origin="codex_cli_py", session_id="sess-123")


@pytest.fixture
def diagnostics_sink() -> io.StringIO:
    """Provide an in-memory sink for diagnostic log lines."""

    return io.StringIO()


@pytest.fixture
def fake_sdk() -> FakeSDK:
    """Provide a fake SDK with no configured failures."""

    return FakeSDK()


@pytest.fixture
def make_context(
    fake_sdk: FakeSDK,
    session_identity: SessionIdentity,
    diagnostics_sink: io.StringIO,
) -> Callable[..., TelemetryContext]:
    """Build telemetry contexts over the fake SDK with configurable runtime values."""

    def _make(
        *,
        api_key: str | None = None,
        logging_enabled: bool = False,
        strict: bool = False,
        project_name: str = "Codex",
        sdk: FakeSDK | None = None,
    ) -> TelemetryContext:
        runtime = TelemetryRuntimeConfig(
            project_name=project_name,
            api_key=api_key,
            logging_enabled=logging_enabled,
            strict=strict,
        )
        return TelemetryContext(
            runtime,
            sdk=sdk if sdk is not None else fake_sdk,
            session=session_identity,
            diagnostics=DiagnosticLogger(sink=diagnostics_sink, level="DEBUG"),
        )

    return _make
