"""Telemetry context owning the process-wide Braintrust logger handle.

Responsibilities:
- Initialize the remote logger at most once per context.
- Instrument AI clients when telemetry is configured and enabled.
- Flush buffered events and submit span feedback asynchronously.

Notes:
- Two error policies exist. Permissive (default) never lets telemetry
  failures reach the caller. Strict refuses operations before initialization
  and propagates SDK errors.
- Build one context at process start with `create_telemetry_context` and pass
  it to components that need telemetry.
"""

from __future__ import annotations

import asyncio
from contextlib import AbstractContextManager, nullcontext
import threading
from typing import Any, TypeVar

from ..config import TelemetryConfig, TelemetryRuntimeConfig
from ..errors import TelemetryNotInitializedError
from ..parsing import normalize_optional_string
from ..session import SessionIdentity, current_session
from .feedback import FeedbackRecord
from .handles import LoggerHandle, NoopLoggerHandle
from .logger import DiagnosticLogger
from .sdk import BraintrustSDK, TelemetrySDK


ClientT = TypeVar("ClientT")


class TelemetryContext:
    """Owner of the telemetry logger handle and its collaborators."""

    def __init__(
        self,
        runtime: TelemetryRuntimeConfig,
        *,
        sdk: TelemetrySDK,
        session: SessionIdentity,
        diagnostics: DiagnosticLogger,
    ) -> None:
        self._runtime = runtime
        self._sdk = sdk
        self._session = session
        self._diagnostics = diagnostics
        self._handle: LoggerHandle | None = None
        self._api_key: str | None = runtime.api_key
        self._lock = threading.Lock()

    @property
    def runtime(self) -> TelemetryRuntimeConfig:
        return self._runtime

    @property
    def session(self) -> SessionIdentity:
        return self._session

    @property
    def handle(self) -> LoggerHandle | None:
        """Return the logger handle, or `None` before initialization."""

        return self._handle

    @property
    def is_initialized(self) -> bool:
        return self._handle is not None

    def init_logger(
        self,
        project_name: str | None = None,
        api_key: str | None = None,
    ) -> LoggerHandle:
        """Create the logger handle once and return it on every call.

        Args:
            project_name: Braintrust project; defaults to the configured project.
            api_key: Braintrust API key; defaults to the configured key.

        Raises:
            Exception: Only in strict mode, whatever the SDK raises.
        """

        if self._handle is not None:
            return self._handle

        with self._lock:
            if self._handle is not None:
                return self._handle

            project = normalize_optional_string(project_name) or self._runtime.project_name
            resolved_key = normalize_optional_string(api_key) or self._runtime.api_key

            if resolved_key is None and not self._runtime.strict:
                self._handle = NoopLoggerHandle()
                self._diagnostics.log_logger_initialized(project, mode="noop")
                return self._handle

            try:
                handle = self._sdk.init_logger(
                    project=project,
                    api_key=resolved_key,
                    async_flush=True,
                    metadata=self._session.telemetry_metadata(),
                )
            except Exception as exc:
                if self._runtime.strict:
                    raise
                self._diagnostics.log_init_failure(exc)
                handle = NoopLoggerHandle()
                resolved_key = None

            self._api_key = resolved_key
            self._handle = handle
            self._diagnostics.log_logger_initialized(
                project, mode="noop" if handle.is_noop else "braintrust"
            )
            return handle

    def wrap_client(self, client: ClientT) -> ClientT:
        """Return `client` instrumented for telemetry, or unchanged.

        Spans emitted by the wrapped client carry no session metadata of
        their own. Issue calls inside `start_span(...)` so they nest under a
        parent span tagged with cli_version, origin and session_id.

        Raises:
            TelemetryNotInitializedError: In strict mode, before `init_logger`.
        """

        if self._runtime.strict:
            if self._handle is None:
                raise TelemetryNotInitializedError("wrap_client")
            return self._sdk.wrap_client(client)

        if self._api_key is None:
            self._diagnostics.log_wrap_skipped("no_api_key")
            return client
        if not self._runtime.logging_enabled:
            self._diagnostics.log_wrap_skipped("logging_disabled")
            return client

        try:
            return self._sdk.wrap_client(client)
        except Exception as exc:
            self._diagnostics.log_wrap_failure(exc)
            return client

    async def flush(self) -> None:
        """Deliver buffered telemetry; a no-op before initialization."""

        handle = self._handle
        if handle is None:
            return

        try:
            await asyncio.to_thread(handle.flush)
        except Exception as exc:
            if self._runtime.strict:
                raise
            self._diagnostics.log_flush_failure(exc)

    async def log_feedback(self, span_id: str, record: FeedbackRecord) -> None:
        """Attach feedback to a logged span.

        Raises:
            TelemetryNotInitializedError: Before `init_logger`.
            ValueError: If `span_id` is blank.
        """

        handle = self._handle
        if handle is None:
            raise TelemetryNotInitializedError("log_feedback")
        if normalize_optional_string(span_id) is None:
            raise ValueError("`span_id` must be a non-empty string.")

        await asyncio.to_thread(handle.log_feedback, span_id, record)

    def start_span(self, name: str) -> AbstractContextManager[Any]:
        """Open a span tagged with the session metadata.

        Raises:
            TelemetryNotInitializedError: In strict mode, before `init_logger`.
        """

        handle = self._handle
        if handle is None:
            if self._runtime.strict:
                raise TelemetryNotInitializedError("start_span")
            return nullcontext()
        return handle.start_span(name)


def create_telemetry_context(
    config: TelemetryConfig | TelemetryRuntimeConfig | None = None,
    *,
    sdk: TelemetrySDK | None = None,
    session: SessionIdentity | None = None,
    diagnostics: DiagnosticLogger | None = None,
) -> TelemetryContext:
    """Build a telemetry context from configuration.

    A `TelemetryConfig` is resolved through its runtime sources first; an
    already-resolved `TelemetryRuntimeConfig` is used as is.
    """

    if config is None:
        config = TelemetryConfig()
    if isinstance(config, TelemetryConfig):
        config.validate()
        runtime = config.resolved_runtime()
    else:
        runtime = config

    return TelemetryContext(
        runtime,
        sdk=sdk if sdk is not None else BraintrustSDK(),
        session=session if session is not None else current_session(),
        diagnostics=diagnostics if diagnostics is not None else DiagnosticLogger(),
    )
