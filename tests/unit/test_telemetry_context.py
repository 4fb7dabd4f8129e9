"""Unit tests for telemetry context initialization, wrapping, flush and feedback."""

from __future__ import annotations

import asyncio
import io
import threading

import pytest

from codex_telemetry.config import RuntimeConfigSources, TelemetryConfig
from codex_telemetry.errors import TelemetryNotInitializedError
from codex_telemetry.telemetry.context import create_telemetry_context
from codex_telemetry.telemetry.feedback import FeedbackRecord
from codex_telemetry.telemetry.handles import NoopLoggerHandle
from codex_telemetry.telemetry.logger import DiagnosticLogger
from tests.fakes import FakeSDK, RecordingHandle, WrappedClient


def test_init_logger_returns_identical_handle_on_repeat_calls(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Repeated initialization should reuse the first handle and call the SDK once."""

    context = make_context(api_key="bt-key")

    first = context.init_logger()
    second = context.init_logger(project_name="Other", api_key="other-key")

    assert first is second
    assert len(fake_sdk.init_calls) == 1


def test_init_logger_is_idempotent_in_strict_mode(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Strict contexts should also keep a single handle."""

    context = make_context(api_key="bt-key", strict=True)

    assert context.init_logger() is context.init_logger()
    assert len(fake_sdk.init_calls) == 1


def test_init_logger_passes_project_key_async_flush_and_metadata(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """SDK initialization should receive project, key, async flush and session metadata."""

    context = make_context(api_key="bt-key")

    context.init_logger()

    assert fake_sdk.init_calls == [
        {
            "project": "Codex",
            "api_key": "bt-key",
            "async_flush": True,
            "metadata": {
                "cli_version": "9.9.9",
                "origin": "codex_cli_py",
                "session_id": "sess-123",
            },
        }
    ]


def test_init_logger_arguments_override_configured_values(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Explicit project/key arguments should win over runtime config."""

    context = make_context(api_key="configured-key", project_name="Configured")

    context.init_logger(project_name="  Explicit  ", api_key="explicit-key")

    assert fake_sdk.init_calls[0]["project"] == "Explicit"
    assert fake_sdk.init_calls[0]["api_key"] == "explicit-key"


def test_init_logger_without_api_key_returns_noop_handle_without_sdk(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Unconfigured permissive contexts should never contact the SDK."""

    context = make_context()

    handle = context.init_logger()
    asyncio.run(context.flush())

    assert isinstance(handle, NoopLoggerHandle)
    assert handle.is_noop is True
    assert context.init_logger() is handle
    assert fake_sdk.init_calls == []


def test_init_logger_permissive_swallows_sdk_failure(make_context, diagnostics_sink) -> None:  # type: ignore[no-untyped-def]
    """Permissive init should log SDK errors and fall back to a no-op handle."""

    failing_sdk = FakeSDK(init_error=RuntimeError("network down"))
    context = make_context(api_key="bt-key", logging_enabled=True, sdk=failing_sdk)
    client = object()

    handle = context.init_logger()

    assert handle.is_noop is True
    assert context.init_logger() is handle
    assert context.wrap_client(client) is client
    assert failing_sdk.wrap_calls == []
    assert "event=init_failure" in diagnostics_sink.getvalue()
    assert "error_type=RuntimeError" in diagnostics_sink.getvalue()


def test_init_logger_strict_propagates_sdk_failure(make_context) -> None:  # type: ignore[no-untyped-def]
    """Strict init should raise SDK errors and leave the context uninitialized."""

    failing_sdk = FakeSDK(init_error=RuntimeError("network down"))
    context = make_context(api_key="bt-key", strict=True, sdk=failing_sdk)

    with pytest.raises(RuntimeError, match="network down"):
        context.init_logger()

    assert context.is_initialized is False


def test_init_logger_strict_calls_sdk_even_without_api_key(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Strict init should let the SDK resolve a missing key itself."""

    context = make_context(strict=True)

    handle = context.init_logger()

    assert handle.is_noop is False
    assert fake_sdk.init_calls[0]["api_key"] is None


def test_init_logger_concurrent_calls_create_single_sdk_logger(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Concurrent initialization from threads should create exactly one handle."""

    context = make_context(api_key="bt-key")
    handles: list[object] = []
    barrier = threading.Barrier(8)

    def _init() -> None:
        barrier.wait()
        handles.append(context.init_logger())

    threads = [threading.Thread(target=_init) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(fake_sdk.init_calls) == 1
    assert all(handle is handles[0] for handle in handles)


def test_wrap_client_strict_requires_initialization(make_context) -> None:  # type: ignore[no-untyped-def]
    """Strict wrap should refuse to run before the logger exists."""

    context = make_context(api_key="bt-key", logging_enabled=True, strict=True)

    with pytest.raises(TelemetryNotInitializedError) as exc_info:
        context.wrap_client(object())

    assert exc_info.value.stage == "wrap_client"


def test_wrap_client_strict_wraps_after_initialization(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Strict wrap should delegate to the SDK once initialized."""

    context = make_context(api_key="bt-key", strict=True)
    client = object()
    context.init_logger()

    wrapped = context.wrap_client(client)

    assert isinstance(wrapped, WrappedClient)
    assert wrapped.inner is client


def test_wrap_client_strict_propagates_sdk_failure(make_context) -> None:  # type: ignore[no-untyped-def]
    """Strict wrap should not hide SDK errors."""

    failing_sdk = FakeSDK(wrap_error=TypeError("unsupported client"))
    context = make_context(api_key="bt-key", strict=True, sdk=failing_sdk)
    context.init_logger()

    with pytest.raises(TypeError, match="unsupported client"):
        context.wrap_client(object())


def test_wrap_client_returns_same_client_when_logging_disabled(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """A configured key with logging disabled should pass the client through."""

    context = make_context(api_key="bt-key", logging_enabled=False)
    client = object()
    context.init_logger()

    assert context.wrap_client(client) is client
    assert fake_sdk.wrap_calls == []


def test_wrap_client_returns_same_client_without_api_key(make_context, fake_sdk, diagnostics_sink) -> None:  # type: ignore[no-untyped-def]
    """Missing API key should pass the client through even with logging enabled."""

    context = make_context(logging_enabled=True)
    client = object()

    assert context.wrap_client(client) is client
    assert fake_sdk.wrap_calls == []
    assert "reason=no_api_key" in diagnostics_sink.getvalue()


def test_wrap_client_permissive_wraps_when_configured_and_enabled(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Configured and enabled permissive wrap should return the instrumented client."""

    context = make_context(api_key="bt-key", logging_enabled=True)
    client = object()

    wrapped = context.wrap_client(client)

    assert isinstance(wrapped, WrappedClient)
    assert fake_sdk.wrap_calls == [client]


def test_wrap_client_permissive_falls_back_on_sdk_failure(make_context, diagnostics_sink) -> None:  # type: ignore[no-untyped-def]
    """SDK wrap errors should be logged and the original client returned."""

    failing_sdk = FakeSDK(wrap_error=TypeError("unsupported client"))
    context = make_context(api_key="bt-key", logging_enabled=True, sdk=failing_sdk)
    client = object()
    context.init_logger()

    assert context.wrap_client(client) is client
    output = diagnostics_sink.getvalue()
    assert "event=wrap_failure" in output
    assert "error_type=TypeError" in output
    assert "bt-key" not in output


def test_flush_before_initialization_is_noop(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Flushing without a handle should do nothing."""

    context = make_context(api_key="bt-key")

    asyncio.run(context.flush())

    assert fake_sdk.sdk_logger.flush_calls == 0
    assert context.is_initialized is False


def test_flush_delegates_to_sdk_logger(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Flush should await the SDK logger flush."""

    context = make_context(api_key="bt-key")
    context.init_logger()

    asyncio.run(context.flush())

    assert fake_sdk.sdk_logger.flush_calls == 1


def test_flush_failure_is_logged_in_permissive_mode(make_context, fake_sdk, diagnostics_sink, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    """Permissive flush should log SDK failures instead of raising."""

    def _failing_flush() -> None:
        raise ConnectionError("unreachable")

    context = make_context(api_key="bt-key")
    context.init_logger()
    monkeypatch.setattr(fake_sdk.sdk_logger, "flush", _failing_flush)

    asyncio.run(context.flush())

    assert "event=flush_failure" in diagnostics_sink.getvalue()


def test_flush_failure_propagates_in_strict_mode(make_context, fake_sdk, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    """Strict flush should raise SDK failures."""

    def _failing_flush() -> None:
        raise ConnectionError("unreachable")

    context = make_context(api_key="bt-key", strict=True)
    context.init_logger()
    monkeypatch.setattr(fake_sdk.sdk_logger, "flush", _failing_flush)

    with pytest.raises(ConnectionError):
        asyncio.run(context.flush())


@pytest.mark.parametrize("strict", [False, True])
def test_log_feedback_requires_initialization(make_context, strict: bool) -> None:  # type: ignore[no-untyped-def]
    """Feedback before initialization should fail under either policy."""

    context = make_context(api_key="bt-key", strict=strict)

    with pytest.raises(TelemetryNotInitializedError) as exc_info:
        asyncio.run(context.log_feedback("span-1", FeedbackRecord(score=1.0)))

    assert exc_info.value.stage == "log_feedback"


def test_log_feedback_forwards_span_id_and_record_unchanged(make_context) -> None:  # type: ignore[no-untyped-def]
    """Feedback should reach the handle with the exact span id and record."""

    handle = RecordingHandle()
    context = make_context(api_key="bt-key", sdk=FakeSDK(handle=handle))
    assert context.init_logger() is handle
    record = FeedbackRecord(score=0.75)

    asyncio.run(context.log_feedback("span-42", record))

    assert handle.feedback == [("span-42", record)]
    assert handle.feedback[0][1] is record


def test_log_feedback_rejects_blank_span_id(make_context) -> None:  # type: ignore[no-untyped-def]
    """Blank span ids should be rejected before reaching the SDK."""

    context = make_context(api_key="bt-key")
    context.init_logger()

    with pytest.raises(ValueError, match="span_id"):
        asyncio.run(context.log_feedback("   ", FeedbackRecord(score=1.0)))


def test_log_feedback_reaches_sdk_logger_as_named_scores(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Braintrust handles should translate the record to SDK keyword arguments."""

    context = make_context(api_key="bt-key")
    context.init_logger()

    asyncio.run(context.log_feedback("span-7", FeedbackRecord(score=0.5, comment="ok")))

    assert fake_sdk.sdk_logger.feedback_calls == [
        {"id": "span-7", "scores": {"feedback": 0.5}, "comment": "ok"}
    ]


def test_start_span_attaches_session_metadata(make_context, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Spans opened through the context should carry session metadata."""

    context = make_context(api_key="bt-key")
    context.init_logger()

    with context.start_span("completion"):
        pass

    assert fake_sdk.sdk_logger.span_calls == [
        {
            "name": "completion",
            "metadata": {
                "cli_version": "9.9.9",
                "origin": "codex_cli_py",
                "session_id": "sess-123",
            },
        }
    ]


def test_start_span_before_initialization_depends_on_policy(make_context) -> None:  # type: ignore[no-untyped-def]
    """Permissive contexts should yield a null span; strict ones should refuse."""

    with make_context().start_span("completion") as span:
        assert span is None

    with pytest.raises(TelemetryNotInitializedError):
        make_context(strict=True).start_span("completion")


def test_create_telemetry_context_resolves_config_sources(session_identity, fake_sdk) -> None:  # type: ignore[no-untyped-def]
    """Factory should resolve runtime sources before building the context."""

    config = TelemetryConfig(
        runtime_sources=RuntimeConfigSources(
            cli={"project_name": "From CLI"},
            env={"BRAINTRUST_API_KEY": "env-key", "CODEX_TELEMETRY_LOGGING": "yes"},
        )
    )

    context = create_telemetry_context(
        config,
        sdk=fake_sdk,
        session=session_identity,
        diagnostics=DiagnosticLogger(sink=io.StringIO()),
    )

    assert context.runtime.project_name == "From CLI"
    assert context.runtime.api_key == "env-key"
    assert context.runtime.logging_enabled is True
    assert context.session is session_identity
