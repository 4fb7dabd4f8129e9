"""Structured diagnostic logging for telemetry operations.

Responsibilities:
- Emit concise, deterministic one-line diagnostics through `loguru`.
- Default to stderr so diagnostics never mix with command output.
- Keep secret values and raw payloads out of log lines.
"""

from __future__ import annotations

import sys
from typing import TextIO
import uuid

from loguru import logger as _loguru_logger


_MAX_DETAIL_CHARS = 160


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw[:_MAX_DETAIL_CHARS]
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class DiagnosticLogger:
    """Emit deterministic telemetry diagnostics to a text sink."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Attach a sink that only receives this logger's diagnostics (stderr by default).

        Handlers already registered on the shared loguru logger are left in place.
        """

        self._sink = sink or sys.stderr
        sink_key = uuid.uuid4().hex
        self._logger = _loguru_logger.bind(telemetry_sink=sink_key)
        self._handler_id = _loguru_logger.add(
            self._sink,
            format="{message}",
            level=level,
            colorize=False,
            filter=lambda record: record["extra"].get("telemetry_sink") == sink_key,
        )

    def close(self) -> None:
        """Detach this logger's sink from loguru."""

        if self._handler_id is None:
            return
        _loguru_logger.remove(self._handler_id)
        self._handler_id = None

    def _emit(self, level: str, event: str, **context: object) -> None:
        line = f"[telemetry] level={level} event={event}{_format_context(context)}"
        self._logger.log(level, line)

    def log_logger_initialized(self, project: str, mode: str) -> None:
        """Record which kind of logger handle was created."""

        self._emit("DEBUG", "logger_initialized", project=project, mode=mode)

    def log_init_failure(self, exc: BaseException) -> None:
        """Record an SDK failure during logger initialization."""

        self._emit("ERROR", "init_failure", error_type=type(exc).__name__, detail=exc)

    def log_wrap_skipped(self, reason: str) -> None:
        """Record why a client was returned unwrapped."""

        self._emit("DEBUG", "wrap_skipped", reason=reason)

    def log_wrap_failure(self, exc: BaseException) -> None:
        """Record an SDK failure while instrumenting a client."""

        self._emit("ERROR", "wrap_failure", error_type=type(exc).__name__, detail=exc)

    def log_flush_failure(self, exc: BaseException) -> None:
        """Record an SDK failure while flushing buffered events."""

        self._emit("ERROR", "flush_failure", error_type=type(exc).__name__, detail=exc)
