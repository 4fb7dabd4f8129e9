"""Logger handles returned by telemetry initialization.

Key types:
- `LoggerHandle`: protocol shared by every handle implementation.
- `BraintrustLoggerHandle`: forwards to a `braintrust.Logger` and carries the
  session metadata attached to spans.
- `NoopLoggerHandle`: used when telemetry is unconfigured; does nothing.
"""

from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext
from typing import Any, Mapping, Protocol

from .feedback import FeedbackRecord


class LoggerHandle(Protocol):
    """Protocol for the handle owned by a telemetry context."""

    @property
    def is_noop(self) -> bool:
        """Return whether this handle discards everything."""

    def flush(self) -> None:
        """Deliver buffered telemetry events before returning."""

    def log_feedback(self, span_id: str, record: FeedbackRecord) -> None:
        """Attach feedback to a previously logged span."""

    def start_span(self, name: str) -> AbstractContextManager[Any]:
        """Open a span tagged with session metadata."""


class NoopLoggerHandle:
    """Handle whose operations return immediately with no effect."""

    @property
    def is_noop(self) -> bool:
        return True

    def flush(self) -> None:
        return None

    def log_feedback(self, span_id: str, record: FeedbackRecord) -> None:
        return None

    def start_span(self, name: str) -> AbstractContextManager[Any]:
        return nullcontext()


class BraintrustLoggerHandle:
    """Handle backed by a `braintrust.Logger` instance."""

    def __init__(self, sdk_logger: Any, metadata: Mapping[str, str]) -> None:
        """Wrap an SDK logger with the metadata attached to new spans."""

        self._sdk_logger = sdk_logger
        self._metadata = metadata

    @property
    def is_noop(self) -> bool:
        return False

    @property
    def sdk_logger(self) -> Any:
        """Return the underlying SDK logger."""

        return self._sdk_logger

    @property
    def metadata(self) -> Mapping[str, str]:
        """Return the session metadata attached to spans."""

        return self._metadata

    def flush(self) -> None:
        self._sdk_logger.flush()

    def log_feedback(self, span_id: str, record: FeedbackRecord) -> None:
        self._sdk_logger.log_feedback(id=span_id, **record.as_log_feedback_kwargs())

    def start_span(self, name: str) -> AbstractContextManager[Any]:
        return self._sdk_logger.start_span(name=name, metadata=dict(self._metadata))
