"""Braintrust telemetry: logger handles, client instrumentation and feedback."""

from .context import TelemetryContext, create_telemetry_context
from .feedback import FeedbackRecord
from .handles import BraintrustLoggerHandle, LoggerHandle, NoopLoggerHandle
from .logger import DiagnosticLogger
from .sdk import BraintrustSDK, TelemetrySDK

__all__ = [
    "BraintrustLoggerHandle",
    "BraintrustSDK",
    "DiagnosticLogger",
    "FeedbackRecord",
    "LoggerHandle",
    "NoopLoggerHandle",
    "TelemetryContext",
    "TelemetrySDK",
    "create_telemetry_context",
]
