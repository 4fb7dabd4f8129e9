"""Top-level package for codex-telemetry.

This package initializes a Braintrust telemetry logger once per process and
optionally instruments AI-completion clients so their calls are recorded. The
main entry point is `TelemetryContext`, built via `create_telemetry_context`.
"""

__version__ = "0.3.0"

from .telemetry.context import TelemetryContext, create_telemetry_context

__all__ = ["TelemetryContext", "create_telemetry_context", "__version__"]
