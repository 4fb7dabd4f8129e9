"""Domain exceptions for telemetry and CLI diagnostics."""

from __future__ import annotations


class TelemetryError(RuntimeError):
    """Raised when a telemetry operation fails at a specific stage."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped telemetry error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class TelemetryNotInitializedError(TelemetryError):
    """Raised when an operation needs a logger handle that does not exist yet."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            stage=operation,
            detail="Braintrust logger not initialized.",
            hint="Call `init_logger` on the telemetry context first.",
        )
