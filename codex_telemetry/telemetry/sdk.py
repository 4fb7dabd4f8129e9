"""Adapter over the Braintrust SDK calls used by the telemetry context.

Responsibilities:
- Keep the context independent from concrete `braintrust` module functions.
- Give tests a single seam for replacing network-capable SDK calls.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, TypeVar

import braintrust

from .handles import BraintrustLoggerHandle


ClientT = TypeVar("ClientT")


class TelemetrySDK(Protocol):
    """Protocol for the external logging SDK surface."""

    def init_logger(
        self,
        *,
        project: str,
        api_key: str | None,
        async_flush: bool,
        metadata: Mapping[str, str],
    ) -> Any:
        """Create a logger handle for a project."""

    def wrap_client(self, client: ClientT) -> ClientT:
        """Return an instrumented version of an AI client."""


class BraintrustSDK:
    """`TelemetrySDK` implementation backed by the `braintrust` package."""

    def init_logger(
        self,
        *,
        project: str,
        api_key: str | None,
        async_flush: bool,
        metadata: Mapping[str, str],
    ) -> BraintrustLoggerHandle:
        """Create a Braintrust logger and wrap it in a handle carrying `metadata`."""

        sdk_logger = braintrust.init_logger(
            project=project,
            api_key=api_key,
            async_flush=async_flush,
        )
        return BraintrustLoggerHandle(sdk_logger, metadata)

    def wrap_client(self, client: ClientT) -> ClientT:
        """Instrument an OpenAI client with `braintrust.wrap_openai`."""

        return braintrust.wrap_openai(client)
