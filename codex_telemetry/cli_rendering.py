"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics
and telemetry status summaries.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .config import TelemetryRuntimeConfig
from .errors import TelemetryError
from .session import SessionIdentity


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, TelemetryError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_status(runtime: TelemetryRuntimeConfig, session: SessionIdentity) -> None:
    """Print resolved telemetry settings without secret values."""

    status = runtime.as_status_metadata()
    typer.echo(f"Project: {status['project']}")
    typer.echo(f"Braintrust API key: {status['api_key']}")
    typer.echo(f"Client logging: {'enabled' if runtime.logging_enabled else 'disabled'}")
    typer.echo(f"Error policy: {status['policy']}")
    typer.echo(f"CLI version: {session.cli_version}")
    typer.echo(f"Session id: {session.session_id}")
