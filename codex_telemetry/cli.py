"""Command-line interface for codex-telemetry.

Responsibilities:
- Expose status, credential and feedback commands.
- Convert CLI arguments into `TelemetryConfig` runtime sources.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from .cli_rendering import echo_status, exit_with_command_error
from .config import ConfigLoader, RuntimeConfigSources, TelemetryConfig
from .credentials import create_credential_store
from .errors import TelemetryError
from .parsing import normalize_optional_string, parse_expected_value, parse_metadata_pairs
from .telemetry.context import TelemetryContext, create_telemetry_context
from .telemetry.feedback import DEFAULT_SCORE_NAME, FeedbackRecord
from .telemetry.logger import DiagnosticLogger
from .telemetry.sdk import BraintrustSDK

app = typer.Typer(
    name="codex-telemetry",
    no_args_is_help=True,
    help="Braintrust telemetry helpers for Codex.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML telemetry config."),
]
ProjectOption = Annotated[
    str | None,
    typer.Option("--project", help="Braintrust project name."),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option("--api-key", help="Braintrust API key for this run only."),
]


def _load_yaml_config(config_path: Path | None) -> TelemetryConfig:
    """Load a YAML config file when requested and map failures to telemetry errors."""

    if config_path is None:
        return TelemetryConfig()

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise TelemetryError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise TelemetryError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config keys/values and rerun.",
        ) from exc


def _resolve_command_config(
    config_file: Path | None,
    project: str | None,
    api_key: str | None,
) -> TelemetryConfig:
    """Resolve effective config from YAML defaults, keyring, env and CLI overrides."""

    config = _load_yaml_config(config_file)

    cli_values: dict[str, str] = {}
    for key, value in (("project_name", project), ("api_key", api_key)):
        normalized = normalize_optional_string(value)
        if normalized is not None:
            cli_values[key] = normalized

    secure_values: dict[str, str] = {}
    stored_api_key = create_credential_store().get_api_key()
    if stored_api_key is not None:
        secure_values["api_key"] = stored_api_key

    config.runtime_sources = RuntimeConfigSources(
        cli=cli_values,
        secure=secure_values,
        env=ConfigLoader.runtime_env(),
    )
    return config


def _build_context(config: TelemetryConfig) -> TelemetryContext:
    """Create the process telemetry context for a command invocation."""

    try:
        return create_telemetry_context(
            config,
            sdk=BraintrustSDK(),
            diagnostics=DiagnosticLogger(),
        )
    except ValueError as exc:
        raise TelemetryError(
            stage="config",
            detail=str(exc),
            hint="Check `CODEX_TELEMETRY_*` environment values.",
        ) from exc


async def _submit_feedback(
    context: TelemetryContext, span_id: str, record: FeedbackRecord
) -> None:
    """Send one feedback record and wait until it is delivered."""

    await context.log_feedback(span_id, record)
    await context.flush()


@app.command("status")
def status_command(
    config_file: ConfigOption = None,
    project: ProjectOption = None,
) -> None:
    """Show resolved telemetry settings."""

    try:
        config = _resolve_command_config(config_file, project, None)
        context = _build_context(config)
    except Exception as exc:
        exit_with_command_error("status", exc)

    echo_status(context.runtime, context.session)


@app.command("feedback")
def feedback_command(
    span_id: Annotated[str, typer.Argument(help="Id of the logged span.")],
    score: Annotated[
        float | None,
        typer.Option("--score", help="Numeric score for the span."),
    ] = None,
    score_name: Annotated[
        str,
        typer.Option("--score-name", help="Name under which the score is recorded."),
    ] = DEFAULT_SCORE_NAME,
    comment: Annotated[
        str | None,
        typer.Option("--comment", help="Free-form comment."),
    ] = None,
    expected: Annotated[
        str | None,
        typer.Option("--expected", help="Expected output (JSON or plain text)."),
    ] = None,
    metadata: Annotated[
        list[str] | None,
        typer.Option("--metadata", help="Metadata entry as `key=value`; repeatable."),
    ] = None,
    config_file: ConfigOption = None,
    project: ProjectOption = None,
    api_key: ApiKeyOption = None,
) -> None:
    """Attach feedback to a previously logged span."""

    try:
        record = FeedbackRecord(
            score=score,
            expected=parse_expected_value(expected),
            comment=normalize_optional_string(comment),
            metadata=parse_metadata_pairs(metadata) if metadata else None,
            score_name=score_name.strip(),
        )
        config = _resolve_command_config(config_file, project, api_key)
        context = _build_context(config)
        handle = context.init_logger()
        if handle.is_noop:
            raise TelemetryError(
                stage="feedback",
                detail="Braintrust API key is not configured.",
                hint=(
                    "Set `BRAINTRUST_API_KEY`, pass `--api-key`, or run "
                    "`codex-telemetry credentials --set-api-key`."
                ),
            )
        asyncio.run(_submit_feedback(context, span_id, record))
    except Exception as exc:
        exit_with_command_error("feedback", exc)

    typer.echo(f"Feedback logged for span `{span_id}`.")


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for the Braintrust API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear the stored Braintrust API key.",
        ),
    ] = False,
) -> None:
    """Manage the securely stored Braintrust API key."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            TelemetryError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "Braintrust API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                TelemetryError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                TelemetryError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        if credential_store.clear_api_key():
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    status = "present" if credential_store.get_api_key() is not None else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored Braintrust API key: {status}")


def main() -> None:
    """Run the codex-telemetry CLI."""

    # The CLI owns this process; diagnostics go only through DiagnosticLogger sinks.
    logger.remove()
    app()
