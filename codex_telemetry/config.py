"""Configuration model and loaders for codex-telemetry.

Responsibilities:
- Define telemetry configuration as a typed dataclass.
- Resolve runtime telemetry settings with deterministic source precedence.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `TelemetryConfig`: configured defaults plus runtime source overrides.
- `TelemetryRuntimeConfig`: resolved values used by a telemetry context.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `TelemetryConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import (
    normalize_optional_string,
    parse_permissive_boolean,
    parse_required_boolean,
)


DEFAULT_PROJECT_NAME = "Codex"

ENV_API_KEY = "BRAINTRUST_API_KEY"
ENV_PROJECT = "BRAINTRUST_PROJECT"
ENV_LOGGING = "CODEX_TELEMETRY_LOGGING"
ENV_STRICT = "CODEX_TELEMETRY_STRICT"


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TelemetryRuntimeConfig:
    """Resolved telemetry settings for one process.

    Attributes:
        project_name: Braintrust project receiving logged spans.
        api_key: Braintrust API key, or `None` when telemetry is unconfigured.
        logging_enabled: Whether AI clients should be instrumented.
        strict: Refuse operations before initialization instead of degrading.
    """

    project_name: str
    api_key: str | None = None
    logging_enabled: bool = False
    strict: bool = False

    @property
    def has_api_key(self) -> bool:
        """Return whether an API key was resolved."""

        return self.api_key is not None

    def as_status_metadata(self) -> dict[str, str]:
        """Return non-secret settings safe to print or log."""

        return {
            "project": self.project_name,
            "api_key": "present" if self.has_api_key else "not set",
            "logging_enabled": "true" if self.logging_enabled else "false",
            "policy": "strict" if self.strict else "permissive",
        }


@dataclass(slots=True)
class TelemetryConfig:
    """Configured telemetry defaults.

    Attributes:
        project_name: Braintrust project name.
        api_key: Optional Braintrust API key.
        logging_enabled: Whether client instrumentation is enabled.
        strict: Whether to use the strict error policy.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    project_name: str = DEFAULT_PROJECT_NAME
    api_key: str | None = None
    logging_enabled: bool = False
    strict: bool = False
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def validate(self) -> None:
        """Validate configured values."""

        if not isinstance(self.project_name, str) or not self.project_name.strip():
            raise ValueError("`project_name` must be a non-empty string.")

    def resolved_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> TelemetryRuntimeConfig:
        """Resolve runtime telemetry settings.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field default.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources

        project_name = self._resolve_value(
            key="project_name",
            env_key=ENV_PROJECT,
            default_value=self.project_name,
            sources=resolved_sources,
        )
        if project_name is None:
            project_name = DEFAULT_PROJECT_NAME
        api_key = self._resolve_value(
            key="api_key",
            env_key=ENV_API_KEY,
            default_value=self.api_key,
            sources=resolved_sources,
        )
        logging_enabled = self._resolve_bool(
            key="logging_enabled",
            env_key=ENV_LOGGING,
            default_value=self.logging_enabled,
            sources=resolved_sources,
        )
        strict = self._resolve_bool(
            key="strict",
            env_key=ENV_STRICT,
            default_value=self.strict,
            sources=resolved_sources,
        )
        return TelemetryRuntimeConfig(
            project_name=project_name,
            api_key=api_key,
            logging_enabled=logging_enabled,
            strict=strict,
        )

    def _resolve_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional value from sources in deterministic order."""

        for mapping, lookup_key in (
            (sources.cli, key),
            (sources.secure, key),
            (sources.env, env_key),
        ):
            value = self._normalized_lookup(mapping, lookup_key)
            if value is not None:
                return value
        return normalize_optional_string(default_value)

    def _resolve_bool(
        self,
        key: str,
        env_key: str,
        default_value: bool,
        sources: RuntimeConfigSources,
    ) -> bool:
        """Resolve a boolean value from sources in deterministic order."""

        value = self._resolve_value(key, env_key, None, sources)
        if value is None:
            return bool(default_value)
        return parse_required_boolean(value, key)

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))


class ConfigLoader:
    """Factory methods for creating `TelemetryConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "project_name",
            "api_key",
            "logging_enabled",
            "strict",
        }
    )
    _RUNTIME_ENV_KEYS = frozenset({ENV_API_KEY, ENV_PROJECT, ENV_LOGGING, ENV_STRICT})

    @staticmethod
    def from_yaml(path: Path) -> TelemetryConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> TelemetryConfig:
        """Create a validated config from environment variables.

        Environment values are also kept as the `env` runtime source so that
        CLI and secure-storage values still take precedence over them.
        """

        env_map: Mapping[str, str] = os.environ if env is None else env
        runtime_env = ConfigLoader.runtime_env(env_map)

        config = TelemetryConfig(
            project_name=normalize_optional_string(env_map.get(ENV_PROJECT))
            or DEFAULT_PROJECT_NAME,
            api_key=normalize_optional_string(env_map.get(ENV_API_KEY)),
            logging_enabled=ConfigLoader._env_boolean(env_map, ENV_LOGGING),
            strict=ConfigLoader._env_boolean(env_map, ENV_STRICT),
            runtime_sources=RuntimeConfigSources(env=runtime_env),
        )
        config.validate()
        return config

    @staticmethod
    def runtime_env(env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return the non-blank telemetry variables from an environment mapping."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        return {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }

    @staticmethod
    def _env_boolean(env_map: Mapping[str, str], key: str) -> bool:
        """Read a boolean environment value, treating unset as `False`."""

        value = normalize_optional_string(env_map.get(key))
        if value is None:
            return False
        return parse_required_boolean(value, key)

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> TelemetryConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        config = TelemetryConfig(
            project_name=normalize_optional_string(payload.get("project_name"))
            or DEFAULT_PROJECT_NAME,
            api_key=normalize_optional_string(payload.get("api_key")),
            logging_enabled=ConfigLoader._optional_boolean(
                payload, "logging_enabled", source_label
            ),
            strict=ConfigLoader._optional_boolean(payload, "strict", source_label),
        )
        config.validate()
        return config

    @staticmethod
    def _optional_boolean(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> bool:
        """Read an optional boolean field, defaulting to `False`."""

        if key not in payload or payload[key] is None:
            return False
        parsed = parse_permissive_boolean(payload[key])
        if parsed is None:
            raise ValueError(f"{source_label} field `{key}` must be a boolean.")
        return parsed
