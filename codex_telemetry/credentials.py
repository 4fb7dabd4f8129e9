"""Secure credential storage for the Braintrust API key.

Responsibilities:
- Persist the Braintrust API key in an OS-backed secure credential store.
- Provide deterministic read/write/delete operations for that key.
- Never log or echo secret values.

Key types:
- `CredentialStore`: interface for API-key persistence.
- `KeyringCredentialStore`: keyring-backed secure credential storage.
"""

from __future__ import annotations

from dataclasses import dataclass

import keyring
from keyring.backends import fail
from keyring.errors import PasswordDeleteError


_DEFAULT_SERVICE_NAME = "codex-telemetry"
_DEFAULT_ACCOUNT_NAME = "braintrust_api_key"


class CredentialStore:
    """Interface for secure API-key operations."""

    def is_available(self) -> bool:
        """Return whether secure credential operations are available."""

        raise NotImplementedError

    def get_api_key(self) -> str | None:
        """Load the stored API key, when present."""

        raise NotImplementedError

    def set_api_key(self, api_key: str) -> None:
        """Persist an API key."""

        raise NotImplementedError

    def clear_api_key(self) -> bool:
        """Delete a stored API key and return whether one existed."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package."""

    service_name: str = _DEFAULT_SERVICE_NAME
    account_name: str = _DEFAULT_ACCOUNT_NAME

    def _load_keyring_module(self):
        """Return the keyring module, or `None` when no usable backend is configured."""

        if isinstance(keyring.get_keyring(), fail.Keyring):
            return None
        return keyring

    def is_available(self) -> bool:
        """Return `True` when a real keyring backend is configured."""

        return self._load_keyring_module() is not None

    def get_api_key(self) -> str | None:
        """Get a normalized API key from keyring, returning `None` when missing."""

        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            return None
        value = keyring_module.get_password(self.service_name, self.account_name)
        if value is None:
            return None
        return value.strip() or None

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key in keyring or raise when unavailable."""

        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            raise RuntimeError(
                "Secure credential storage is unavailable because no keyring backend "
                "is configured."
            )

        normalized = api_key.strip()
        if not normalized:
            raise ValueError("API key must be a non-empty string.")
        keyring_module.set_password(self.service_name, self.account_name, normalized)

    def clear_api_key(self) -> bool:
        """Remove the stored API key and report whether one was present."""

        keyring_module = self._load_keyring_module()
        if keyring_module is None or self.get_api_key() is None:
            return False

        try:
            keyring_module.delete_password(self.service_name, self.account_name)
        except PasswordDeleteError:
            return False
        return True


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()
