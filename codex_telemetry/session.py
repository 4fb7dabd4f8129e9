"""Session identity for telemetry metadata.

Responsibilities:
- Provide the CLI version, origin tag and per-process session id.
- Build the immutable metadata mapping attached to logger spans.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping
import uuid

from . import __version__


ORIGIN = "codex_cli_py"


@dataclass(frozen=True, slots=True)
class SessionIdentity:
    """Read-only identity of the running CLI session."""

    cli_version: str
    origin: str
    session_id: str

    def telemetry_metadata(self) -> Mapping[str, str]:
        """Return the read-only metadata mapping attached to telemetry spans."""

        return MappingProxyType(
            {
                "cli_version": self.cli_version,
                "origin": self.origin,
                "session_id": self.session_id,
            }
        )


def new_session_identity() -> SessionIdentity:
    """Create a session identity with a fresh random session id."""

    return SessionIdentity(
        cli_version=__version__,
        origin=ORIGIN,
        session_id=uuid.uuid4().hex,
    )


@lru_cache(maxsize=1)
def current_session() -> SessionIdentity:
    """Return the session identity of this process, created on first use."""

    return new_session_identity()
