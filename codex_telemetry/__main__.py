"""Module entrypoint for running codex-telemetry as ``python -m codex_telemetry``."""

from __future__ import annotations

from codex_telemetry.cli import main


if __name__ == "__main__":
    main()
