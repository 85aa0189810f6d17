"""Module entrypoint for ``python -m flexlm_options``."""

from __future__ import annotations

from flexlm_options.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
