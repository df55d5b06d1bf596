"""Entry point for `python -m configtrace`.

Usage:
    python -m configtrace report .
    uv run python -m configtrace git log --limit 20
"""

from __future__ import annotations

from configtrace.cli import cli

cli()
