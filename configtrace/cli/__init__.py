"""configtrace command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``configtrace`` script).
"""

from configtrace.cli.main import cli

__all__ = ["cli"]
