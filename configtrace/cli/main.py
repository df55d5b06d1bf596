"""configtrace command-line interface.

Exit codes:
    0 -- ran cleanly, nothing to report
    1 -- changes, findings or violations present
    2 -- could not run (bad input, invalid policy, not a repository, ...)
"""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum
from functools import wraps
from pathlib import Path
from typing import Any, TypeVar

import click

from configtrace import __version__
from configtrace.app import ConfigTraceApp
from configtrace.errors import ConfigTraceError, InputError
from configtrace.models.report import RiskLevel
from configtrace.observability.metrics import write_metrics
from configtrace.report.render import (
    OutputFormat,
    render_findings,
    render_report,
    render_revisions,
    render_snapshot_diff,
    render_violations,
)

F = TypeVar("F", bound=Callable[..., Any])

_LOG_LEVELS = ["debug", "info", "warning", "error"]


class ExitCode(IntEnum):
    CLEAN = 0
    FINDINGS = 1
    ERROR = 2


def _app(ctx: click.Context) -> ConfigTraceApp:
    return ctx.find_object(ConfigTraceApp)  # type: ignore[return-value]


def _emit(text: str, output: str | None = None) -> None:
    if not output:
        click.echo(text)
        return
    try:
        Path(output).write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
    except OSError as exc:
        raise InputError(f"{output}: cannot write output: {exc.strerror or exc}") from exc
    click.echo(f"Wrote {output}", err=True)


def _finish(ctx: click.Context, code: ExitCode) -> None:
    app = ctx.find_object(ConfigTraceApp)
    if app is not None and app.config.metrics.textfile:
        write_metrics(app.config.metrics.textfile)
    ctx.exit(int(code))


def command(func: F) -> F:
    """Map a command's result to its exit code and ConfigTraceError to ERROR."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> None:
        ctx = click.get_current_context()
        try:
            found = func(*args, **kwargs)
        except ConfigTraceError as exc:
            click.echo(f"Error: {exc}", err=True)
            _finish(ctx, ExitCode.ERROR)
        else:
            _finish(ctx, ExitCode.FINDINGS if found else ExitCode.CLEAN)

    return wrapper  # type: ignore[return-value]


_format_option = click.option(
    "--format",
    "fmt",
    type=click.Choice([OutputFormat.TEXT.value, OutputFormat.JSON.value]),
    default=OutputFormat.TEXT.value,
    show_default=True,
    help="Output format.",
)
_output_option = click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write output to a file.")


@click.group()
@click.version_option(__version__, prog_name="configtrace")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override CONFIGTRACE_LOG_LEVEL.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Audit YAML, JSON and TOML configuration for drift, secrets and policy."""
    try:
        ctx.obj = ConfigTraceApp(log_level=log_level.lower() if log_level else None)
    except ValueError as exc:
        click.echo(f"Error: invalid configuration: {exc}", err=True)
        ctx.exit(int(ExitCode.ERROR))


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("path", type=click.Path())
@click.option("--out", required=True, type=click.Path(dir_okay=False), help="Snapshot file to write.")
@click.pass_context
@command
def scan(ctx: click.Context, path: str, out: str) -> bool:
    """Inventory config files under PATH into a snapshot."""
    snapshot = _app(ctx).scan(path, out)
    errors = sum(1 for snap in snapshot.files.values() if not snap.ok)
    click.echo(f"Wrote snapshot of {len(snapshot.files)} files to {out}" + (f" ({errors} unparseable)" if errors else ""))
    return False


@cli.command()
@click.argument("old", type=click.Path())
@click.argument("new", type=click.Path())
@_format_option
@_output_option
@click.pass_context
@command
def diff(ctx: click.Context, old: str, new: str, fmt: str, output: str | None) -> bool:
    """Key-level diff of two snapshots, directories or config files."""
    result = _app(ctx).diff(old, new)
    _emit(render_snapshot_diff(result, OutputFormat(fmt)), output)
    return result.has_changes


@cli.command()
@click.argument("path", type=click.Path())
@_format_option
@_output_option
@click.pass_context
@command
def secrets(ctx: click.Context, path: str, fmt: str, output: str | None) -> bool:
    """Scan config files under PATH for exposed secrets."""
    result = _app(ctx).secrets(path)
    _emit(render_findings(result.findings, OutputFormat(fmt), files_scanned=result.files_scanned), output)
    return bool(result.findings)


@cli.command()
@click.argument("path", type=click.Path())
@click.option("--policy", "policy_path", type=click.Path(dir_okay=False), help="Policy file to evaluate.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    show_default=True,
)
@_output_option
@click.option("--history-limit", type=click.IntRange(min=0), default=None, help="Recent revisions to include.")
@click.pass_context
@command
def report(
    ctx: click.Context,
    path: str,
    policy_path: str | None,
    fmt: str,
    output: str | None,
    history_limit: int | None,
) -> bool:
    """Unified audit report: inventory, secrets, policy and recent changes."""
    result = _app(ctx).report(path, policy_path=policy_path, history_limit=history_limit)
    _emit(render_report(result, OutputFormat(fmt)), output)
    return result.risk is not RiskLevel.PASS


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@cli.group()
def policy() -> None:
    """Evaluate and validate policy files."""


@policy.command("check")
@click.argument("path", type=click.Path())
@click.option("--policy", "policy_path", required=True, type=click.Path(dir_okay=False))
@_format_option
@_output_option
@click.pass_context
@command
def policy_check(ctx: click.Context, path: str, policy_path: str, fmt: str, output: str | None) -> bool:
    """Evaluate POLICY against every config file under PATH."""
    result = _app(ctx).policy_check(path, policy_path)
    _emit(
        render_violations(
            result.violations,
            OutputFormat(fmt),
            policy_name=result.policy.name,
            files_checked=result.files_checked,
        ),
        output,
    )
    for error in result.parse_errors:
        click.echo(f"Warning: skipped {error}", err=True)
    return bool(result.violations)


@policy.command("validate")
@click.argument("policy_path", type=click.Path(dir_okay=False))
@click.pass_context
@command
def policy_validate(ctx: click.Context, policy_path: str) -> bool:
    """Check that a policy file loads."""
    loaded = _app(ctx).validate_policy(policy_path)
    click.echo(f"Policy '{loaded.name}' is valid ({len(loaded.rules)} rules).")
    return False


# ---------------------------------------------------------------------------
# Git history
# ---------------------------------------------------------------------------


@cli.group()
def git() -> None:
    """Key-level config history from a git repository."""


@git.command("log")
@click.argument("path", required=False, type=click.Path())
@click.option("--range", "revision_range", default=None, help="Revision range, e.g. main..feature.")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Revisions to walk.")
@click.option("--policy", "policy_path", type=click.Path(dir_okay=False))
@_format_option
@_output_option
@click.pass_context
@command
def git_log(
    ctx: click.Context,
    path: str | None,
    revision_range: str | None,
    limit: int | None,
    policy_path: str | None,
    fmt: str,
    output: str | None,
) -> bool:
    """Per-revision key-level changes to config files."""
    change_sets = _app(ctx).git_log(path, revision_range=revision_range, limit=limit, policy_path=policy_path)
    _emit(render_revisions(change_sets, OutputFormat(fmt)), output)
    return any(cs.violations for cs in change_sets)


@git.command("diff")
@click.argument("ref1")
@click.argument("ref2")
@click.argument("path", required=False, type=click.Path())
@click.option("--policy", "policy_path", type=click.Path(dir_okay=False))
@_format_option
@_output_option
@click.pass_context
@command
def git_diff(
    ctx: click.Context,
    ref1: str,
    ref2: str,
    path: str | None,
    policy_path: str | None,
    fmt: str,
    output: str | None,
) -> bool:
    """Key-level changes to config files between REF1 and REF2."""
    change_set = _app(ctx).git_diff(ref1, ref2, path, policy_path=policy_path)
    _emit(render_revisions([change_set] if change_set.file_changes else [], OutputFormat(fmt)), output)
    return bool(change_set.violations)
