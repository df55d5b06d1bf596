"""Application wiring for configtrace.

ConfigTraceApp loads configuration, sets up logging and builds the
components each command needs.  Every command method returns a typed result;
mapping results to output and exit codes is the CLI's job.

Load-time problems (bad policy, unreadable top-level path, unknown revision)
raise ConfigTraceError subclasses.  Per-file problems are carried inside the
results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from configtrace.config import load_config
from configtrace.diff.engine import diff_snapshots, file_changes
from configtrace.errors import HistoryError, InputError
from configtrace.history.git import GitRepository
from configtrace.history.walker import HistoryWalker
from configtrace.inventory import (
    base_dir,
    build_snapshot,
    inventory_entries,
    is_snapshot_file,
    load_snapshot,
    save_snapshot,
)
from configtrace.models.changes import RevisionChangeSet, SnapshotDiff
from configtrace.models.config import ConfigTraceConfig
from configtrace.models.findings import SecretFinding
from configtrace.models.policy import Policy, Violation
from configtrace.models.report import AuditReport
from configtrace.models.snapshot import Snapshot
from configtrace.normalizer.formats import detect_format
from configtrace.normalizer.normalize import normalize_file
from configtrace.observability.logging import get_logger, setup_logging
from configtrace.policy.engine import evaluate
from configtrace.policy.loader import load_policy
from configtrace.report.aggregator import aggregate, sort_findings, sort_violations
from configtrace.secrets.scanner import scan_file


@dataclass
class SecretScanResult:
    files_scanned: int
    findings: list[SecretFinding] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class PolicyCheckResult:
    policy: Policy
    files_checked: int
    violations: list[Violation] = field(default_factory=list)
    parse_errors: list[str] = field(default_factory=list)


class ConfigTraceApp:
    """Application root.  One instance serves one command invocation."""

    def __init__(self, config: ConfigTraceConfig | None = None, log_level: str | None = None) -> None:
        self.config = config if config is not None else load_config()
        if log_level is not None:
            self.config.log.level = log_level
        setup_logging(self.config.log.level, self.config.log.renderer)
        self._log = get_logger("app")

    # ------------------------------------------------------------------
    # Inventory and diff
    # ------------------------------------------------------------------

    def snapshot(self, path: str | Path) -> Snapshot:
        return build_snapshot(
            path,
            max_depth=self.config.normalizer.max_depth,
            workers=self.config.execution.workers,
        )

    def scan(self, path: str | Path, out: str | Path) -> Snapshot:
        snapshot = self.snapshot(path)
        save_snapshot(snapshot, out)
        return snapshot

    def diff(self, old: str | Path, new: str | Path) -> SnapshotDiff:
        """Compare two snapshot files, directories or single config files."""
        old, new = Path(old), Path(new)
        for side in (old, new):
            if not side.exists():
                raise InputError(f"{side}: no such file or directory")

        if self._is_plain_config(old) and self._is_plain_config(new):
            max_depth = self.config.normalizer.max_depth
            fc = file_changes(str(new), normalize_file(old, max_depth=max_depth), normalize_file(new, max_depth=max_depth))
            result = SnapshotDiff()
            if fc.changes:
                result.file_changes.append(fc)
            return result

        return diff_snapshots(self._load_side(old), self._load_side(new))

    def _is_plain_config(self, path: Path) -> bool:
        return path.is_file() and detect_format(path) is not None and not is_snapshot_file(path)

    def _load_side(self, path: Path) -> Snapshot:
        if is_snapshot_file(path):
            return load_snapshot(path)
        return self.snapshot(path)

    # ------------------------------------------------------------------
    # Secrets and policy
    # ------------------------------------------------------------------

    def secrets(self, path: str | Path, snapshot: Snapshot | None = None) -> SecretScanResult:
        root = Path(path)
        snapshot = snapshot if snapshot is not None else self.snapshot(root)
        result = SecretScanResult(files_scanned=len(snapshot.files))
        findings: list[SecretFinding] = []
        for rel in sorted(snapshot.files):
            try:
                findings += scan_file(base_dir(root) / rel, rel, snapshot.files[rel].mapping)
            except OSError as exc:
                self._log.warning("secret_scan_skipped", path=rel, error=str(exc))
                result.errors.append(f"{rel}: {exc.strerror or exc}")
        result.findings = sort_findings(findings)
        return result

    def validate_policy(self, policy_path: str | Path) -> Policy:
        return load_policy(policy_path)

    def policy_check(
        self,
        path: str | Path,
        policy_path: str | Path,
        snapshot: Snapshot | None = None,
    ) -> PolicyCheckResult:
        policy = load_policy(policy_path)
        snapshot = snapshot if snapshot is not None else self.snapshot(path)
        result = PolicyCheckResult(policy=policy, files_checked=0)
        violations: list[Violation] = []
        for rel in sorted(snapshot.files):
            snap = snapshot.files[rel]
            if snap.mapping is None:
                result.parse_errors.append(f"{rel}: {snap.error}")
                continue
            result.files_checked += 1
            violations += evaluate(policy, snap.mapping, rel)
        result.violations = sort_violations(violations)
        self._log.info(
            "policy_checked",
            policy=policy.name,
            files=result.files_checked,
            violations=len(result.violations),
        )
        return result

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _repository(self, path: str | Path | None) -> tuple[GitRepository, str | None]:
        repo = GitRepository(path or ".", timeout=self.config.git.timeout_seconds)
        return repo, repo.relative(path) if path else None

    def _walker(self, repo: GitRepository, policy_path: str | Path | None) -> HistoryWalker:
        return HistoryWalker(
            repo,
            policy=load_policy(policy_path) if policy_path else None,
            max_depth=self.config.normalizer.max_depth,
            workers=self.config.execution.workers,
        )

    def git_log(
        self,
        path: str | Path | None = None,
        revision_range: str | None = None,
        limit: int | None = None,
        policy_path: str | Path | None = None,
    ) -> list[RevisionChangeSet]:
        repo, path_filter = self._repository(path)
        walker = self._walker(repo, policy_path)
        return list(walker.walk(revision_range, path_filter, limit or self.config.git.history_limit))

    def git_diff(
        self,
        ref_a: str,
        ref_b: str,
        path: str | Path | None = None,
        policy_path: str | Path | None = None,
    ) -> RevisionChangeSet:
        repo, path_filter = self._repository(path)
        return self._walker(repo, policy_path).compare(ref_a, ref_b, path_filter)

    # ------------------------------------------------------------------
    # Audit report
    # ------------------------------------------------------------------

    def report(
        self,
        path: str | Path,
        policy_path: str | Path | None = None,
        history_limit: int | None = None,
    ) -> AuditReport:
        snapshot = self.snapshot(path)
        secrets = self.secrets(path, snapshot=snapshot)
        warnings = list(secrets.errors)

        violations: list[Violation] = []
        if policy_path:
            violations = self.policy_check(path, policy_path, snapshot=snapshot).violations

        limit = self.config.report.history_limit if history_limit is None else history_limit
        recent: list[RevisionChangeSet] = []
        if limit > 0:
            try:
                recent = self.git_log(path, limit=limit)
            except HistoryError as exc:
                self._log.info("report_history_skipped", reason=str(exc))
                warnings.append(f"change history unavailable: {exc}")

        report = aggregate(
            inventory_entries(snapshot),
            secrets.findings,
            violations,
            recent,
            path=str(path),
            generated_at=datetime.now(UTC).isoformat(),
            warnings=warnings,
        )
        self._log.info("report_built", path=str(path), risk=report.risk.value, summary=report.risk_summary)
        return report
