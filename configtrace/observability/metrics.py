"""Prometheus counters for configtrace runs.

Metrics live on a dedicated registry rather than the process-global one, so
a batch run can dump exactly its own counters with :func:`write_metrics`
(node-exporter textfile collector format).
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, write_to_textfile

REGISTRY = CollectorRegistry(auto_describe=True)

files_normalized_total = Counter(
    "configtrace_files_normalized_total",
    "Config documents passed through the normalizer",
    ["format", "outcome"],
    registry=REGISTRY,
)

diff_changes_total = Counter(
    "configtrace_diff_changes_total",
    "Key-level changes produced by the diff engine",
    ["kind"],
    registry=REGISTRY,
)

policy_violations_total = Counter(
    "configtrace_policy_violations_total",
    "Policy violations produced by rule evaluation",
    ["severity"],
    registry=REGISTRY,
)

secret_findings_total = Counter(
    "configtrace_secret_findings_total",
    "Secret findings produced by the secret scanner",
    ["severity"],
    registry=REGISTRY,
)

revisions_walked_total = Counter(
    "configtrace_revisions_walked_total",
    "Historical revisions processed by the history walker",
    registry=REGISTRY,
)


def write_metrics(path: str) -> None:
    """Write the registry to *path* atomically in textfile format."""
    write_to_textfile(path, REGISTRY)
