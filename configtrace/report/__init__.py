"""Audit Aggregator and renderers.

Submodules:
    aggregator -- Combines inventory, findings, violations and history into
                  an AuditReport with a PASS/WARN/FAIL verdict.
    render     -- Text, JSON and Markdown output.
"""

from configtrace.report.aggregator import aggregate, compute_risk
from configtrace.report.render import OutputFormat, render_report

__all__ = ["OutputFormat", "aggregate", "compute_risk", "render_report"]
