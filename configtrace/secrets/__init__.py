"""Secret scanner.

Submodules:
    patterns -- The fixed catalog of credential shapes.
    scanner  -- Line scan, false-positive filtering and redaction.
"""

from configtrace.secrets.patterns import SECRET_PATTERNS
from configtrace.secrets.scanner import redact, scan_file, scan_text, should_skip_line

__all__ = ["SECRET_PATTERNS", "redact", "scan_file", "scan_text", "should_skip_line"]
