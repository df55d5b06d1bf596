"""Fixed catalog of secret patterns.

Each pattern names the capture group holding the secret itself; group 0 is
the whole match.  Confidence is a static estimate of how often a match of
that shape is a real credential.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from configtrace.models.findings import SecretType
from configtrace.models.severity import Severity


@dataclass(frozen=True)
class SecretPattern:
    name: str
    regex: re.Pattern[str]
    secret_type: SecretType
    severity: Severity
    confidence: float
    secret_group: int = 0


SECRET_PATTERNS: tuple[SecretPattern, ...] = (
    SecretPattern(
        name="AWS Access Key ID",
        regex=re.compile(r"(?i)(A3T[A-Z0-9]|AKIA|AGPA|AIDA|AROA|AIPA|ANPA|ANVA|ASIA)[A-Z0-9]{16}"),
        secret_type=SecretType.AWS_ACCESS_KEY,
        severity=Severity.CRITICAL,
        confidence=0.9,
    ),
    SecretPattern(
        name="AWS Secret Access Key",
        regex=re.compile(r"""(?i)aws[_-]?secret[_-]?access[_-]?key['"]?\s*[:=]\s*['"]?([A-Za-z0-9/+=]{40})['"]?"""),
        secret_type=SecretType.AWS_SECRET_KEY,
        severity=Severity.CRITICAL,
        confidence=0.85,
        secret_group=1,
    ),
    SecretPattern(
        name="GCP Service Account Key",
        regex=re.compile(r'"type"\s*:\s*"service_account"'),
        secret_type=SecretType.GCP_SERVICE_ACCOUNT,
        severity=Severity.CRITICAL,
        confidence=0.95,
    ),
    SecretPattern(
        name="RSA/EC Private Key",
        regex=re.compile(r"-----BEGIN (RSA |EC |OPENSSH )?PRIVATE KEY-----"),
        secret_type=SecretType.PRIVATE_KEY,
        severity=Severity.CRITICAL,
        confidence=0.99,
    ),
    SecretPattern(
        name="GitHub Token",
        regex=re.compile(r"gh[pousr]_[A-Za-z0-9_]{36,255}"),
        secret_type=SecretType.GITHUB_TOKEN,
        severity=Severity.CRITICAL,
        confidence=0.95,
    ),
    SecretPattern(
        name="Database Connection String",
        regex=re.compile(r"(?i)(postgres|mysql|mongodb|redis)://[^:]+:[^@]+@"),
        secret_type=SecretType.DATABASE_URL,
        severity=Severity.CRITICAL,
        confidence=0.8,
    ),
    SecretPattern(
        name="Generic Password",
        regex=re.compile(r"""(?i)(password|passwd|pwd)['"]?\s*[:=]\s*['"]?([^'">\s]{8,})['"]?"""),
        secret_type=SecretType.GENERIC_PASSWORD,
        severity=Severity.CRITICAL,
        confidence=0.6,
        secret_group=2,
    ),
    SecretPattern(
        name="Generic API Key",
        regex=re.compile(r"""(?i)(api[_-]?key|apikey|api[_-]?secret)['"]?\s*[:=]\s*['"]?([A-Za-z0-9_-]{20,})['"]?"""),
        secret_type=SecretType.GENERIC_API_KEY,
        severity=Severity.HIGH,
        confidence=0.6,
        secret_group=2,
    ),
    SecretPattern(
        name="JWT Token",
        regex=re.compile(r"eyJ[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}"),
        secret_type=SecretType.JWT_TOKEN,
        severity=Severity.HIGH,
        confidence=0.7,
    ),
)
