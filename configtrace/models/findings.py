"""Secret finding data structures (output of the secret scanner)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from configtrace.models.severity import Severity


class SecretType(StrEnum):
    AWS_ACCESS_KEY = "aws_access_key"
    AWS_SECRET_KEY = "aws_secret_key"
    GCP_SERVICE_ACCOUNT = "gcp_service_account"
    PRIVATE_KEY = "private_key"
    GITHUB_TOKEN = "github_token"
    JWT_TOKEN = "jwt_token"
    DATABASE_URL = "database_url"
    GENERIC_PASSWORD = "generic_password"
    GENERIC_API_KEY = "generic_api_key"


@dataclass(frozen=True)
class SecretFinding:
    """One probable secret in one file.

    ``snippet`` never contains the full secret; ``key_path`` is set when the
    match could be attributed to a flattened entry of the parsed document.
    """

    file: str
    line: int
    secret_type: SecretType
    severity: Severity
    confidence: float
    pattern_name: str
    snippet: str
    key_path: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "file": self.file,
            "line": self.line,
            "key_path": self.key_path,
            "secret_type": self.secret_type.value,
            "severity": self.severity.value,
            "confidence": self.confidence,
            "pattern": self.pattern_name,
            "snippet": self.snippet,
        }
