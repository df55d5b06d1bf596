"""configtrace: key-level drift, secret and policy auditing for config files."""

__version__ = "0.1.0"
