"""Logging and metrics for configtrace.

Submodules:
    logging -- structlog configuration and component-bound loggers.
    metrics -- prometheus_client counters on a dedicated registry.
"""
