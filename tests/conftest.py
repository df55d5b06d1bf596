"""Fixtures shared by unit and integration tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """CLI runs bind the logger to a captured stderr that is closed afterwards."""
    yield
    structlog.reset_defaults()
