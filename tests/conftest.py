"""Shared pytest fixtures."""

import pytest
from prometheus_client import REGISTRY


@pytest.fixture
def sample_value():
    """Read a Prometheus sample from the default registry, treating unset as zero."""

    def _read(name: str, labels: dict[str, str] | None = None) -> float:
        return REGISTRY.get_sample_value(name, labels or {}) or 0.0

    return _read
