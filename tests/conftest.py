"""
Global pytest configuration and fixtures for k6-stat tests.

This module provides:
- Test descriptors and merged sample builders
- FastAPI test client fixture
- A mocked ClickHouse client for storage-level tests
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from k6stat.core.merge import http_errors_pcnt
from k6stat.models import SampleDurations, Test, TestSamples

T0 = datetime(2023, 1, 20, 6, 41, 42, tzinfo=UTC)


# =============================================================================
# Model builders
# =============================================================================


def durations(url: str = "/", status: dict[str, float] | None = None, **latency: float) -> SampleDurations:
    """Build a merged record with count and error percentage derived from ``status``."""
    status = dict(status or {})
    count, errors_pcnt = http_errors_pcnt(status)
    return SampleDurations(url=url, status=status, count=count, errors_pcnt=errors_pcnt, **latency)


@pytest.fixture
def make_durations() -> Callable[..., SampleDurations]:
    return durations


@pytest.fixture
def current_test() -> Test:
    return Test(id=2, ts=datetime.fromtimestamp(1674196902, UTC), name="carbonapi 1.5.6", params="USERS=2")


@pytest.fixture
def reference_test() -> Test:
    return Test(id=1, ts=datetime.fromtimestamp(1674196900, UTC), name="carbonapi 1.1.2", params="USERS=2")


@pytest.fixture
def current_samples(current_test: Test) -> TestSamples:
    return TestSamples(
        test=current_test,
        samples={
            "find": [
                durations("q=a.*", {"200": 9, "504": 1}, p50=1, p90=2, p95=3, p99=4, max=5),
                durations("q=b.*", {"200": 9, "504": 1}, p50=2, p90=2, p95=3, p99=4, max=4),
            ],
            "render 1h": [
                durations("target=a.*", {"200": 9, "504": 1}, p50=1, p90=2, p95=3, p99=4, max=5),
            ],
        },
    )


@pytest.fixture
def reference_samples(reference_test: Test) -> TestSamples:
    return TestSamples(
        test=reference_test,
        samples={
            "find": [
                durations("q=a.*", {"200": 8, "400": 2}, p50=1, p90=2, p95=3, p99=4, max=4),
            ],
            "render 1d": [
                durations("target=a.*", {"200": 9, "504": 1}, p50=1, p90=2, p95=3, p99=4, max=5),
            ],
        },
    )


# =============================================================================
# Storage and API fixtures
# =============================================================================


@pytest.fixture
def ch_client() -> Any:
    """ClickHouse client double; set ``fetch_all.return_value`` per test."""
    client = AsyncMock()
    client.fetch_all = AsyncMock(return_value=[])
    return client


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client (lifespan not started, no database needed)."""
    from k6stat.main import app

    return TestClient(app)
