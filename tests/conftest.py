"""Shared pytest fixtures for ropee tests."""

import os

import pytest
from prometheus_client import CollectorRegistry

from ropee.backend.memory import MemoryStore
from ropee.config import Settings, reset_settings
from ropee.metrics import GatewayMetrics
from ropee.remote.models import (
    LabelMatcher,
    MatchType,
    QuerySpec,
    ReadQuery,
    Sample,
    TimeSeries,
    WriteBatch,
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests independent of ~/.ropee/config.yaml and ROPEE_* variables."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("ROPEE_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    return Settings(
        splunk_url="https://splunk.test:8089",
        splunk_hec_url="https://splunk.test:8088",
        splunk_hec_token="hec-token",
        log_file_path="-",
        timeout_seconds=5,
    )


@pytest.fixture
def metrics():
    """Counters on a private registry so tests do not share state."""
    return GatewayMetrics(CollectorRegistry())


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def up_batch():
    return WriteBatch(
        timeseries=(
            TimeSeries.from_labels(
                {"__name__": "up", "job": "node"}, [Sample(1000, 1.0)]
            ),
        )
    )


@pytest.fixture
def up_query():
    return ReadQuery(
        queries=(
            QuerySpec(
                start_timestamp_ms=0,
                end_timestamp_ms=2000,
                matchers=(LabelMatcher(MatchType.EQ, "__name__", "up"),),
            ),
        )
    )
