"""
Pytest configuration and shared fixtures.

Provides test configuration instances, publishers, and sample data for unit and integration tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import List, Dict, Any
import pandas as pd

from src.anomaly.baselines import RollingBaselineStore
from src.core.config import MonitoringConfig
from src.events.publisher import InMemoryEventPublisher


@pytest.fixture
def mock_config() -> MonitoringConfig:
    """
    Fixture providing monitoring configuration with default values.

    Built explicitly (not from .env) so tests run consistently regardless
    of environment settings.

    Returns:
        MonitoringConfig: Fresh instance tests may modify freely
    """
    return MonitoringConfig()


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    """Fixture providing an in-memory publisher that records every event."""
    return InMemoryEventPublisher()


@pytest.fixture
def baseline_store() -> RollingBaselineStore:
    return RollingBaselineStore(capacity=100)


@pytest.fixture
def steady_history() -> List[float]:
    """
    Ten points alternating 0 and 2: mean 1.0, population std 1.0.

    A value of 1.0 + k has a z-score of exactly k against it.
    """
    return [0.0, 2.0] * 5


@pytest.fixture
def sample_metric_data() -> List[Dict[str, Any]]:
    """
    Fixture providing realistic metric samples for testing.

    Generates CPU readings for two services over the past hour, with one
    spike at the end for "api-server".

    Returns:
        List[Dict]: samples with keys service_name, metric_name, value,
        timestamp (ISO format), labels
    """
    base_time = datetime(2025, 2, 7, 10, 0, tzinfo=timezone.utc)
    samples = []

    for i in range(30):
        timestamp = base_time + timedelta(minutes=i * 2)
        for service in ("api-server", "auth-service"):
            samples.append({
                "service_name": service,
                "metric_name": "cpu_usage",
                "value": 40.0 + (i % 3),  # 40-42%
                "timestamp": timestamp.isoformat(),
                "labels": '{"region": "eu-west-1"}',
            })

    samples.append({
        "service_name": "api-server",
        "metric_name": "cpu_usage",
        "value": 97.0,
        "timestamp": (base_time + timedelta(minutes=61)).isoformat(),
        "labels": '{"region": "eu-west-1"}',
    })
    return samples


@pytest.fixture
def sample_metric_dataframe(sample_metric_data) -> pd.DataFrame:
    """
    Fixture providing sample metric data as a pandas DataFrame.

    Convenience fixture for ingestion tests.
    """
    return pd.DataFrame(sample_metric_data)


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
