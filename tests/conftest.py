"""
Pytest configuration and fixtures for tablesync tests.
Provides fake data sources, sinks and catalog rows shared by the suites.
"""

import os

import pytest

from fakes import FakeDataSource, RecordingProgress, RecordingSink


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "property: mark test as property-based test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture
def source() -> FakeDataSource:
    return FakeDataSource("source")


@pytest.fixture
def destination() -> FakeDataSource:
    return FakeDataSource("destination")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def column_rows():
    """Catalog rows shaped like the information_schema.columns query."""
    return [
        {"schema": "public", "table": "orders", "column": "id", "type": "integer"},
        {"schema": "public", "table": "orders", "column": "user_id", "type": "integer"},
        {"schema": "public", "table": "users", "column": "email", "type": "text"},
        {"schema": "public", "table": "users", "column": "id", "type": "integer"},
        {"schema": "audit", "table": "log", "column": "id", "type": "bigint"},
    ]


@pytest.fixture
def trigger_rows():
    """Catalog rows shaped like the pg_trigger join."""
    return [
        {"schema": "public", "table": "orders", "name": "RI_ConstraintTrigger_c_1",
         "internal": True, "enabled": True, "integrity": True},
        {"schema": "public", "table": "orders", "name": "audit_orders",
         "internal": False, "enabled": True, "integrity": False},
        {"schema": "public", "table": "users", "name": "RI_ConstraintTrigger_a_2",
         "internal": True, "enabled": True, "integrity": True},
    ]


@pytest.fixture
def test_database_url():
    """Live PostgreSQL for integration tests; skips when not configured."""
    url = os.getenv("TABLESYNC_TEST_DATABASE_URL")
    if not url:
        pytest.skip("TABLESYNC_TEST_DATABASE_URL not set")
    return url
