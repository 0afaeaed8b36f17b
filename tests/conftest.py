"""
Shared test fixtures and configuration for azscrape tests.

This module provides common fixtures used across all test types:
- Controllable clocks for TTL and snapshot expiry tests
- Temporary snapshot locations
- Mock Azure blob and resource management clients
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

# ============================================================================
# CLOCK FIXTURES
# ============================================================================


class FakeClock:
    """Manually advanced clock usable as monotonic or wall clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def monotonic(self) -> float:
        return self.now.timestamp()

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Fake clock starting at a fixed UTC time."""
    return FakeClock(datetime(2026, 10, 19, 8, 0, 0, tzinfo=UTC))


# ============================================================================
# SNAPSHOT FIXTURES
# ============================================================================


@pytest.fixture
def snapshot_path(tmp_path):
    """Snapshot destination inside a not yet existing cache directory."""
    return tmp_path / "cache" / "metrics.json"


# ============================================================================
# AZURE MOCKING FIXTURES
# ============================================================================


@pytest.fixture
def mock_blob_service():
    """Mock BlobServiceClient whose get_blob_client returns one shared blob client."""
    blob_client = Mock()
    service = Mock()
    service.get_blob_client.return_value = blob_client
    service.blob_client = blob_client
    return service


def make_subscription(subscription_id: str, display_name: str = "") -> SimpleNamespace:
    """Stand-in for azure.mgmt.resource Subscription."""
    return SimpleNamespace(subscription_id=subscription_id, display_name=display_name)


def make_resource_group(
    name: str, location: str = "westeurope", provisioning_state: str = "Succeeded"
) -> SimpleNamespace:
    """Stand-in for azure.mgmt.resource ResourceGroup."""
    return SimpleNamespace(
        name=name,
        location=location,
        properties=SimpleNamespace(provisioning_state=provisioning_state),
    )


@pytest.fixture
def mock_subscription_client():
    """Mock SubscriptionClient listing two subscriptions."""
    client = Mock()
    client.subscriptions.list.return_value = [
        make_subscription("sub-1", "Production"),
        make_subscription("sub-2", "Development"),
    ]
    return client


@pytest.fixture
def resource_group_factory():
    """Factory for ResourceGroup stand-ins."""
    return make_resource_group


@pytest.fixture
def subscription_factory():
    """Factory for Subscription stand-ins."""
    return make_subscription
