# Shared pytest configuration and fixtures for all test types
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api.main import app
from common.providers.cluster.interface import ClusterClientInterface
from packages.jobs.dependencies import get_cluster_client, get_monitor_registry
from packages.jobs.services.monitor_registry import MonitorRegistry
from tests.factories.job_factory import JobFactory

# Monitor timings small enough for tests to watch a run end to end
TEST_POLL_INTERVAL = 0.01
TEST_GRACE_PERIOD = 0.02


@pytest.fixture
def job_factory():
    return JobFactory


@pytest.fixture
def mock_cluster_client():
    """Create a mock cluster client for testing."""
    cluster = AsyncMock(spec=ClusterClientInterface)
    cluster.get_job = AsyncMock(return_value=JobFactory.create_template())
    cluster.create_job = AsyncMock(side_effect=lambda namespace, job: job)
    cluster.delete_job = AsyncMock(return_value=None)
    cluster.list_jobs = AsyncMock(return_value=[])
    cluster.list_namespaces = AsyncMock(return_value=["default"])
    cluster.list_pods = AsyncMock(return_value=[])
    cluster.read_pod_log = AsyncMock(return_value="")
    return cluster


@pytest_asyncio.fixture(scope="function")
async def monitor_registry(mock_cluster_client):
    """Registry with fast timings; every monitor is cancelled after the test."""
    registry = MonitorRegistry(
        mock_cluster_client,
        poll_interval=TEST_POLL_INTERVAL,
        grace_period=TEST_GRACE_PERIOD,
    )
    try:
        yield registry
    finally:
        await registry.shutdown(timeout=1.0)


@pytest_asyncio.fixture(scope="function")
async def client(mock_cluster_client, monitor_registry):
    """Create a test client wired to the mock cluster."""
    app.dependency_overrides[get_cluster_client] = lambda: mock_cluster_client
    app.dependency_overrides[get_monitor_registry] = lambda: monitor_registry
    app.state.cluster_client = mock_cluster_client

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
        app.state.cluster_client = None
