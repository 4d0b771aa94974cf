import asyncio

import pytest

from packages.jobs.models.domain.monitor import MonitorState
from packages.jobs.services.monitor_registry import MonitorRegistry

JOB_NAME = "etl-base-run-1714552200-42"


async def wait_for_state(registry, namespace, name, state, timeout=2.0):
    """Poll the registry until the run's monitor reaches ``state``."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        record = registry.get(namespace, name)
        if record is not None and record.state == state:
            return record
        await asyncio.sleep(0.01)
    raise AssertionError(f"monitor of {name} never reached {state}")


class TestMonitorRegistry:
    """Tests for tracking, cancelling and draining run monitors."""

    @pytest.fixture
    def running_cluster(self, mock_cluster_client, job_factory):
        mock_cluster_client.get_job.return_value = job_factory.create_job(active=1)
        mock_cluster_client.get_job.side_effect = None
        return mock_cluster_client

    async def test_start_tracks_monitor(self, running_cluster, monitor_registry):
        record = monitor_registry.start("batch", JOB_NAME)

        assert record.state == MonitorState.WATCHING
        assert monitor_registry.active_count == 1
        assert monitor_registry.get("batch", JOB_NAME) is record

    async def test_start_twice_returns_existing(self, running_cluster, monitor_registry):
        first = monitor_registry.start("batch", JOB_NAME)
        second = monitor_registry.start("batch", JOB_NAME)

        assert first is second
        assert monitor_registry.active_count == 1

    async def test_finished_monitor_moves_to_history(
        self, mock_cluster_client, monitor_registry, job_factory
    ):
        mock_cluster_client.get_job.return_value = job_factory.create_job(succeeded=1)
        mock_cluster_client.get_job.side_effect = None

        monitor_registry.start("batch", JOB_NAME)
        record = await wait_for_state(
            monitor_registry, "batch", JOB_NAME, MonitorState.DELETED
        )

        await asyncio.sleep(0.01)
        assert monitor_registry.active_count == 0
        assert monitor_registry.get("batch", JOB_NAME) is record
        mock_cluster_client.delete_job.assert_awaited_once_with("batch", JOB_NAME)

    async def test_stop_cancels_one_monitor(self, running_cluster, monitor_registry):
        monitor_registry.start("batch", JOB_NAME)
        monitor_registry.start("batch", "other-run-1-1")
        await asyncio.sleep(0.02)

        assert await monitor_registry.stop("batch", JOB_NAME) is True

        assert monitor_registry.get("batch", JOB_NAME).state == MonitorState.CANCELLED
        assert monitor_registry.get("batch", "other-run-1-1").state == MonitorState.WATCHING
        assert monitor_registry.active_count == 1
        running_cluster.delete_job.assert_not_awaited()

    async def test_stop_before_first_step(self, running_cluster, monitor_registry):
        monitor_registry.start("batch", JOB_NAME)

        assert await monitor_registry.stop("batch", JOB_NAME) is True
        assert monitor_registry.get("batch", JOB_NAME).state == MonitorState.CANCELLED

    async def test_stop_unknown_returns_false(self, monitor_registry):
        assert await monitor_registry.stop("batch", "missing") is False

    async def test_shutdown_drains_all(self, running_cluster):
        registry = MonitorRegistry(running_cluster, poll_interval=0.01, grace_period=0.01)
        for i in range(3):
            registry.start("batch", f"etl-base-run-1-{i}")
        await asyncio.sleep(0.02)

        await registry.shutdown(timeout=1.0)

        assert registry.active_count == 0
        assert all(r.state == MonitorState.CANCELLED for r in registry.snapshot())
        assert len(registry.snapshot()) == 3

    async def test_start_after_shutdown_is_refused(self, running_cluster):
        registry = MonitorRegistry(running_cluster, poll_interval=0.01, grace_period=0.01)
        await registry.shutdown(timeout=1.0)

        record = registry.start("batch", JOB_NAME)

        assert record.state == MonitorState.CANCELLED
        assert registry.active_count == 0

    async def test_history_is_bounded(self, running_cluster):
        registry = MonitorRegistry(
            running_cluster, poll_interval=0.01, grace_period=0.01, history_size=2
        )
        for i in range(4):
            registry.start("batch", f"etl-base-run-1-{i}")
            await registry.stop("batch", f"etl-base-run-1-{i}")

        names = [r.name for r in registry.snapshot()]
        assert names == ["etl-base-run-1-2", "etl-base-run-1-3"]

    async def test_crashed_monitor_is_terminal(self, running_cluster):
        async def broken_sleep(seconds):
            raise RuntimeError("event loop closed")

        registry = MonitorRegistry(running_cluster, sleep=broken_sleep)
        registry.start("batch", JOB_NAME)

        record = await wait_for_state(registry, "batch", JOB_NAME, MonitorState.CRASHED)

        assert record.state.is_terminal
        assert record.error == "event loop closed"
        assert record.finished_at is not None
        assert registry.active_count == 0
