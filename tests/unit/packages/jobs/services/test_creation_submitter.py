import pytest
from unittest.mock import AsyncMock

from common.core.exceptions import ClusterError, CreationFailedError
from packages.jobs.models.domain.job import TriggerRequest
from packages.jobs.services.creation_submitter import BackoffPolicy, CreationSubmitter
from packages.jobs.services.instance_synthesizer import synthesize


class TestBackoffPolicy:
    """Tests for the exponential backoff schedule."""

    def test_default_matches_client_backoff(self):
        policy = BackoffPolicy()
        assert policy.steps == 4
        assert policy.duration == 0.01
        assert policy.factor == 5.0

    def test_delays_without_jitter(self):
        policy = BackoffPolicy(steps=4, duration=0.01, factor=5.0, jitter=0.0)
        assert list(policy.delays()) == pytest.approx([0.01, 0.05, 0.25])

    def test_jitter_bounds(self):
        policy = BackoffPolicy(steps=3, duration=1.0, factor=2.0, jitter=0.5)
        assert list(policy.delays(rand=lambda: 1.0)) == pytest.approx([1.5, 3.0])
        assert list(policy.delays(rand=lambda: 0.0)) == pytest.approx([1.0, 2.0])


class TestCreationSubmitter:
    """Tests for job submission with retries."""

    @pytest.fixture
    def job(self, job_factory):
        return synthesize(
            job_factory.create_template(),
            TriggerRequest(job_name="etl-base", namespace="batch"),
        )

    @pytest.fixture
    def sleep(self):
        return AsyncMock(return_value=None)

    def make_submitter(self, cluster, sleep, **kwargs):
        policy = BackoffPolicy(steps=5, duration=0.01, factor=2.0, jitter=0.0)
        return CreationSubmitter(cluster, policy=policy, sleep=sleep, **kwargs)

    async def test_first_attempt_succeeds(self, mock_cluster_client, sleep, job):
        submitter = self.make_submitter(mock_cluster_client, sleep)

        created = await submitter.submit(job)

        assert created is job
        mock_cluster_client.create_job.assert_awaited_once_with("batch", job)
        sleep.assert_not_awaited()

    async def test_always_failing_is_bounded(self, mock_cluster_client, sleep, job):
        mock_cluster_client.create_job.side_effect = ClusterError("boom", api_status=500)
        submitter = self.make_submitter(mock_cluster_client, sleep)

        with pytest.raises(CreationFailedError) as exc_info:
            await submitter.submit(job)

        assert mock_cluster_client.create_job.await_count == 5
        assert exc_info.value.attempts == 5
        assert isinstance(exc_info.value.cause, ClusterError)
        assert exc_info.value.api_status == 500
        assert [c.args[0] for c in sleep.await_args_list] == pytest.approx(
            [0.01, 0.02, 0.04, 0.08]
        )

    async def test_succeeds_on_nth_attempt(self, mock_cluster_client, sleep, job):
        mock_cluster_client.create_job.side_effect = [
            ClusterError("timeout"),
            ConnectionError("reset"),
            job,
        ]
        submitter = self.make_submitter(mock_cluster_client, sleep)

        created = await submitter.submit(job)

        assert created is job
        assert mock_cluster_client.create_job.await_count == 3
        assert sleep.await_count == 2

    async def test_conflicts_are_retried_by_default(self, mock_cluster_client, sleep, job):
        mock_cluster_client.create_job.side_effect = ClusterError(
            "already exists", api_status=409
        )
        submitter = self.make_submitter(mock_cluster_client, sleep)

        with pytest.raises(CreationFailedError):
            await submitter.submit(job)

        assert mock_cluster_client.create_job.await_count == 5

    async def test_non_retriable_stops_immediately(self, mock_cluster_client, sleep, job):
        mock_cluster_client.create_job.side_effect = ClusterError(
            "already exists", api_status=409
        )
        submitter = self.make_submitter(
            mock_cluster_client,
            sleep,
            retriable=lambda e: getattr(e, "api_status", None) != 409,
        )

        with pytest.raises(CreationFailedError) as exc_info:
            await submitter.submit(job)

        assert mock_cluster_client.create_job.await_count == 1
        assert exc_info.value.attempts == 1
        sleep.assert_not_awaited()

    async def test_classifier_mixes_retriable_and_terminal(
        self, mock_cluster_client, sleep, job
    ):
        mock_cluster_client.create_job.side_effect = [
            ClusterError("unavailable", api_status=503),
            ClusterError("forbidden", api_status=403),
            job,
        ]
        submitter = self.make_submitter(
            mock_cluster_client,
            sleep,
            retriable=lambda e: getattr(e, "api_status", None) == 503,
        )

        with pytest.raises(CreationFailedError) as exc_info:
            await submitter.submit(job)

        assert mock_cluster_client.create_job.await_count == 2
        assert "forbidden" in str(exc_info.value)
