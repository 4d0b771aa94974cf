"""
Per-run completion monitor.

Polls one run on a fixed interval. Once the run reports success the monitor
waits a grace period, so logs can still be read, then deletes the run.
Failed runs are retained by default to keep the evidence around.
"""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from kubernetes.client import V1Job

from common.core.constants import MonitorFailurePolicy
from common.core.exceptions import JobNotFoundError
from common.core.telemetry import get_logger
from common.providers.cluster.interface import ClusterClientInterface
from packages.jobs.models.domain.monitor import MonitorRecord, MonitorState

logger = get_logger(__name__)


def has_succeeded(job: V1Job) -> bool:
    return bool(job.status and (job.status.succeeded or 0) > 0)


def has_failed(job: V1Job) -> bool:
    """True once the job controller marked the job as failed for good."""
    if not job.status or not job.status.conditions:
        return False
    return any(
        c.type == "Failed" and c.status == "True" for c in job.status.conditions
    )


class LifecycleMonitor:
    """Watches a single run until it is deleted, retained or cancelled."""

    def __init__(
        self,
        cluster: ClusterClientInterface,
        record: MonitorRecord,
        poll_interval: float = 5.0,
        grace_period: float = 30.0,
        failure_policy: MonitorFailurePolicy = MonitorFailurePolicy.RETAIN,
        not_found_threshold: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cluster = cluster
        self.record = record
        self.poll_interval = poll_interval
        self.grace_period = grace_period
        self.failure_policy = failure_policy
        self.not_found_threshold = not_found_threshold
        self._sleep = sleep

    @property
    def namespace(self) -> str:
        return self.record.namespace

    @property
    def job_name(self) -> str:
        return self.record.name

    async def run(self) -> MonitorState:
        """Poll until a terminal state is reached and return it."""
        logger.info(f"Monitoring job {self.job_name} in namespace {self.namespace}")
        misses = 0
        try:
            while True:
                await self._sleep(self.poll_interval)

                try:
                    job = await self.cluster.get_job(self.namespace, self.job_name)
                except JobNotFoundError:
                    misses += 1
                    if misses >= self.not_found_threshold:
                        logger.warning(f"Job {self.job_name} no longer exists, stop monitoring")
                        return self._finish(MonitorState.NOT_FOUND, "Job not found")
                    logger.warning(
                        f"Job {self.job_name} not found ({misses}/{self.not_found_threshold})"
                    )
                    continue
                except Exception as e:
                    # Transient: keep polling at the same interval
                    logger.error(f"Error retrieving job {self.job_name}: {e}")
                    continue

                misses = 0
                if has_succeeded(job):
                    logger.info(
                        f"Job {self.job_name} succeeded. Cleaning up in {self.grace_period}s..."
                    )
                    self.record.state = MonitorState.SUCCEEDED
                    return await self._delete_after_grace()

                if has_failed(job):
                    if self.failure_policy == MonitorFailurePolicy.RETAIN:
                        logger.warning(f"Job {self.job_name} failed, retaining it")
                        return self._finish(MonitorState.FAILED, "Job failed")
                    logger.info(
                        f"Job {self.job_name} failed. Cleaning up in {self.grace_period}s..."
                    )
                    self.record.error = "Job failed"
                    return await self._delete_after_grace()
        except asyncio.CancelledError:
            logger.info(f"Monitor for job {self.job_name} cancelled")
            self._finish(MonitorState.CANCELLED)
            raise

    async def _delete_after_grace(self) -> MonitorState:
        await self._sleep(self.grace_period)
        try:
            await self.cluster.delete_job(self.namespace, self.job_name)
        except JobNotFoundError:
            logger.info(f"Job {self.job_name} already deleted or not found")
        except Exception as e:
            logger.error(f"Error deleting job {self.job_name}: {e}")
            return self._finish(MonitorState.DELETE_FAILED, str(e))
        else:
            logger.info(f"Job {self.job_name} deleted successfully.")
        return self._finish(MonitorState.DELETED)

    def _finish(self, state: MonitorState, error: Optional[str] = None) -> MonitorState:
        self.record.state = state
        self.record.finished_at = datetime.now(timezone.utc)
        if error is not None:
            self.record.error = error
        return state
