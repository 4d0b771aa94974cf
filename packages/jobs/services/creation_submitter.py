import asyncio
import random
from typing import Awaitable, Callable, Iterator, Optional

from kubernetes.client import V1Job
from pydantic import BaseModel, ConfigDict, Field

from common.core.config import Settings, settings as default_settings
from common.core.exceptions import CreationFailedError
from common.core.telemetry import get_logger, trace_span
from common.providers.cluster.interface import ClusterClientInterface

logger = get_logger(__name__)


class BackoffPolicy(BaseModel):
    """Exponential backoff between create attempts.

    Defaults match the Kubernetes client's standard retry backoff:
    4 attempts, 10ms initial delay, factor 5, 10% jitter.
    """

    steps: int = Field(4, ge=1, description="Total number of attempts")
    duration: float = Field(0.01, ge=0, description="Initial delay in seconds")
    factor: float = Field(5.0, ge=1)
    jitter: float = Field(0.1, ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "BackoffPolicy":
        return cls(
            steps=settings.create_retry_steps,
            duration=settings.create_retry_initial_delay_seconds,
            factor=settings.create_retry_factor,
            jitter=settings.create_retry_jitter,
        )

    def delays(self, rand: Callable[[], float] = random.random) -> Iterator[float]:
        """Yield the waits between consecutive attempts (steps - 1 values)."""
        duration = self.duration
        for _ in range(self.steps - 1):
            yield duration + rand() * self.jitter * duration
            duration *= self.factor


def retry_always(error: Exception) -> bool:
    """Treat every failure as retriable, including permanent ones like name conflicts."""
    return True


class CreationSubmitter:
    """Submits synthesized jobs to the cluster with bounded retries."""

    def __init__(
        self,
        cluster: ClusterClientInterface,
        policy: Optional[BackoffPolicy] = None,
        retriable: Callable[[Exception], bool] = retry_always,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cluster = cluster
        self.policy = policy or BackoffPolicy.from_settings()
        self.retriable = retriable
        self._sleep = sleep

    @trace_span
    async def submit(self, job: V1Job) -> V1Job:
        """
        Create the job, retrying failed attempts per the backoff policy.

        Args:
            job: Synthesized job; its metadata carries name and namespace

        Returns:
            The job as created by the API server

        Raises:
            CreationFailedError: attempts exhausted or a non-retriable error
        """
        namespace = job.metadata.namespace
        name = job.metadata.name
        delays = self.policy.delays()
        last_error: Optional[Exception] = None
        attempt = 0

        logger.info(f"Attempting creation of job {namespace}/{name} with retry...")
        while attempt < self.policy.steps:
            attempt += 1
            try:
                created = await self.cluster.create_job(namespace, job)
                logger.info(f"Job {namespace}/{name} created on attempt {attempt}")
                return created
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Job creation failed (attempt {attempt}/{self.policy.steps}): {e}"
                )
                if not self.retriable(e):
                    break

            delay = next(delays, None)
            if delay is None:
                break
            await self._sleep(delay)

        logger.error(f"Error creating job {namespace}/{name} after {attempt} attempt(s)")
        raise CreationFailedError(
            f"Failed to create job {name} after {attempt} attempt(s): {last_error}",
            cause=last_error,
            attempts=attempt,
        ) from last_error
