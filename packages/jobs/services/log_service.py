from typing import Optional

from common.core.constants import DEFAULT_NAMESPACE, JOB_NAME_LABEL
from common.core.exceptions import LogReadError, PodNotFoundError
from common.core.telemetry import get_logger, trace_span
from common.providers.cluster.interface import ClusterClientInterface

logger = get_logger(__name__)


class JobLogService:
    """Reads the head of a run's pod log."""

    def __init__(self, cluster: ClusterClientInterface, limit_bytes: int = 2000):
        self.cluster = cluster
        self.limit_bytes = limit_bytes

    @trace_span
    async def read_logs(
        self,
        job_name: str,
        namespace: str = DEFAULT_NAMESPACE,
        container: Optional[str] = None,
    ) -> str:
        """Return up to ``limit_bytes`` of the first pod labelled with the job name."""
        try:
            pods = await self.cluster.list_pods(
                namespace, label_selector=f"{JOB_NAME_LABEL}={job_name}"
            )
        except Exception as e:
            raise PodNotFoundError(f"Failed to find pods for job {job_name}: {e}")
        if not pods:
            raise PodNotFoundError(f"Failed to find pods for job {job_name}")

        # One pod per job unless parallelism > 1
        pod_name = pods[0].metadata.name
        try:
            logs = await self.cluster.read_pod_log(
                namespace, pod_name, container=container, limit_bytes=self.limit_bytes
            )
        except Exception as e:
            logger.error(f"Failed to stream logs of pod {pod_name}: {e}")
            raise LogReadError(f"Failed to stream logs: {e}")

        # Bound by bytes even if the API server ignored limit_bytes
        return (logs or "").encode("utf-8")[: self.limit_bytes].decode(
            "utf-8", errors="ignore"
        )
