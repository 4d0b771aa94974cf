import asyncio
from typing import List, Optional

from kubernetes.client import V1Job

from common.core.constants import ALL_NAMESPACES
from common.core.exceptions import JobListError, NamespaceListError
from common.core.telemetry import get_logger, trace_span
from common.providers.cluster.interface import ClusterClientInterface
from packages.jobs.models.domain.job import Page, RunStatus, RunSummary

logger = get_logger(__name__)


def derive_status(job: V1Job) -> RunStatus:
    """Completion beats active beats failed beats pending."""
    status = job.status
    if status is None:
        return RunStatus.PENDING
    if status.completion_time is not None:
        return RunStatus.COMPLETED
    if (status.active or 0) > 0:
        return RunStatus.RUNNING
    if (status.failed or 0) > 0:
        return RunStatus.FAILED
    return RunStatus.PENDING


def to_summary(job: V1Job, namespace: Optional[str] = None) -> RunSummary:
    container_image = ""
    command: List[str] = []
    pod_spec = job.spec.template.spec if job.spec and job.spec.template else None
    if pod_spec and pod_spec.containers:
        container_image = pod_spec.containers[0].image or ""
        command = list(pod_spec.containers[0].command or [])

    return RunSummary(
        name=job.metadata.name,
        namespace=job.metadata.namespace or namespace or "",
        status=derive_status(job),
        start_time=job.status.start_time if job.status else None,
        completion_time=job.status.completion_time if job.status else None,
        container_image=container_image,
        command=command,
    )


def paginate(items: List[RunSummary], limit: int = 10, offset: int = 0) -> Page:
    """Window over the full result; out-of-range values clamp instead of failing."""
    total = len(items)
    limit = max(limit, 0)
    offset = max(offset, 0)
    start = min(offset, total)
    end = min(offset + limit, total)
    return Page(total=total, limit=limit, offset=offset, items=items[start:end])


class JobListingService:
    """Read-only view over the jobs present in the cluster."""

    def __init__(self, cluster: ClusterClientInterface):
        self.cluster = cluster

    @trace_span
    async def list_runs(self, namespace_filter: Optional[str] = None) -> List[RunSummary]:
        """
        List jobs in one namespace, or in every namespace.

        Args:
            namespace_filter: Namespace name; empty, None or "all" means all namespaces

        Returns:
            Summaries sorted by namespace and name
        """
        if not namespace_filter or namespace_filter == ALL_NAMESPACES:
            runs = await self._list_all_namespaces()
        else:
            try:
                jobs = await self.cluster.list_jobs(namespace_filter)
            except Exception as e:
                logger.error(f"Error fetching jobs in namespace {namespace_filter}: {e}")
                raise JobListError(f"Failed to list jobs: {e}")
            runs = [to_summary(job, namespace_filter) for job in jobs]

        return sorted(runs, key=lambda run: (run.namespace, run.name))

    async def _list_all_namespaces(self) -> List[RunSummary]:
        logger.info("Fetching all namespaces...")
        try:
            namespaces = await self.cluster.list_namespaces()
        except Exception as e:
            logger.error(f"Error fetching namespaces: {e}")
            raise NamespaceListError("Error fetching namespaces")

        runs: List[RunSummary] = []
        lock = asyncio.Lock()

        async def collect(namespace: str):
            try:
                jobs = await self.cluster.list_jobs(namespace)
            except Exception as e:
                # This namespace contributes nothing; the others still count
                logger.error(f"Error fetching jobs in namespace {namespace}: {e}")
                return

            local_runs = [to_summary(job, namespace) for job in jobs]
            async with lock:
                runs.extend(local_runs)

        await asyncio.gather(*(collect(namespace) for namespace in namespaces))
        return runs

    @trace_span
    async def get_run(self, namespace: str, job_name: str) -> RunSummary:
        """Raises JobNotFoundError when the job does not exist."""
        job = await self.cluster.get_job(namespace, job_name)
        return to_summary(job, namespace)
