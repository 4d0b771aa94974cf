from typing import Optional
from fastapi import APIRouter, Depends, Query, Response

from common.core.config import settings
from common.core.constants import DEFAULT_NAMESPACE
from common.core.exceptions import JobNotFoundError, ValidationError
from common.core.telemetry import trace_span, get_logger
from common.providers.cluster.interface import ClusterClientInterface
from packages.jobs.dependencies import get_cluster_client, get_monitor_registry
from packages.jobs.models.schemas.job import (
    JobListResponse,
    JobLogsResponse,
    JobStatusResponse,
    JobSummaryResponse,
    JobTriggerRequest,
    JobTriggerResponse,
    MonitorCancelResponse,
    MonitorListResponse,
    MonitorResponse,
)
from packages.jobs.services.creation_submitter import BackoffPolicy, CreationSubmitter
from packages.jobs.services.job_listing_service import JobListingService, paginate
from packages.jobs.services.log_service import JobLogService
from packages.jobs.services.monitor_registry import MonitorRegistry
from packages.jobs.services.trigger_service import JobTriggerService

router = APIRouter()
logger = get_logger(__name__)


def get_trigger_service(
    cluster: ClusterClientInterface = Depends(get_cluster_client),
    registry: MonitorRegistry = Depends(get_monitor_registry),
) -> JobTriggerService:
    submitter = CreationSubmitter(cluster, policy=BackoffPolicy.from_settings(settings))
    return JobTriggerService(cluster, registry, submitter=submitter)


def get_listing_service(
    cluster: ClusterClientInterface = Depends(get_cluster_client),
) -> JobListingService:
    return JobListingService(cluster)


def get_log_service(
    cluster: ClusterClientInterface = Depends(get_cluster_client),
) -> JobLogService:
    return JobLogService(cluster, limit_bytes=settings.log_limit_bytes)


@router.get("/jobs", response_model=JobListResponse)
@trace_span
async def list_jobs(
    response: Response,
    namespace: str = Query("", description='Namespace, empty or "all" for every namespace'),
    limit: int = Query(settings.jobs_default_limit),
    offset: int = Query(0),
    listing_service: JobListingService = Depends(get_listing_service),
):
    """List jobs with pagination metadata."""
    runs = await listing_service.list_runs(namespace)
    page = paginate(runs, limit=limit, offset=offset)

    response.headers["X-Total-Count"] = str(page.total)
    response.headers["X-Limit"] = str(page.limit)
    response.headers["X-Offset"] = str(page.offset)

    return JobListResponse(
        total=page.total,
        limit=page.limit,
        offset=page.offset,
        count=len(page.items),
        jobs=[JobSummaryResponse.model_validate(run) for run in page.items],
    )


@router.post("/job", response_model=JobTriggerResponse)
@trace_span
async def trigger_job(
    request: JobTriggerRequest,
    trigger_service: JobTriggerService = Depends(get_trigger_service),
):
    """
    Trigger a run from a template job.

    Clones the template into a uniquely named job, creates it and returns
    immediately. A background monitor deletes the run once it succeeded.
    """
    result = await trigger_service.trigger(request.to_domain())
    return JobTriggerResponse(
        message=f"Job {result.job_name} triggered successfully",
        job_name=result.job_name,
        namespace=result.namespace,
    )


@router.get("/job/logs", response_model=JobLogsResponse)
@trace_span
async def get_job_logs(
    job_name: Optional[str] = Query(None, alias="jobName"),
    namespace: str = Query(DEFAULT_NAMESPACE),
    container: Optional[str] = Query(None),
    log_service: JobLogService = Depends(get_log_service),
):
    """Get the head of a job's pod log."""
    if not job_name:
        raise ValidationError("Missing required query parameter: jobName")

    logs = await log_service.read_logs(job_name, namespace=namespace, container=container)
    return JobLogsResponse(job_name=job_name, namespace=namespace, logs=logs)


@router.get("/job/status", response_model=JobStatusResponse)
@trace_span
async def get_job_status(
    job_name: str = Query(..., alias="jobName", min_length=1),
    namespace: str = Query(DEFAULT_NAMESPACE),
    listing_service: JobListingService = Depends(get_listing_service),
    registry: MonitorRegistry = Depends(get_monitor_registry),
):
    """Live status of a job together with its monitor state."""
    status = None
    try:
        run = await listing_service.get_run(namespace, job_name)
        status = run.status
    except JobNotFoundError:
        pass

    record = registry.get(namespace, job_name)
    if status is None and record is None:
        raise JobNotFoundError(f"Job {namespace}/{job_name} not found")

    return JobStatusResponse(
        job=job_name,
        namespace=namespace,
        status=status,
        monitor=MonitorResponse.model_validate(record) if record else None,
    )


@router.get("/monitors", response_model=MonitorListResponse)
async def list_monitors(registry: MonitorRegistry = Depends(get_monitor_registry)):
    """In-flight and recently finished job monitors."""
    records = registry.snapshot()
    return MonitorListResponse(
        count=len(records),
        active=registry.active_count,
        monitors=[MonitorResponse.model_validate(r) for r in records],
    )


@router.delete("/job/monitor", response_model=MonitorCancelResponse)
@trace_span
async def cancel_job_monitor(
    job_name: str = Query(..., alias="jobName", min_length=1),
    namespace: str = Query(DEFAULT_NAMESPACE),
    registry: MonitorRegistry = Depends(get_monitor_registry),
):
    """Stop monitoring a run. The run itself is left untouched."""
    cancelled = await registry.stop(namespace, job_name)
    if not cancelled:
        raise JobNotFoundError(f"No monitor in flight for job {namespace}/{job_name}")

    logger.info(f"Monitor for job {namespace}/{job_name} cancelled on request")
    return MonitorCancelResponse(job_name=job_name, namespace=namespace, cancelled=True)
