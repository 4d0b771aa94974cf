from typing import Callable, Optional

from common.core.exceptions import TemplateNotFoundError
from common.core.telemetry import get_logger, log_span_event, trace_span
from common.providers.cluster.interface import ClusterClientInterface
from packages.jobs.models.domain.job import TriggerRequest, TriggerResult
from packages.jobs.services.creation_submitter import CreationSubmitter
from packages.jobs.services.instance_synthesizer import generate_run_name, synthesize
from packages.jobs.services.monitor_registry import MonitorRegistry

logger = get_logger(__name__)


class JobTriggerService:
    """Service for triggering runs from template jobs.

    This service handles:
    - Fetching the template job
    - Synthesizing a uniquely named run from it
    - Submitting the run with retries
    - Handing the run to its lifecycle monitor

    Returns as soon as the run is created; monitoring continues in the background.
    """

    def __init__(
        self,
        cluster: ClusterClientInterface,
        registry: MonitorRegistry,
        submitter: Optional[CreationSubmitter] = None,
        name_factory: Callable[[str], str] = generate_run_name,
    ):
        self.cluster = cluster
        self.registry = registry
        self.submitter = submitter or CreationSubmitter(cluster)
        self.name_factory = name_factory

    @trace_span
    async def trigger(self, request: TriggerRequest) -> TriggerResult:
        logger.info(f"Fetching job: {request.job_name} from namespace: {request.namespace}")
        try:
            template = await self.cluster.get_job(request.namespace, request.job_name)
        except Exception as e:
            logger.error(f"Error reading job: {e}")
            raise TemplateNotFoundError(f"Failed to get base job: {e}") from e

        job = synthesize(template, request, name_factory=self.name_factory)
        new_job_name = job.metadata.name
        log_span_event(
            f"Generated unique job name: {new_job_name}",
            {"template": request.job_name, "run_name": new_job_name},
        )

        await self.submitter.submit(job)
        logger.info(f"Job '{new_job_name}' triggered successfully.")

        self.registry.start(request.namespace, new_job_name)
        return TriggerResult(job_name=new_job_name, namespace=request.namespace)
