"""
Kubernetes implementation of the cluster client.

Wraps the blocking Kubernetes Python client; every call runs in a worker
thread so the event loop stays free while the API server answers.
"""

import asyncio
from typing import List, Optional

from kubernetes import client
from kubernetes.client import V1Job, V1Pod
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from common.core.exceptions import ClusterError, JobNotFoundError
from common.core.telemetry import get_logger
from common.providers.cluster.interface import ClusterClientInterface

logger = get_logger(__name__)


def _api_error(action: str, e: ApiException) -> ClusterError:
    return ClusterError(f"Failed to {action}: {e.status} {e.reason}", api_status=e.status)


async def _call(action: str, func, **kwargs):
    """Run a blocking API call in a worker thread.

    Transport failures (API server unreachable, TLS, timeouts) become
    ClusterError; ApiException is left to the caller.
    """
    try:
        return await asyncio.to_thread(func, **kwargs)
    except (HTTPError, OSError) as e:
        raise ClusterError(f"Failed to {action}: {e}") from e


class K8sClusterClient(ClusterClientInterface):
    """Cluster client backed by BatchV1Api and CoreV1Api."""

    def __init__(self, api_client: Optional[client.ApiClient] = None):
        """Create API handles. Kubernetes config must already be loaded."""
        self.batch_v1 = client.BatchV1Api(api_client)
        self.core_v1 = client.CoreV1Api(api_client)

    async def get_job(self, namespace: str, name: str) -> V1Job:
        action = f"get job {namespace}/{name}"
        try:
            return await _call(
                action, self.batch_v1.read_namespaced_job, name=name, namespace=namespace
            )
        except ApiException as e:
            if e.status == 404:
                raise JobNotFoundError(f"Job {namespace}/{name} not found")
            raise _api_error(action, e)

    async def create_job(self, namespace: str, job: V1Job) -> V1Job:
        action = f"create job {namespace}/{job.metadata.name}"
        try:
            return await _call(
                action, self.batch_v1.create_namespaced_job, namespace=namespace, body=job
            )
        except ApiException as e:
            raise _api_error(action, e)

    async def delete_job(self, namespace: str, name: str) -> None:
        action = f"delete job {namespace}/{name}"
        try:
            await _call(
                action,
                self.batch_v1.delete_namespaced_job,
                name=name,
                namespace=namespace,
                propagation_policy="Background",  # Delete pods in background
            )
        except ApiException as e:
            if e.status == 404:
                raise JobNotFoundError(f"Job {namespace}/{name} not found")
            raise _api_error(action, e)

    async def list_jobs(self, namespace: str) -> List[V1Job]:
        action = f"list jobs in {namespace}"
        try:
            job_list = await _call(
                action, self.batch_v1.list_namespaced_job, namespace=namespace
            )
        except ApiException as e:
            raise _api_error(action, e)
        return list(job_list.items or [])

    async def list_namespaces(self) -> List[str]:
        try:
            namespace_list = await _call("list namespaces", self.core_v1.list_namespace)
        except ApiException as e:
            raise _api_error("list namespaces", e)
        return [ns.metadata.name for ns in namespace_list.items or []]

    async def list_pods(self, namespace: str, label_selector: str) -> List[V1Pod]:
        action = f"list pods in {namespace}"
        try:
            pod_list = await _call(
                action,
                self.core_v1.list_namespaced_pod,
                namespace=namespace,
                label_selector=label_selector,
            )
        except ApiException as e:
            raise _api_error(action, e)
        return list(pod_list.items or [])

    async def read_pod_log(
        self,
        namespace: str,
        pod_name: str,
        container: Optional[str] = None,
        limit_bytes: Optional[int] = None,
    ) -> str:
        kwargs = {}
        if container:
            kwargs["container"] = container
        if limit_bytes:
            kwargs["limit_bytes"] = limit_bytes

        action = f"read logs of pod {namespace}/{pod_name}"
        try:
            return await _call(
                action,
                self.core_v1.read_namespaced_pod_log,
                name=pod_name,
                namespace=namespace,
                **kwargs,
            )
        except ApiException as e:
            raise _api_error(action, e)
