from abc import ABC, abstractmethod
from typing import List, Optional

from kubernetes.client import V1Job, V1Pod


class ClusterClientInterface(ABC):
    """Async view of the cluster API used by the job trigger service.

    Implementations raise ``JobNotFoundError`` when a job does not exist and
    ``ClusterError`` for any other API failure.
    """

    @abstractmethod
    async def get_job(self, namespace: str, name: str) -> V1Job:
        pass

    @abstractmethod
    async def create_job(self, namespace: str, job: V1Job) -> V1Job:
        pass

    @abstractmethod
    async def delete_job(self, namespace: str, name: str) -> None:
        """
        Delete a job and, in the background, its pods.

        Args:
            namespace: Namespace of the job
            name: Job name
        """
        pass

    @abstractmethod
    async def list_jobs(self, namespace: str) -> List[V1Job]:
        pass

    @abstractmethod
    async def list_namespaces(self) -> List[str]:
        pass

    @abstractmethod
    async def list_pods(self, namespace: str, label_selector: str) -> List[V1Pod]:
        pass

    @abstractmethod
    async def read_pod_log(
        self,
        namespace: str,
        pod_name: str,
        container: Optional[str] = None,
        limit_bytes: Optional[int] = None,
    ) -> str:
        """
        Read a pod's log.

        Args:
            namespace: Namespace of the pod
            pod_name: Pod name
            container: Container to read, required only for multi-container pods
            limit_bytes: Upper bound on the number of bytes returned

        Returns:
            Log text
        """
        pass
