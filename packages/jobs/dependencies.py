from fastapi import Request

from common.core.exceptions import ClusterUnavailableError
from common.providers.cluster.interface import ClusterClientInterface
from packages.jobs.services.monitor_registry import MonitorRegistry


def get_cluster_client(request: Request) -> ClusterClientInterface:
    """Cluster client created at startup and kept on the app state."""
    cluster_client = getattr(request.app.state, "cluster_client", None)
    if cluster_client is None:
        raise ClusterUnavailableError("Kubernetes client is not initialized")
    return cluster_client


def get_monitor_registry(request: Request) -> MonitorRegistry:
    registry = getattr(request.app.state, "monitor_registry", None)
    if registry is None:
        raise ClusterUnavailableError("Job monitor registry is not initialized")
    return registry
