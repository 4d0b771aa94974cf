import os

from kubernetes import config

from common.core.config import Settings, settings as default_settings
from common.core.exceptions import ClusterConfigError
from common.core.telemetry import get_logger

from .interface import ClusterClientInterface
from .k8s_client import K8sClusterClient

logger = get_logger(__name__)


def load_kubernetes_config(settings: Settings = default_settings) -> str:
    """
    Load in-cluster config when running in a pod, otherwise the local kubeconfig.

    Returns:
        "in-cluster" or "kubeconfig", depending on what was loaded

    Raises:
        ClusterConfigError: if no usable configuration was found
    """
    logger.info("Loading Kubernetes configuration...")
    if os.path.exists(settings.in_cluster_token_path):
        try:
            config.load_incluster_config()
        except config.ConfigException as e:
            raise ClusterConfigError(f"Failed to load in-cluster config: {e}")
        logger.info("Loaded in-cluster config.")
        return "in-cluster"

    try:
        config.load_kube_config(config_file=settings.kubeconfig_path)
    except (config.ConfigException, OSError) as e:
        raise ClusterConfigError(f"Error loading kubeconfig: {e}")
    logger.info("Loaded kubeconfig from local environment.")
    return "kubeconfig"


def create_cluster_client(settings: Settings = default_settings) -> ClusterClientInterface:
    """
    Build the cluster client used by the API.

    Returns:
        ClusterClientInterface: a Kubernetes-backed client
    """
    load_kubernetes_config(settings)
    return K8sClusterClient()
