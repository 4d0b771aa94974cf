from .interface import ClusterClientInterface
from .factory import create_cluster_client

__all__ = ["ClusterClientInterface", "create_cluster_client"]
