from enum import Enum


class Environment(str, Enum):
    """Environment profiles."""

    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class MonitorFailurePolicy(str, Enum):
    """What the lifecycle monitor does with a run that failed."""

    RETAIN = "retain"
    DELETE = "delete"


# Label stamped on every triggered run and its pods
JOB_NAME_LABEL = "job-name"

ALL_NAMESPACES = "all"
DEFAULT_NAMESPACE = "default"
