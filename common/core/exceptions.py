from typing import Optional


class AppException(Exception):
    """Base application exception."""

    status_code: int = 500


class ValidationError(AppException):
    """Validation error exception."""

    status_code = 400


class NotFoundError(AppException):
    """Resource not found exception."""

    status_code = 404


class ClusterError(AppException):
    """Cluster API operation error exception."""

    def __init__(self, message: str, api_status: Optional[int] = None):
        super().__init__(message)
        # HTTP status reported by the cluster API, if any
        self.api_status = api_status


class ClusterConfigError(ClusterError):
    """Neither in-cluster config nor a kubeconfig could be loaded."""

    pass


class ClusterUnavailableError(ClusterError):
    """Cluster client has not been initialized."""

    status_code = 503


class JobNotFoundError(NotFoundError):
    """Job does not exist in the cluster."""

    pass


class TemplateNotFoundError(ClusterError):
    """Base job template could not be fetched."""

    pass


class TemplateMissingContainerError(ClusterError):
    """Template pod spec has no container to receive overrides."""

    pass


class CreationFailedError(ClusterError):
    """Job creation failed after all retry attempts."""

    def __init__(self, message: str, cause: Optional[Exception] = None, attempts: int = 0):
        super().__init__(message, api_status=getattr(cause, "api_status", None))
        self.cause = cause
        self.attempts = attempts


class NamespaceListError(ClusterError):
    """Namespaces could not be listed."""

    pass


class JobListError(ClusterError):
    """Jobs could not be listed."""

    pass


class PodNotFoundError(ClusterError):
    """No pod found for a job."""

    pass


class LogReadError(ClusterError):
    """Pod log stream could not be read."""

    pass
