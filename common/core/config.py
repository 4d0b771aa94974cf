from typing import Optional, List
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment, MonitorFailurePolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment Profile
    environment: Environment = Environment.LOCAL

    # API Settings
    app_name: str = "jobnik"
    api_version: str = "1.0.0"
    debug: bool = False

    # Kubernetes
    kubeconfig_path: Optional[str] = None  # Falls back to ~/.kube/config
    in_cluster_token_path: str = "/var/run/secrets/kubernetes.io/serviceaccount/token"

    # Lifecycle Monitor
    monitor_poll_interval_seconds: float = 5.0
    monitor_grace_period_seconds: float = 30.0
    monitor_failure_policy: MonitorFailurePolicy = MonitorFailurePolicy.RETAIN
    # Consecutive 404 polls before a run is considered gone
    monitor_not_found_threshold: int = 3
    monitor_shutdown_timeout_seconds: float = 10.0
    monitor_history_size: int = 256

    # Job creation retry (mirrors the Kubernetes client default backoff)
    create_retry_steps: int = 4
    create_retry_initial_delay_seconds: float = 0.01
    create_retry_factor: float = 5.0
    create_retry_jitter: float = 0.1

    # Listing / logs
    jobs_default_limit: int = 10
    log_limit_bytes: int = 2000

    # OpenTelemetry
    otel_service_name: str = "jobnik-api"
    otel_exporter_endpoint: Optional[str] = None  # OTLP/HTTP traces endpoint

    cors_allowed_origins: List[str] = ["*"]

    @property
    def docs_enabled(self) -> bool:
        """Only expose OpenAPI docs in local development."""
        return self.environment == Environment.LOCAL


settings = Settings()
