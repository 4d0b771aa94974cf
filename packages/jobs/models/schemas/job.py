from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from packages.jobs.models.domain.job import RunStatus, TriggerRequest
from packages.jobs.models.domain.monitor import MonitorState


class JobTriggerRequest(BaseModel):
    """Request to trigger a run from a template job"""

    job_name: str = Field(..., min_length=1, description="Name of the template job")
    namespace: str = Field(..., min_length=1, description="Namespace of the template")
    env_vars: Optional[Dict[str, str]] = Field(
        None, description="Replaces the first container's environment"
    )
    args: Optional[List[str]] = Field(
        None, description="Replaces the first container's arguments"
    )

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_domain(self) -> TriggerRequest:
        return TriggerRequest(
            job_name=self.job_name,
            namespace=self.namespace,
            env_vars=self.env_vars or {},
            args=self.args or [],
        )


class JobTriggerResponse(BaseModel):
    """Response after a run was created"""

    message: str
    job_name: str
    namespace: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobSummaryResponse(BaseModel):
    """Response model for one job in a listing"""

    name: str
    namespace: str
    status: RunStatus
    start_time: Optional[datetime] = None
    completion_time: Optional[datetime] = None
    container_image: str = ""
    command: List[str] = Field(default_factory=list)

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )


class JobListResponse(BaseModel):
    """Paginated job listing"""

    total: int
    limit: int
    offset: int
    count: int
    jobs: List[JobSummaryResponse]


class JobLogsResponse(BaseModel):
    job_name: str
    namespace: str
    logs: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MonitorResponse(BaseModel):
    """Lifecycle monitor state of a run"""

    name: str
    namespace: str
    state: MonitorState
    started_at: datetime
    finished_at: Optional[datetime] = None
    error: Optional[str] = None

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )


class MonitorListResponse(BaseModel):
    count: int
    active: int
    monitors: List[MonitorResponse]


class MonitorCancelResponse(BaseModel):
    job_name: str
    namespace: str
    cancelled: bool

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobStatusResponse(BaseModel):
    """Live status of a run plus its monitor, if one is known"""

    job: str
    namespace: str
    status: Optional[RunStatus] = None
    monitor: Optional[MonitorResponse] = None
