from __future__ import annotations
from enum import StrEnum
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RunStatus(StrEnum):
    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"


class TriggerRequest(BaseModel):
    """Caller input for cloning a template job into a new run."""

    job_name: str
    namespace: str
    env_vars: Dict[str, str] = Field(default_factory=dict)
    args: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class TriggerResult(BaseModel):
    """Identity of a run that was created and is now being monitored."""

    job_name: str
    namespace: str


class RunSummary(BaseModel):
    """Present-state snapshot of one job in the cluster."""

    name: str
    namespace: str
    status: RunStatus
    start_time: Optional[datetime] = None
    completion_time: Optional[datetime] = None
    container_image: str = ""
    command: List[str] = Field(default_factory=list)


class Page(BaseModel):
    """A window over an in-memory result list."""

    total: int
    limit: int
    offset: int
    items: List[RunSummary]
