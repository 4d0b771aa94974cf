from __future__ import annotations
from enum import StrEnum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class MonitorState(StrEnum):
    WATCHING = "watching"
    # Success observed, waiting out the grace period before deletion
    SUCCEEDED = "succeeded"
    DELETED = "deleted"
    FAILED = "failed"
    DELETE_FAILED = "delete_failed"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    # Monitor task raised instead of reaching a terminal state
    CRASHED = "crashed"

    @property
    def is_terminal(self) -> bool:
        return self not in (MonitorState.WATCHING, MonitorState.SUCCEEDED)


class MonitorRecord(BaseModel):
    """Latest known state of the lifecycle monitor of one run."""

    name: str
    namespace: str
    state: MonitorState = MonitorState.WATCHING
    started_at: datetime
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
