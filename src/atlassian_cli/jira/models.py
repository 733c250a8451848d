"""Pydantic models for Jira async task snapshots."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class TaskStatus(str, Enum):
    ENQUEUED = "ENQUEUED"
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    CANCEL_REQUESTED = "CANCEL_REQUESTED"
    CANCELLED = "CANCELLED"
    DEAD = "DEAD"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {TaskStatus.COMPLETE, TaskStatus.FAILED, TaskStatus.CANCELLED, TaskStatus.DEAD}
)


class TaskProgress(BaseModel):
    percent: float = 0
    succeeded: int | None = None
    total: int | None = None


class TaskResult(BaseModel):
    """Read-only snapshot of a long-running Jira task."""

    id: str
    status: TaskStatus
    progress: TaskProgress | None = None
    description: str | None = None
    message: str | None = None
    result: Any | None = None
    self_url: str | None = Field(alias="self", default=None)
    submitted: int | None = None
    started: int | None = None
    finished: int | None = None
    last_update: int | None = Field(alias="lastUpdate", default=None)

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("progress", mode="before")
    @classmethod
    def _coerce_progress(cls, value: Any) -> Any:
        # Jira reports progress as a bare percentage.
        if isinstance(value, (int, float)):
            return {"percent": value}
        return value

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_output(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
