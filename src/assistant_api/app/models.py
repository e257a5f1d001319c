"""Pydantic models shared across API, processor, storage and CLI.

Attributes are snake_case in Python. On the wire every model uses the
camelCase names the CLI and browser UI expect (``processingTime``,
``userAgent``, ``successRate`` ...). Both spellings are accepted on input.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Priority = Literal["low", "medium", "high"]
# Enforced again at the schema level by the SQLite CHECK constraint.
InteractionStatus = Literal["success", "error"]

DataT = TypeVar("DataT")


def utc_timestamp(now: datetime | None = None) -> str:
    """Return a fixed-width UTC ISO-8601 string, e.g. 2026-10-19T03:46:00.123Z."""
    moment = (now or datetime.now(tz=UTC)).astimezone(UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskRequest(CamelModel):
    """Request body for POST /tasks/process."""

    # strict=True rejects numbers/booleans instead of coercing them to text.
    task: str = Field(strict=True)
    context: str | None = None
    priority: Priority | None = None

    @field_validator("task")
    @classmethod
    def _task_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Task is required and must be a non-empty string")
        return stripped


class TaskResponse(CamelModel):
    """Result produced by a task processor (live or simulated)."""

    id: str
    task: str
    response: str
    status: InteractionStatus
    timestamp: str
    processing_time: int = Field(ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class InteractionLog(CamelModel):
    """One persisted request/response pair."""

    id: str
    task: str
    response: str
    status: InteractionStatus
    timestamp: str
    processing_time: int = Field(ge=0)
    user_agent: str | None = None
    ip_address: str | None = None
    # Opaque to storage: serialized as-is, never inspected.
    metadata: dict[str, Any] | None = None

    @classmethod
    def from_task_response(
        cls,
        response: TaskResponse,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> InteractionLog:
        return cls(
            id=response.id,
            task=response.task,
            response=response.response,
            status=response.status,
            timestamp=response.timestamp,
            processing_time=response.processing_time,
            user_agent=user_agent,
            ip_address=ip_address,
            metadata=response.metadata,
        )


class InteractionStats(CamelModel):
    total_interactions: int = 0
    success_rate: float = 0.0
    average_processing_time: float = 0.0


class DeleteAllResult(CamelModel):
    deleted_count: int


class HealthCheck(CamelModel):
    status: Literal["healthy", "unhealthy"]
    timestamp: str
    uptime: int
    version: str
    database: Literal["connected", "disconnected"]


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope returned by every endpoint."""

    success: bool = True
    data: DataT | None = None
    error: str | None = None
    message: str | None = None
