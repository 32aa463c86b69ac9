"""Workflow and agent execution records - the orchestration ledger."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid7

from sqlalchemy import Column, Index
from sqlmodel import Field, SQLModel

from src.sitegen.models.base import JSONType, utc_now
from src.sitegen.models.enums import ExecutionStatus, WorkflowType


class WorkflowExecution(SQLModel, table=True):
    """One run (or refinement iteration) of the layer pipeline for a project."""

    __tablename__ = "workflow_executions"
    __table_args__ = (
        Index("ix_workflow_executions_project_created", "project_id", "created_at"),
    )

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    project_id: UUID = Field(foreign_key="projects.id", ondelete="CASCADE")
    workflow_type: str = Field(default=WorkflowType.WEBSITE_GENERATION.value, max_length=50)
    iteration: int = Field(default=0, ge=0)
    status: str = Field(default=ExecutionStatus.PENDING.value, max_length=20, index=True)
    current_step: int = Field(default=0)
    current_step_name: str | None = Field(default=None, max_length=50)
    total_steps: int = Field(default=0)
    completed_steps: int = Field(default=0)
    progress_percentage: float = Field(default=0.0)
    error_message: str | None = Field(default=None, max_length=2000)
    meta: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column("metadata", JSONType, nullable=False),
    )
    created_at: datetime = Field(default_factory=utc_now)
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    updated_at: datetime = Field(default_factory=utc_now)


class AgentExecution(SQLModel, table=True):
    """A single agent invocation.

    ``meta`` carries retry lineage (``retryOf``, ``originalIteration``,
    ``retriggeredBy``), supersession markers (``retriedBy``, ``retriedAt``)
    and failure classification (``errorType``, ``errorMessage``).
    """

    __tablename__ = "agent_executions"
    __table_args__ = (
        Index("ix_agent_executions_project_created", "project_id", "created_at", "id"),
        Index("ix_agent_executions_workflow", "workflow_execution_id"),
    )

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    project_id: UUID = Field(foreign_key="projects.id", ondelete="CASCADE")
    workflow_execution_id: UUID | None = Field(
        default=None, foreign_key="workflow_executions.id", ondelete="CASCADE"
    )
    agent_name: str = Field(max_length=100)
    agent_role: str = Field(max_length=50, index=True)
    layer: str = Field(max_length=20, index=True)
    status: str = Field(default=ExecutionStatus.PENDING.value, max_length=20, index=True)
    iteration: int = Field(default=0, ge=0)
    execution_time_ms: int | None = Field(default=None)
    tokens_used: int | None = Field(default=None)
    cost_usd: float | None = Field(default=None)
    input: dict[str, Any] | None = Field(default=None, sa_type=JSONType)
    output: dict[str, Any] | None = Field(default=None, sa_type=JSONType)
    evaluation: dict[str, Any] | None = Field(default=None, sa_type=JSONType)
    config: dict[str, Any] = Field(default_factory=dict, sa_type=JSONType)
    meta: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column("metadata", JSONType, nullable=False),
    )
    created_at: datetime = Field(default_factory=utc_now)
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    updated_at: datetime = Field(default_factory=utc_now)
