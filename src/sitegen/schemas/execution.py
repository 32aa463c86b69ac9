"""Execution schemas for API responses and store filters."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from src.sitegen.models.enums import AgentRole, ExecutionStatus, Layer


class AgentExecutionFilters(BaseModel):
    """Optional filters for listing agent executions."""

    status: ExecutionStatus | None = None
    layer: Layer | None = None
    agent_role: AgentRole | None = None


class AgentExecutionRead(BaseModel):
    """Schema for reading an agent execution."""

    id: UUID
    project_id: UUID
    workflow_execution_id: UUID | None
    agent_name: str
    agent_role: str
    layer: str
    status: str
    iteration: int
    execution_time_ms: int | None
    tokens_used: int | None = None
    cost_usd: float | None = None
    input: dict[str, Any] | None
    output: dict[str, Any] | None
    evaluation: dict[str, Any] | None
    config: dict[str, Any]
    metadata: dict[str, Any] = Field(validation_alias="meta")
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None

    model_config = {"from_attributes": True}


class WorkflowExecutionRead(BaseModel):
    """Schema for reading a workflow execution."""

    id: UUID
    project_id: UUID
    workflow_type: str
    iteration: int
    status: str
    current_step: int
    current_step_name: str | None
    total_steps: int
    completed_steps: int
    progress_percentage: float
    error_message: str | None
    metadata: dict[str, Any] = Field(validation_alias="meta")
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None

    model_config = {"from_attributes": True}


class LayerGroup(BaseModel):
    """Agent executions of one layer, in layer order."""

    layer: Layer
    executions: list[AgentExecutionRead]


class WorkflowAgentsRead(BaseModel):
    """Agent executions of a workflow grouped by layer."""

    workflow_execution_id: UUID
    layers: list[LayerGroup]


class RetryRequest(BaseModel):
    """Optional body for a retry request."""

    reason: str | None = Field(default=None, max_length=500)


class EvaluationSummary(BaseModel):
    """Aggregated scores from the most recent quality evaluations."""

    evaluation_count: int
    scores: dict[str, float]
    composite: float | None
    grade: str | None
    passed: bool
    evaluations: list[AgentExecutionRead]
