"""Progress stream event payloads.

Field names are camelCase on the wire; events are snapshots keyed by
execution id and may be delivered more than once.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _EventPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ConnectedPayload(_EventPayload):
    project_id: UUID
    timestamp: datetime


class WorkflowProgressPayload(_EventPayload):
    workflow_execution_id: UUID
    status: str
    current_step: int
    current_step_name: str | None
    total_steps: int
    completed_steps: int
    progress_percentage: float
    iteration: int
    timestamp: datetime


class AgentStatusPayload(_EventPayload):
    agent_execution_id: UUID
    agent_role: str
    agent_name: str
    layer: str
    status: str
    iteration: int
    execution_time_ms: int | None = None
    timestamp: datetime


class ProgressEvent(BaseModel):
    """A named event ready to be framed for the stream."""

    event: str
    data: dict[str, Any]
    kind: Literal["connected", "workflow", "agent"]
