"""Pydantic schemas for API requests, responses and stream events."""

from src.sitegen.schemas.events import (
    AgentStatusPayload,
    ConnectedPayload,
    ProgressEvent,
    WorkflowProgressPayload,
)
from src.sitegen.schemas.execution import (
    AgentExecutionFilters,
    AgentExecutionRead,
    EvaluationSummary,
    LayerGroup,
    RetryRequest,
    WorkflowAgentsRead,
    WorkflowExecutionRead,
)
from src.sitegen.schemas.pagination import PaginatedResponse
from src.sitegen.schemas.project import (
    DiscoveryChatRequest,
    DiscoveryChatResponse,
    ProjectCreate,
    ProjectRead,
)

__all__ = [
    "AgentExecutionFilters",
    "AgentExecutionRead",
    "AgentStatusPayload",
    "ConnectedPayload",
    "DiscoveryChatRequest",
    "DiscoveryChatResponse",
    "EvaluationSummary",
    "LayerGroup",
    "PaginatedResponse",
    "ProgressEvent",
    "ProjectCreate",
    "ProjectRead",
    "RetryRequest",
    "WorkflowAgentsRead",
    "WorkflowExecutionRead",
    "WorkflowProgressPayload",
]
