"""Temporal Workflows - Re-exports for worker registration."""

from src.sitegen.temporal.workflows.agent_execution import (
    AgentExecutionInput,
    AgentExecutionWorkflow,
    agent_execution_workflow_id,
)
from src.sitegen.temporal.workflows.pending_sweep import (
    PENDING_SWEEP_WORKFLOW_ID,
    PendingSweepWorkflow,
)
from src.sitegen.temporal.workflows.website_generation import (
    WebsiteGenerationInput,
    WebsiteGenerationWorkflow,
    website_generation_workflow_id,
)

__all__ = [
    "PENDING_SWEEP_WORKFLOW_ID",
    "AgentExecutionInput",
    "AgentExecutionWorkflow",
    "PendingSweepWorkflow",
    "WebsiteGenerationInput",
    "WebsiteGenerationWorkflow",
    "agent_execution_workflow_id",
    "website_generation_workflow_id",
]
