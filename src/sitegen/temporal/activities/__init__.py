"""
Temporal Activities - Fine-grained, idempotent operations.

Activities should be:
1. Idempotent - Safe to retry
2. Fine-grained - Do one thing well
3. Side-effect aware - LLM calls and database writes go here, not in workflows
"""

from src.sitegen.temporal.activities.generation import (
    FailWorkflowInput,
    RunAgentExecutionInput,
    RunAgentExecutionOutput,
    RunWorkflowInput,
    RunWorkflowOutput,
    fail_workflow_execution,
    run_agent_execution,
    run_workflow_execution,
)
from src.sitegen.temporal.activities.sweep import (
    SweepPendingInput,
    list_active_tenants,
    sweep_pending_executions,
)
from src.sitegen.temporal.context import TenantCtx

__all__ = [
    # Context
    "TenantCtx",
    # Dataclasses
    "FailWorkflowInput",
    "RunAgentExecutionInput",
    "RunAgentExecutionOutput",
    "RunWorkflowInput",
    "RunWorkflowOutput",
    "SweepPendingInput",
    # Activities
    "fail_workflow_execution",
    "list_active_tenants",
    "run_agent_execution",
    "run_workflow_execution",
    "sweep_pending_executions",
]
