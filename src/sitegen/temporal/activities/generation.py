"""Website generation activities.

Each activity opens a tenant-scoped execution store from its TenantCtx and
delegates to the orchestration layer. Long runs heartbeat so a cancelled
workflow reaches the orchestrator, which records the cancellation.
"""

from dataclasses import dataclass
from uuid import UUID

from temporalio import activity

from src.sitegen.core.exceptions import InvalidTransitionError, PreconditionError
from src.sitegen.core.logging import bind_execution_context
from src.sitegen.models import ExecutionStatus, ProjectStatus
from src.sitegen.models.base import utc_now
from src.sitegen.orchestration.orchestrator import WorkflowOrchestrator
from src.sitegen.temporal.context import TenantCtx

from . import _runtime


@dataclass
class RunWorkflowInput:
    ctx: TenantCtx
    workflow_execution_id: str


@dataclass
class RunWorkflowOutput:
    workflow_execution_id: str  # Last iteration of the chain
    status: str
    iteration: int


@dataclass
class FailWorkflowInput:
    ctx: TenantCtx
    workflow_execution_id: str
    error_message: str


@dataclass
class RunAgentExecutionInput:
    ctx: TenantCtx
    agent_execution_id: str


@dataclass
class RunAgentExecutionOutput:
    agent_execution_id: str
    status: str


@activity.defn
async def run_workflow_execution(input: RunWorkflowInput) -> RunWorkflowOutput:
    """
    Run a workflow execution and any refinement iterations it spawns.

    Idempotency: the workflow is claimed with PENDING -> RUNNING, so a
    repeated attempt cannot run the same layers twice. Workflows use a
    single attempt for this activity.

    Args:
        input: RunWorkflowInput with tenant context and workflow execution id

    Returns:
        RunWorkflowOutput describing the last workflow execution of the chain
    """
    store = _runtime.build_store(input.ctx)
    bind_execution_context(
        tenant_id=store.tenant_id,
        workflow_execution_id=UUID(input.workflow_execution_id),
    )
    orchestrator = WorkflowOrchestrator(store, _runtime.build_runner(store))

    activity.logger.info(f"Running workflow execution {input.workflow_execution_id}")
    final = await _runtime.heartbeat_until_done(
        orchestrator.run(UUID(input.workflow_execution_id))
    )
    activity.logger.info(
        f"Workflow execution chain finished at {final.id} with status {final.status}"
    )
    return RunWorkflowOutput(
        workflow_execution_id=str(final.id),
        status=final.status,
        iteration=final.iteration,
    )


@activity.defn
async def fail_workflow_execution(input: FailWorkflowInput) -> bool:
    """
    Record a crashed run: the project's latest workflow execution ends FAILED.

    Idempotency: terminal workflows are left untouched, so retries are no-ops.
    A workflow that never started is cancelled instead, since PENDING cannot
    move to FAILED.

    Returns:
        True if a record was changed, False if it was already terminal
    """
    store = _runtime.build_store(input.ctx)
    workflow = await store.get_workflow_execution(UUID(input.workflow_execution_id))
    latest = await store.latest_workflow_execution(workflow.project_id) or workflow

    if ExecutionStatus(latest.status).is_terminal:
        return False

    if latest.status == ExecutionStatus.PENDING.value:
        await store.cancel_workflow(latest.id, reason=input.error_message)
        return True

    await store.cancel_open_agents(latest.id)
    await store.transition_workflow(
        latest.id,
        ExecutionStatus.FAILED,
        error_message=input.error_message[:2000],
        completed_at=utc_now(),
    )
    try:
        await store.transition_project(
            latest.project_id, [ProjectStatus.IN_PROGRESS], ProjectStatus.FAILED
        )
    except PreconditionError as e:
        activity.logger.info(f"Project left unchanged: {e.message}")

    activity.logger.warning(f"Workflow execution {latest.id} failed: {input.error_message}")
    return True


@activity.defn
async def run_agent_execution(input: RunAgentExecutionInput) -> RunAgentExecutionOutput:
    """
    Run one PENDING agent execution outside an orchestrator run (retry successors).

    Idempotency: the execution is claimed with PENDING -> RUNNING; executions
    that are no longer PENDING are returned untouched.
    """
    store = _runtime.build_store(input.ctx)
    dispatcher = _runtime.build_dispatcher(store)

    try:
        execution = await _runtime.heartbeat_until_done(
            dispatcher.dispatch(UUID(input.agent_execution_id))
        )
    except InvalidTransitionError as e:
        activity.logger.info(
            f"Agent execution {input.agent_execution_id} claimed elsewhere: {e.message}"
        )
        execution = await store.get_agent_execution(UUID(input.agent_execution_id))
    return RunAgentExecutionOutput(agent_execution_id=str(execution.id), status=execution.status)
