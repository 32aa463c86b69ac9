"""Workflow commands: start, cancel and retry, with background dispatch via Temporal."""

from typing import Protocol
from uuid import UUID

from temporalio.service import RPCError, RPCStatusCode

from src.sitegen.core.config import get_settings
from src.sitegen.core.logging import get_logger
from src.sitegen.models import AgentExecution, ProjectStatus, WorkflowExecution
from src.sitegen.orchestration.plan import WorkflowPlan, default_plan
from src.sitegen.services.execution_store import ExecutionStore
from src.sitegen.services.retry_service import RetryCoordinator
from src.sitegen.temporal.client import get_temporal_client
from src.sitegen.temporal.context import TenantCtx
from src.sitegen.temporal.routing import route_for_tenant
from src.sitegen.temporal.workflows import (
    AgentExecutionInput,
    AgentExecutionWorkflow,
    WebsiteGenerationInput,
    WebsiteGenerationWorkflow,
    agent_execution_workflow_id,
    website_generation_workflow_id,
)

logger = get_logger(__name__)


class WorkflowDispatcher(Protocol):
    """Hands work to background workers."""

    async def start_workflow_run(self, tenant_id: UUID, workflow_execution_id: UUID) -> str: ...

    async def start_agent_execution(self, tenant_id: UUID, agent_execution_id: UUID) -> str: ...

    async def cancel_workflow_run(self, workflow_execution_id: UUID) -> None: ...


class TemporalDispatcher:
    """Starts and cancels Temporal workflows on the tenant's task queue."""

    async def start_workflow_run(self, tenant_id: UUID, workflow_execution_id: UUID) -> str:
        workflow_id = website_generation_workflow_id(str(workflow_execution_id))
        await self._start(
            tenant_id,
            WebsiteGenerationWorkflow.run,
            WebsiteGenerationInput(
                ctx=TenantCtx(tenant_id=str(tenant_id)),
                workflow_execution_id=str(workflow_execution_id),
            ),
            workflow_id,
        )
        return workflow_id

    async def start_agent_execution(self, tenant_id: UUID, agent_execution_id: UUID) -> str:
        workflow_id = agent_execution_workflow_id(str(agent_execution_id))
        await self._start(
            tenant_id,
            AgentExecutionWorkflow.run,
            AgentExecutionInput(
                ctx=TenantCtx(tenant_id=str(tenant_id)),
                agent_execution_id=str(agent_execution_id),
            ),
            workflow_id,
        )
        return workflow_id

    async def cancel_workflow_run(self, workflow_execution_id: UUID) -> None:
        client = await get_temporal_client()
        handle = client.get_workflow_handle(website_generation_workflow_id(str(workflow_execution_id)))
        try:
            await handle.cancel()
        except RPCError as e:
            if e.status != RPCStatusCode.NOT_FOUND:
                raise
            logger.info("No running workflow to cancel", workflow_execution_id=str(workflow_execution_id))

    async def _start(self, tenant_id: UUID, run, arg, workflow_id: str) -> None:  # type: ignore[no-untyped-def]
        settings = get_settings()
        client = await get_temporal_client()

        # Route to tenant-specific task queue with fairness
        route = route_for_tenant(
            tenant_id=str(tenant_id),
            namespace=settings.temporal_namespace,
            prefix=settings.temporal_queue_prefix,
            shards=settings.temporal_queue_shards,
        )
        await client.start_workflow(
            run,
            arg,
            id=workflow_id,
            task_queue=route.task_queue,
            priority=route.priority,
        )


class WorkflowService:
    """Workflow commands - business logic only. Execution happens in workers."""

    def __init__(
        self,
        store: ExecutionStore,
        dispatcher: WorkflowDispatcher,
        plan: WorkflowPlan | None = None,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.plan = plan or default_plan(get_settings())

    async def start_workflow(self, project_id: UUID) -> WorkflowExecution:
        """
        Create the first workflow execution of a DRAFT project and dispatch it.

        The project moves to IN_PROGRESS and every planned agent execution is
        recorded as PENDING before the background run starts.

        Raises:
            NotFoundError: If the project does not exist in this tenant
            PreconditionError: If the project is not DRAFT
        """
        await self.store.transition_project(
            project_id,
            [ProjectStatus.DRAFT],
            ProjectStatus.IN_PROGRESS,
            current_iteration=0,
        )
        workflow, agents = await self.store.create_workflow_run(
            project_id=project_id,
            iteration=0,
            planned=self.plan.planned_agents(0),
            workflow_type=self.plan.workflow_type,
        )

        try:
            await self.dispatcher.start_workflow_run(self.store.tenant_id, workflow.id)
        except Exception:
            # Nothing will ever run it; hand the project back to DRAFT
            await self.store.cancel_workflow(workflow.id, reason="Dispatch failed")
            raise

        logger.info(
            "Workflow dispatched",
            project_id=str(project_id),
            workflow_execution_id=str(workflow.id),
            planned_agents=len(agents),
        )
        return workflow

    async def cancel_workflow(self, workflow_execution_id: UUID) -> WorkflowExecution:
        """
        Cancel a workflow execution.

        Records move to CANCELLED first; stopping the background run is best
        effort on top of that.

        Raises:
            NotFoundError: If the workflow does not exist in this tenant
            InvalidTransitionError: If the workflow already COMPLETED or FAILED
        """
        workflow = await self.store.cancel_workflow(workflow_execution_id, reason="Cancelled by user")
        await self.dispatcher.cancel_workflow_run(workflow_execution_id)
        return workflow

    async def retry_execution(self, execution_id: UUID, actor_id: UUID) -> AgentExecution:
        """
        Retry a FAILED agent execution and dispatch its successor.

        Raises:
            NotFoundError: If the execution does not exist in this tenant
            PreconditionError: If the execution is not FAILED
        """
        successor = await RetryCoordinator(self.store).retry(execution_id, actor_id)
        # A failed dispatch is recovered by the pending sweep
        try:
            await self.dispatcher.start_agent_execution(self.store.tenant_id, successor.id)
        except RPCError as e:
            logger.warning(
                "Retry dispatch failed, leaving successor to the pending sweep",
                agent_execution_id=str(successor.id),
                error=str(e),
            )
        return successor
