"""Execution record store - tenant-scoped ledger of workflow and agent executions.

The store is the only shared mutable state of the orchestration layer. Every
status change goes through a compare-and-set on the record's current status,
so two workers can never both claim the same PENDING execution.
"""

from collections.abc import AsyncGenerator, Iterable
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from src.sitegen.agents.registry import get_agent_spec
from src.sitegen.core.config import get_settings
from src.sitegen.core.db import get_session
from src.sitegen.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PreconditionError,
)
from src.sitegen.core.logging import get_logger
from src.sitegen.models import (
    AgentExecution,
    ExecutionStatus,
    Project,
    ProjectStatus,
    WorkflowExecution,
    WorkflowType,
)
from src.sitegen.models.base import utc_now
from src.sitegen.orchestration.plan import PlannedAgent, progress_percentage
from src.sitegen.orchestration.state_machine import allowed_predecessors
from src.sitegen.repositories import (
    AgentExecutionRepository,
    ProjectRepository,
    WorkflowExecutionRepository,
)
from src.sitegen.repositories.base import BaseRepository
from src.sitegen.schemas.execution import AgentExecutionFilters

logger = get_logger(__name__)

_OPEN_STATUSES = (ExecutionStatus.PENDING.value, ExecutionStatus.RUNNING.value)


class ExecutionStore:
    """Durable execution records for one tenant.

    Each operation runs in its own session and commits before returning,
    so records handed back are detached snapshots.
    """

    def __init__(self, tenant_id: UUID, engine: AsyncEngine | None = None):
        self.tenant_id = tenant_id
        self.engine = engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        async with get_session(self.tenant_id, self.engine) as session:
            yield session

    # -- projects ------------------------------------------------------------

    async def get_project(self, project_id: UUID) -> Project:
        async with self.session() as session:
            project = await ProjectRepository(session, self.tenant_id).get_by_id(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    async def transition_project(
        self,
        project_id: UUID,
        allowed_from: Iterable[ProjectStatus],
        new_status: ProjectStatus,
        **fields: Any,
    ) -> Project:
        """Compare-and-set the project status.

        Raises:
            NotFoundError: If the project does not exist in this tenant.
            PreconditionError: If the project is not in one of ``allowed_from``.
        """
        allowed = [status.value for status in allowed_from]
        async with self.session() as session:
            repo = ProjectRepository(session, self.tenant_id)
            project = await repo.compare_and_set_status(project_id, allowed, new_status.value, fields)
            if project is None:
                current = await repo.get_by_id(project_id)
                if current is None:
                    raise NotFoundError("Project", project_id)
                raise PreconditionError(
                    f"Project is {current.status}; expected one of {', '.join(allowed)}",
                    details={"current": current.status, "requested": new_status.value},
                )
            await session.commit()
        return project

    # -- creation ------------------------------------------------------------

    async def create_agent_execution(
        self,
        *,
        project_id: UUID,
        agent_role: str,
        workflow_execution_id: UUID | None = None,
        iteration: int = 0,
        input: dict[str, Any] | None = None,
        config: dict[str, Any] | None = None,
        meta: dict[str, Any] | None = None,
    ) -> AgentExecution:
        """Insert a PENDING agent execution. Name and layer come from the registry."""
        spec = get_agent_spec(agent_role)
        async with self.session() as session:
            await self._require_project(session, project_id)
            execution = AgentExecution(
                tenant_id=self.tenant_id,
                project_id=project_id,
                workflow_execution_id=workflow_execution_id,
                agent_name=spec.name,
                agent_role=spec.role.value,
                layer=spec.layer.value,
                iteration=iteration,
                input=input,
                config=config or {},
                meta=meta or {},
            )
            session.add(execution)
            await session.commit()
        return execution

    async def create_workflow_execution(
        self,
        *,
        project_id: UUID,
        iteration: int = 0,
        total_steps: int = 0,
        workflow_type: WorkflowType = WorkflowType.WEBSITE_GENERATION,
        meta: dict[str, Any] | None = None,
    ) -> WorkflowExecution:
        """Insert a PENDING workflow execution with no agents."""
        workflow, _ = await self.create_workflow_run(
            project_id=project_id,
            iteration=iteration,
            planned=[],
            workflow_type=workflow_type,
            total_steps=total_steps,
            meta=meta,
        )
        return workflow

    async def create_workflow_run(
        self,
        *,
        project_id: UUID,
        iteration: int,
        planned: list[PlannedAgent],
        workflow_type: WorkflowType = WorkflowType.WEBSITE_GENERATION,
        total_steps: int | None = None,
        meta: dict[str, Any] | None = None,
    ) -> tuple[WorkflowExecution, list[AgentExecution]]:
        """Insert a workflow execution and its PENDING agent executions atomically."""
        async with self.session() as session:
            await self._require_project(session, project_id)
            workflow = WorkflowExecution(
                tenant_id=self.tenant_id,
                project_id=project_id,
                workflow_type=workflow_type.value,
                iteration=iteration,
                total_steps=len(planned) if total_steps is None else total_steps,
                meta=meta or {},
            )
            session.add(workflow)
            agents = [
                AgentExecution(
                    tenant_id=self.tenant_id,
                    project_id=project_id,
                    workflow_execution_id=workflow.id,
                    agent_name=agent.name,
                    agent_role=agent.role.value,
                    layer=agent.layer.value,
                    iteration=iteration,
                    config=dict(agent.config),
                )
                for agent in planned
            ]
            session.add_all(agents)
            await session.commit()
        return workflow, agents

    # -- lookups -------------------------------------------------------------

    async def get_agent_execution(self, execution_id: UUID) -> AgentExecution:
        async with self.session() as session:
            execution = await AgentExecutionRepository(session, self.tenant_id).get_by_id(
                execution_id
            )
        if execution is None:
            raise NotFoundError("AgentExecution", execution_id)
        return execution

    async def get_workflow_execution(self, workflow_execution_id: UUID) -> WorkflowExecution:
        async with self.session() as session:
            workflow = await WorkflowExecutionRepository(session, self.tenant_id).get_by_id(
                workflow_execution_id
            )
        if workflow is None:
            raise NotFoundError("WorkflowExecution", workflow_execution_id)
        return workflow

    async def latest_workflow_execution(self, project_id: UUID) -> WorkflowExecution | None:
        async with self.session() as session:
            return await WorkflowExecutionRepository(session, self.tenant_id).latest_for_project(
                project_id
            )

    # -- transitions ---------------------------------------------------------

    async def transition_agent(
        self,
        execution_id: UUID,
        new_status: ExecutionStatus,
        *,
        meta_updates: dict[str, Any] | None = None,
        **fields: Any,
    ) -> AgentExecution:
        """Move an agent execution to ``new_status`` if the state machine allows it.

        ``fields`` are written in the same statement. ``meta_updates`` are
        merged into the existing metadata.

        Raises:
            NotFoundError: If the execution does not exist in this tenant.
            InvalidTransitionError: If the current status is not a predecessor of ``new_status``.
        """
        return await self._transition(
            AgentExecutionRepository, "AgentExecution", execution_id, new_status, meta_updates, fields
        )

    async def transition_workflow(
        self,
        workflow_execution_id: UUID,
        new_status: ExecutionStatus,
        *,
        meta_updates: dict[str, Any] | None = None,
        **fields: Any,
    ) -> WorkflowExecution:
        """Workflow counterpart of :meth:`transition_agent`."""
        return await self._transition(
            WorkflowExecutionRepository,
            "WorkflowExecution",
            workflow_execution_id,
            new_status,
            meta_updates,
            fields,
        )

    async def _transition[ModelT: AgentExecution | WorkflowExecution](
        self,
        repo_class: type[BaseRepository[ModelT]],
        entity: str,
        id: UUID,
        new_status: ExecutionStatus,
        meta_updates: dict[str, Any] | None,
        fields: dict[str, Any],
    ) -> ModelT:
        allowed = [status.value for status in allowed_predecessors(new_status)]
        async with self.session() as session:
            repo = repo_class(session, self.tenant_id)
            values = dict(fields)
            if meta_updates:
                current = await repo.get_by_id(id)
                if current is None:
                    raise NotFoundError(entity, id)
                values["meta"] = {**current.meta, **meta_updates}

            record = await repo.compare_and_set_status(id, allowed, new_status.value, values)
            if record is None:
                await session.rollback()
                current = await repo.get_by_id(id)
                if current is None:
                    raise NotFoundError(entity, id)
                raise InvalidTransitionError(entity, id, current.status, new_status.value)
            await session.commit()
        return record

    # -- listings ------------------------------------------------------------

    async def list_agent_executions(
        self,
        project_id: UUID,
        filters: AgentExecutionFilters | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> tuple[list[AgentExecution], str | None, bool]:
        """Cursor page of a project's agent executions, newest first."""
        settings = get_settings()
        if limit is None:
            limit = settings.default_page_size
        limit = min(max(limit, 1), settings.max_page_size)
        async with self.session() as session:
            return await AgentExecutionRepository(session, self.tenant_id).list_for_project(
                project_id, filters, cursor, limit
            )

    async def list_workflow_agents(self, workflow_execution_id: UUID) -> list[AgentExecution]:
        """Agent executions owned by a workflow, oldest first."""
        async with self.session() as session:
            workflow = await WorkflowExecutionRepository(session, self.tenant_id).get_by_id(
                workflow_execution_id
            )
            if workflow is None:
                raise NotFoundError("WorkflowExecution", workflow_execution_id)
            return await AgentExecutionRepository(session, self.tenant_id).list_for_workflow(
                workflow_execution_id
            )

    async def find_latest_evaluations(self, project_id: UUID, n: int = 5) -> list[AgentExecution]:
        """The ``n`` most recent COMPLETED quality executions with an evaluation."""
        async with self.session() as session:
            return await AgentExecutionRepository(session, self.tenant_id).latest_evaluations(
                project_id, n
            )

    async def recent_agent_executions(self, project_id: UUID, limit: int) -> list[AgentExecution]:
        async with self.session() as session:
            return await AgentExecutionRepository(session, self.tenant_id).recent_for_project(
                project_id, limit
            )

    async def list_pending(self, limit: int) -> list[AgentExecution]:
        async with self.session() as session:
            return await AgentExecutionRepository(session, self.tenant_id).list_pending(limit)

    # -- progress and cancellation ---------------------------------------------

    async def refresh_progress(
        self,
        workflow_execution_id: UUID,
        step: int | None = None,
        step_name: str | None = None,
    ) -> WorkflowExecution:
        """Recompute progress from COMPLETED agent rows of the workflow's iteration.

        Counters are only written when they do not decrease.
        """
        async with self.session() as session:
            workflows = WorkflowExecutionRepository(session, self.tenant_id)
            workflow = await workflows.get_by_id(workflow_execution_id)
            if workflow is None:
                raise NotFoundError("WorkflowExecution", workflow_execution_id)

            completed = await AgentExecutionRepository(session, self.tenant_id).count_completed(
                workflow.id, workflow.iteration
            )
            if step is not None:
                await workflows.set_step(workflow.id, step, step_name or "")
            advanced = await workflows.advance_progress(
                workflow.id,
                completed,
                progress_percentage(completed, workflow.total_steps),
            )
            if not advanced:
                logger.debug(
                    "Progress not advanced",
                    workflow_execution_id=str(workflow.id),
                    completed_steps=completed,
                )
            await session.commit()
            refreshed = await workflows.reload(workflow.id)
        if refreshed is None:
            raise NotFoundError("WorkflowExecution", workflow.id)
        return refreshed

    async def cancel_open_agents(self, workflow_execution_id: UUID) -> int:
        """Move every PENDING or RUNNING agent of a workflow to CANCELLED."""
        async with self.session() as session:
            count = await AgentExecutionRepository(session, self.tenant_id).cancel_open_for_workflow(
                workflow_execution_id
            )
            await session.commit()
        return count

    async def cancel_workflow(
        self, workflow_execution_id: UUID, reason: str | None = None
    ) -> WorkflowExecution:
        """Cancel a workflow with its open agents and return the project to DRAFT.

        Cancelling an already CANCELLED workflow returns it unchanged.

        Raises:
            NotFoundError: If the workflow does not exist in this tenant.
            InvalidTransitionError: If the workflow already COMPLETED or FAILED.
        """
        now = utc_now()
        async with self.session() as session:
            workflows = WorkflowExecutionRepository(session, self.tenant_id)
            cancelled = await AgentExecutionRepository(
                session, self.tenant_id
            ).cancel_open_for_workflow(workflow_execution_id)
            workflow = await workflows.compare_and_set_status(
                workflow_execution_id,
                _OPEN_STATUSES,
                ExecutionStatus.CANCELLED.value,
                {"completed_at": now, "error_message": reason},
            )
            if workflow is None:
                await session.rollback()
                current = await workflows.get_by_id(workflow_execution_id)
                if current is None:
                    raise NotFoundError("WorkflowExecution", workflow_execution_id)
                if current.status == ExecutionStatus.CANCELLED.value:
                    return current
                raise InvalidTransitionError(
                    "WorkflowExecution",
                    workflow_execution_id,
                    current.status,
                    ExecutionStatus.CANCELLED.value,
                )

            await ProjectRepository(session, self.tenant_id).compare_and_set_status(
                workflow.project_id,
                [ProjectStatus.IN_PROGRESS.value],
                ProjectStatus.DRAFT.value,
            )
            await session.commit()

        logger.info(
            "Workflow cancelled",
            workflow_execution_id=str(workflow_execution_id),
            cancelled_agents=cancelled,
        )
        return workflow

    async def _require_project(self, session: AsyncSession, project_id: UUID) -> Project:
        project = await ProjectRepository(session, self.tenant_id).get_by_id(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project
