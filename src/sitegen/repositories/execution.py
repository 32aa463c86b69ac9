"""Repositories for WorkflowExecution and AgentExecution entities."""

from uuid import UUID

from sqlalchemy import func, update
from sqlmodel import select

from src.sitegen.models import (
    AgentExecution,
    ExecutionStatus,
    Layer,
    WorkflowExecution,
)
from src.sitegen.models.base import utc_now
from src.sitegen.repositories.base import BaseRepository
from src.sitegen.schemas.execution import AgentExecutionFilters


class WorkflowExecutionRepository(BaseRepository[WorkflowExecution]):
    """Repository for WorkflowExecution entity."""

    model = WorkflowExecution

    async def latest_for_project(self, project_id: UUID) -> WorkflowExecution | None:
        """Most recently created workflow execution of a project."""
        result = await self.session.execute(
            self.scoped()
            .where(WorkflowExecution.project_id == project_id)
            .order_by(WorkflowExecution.created_at.desc(), WorkflowExecution.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_project(self, project_id: UUID) -> list[WorkflowExecution]:
        result = await self.session.execute(
            self.scoped()
            .where(WorkflowExecution.project_id == project_id)
            .order_by(WorkflowExecution.created_at.desc(), WorkflowExecution.id.desc())
        )
        return list(result.scalars().all())

    async def set_step(self, id: UUID, current_step: int, current_step_name: str) -> None:
        """Record which layer is executing."""
        await self.session.execute(
            update(WorkflowExecution)
            .where(WorkflowExecution.id == id, WorkflowExecution.tenant_id == self.tenant_id)
            .values(
                {
                    WorkflowExecution.current_step: current_step,
                    WorkflowExecution.current_step_name: current_step_name,
                    WorkflowExecution.updated_at: utc_now(),
                }
            )
            .execution_options(synchronize_session=False)
        )

    async def advance_progress(
        self,
        id: UUID,
        completed_steps: int,
        progress_percentage: float,
    ) -> bool:
        """Write progress counters unless that would move them backwards."""
        result = await self.session.execute(
            update(WorkflowExecution)
            .where(
                WorkflowExecution.id == id,
                WorkflowExecution.tenant_id == self.tenant_id,
                WorkflowExecution.completed_steps <= completed_steps,
                WorkflowExecution.progress_percentage <= progress_percentage,
            )
            .values(
                {
                    WorkflowExecution.completed_steps: completed_steps,
                    WorkflowExecution.progress_percentage: progress_percentage,
                    WorkflowExecution.updated_at: utc_now(),
                }
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]


class AgentExecutionRepository(BaseRepository[AgentExecution]):
    """Repository for AgentExecution entity."""

    model = AgentExecution

    async def list_for_project(
        self,
        project_id: UUID,
        filters: AgentExecutionFilters | None = None,
        cursor: str | None = None,
        limit: int = 20,
    ) -> tuple[list[AgentExecution], str | None, bool]:
        """List executions of a project, newest first, with optional filters."""
        query = self.scoped().where(AgentExecution.project_id == project_id)
        if filters is not None:
            if filters.status is not None:
                query = query.where(AgentExecution.status == filters.status.value)
            if filters.layer is not None:
                query = query.where(AgentExecution.layer == filters.layer.value)
            if filters.agent_role is not None:
                query = query.where(AgentExecution.agent_role == filters.agent_role.value)
        return await self.paginate(query, cursor, limit)

    async def list_for_workflow(self, workflow_execution_id: UUID) -> list[AgentExecution]:
        """All executions owned by a workflow execution, oldest first."""
        result = await self.session.execute(
            self.scoped()
            .where(AgentExecution.workflow_execution_id == workflow_execution_id)
            .order_by(AgentExecution.created_at, AgentExecution.id)
        )
        return list(result.scalars().all())

    async def count_completed(self, workflow_execution_id: UUID, iteration: int) -> int:
        """Count COMPLETED executions planned for a workflow iteration."""
        result = await self.session.execute(
            select(func.count())
            .select_from(AgentExecution)
            .where(
                AgentExecution.tenant_id == self.tenant_id,
                AgentExecution.workflow_execution_id == workflow_execution_id,
                AgentExecution.iteration == iteration,
                AgentExecution.status == ExecutionStatus.COMPLETED.value,
            )
        )
        return int(result.scalar_one())

    async def latest_evaluations(self, project_id: UUID, limit: int) -> list[AgentExecution]:
        """Most recent COMPLETED quality executions that carry an evaluation."""
        result = await self.session.execute(
            self.scoped()
            .where(
                AgentExecution.project_id == project_id,
                AgentExecution.layer == Layer.QUALITY.value,
                AgentExecution.status == ExecutionStatus.COMPLETED.value,
                AgentExecution.evaluation.is_not(None),  # type: ignore[union-attr]
            )
            .order_by(AgentExecution.completed_at.desc(), AgentExecution.id.desc())  # type: ignore[union-attr]
            .limit(limit)
        )
        # JSON null is stored as a value on some backends; drop it here
        return [row for row in result.scalars().all() if row.evaluation]

    async def recent_for_project(self, project_id: UUID, limit: int) -> list[AgentExecution]:
        result = await self.session.execute(
            self.scoped()
            .where(AgentExecution.project_id == project_id)
            .order_by(AgentExecution.created_at.desc(), AgentExecution.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_pending(self, limit: int) -> list[AgentExecution]:
        """PENDING executions, oldest first."""
        result = await self.session.execute(
            self.scoped()
            .where(AgentExecution.status == ExecutionStatus.PENDING.value)
            .order_by(AgentExecution.created_at, AgentExecution.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def cancel_open_for_workflow(self, workflow_execution_id: UUID) -> int:
        """Move every PENDING or RUNNING execution of a workflow to CANCELLED."""
        now = utc_now()
        result = await self.session.execute(
            update(AgentExecution)
            .where(
                AgentExecution.tenant_id == self.tenant_id,
                AgentExecution.workflow_execution_id == workflow_execution_id,
                AgentExecution.status.in_(  # type: ignore[attr-defined]
                    [ExecutionStatus.PENDING.value, ExecutionStatus.RUNNING.value]
                ),
            )
            .values(
                {
                    AgentExecution.status: ExecutionStatus.CANCELLED.value,
                    AgentExecution.completed_at: now,
                    AgentExecution.updated_at: now,
                }
            )
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount)  # type: ignore[attr-defined]
