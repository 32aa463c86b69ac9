"""Read-side queries over execution records."""

from uuid import UUID

from src.sitegen.core.config import get_settings
from src.sitegen.models import LAYER_ORDER
from src.sitegen.orchestration.scoring import build_quality_report
from src.sitegen.schemas.execution import (
    AgentExecutionFilters,
    AgentExecutionRead,
    EvaluationSummary,
    LayerGroup,
    WorkflowAgentsRead,
)
from src.sitegen.schemas.pagination import PaginatedResponse
from src.sitegen.services.execution_store import ExecutionStore


class ExecutionService:
    """Execution listings and evaluation summaries for API responses."""

    def __init__(self, store: ExecutionStore):
        self.store = store

    async def list_executions(
        self,
        project_id: UUID,
        filters: AgentExecutionFilters | None,
        cursor: str | None,
        limit: int | None,
    ) -> PaginatedResponse[AgentExecutionRead]:
        """List a project's agent executions, newest first.

        Raises:
            NotFoundError: If the project does not exist in this tenant
        """
        await self.store.get_project(project_id)
        items, next_cursor, has_more = await self.store.list_agent_executions(
            project_id, filters, cursor, limit
        )
        return PaginatedResponse(
            items=[AgentExecutionRead.model_validate(item) for item in items],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def workflow_agents(self, workflow_execution_id: UUID) -> WorkflowAgentsRead:
        """Agent executions of a workflow grouped by layer, in pipeline order."""
        rows = await self.store.list_workflow_agents(workflow_execution_id)
        by_layer: dict[str, list[AgentExecutionRead]] = {}
        for row in rows:
            by_layer.setdefault(row.layer, []).append(AgentExecutionRead.model_validate(row))
        return WorkflowAgentsRead(
            workflow_execution_id=workflow_execution_id,
            layers=[
                LayerGroup(layer=layer, executions=by_layer[layer.value])
                for layer in LAYER_ORDER
                if layer.value in by_layer
            ],
        )

    async def evaluation_summary(self, project_id: UUID, n: int = 5) -> EvaluationSummary:
        """Aggregate the ``n`` most recent completed quality evaluations.

        Raises:
            NotFoundError: If the project does not exist in this tenant
        """
        await self.store.get_project(project_id)
        rows = await self.store.find_latest_evaluations(project_id, n)
        report = build_quality_report(
            [row.evaluation for row in rows if row.evaluation], get_settings().pass_score
        )
        return EvaluationSummary(
            evaluation_count=len(rows),
            scores=report.scores,
            composite=report.composite,
            grade=report.grade,
            passed=report.passed,
            evaluations=[AgentExecutionRead.model_validate(row) for row in rows],
        )

