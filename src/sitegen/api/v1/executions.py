"""Agent execution endpoints - listings, evaluations and retry."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Query, status

from src.sitegen.api.dependencies import (
    CurrentIdentity,
    ExecutionServiceDep,
    Store,
    WorkflowServiceDep,
)
from src.sitegen.core.logging import get_logger
from src.sitegen.models import AgentRole, ExecutionStatus, Layer
from src.sitegen.schemas.execution import (
    AgentExecutionFilters,
    AgentExecutionRead,
    EvaluationSummary,
    RetryRequest,
)
from src.sitegen.schemas.pagination import PaginatedResponse

logger = get_logger(__name__)

router = APIRouter(tags=["executions"])


@router.get(
    "/projects/{project_id}/executions",
    response_model=PaginatedResponse[AgentExecutionRead],
    summary="List agent executions",
    description=(
        "Agent executions of a project, newest first. Pass ``next_cursor`` back as "
        "``cursor`` to fetch the following page."
    ),
    responses={404: {"description": "Project not found"}},
)
async def list_executions(
    project_id: UUID,
    service: ExecutionServiceDep,
    _identity: CurrentIdentity,
    status_filter: Annotated[ExecutionStatus | None, Query(alias="status")] = None,
    layer: Annotated[Layer | None, Query()] = None,
    agent_role: Annotated[AgentRole | None, Query()] = None,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int | None, Query(ge=1, description="Max items to return (max 100)")] = None,
) -> PaginatedResponse[AgentExecutionRead]:
    filters = AgentExecutionFilters(status=status_filter, layer=layer, agent_role=agent_role)
    return await service.list_executions(project_id, filters, cursor, limit)


@router.get(
    "/projects/{project_id}/evaluations/latest",
    response_model=EvaluationSummary,
    summary="Latest quality evaluations",
    description="Per-metric means and composite score of the most recent evaluations.",
    responses={404: {"description": "Project not found"}},
)
async def latest_evaluations(
    project_id: UUID,
    service: ExecutionServiceDep,
    _identity: CurrentIdentity,
    n: Annotated[int, Query(ge=1, le=50, description="Number of evaluations")] = 5,
) -> EvaluationSummary:
    return await service.evaluation_summary(project_id, n)


@router.get(
    "/executions/{execution_id}",
    response_model=AgentExecutionRead,
    summary="Get agent execution",
    responses={404: {"description": "Agent execution not found"}},
)
async def get_execution(
    execution_id: UUID,
    store: Store,
    _identity: CurrentIdentity,
) -> AgentExecutionRead:
    return AgentExecutionRead.model_validate(await store.get_agent_execution(execution_id))


@router.post(
    "/executions/{execution_id}/retry",
    response_model=AgentExecutionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Retry agent execution",
    description=(
        "Supersede a FAILED execution with a new PENDING one that records its lineage, "
        "and dispatch it."
    ),
    responses={
        201: {"description": "Successor execution created"},
        400: {"description": "Execution is not FAILED"},
        404: {"description": "Agent execution not found"},
    },
)
async def retry_execution(
    execution_id: UUID,
    service: WorkflowServiceDep,
    identity: CurrentIdentity,
    request: Annotated[RetryRequest | None, Body()] = None,
) -> AgentExecutionRead:
    if request is not None and request.reason:
        logger.info("Retry requested", agent_execution_id=str(execution_id), reason=request.reason)
    successor = await service.retry_execution(execution_id, identity.user_id)
    return AgentExecutionRead.model_validate(successor)
