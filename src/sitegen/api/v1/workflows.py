"""Workflow endpoints - start, inspect and cancel generation runs."""

from uuid import UUID

from fastapi import APIRouter, status

from src.sitegen.api.dependencies import (
    CurrentIdentity,
    ExecutionServiceDep,
    Store,
    WorkflowServiceDep,
)
from src.sitegen.schemas.execution import WorkflowAgentsRead, WorkflowExecutionRead

router = APIRouter(tags=["workflows"])


@router.post(
    "/projects/{project_id}/workflows",
    response_model=WorkflowExecutionRead,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start workflow",
    description=(
        "Start the generation pipeline for a DRAFT project. Agents run in background "
        "workers; follow progress on the project stream."
    ),
    responses={
        202: {"description": "Workflow created and dispatched"},
        400: {"description": "Project is not DRAFT"},
        404: {"description": "Project not found"},
    },
)
async def start_workflow(
    project_id: UUID,
    service: WorkflowServiceDep,
    _identity: CurrentIdentity,
) -> WorkflowExecutionRead:
    return WorkflowExecutionRead.model_validate(await service.start_workflow(project_id))


@router.get(
    "/workflows/{workflow_execution_id}",
    response_model=WorkflowExecutionRead,
    summary="Get workflow execution",
    responses={404: {"description": "Workflow execution not found"}},
)
async def get_workflow(
    workflow_execution_id: UUID,
    store: Store,
    _identity: CurrentIdentity,
) -> WorkflowExecutionRead:
    return WorkflowExecutionRead.model_validate(
        await store.get_workflow_execution(workflow_execution_id)
    )


@router.get(
    "/workflows/{workflow_execution_id}/agents",
    response_model=WorkflowAgentsRead,
    summary="List workflow agents",
    description="Agent executions of a workflow grouped by layer, in pipeline order.",
    responses={404: {"description": "Workflow execution not found"}},
)
async def list_workflow_agents(
    workflow_execution_id: UUID,
    service: ExecutionServiceDep,
    _identity: CurrentIdentity,
) -> WorkflowAgentsRead:
    return await service.workflow_agents(workflow_execution_id)


@router.post(
    "/workflows/{workflow_execution_id}/cancel",
    response_model=WorkflowExecutionRead,
    summary="Cancel workflow",
    responses={
        200: {"description": "Workflow cancelled"},
        404: {"description": "Workflow execution not found"},
        409: {"description": "Workflow already completed or failed"},
    },
)
async def cancel_workflow(
    workflow_execution_id: UUID,
    service: WorkflowServiceDep,
    _identity: CurrentIdentity,
) -> WorkflowExecutionRead:
    return WorkflowExecutionRead.model_validate(
        await service.cancel_workflow(workflow_execution_id)
    )
