"""Service factory dependencies."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.sitegen.agents.llm import AnthropicProvider, LLMProvider
from src.sitegen.api.dependencies.auth import ValidatedTenant
from src.sitegen.api.dependencies.db import DBEngine
from src.sitegen.core.config import get_settings
from src.sitegen.orchestration.plan import WorkflowPlan, default_plan
from src.sitegen.services.discovery_service import DiscoveryService
from src.sitegen.services.execution_service import ExecutionService
from src.sitegen.services.execution_store import ExecutionStore
from src.sitegen.services.project_service import ProjectService
from src.sitegen.services.workflow_service import (
    TemporalDispatcher,
    WorkflowDispatcher,
    WorkflowService,
)


def get_execution_store(tenant: ValidatedTenant, engine: DBEngine) -> ExecutionStore:
    """Execution store scoped to the caller's tenant."""
    return ExecutionStore(tenant.id, engine)


Store = Annotated[ExecutionStore, Depends(get_execution_store)]


@lru_cache
def get_workflow_plan() -> WorkflowPlan:
    return default_plan(get_settings())


def get_workflow_dispatcher() -> WorkflowDispatcher:
    """Background dispatch (overridden in tests)."""
    return TemporalDispatcher()


@lru_cache
def get_llm_provider() -> LLMProvider:
    """Provider for the discovery chat, the only agent answered inline."""
    settings = get_settings()
    return AnthropicProvider(settings.anthropic_api_key, timeout=settings.llm_timeout_seconds)


def get_project_service(store: Store) -> ProjectService:
    """Get project service."""
    return ProjectService(store)


def get_workflow_service(
    store: Store,
    dispatcher: Annotated[WorkflowDispatcher, Depends(get_workflow_dispatcher)],
    plan: Annotated[WorkflowPlan, Depends(get_workflow_plan)],
) -> WorkflowService:
    """Get workflow service with background dispatch."""
    return WorkflowService(store, dispatcher, plan)


def get_execution_service(store: Store) -> ExecutionService:
    """Get execution query service."""
    return ExecutionService(store)


def get_discovery_service(
    store: Store,
    provider: Annotated[LLMProvider, Depends(get_llm_provider)],
) -> DiscoveryService:
    """Get discovery chat service."""
    return DiscoveryService(store, provider)


ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
WorkflowServiceDep = Annotated[WorkflowService, Depends(get_workflow_service)]
ExecutionServiceDep = Annotated[ExecutionService, Depends(get_execution_service)]
DiscoveryServiceDep = Annotated[DiscoveryService, Depends(get_discovery_service)]
