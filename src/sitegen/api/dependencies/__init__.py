"""FastAPI dependency injection definitions.

Re-exports all dependencies for route modules.
"""

# Auth
from src.sitegen.api.dependencies.auth import (
    CurrentIdentity,
    ValidatedTenant,
    get_current_identity,
    get_validated_tenant,
)

# Database
from src.sitegen.api.dependencies.db import DBEngine, get_db_engine

# Services
from src.sitegen.api.dependencies.services import (
    DiscoveryServiceDep,
    ExecutionServiceDep,
    ProjectServiceDep,
    Store,
    WorkflowServiceDep,
    get_discovery_service,
    get_execution_service,
    get_execution_store,
    get_llm_provider,
    get_project_service,
    get_workflow_dispatcher,
    get_workflow_plan,
    get_workflow_service,
)

__all__ = [
    # Database
    "DBEngine",
    "get_db_engine",
    # Auth
    "CurrentIdentity",
    "ValidatedTenant",
    "get_current_identity",
    "get_validated_tenant",
    # Services
    "DiscoveryServiceDep",
    "ExecutionServiceDep",
    "ProjectServiceDep",
    "Store",
    "WorkflowServiceDep",
    "get_discovery_service",
    "get_execution_service",
    "get_execution_store",
    "get_llm_provider",
    "get_project_service",
    "get_workflow_dispatcher",
    "get_workflow_plan",
    "get_workflow_service",
]
