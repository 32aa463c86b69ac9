"""Repository layer - data access abstraction."""

from src.sitegen.repositories.base import BaseRepository
from src.sitegen.repositories.execution import (
    AgentExecutionRepository,
    WorkflowExecutionRepository,
)
from src.sitegen.repositories.project import (
    CompanyProfileRepository,
    ProjectRepository,
    TenantRepository,
)

__all__ = [
    "AgentExecutionRepository",
    "BaseRepository",
    "CompanyProfileRepository",
    "ProjectRepository",
    "TenantRepository",
    "WorkflowExecutionRepository",
]
