"""Model exports.

Import from here: `from src.sitegen.models import Project, AgentExecution`
"""

from src.sitegen.models.enums import (
    LAYER_ORDER,
    TERMINAL_STATUSES,
    AgentRole,
    ExecutionStatus,
    Layer,
    ProjectStatus,
    WorkflowType,
)
from src.sitegen.models.execution import AgentExecution, WorkflowExecution
from src.sitegen.models.project import CompanyProfile, Project
from src.sitegen.models.tenant import Tenant

__all__ = [
    # Enums
    "LAYER_ORDER",
    "TERMINAL_STATUSES",
    "AgentRole",
    "ExecutionStatus",
    "Layer",
    "ProjectStatus",
    "WorkflowType",
    # Tables
    "AgentExecution",
    "CompanyProfile",
    "Project",
    "Tenant",
    "WorkflowExecution",
]
