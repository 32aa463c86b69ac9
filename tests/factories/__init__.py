"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import ProjectFactory, TenantFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid7, utc_now
from tests.factories.project import (
    DEFAULT_BRIEF,
    AgentExecutionFactory,
    ProjectFactory,
    WorkflowExecutionFactory,
)
from tests.factories.tenant import TenantFactory

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid7",
    "utc_now",
    # Tenant
    "TenantFactory",
    # Project
    "DEFAULT_BRIEF",
    "ProjectFactory",
    # Executions
    "AgentExecutionFactory",
    "WorkflowExecutionFactory",
]
