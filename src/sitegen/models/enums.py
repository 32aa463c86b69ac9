"""Shared enums for models."""

from enum import Enum


class ProjectStatus(str, Enum):
    """Project lifecycle status."""

    DRAFT = "DRAFT"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    ARCHIVED = "ARCHIVED"


class ExecutionStatus(str, Enum):
    """Status of a workflow or agent execution."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {ExecutionStatus.COMPLETED, ExecutionStatus.FAILED, ExecutionStatus.CANCELLED}
)


class Layer(str, Enum):
    """Pipeline phase an agent belongs to."""

    ORCHESTRATOR = "ORCHESTRATOR"
    DISCOVERY = "DISCOVERY"
    DESIGN = "DESIGN"
    CONTENT = "CONTENT"
    CODE = "CODE"
    QUALITY = "QUALITY"


# Fixed execution order of layers
LAYER_ORDER: tuple[Layer, ...] = (
    Layer.ORCHESTRATOR,
    Layer.DISCOVERY,
    Layer.DESIGN,
    Layer.CONTENT,
    Layer.CODE,
    Layer.QUALITY,
)


class AgentRole(str, Enum):
    """Every agent type known to the registry."""

    SITE_PLANNER = "SITE_PLANNER"
    BUSINESS_REQUIREMENTS = "BUSINESS_REQUIREMENTS"
    SERVICE_DEFINITION = "SERVICE_DEFINITION"
    DISCOVERY_CHAT = "DISCOVERY_CHAT"
    COLOR_PALETTE = "COLOR_PALETTE"
    TYPOGRAPHY = "TYPOGRAPHY"
    HERO_COPY = "HERO_COPY"
    SERVICE_DESCRIPTION = "SERVICE_DESCRIPTION"
    COMPONENT_CODE = "COMPONENT_CODE"
    SEO_EVALUATOR = "SEO_EVALUATOR"
    PERFORMANCE_EVALUATOR = "PERFORMANCE_EVALUATOR"
    ACCESSIBILITY_EVALUATOR = "ACCESSIBILITY_EVALUATOR"


class WorkflowType(str, Enum):
    """Kinds of workflow pipelines."""

    WEBSITE_GENERATION = "WEBSITE_GENERATION"
