"""Role -> agent registry.

Every :class:`AgentRole` must map to exactly one agent class. The coverage
check runs at import time so a new role without an agent fails fast.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import pydantic
from pydantic import BaseModel

from src.sitegen.agents.base import Agent
from src.sitegen.agents.code import ComponentCodeAgent
from src.sitegen.agents.content import HeroCopyAgent, ServiceDescriptionAgent
from src.sitegen.agents.design import ColorPaletteAgent, TypographyAgent
from src.sitegen.agents.discovery import (
    BusinessRequirementsAgent,
    DiscoveryChatAgent,
    ServiceDefinitionAgent,
)
from src.sitegen.agents.llm import LLMProvider
from src.sitegen.agents.quality import (
    AccessibilityEvaluatorAgent,
    PerformanceEvaluatorAgent,
    SeoEvaluatorAgent,
)
from src.sitegen.agents.strategy import SitePlannerAgent
from src.sitegen.core.config import Settings
from src.sitegen.models.enums import AgentRole, Layer


@dataclass(frozen=True)
class AgentSpec:
    role: AgentRole
    layer: Layer
    name: str
    agent_class: type[Agent]  # type: ignore[type-arg]

    @property
    def input_model(self) -> type[BaseModel]:
        return self.agent_class.input_model

    @property
    def output_model(self) -> type[BaseModel]:
        return self.agent_class.output_model

    def safe_parse_input(self, data: Any) -> tuple[bool, Any]:
        return safe_parse(self.input_model, data)

    def safe_parse_output(self, data: Any) -> tuple[bool, Any]:
        return safe_parse(self.output_model, data)

    def build(self, provider: LLMProvider, settings: Settings) -> Agent:  # type: ignore[type-arg]
        """Instantiate the agent with provider and model settings."""
        return self.agent_class(
            provider,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )


def safe_parse(model: type[BaseModel], data: Any) -> tuple[bool, Any]:
    """Validate without raising.

    Returns ``(True, instance)`` or ``(False, errors)``.
    """
    try:
        return True, model.model_validate(data)
    except pydantic.ValidationError as e:
        return False, e.errors(include_url=False)


_AGENT_CLASSES: tuple[type[Agent], ...] = (  # type: ignore[type-arg]
    SitePlannerAgent,
    BusinessRequirementsAgent,
    ServiceDefinitionAgent,
    DiscoveryChatAgent,
    ColorPaletteAgent,
    TypographyAgent,
    HeroCopyAgent,
    ServiceDescriptionAgent,
    ComponentCodeAgent,
    SeoEvaluatorAgent,
    PerformanceEvaluatorAgent,
    AccessibilityEvaluatorAgent,
)


def _build_registry() -> Mapping[AgentRole, AgentSpec]:
    registry: dict[AgentRole, AgentSpec] = {}
    for agent_class in _AGENT_CLASSES:
        if agent_class.role in registry:
            raise RuntimeError(f"Duplicate agent registered for role {agent_class.role.value}")
        registry[agent_class.role] = AgentSpec(
            role=agent_class.role,
            layer=agent_class.layer,
            name=agent_class.name,
            agent_class=agent_class,
        )
    return MappingProxyType(registry)


AGENT_REGISTRY: Mapping[AgentRole, AgentSpec] = _build_registry()


def missing_roles(registry: Mapping[AgentRole, AgentSpec] = AGENT_REGISTRY) -> set[AgentRole]:
    """Roles with no registered agent."""
    return set(AgentRole) - set(registry)


def get_agent_spec(role: AgentRole | str) -> AgentSpec:
    return AGENT_REGISTRY[AgentRole(role)]


if missing := missing_roles():
    raise RuntimeError(f"Agent roles without an agent: {sorted(r.value for r in missing)}")
