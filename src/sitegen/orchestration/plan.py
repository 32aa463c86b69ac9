"""Workflow plans: which agents run in which layer, and how."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.sitegen.agents.registry import AGENT_REGISTRY
from src.sitegen.core.config import Settings
from src.sitegen.models.enums import LAYER_ORDER, AgentRole, Layer, WorkflowType


class ExecutionMode(str, Enum):
    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"


@dataclass(frozen=True)
class StepPlan:
    role: AgentRole
    optional: bool = False


@dataclass(frozen=True)
class LayerPlan:
    """One layer of a workflow.

    Attributes:
        layer: The layer this plan covers.
        steps: Agents of the layer, in declaration order.
        mode: PARALLEL dispatches every step at once, SEQUENTIAL one after another.
        dependencies: Layers that must be COMPLETED before this one starts.
        timeout_seconds: Per-agent timeout for agents of this layer.
    """

    layer: Layer
    steps: tuple[StepPlan, ...]
    mode: ExecutionMode = ExecutionMode.SEQUENTIAL
    dependencies: tuple[Layer, ...] = ()
    timeout_seconds: float = 300.0


@dataclass(frozen=True)
class PlannedAgent:
    """An agent execution to be created for a workflow run."""

    role: AgentRole
    layer: Layer
    name: str
    config: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkflowPlan:
    workflow_type: WorkflowType
    layers: tuple[LayerPlan, ...]
    # Layers re-run by refinement iterations; the rest are carried over
    refinement_layers: frozenset[Layer] = frozenset({Layer.CODE, Layer.QUALITY})

    def validate(self) -> "WorkflowPlan":
        """Check layer order, dependencies and agent placement.

        Raises:
            ValueError: If the plan is inconsistent.
        """
        order = [plan.layer for plan in self.layers]
        if len(set(order)) != len(order):
            raise ValueError("A layer may appear only once in a plan")
        if order != sorted(order, key=LAYER_ORDER.index):
            raise ValueError("Layers must follow the fixed layer order")

        seen: set[Layer] = set()
        for plan in self.layers:
            unknown = set(plan.dependencies) - seen
            if unknown:
                raise ValueError(
                    f"{plan.layer.value} depends on layers that do not run before it: "
                    f"{sorted(layer.value for layer in unknown)}"
                )
            if not plan.steps:
                raise ValueError(f"{plan.layer.value} has no steps")
            for step in plan.steps:
                spec = AGENT_REGISTRY[step.role]
                if spec.layer != plan.layer:
                    raise ValueError(
                        f"{step.role.value} belongs to {spec.layer.value}, not {plan.layer.value}"
                    )
            seen.add(plan.layer)

        if not self.refinement_layers <= seen:
            raise ValueError("Refinement layers must be part of the plan")
        return self

    def layer(self, layer: Layer) -> LayerPlan | None:
        for plan in self.layers:
            if plan.layer == layer:
                return plan
        return None

    def timeout_for(self, layer: Layer | str, default: float = 300.0) -> float:
        plan = self.layer(Layer(layer))
        return plan.timeout_seconds if plan is not None else default

    def layers_for_iteration(self, iteration: int) -> tuple[LayerPlan, ...]:
        """Layers to execute: everything on iteration 0, refinement layers afterwards."""
        if iteration == 0:
            return self.layers
        return tuple(plan for plan in self.layers if plan.layer in self.refinement_layers)

    def carried_layers(self, iteration: int) -> frozenset[Layer]:
        """Layers whose results an iteration inherits instead of re-running."""
        executed = {plan.layer for plan in self.layers_for_iteration(iteration)}
        return frozenset(plan.layer for plan in self.layers if plan.layer not in executed)

    def planned_agents(self, iteration: int) -> list[PlannedAgent]:
        agents = []
        for plan in self.layers_for_iteration(iteration):
            for step in plan.steps:
                agents.append(
                    PlannedAgent(
                        role=step.role,
                        layer=plan.layer,
                        name=AGENT_REGISTRY[step.role].name,
                        config={
                            "mode": plan.mode.value,
                            "optional": step.optional,
                            "timeoutSeconds": plan.timeout_seconds,
                        },
                    )
                )
        return agents


def progress_percentage(completed: int, total: int) -> float:
    """``completed / total * 100`` clamped to [0, 100]; 0 when nothing is planned."""
    if total <= 0:
        return 0.0
    return round(min(max(completed / total * 100.0, 0.0), 100.0), 2)


def default_plan(settings: Settings) -> WorkflowPlan:
    """The website generation pipeline."""
    standard = settings.default_layer_timeout_seconds
    return WorkflowPlan(
        workflow_type=WorkflowType.WEBSITE_GENERATION,
        layers=(
            LayerPlan(
                layer=Layer.ORCHESTRATOR,
                steps=(StepPlan(AgentRole.SITE_PLANNER),),
                timeout_seconds=standard,
            ),
            LayerPlan(
                layer=Layer.DISCOVERY,
                steps=(
                    StepPlan(AgentRole.BUSINESS_REQUIREMENTS),
                    StepPlan(AgentRole.SERVICE_DEFINITION),
                ),
                mode=ExecutionMode.PARALLEL,
                dependencies=(Layer.ORCHESTRATOR,),
                timeout_seconds=standard,
            ),
            LayerPlan(
                layer=Layer.DESIGN,
                steps=(StepPlan(AgentRole.COLOR_PALETTE), StepPlan(AgentRole.TYPOGRAPHY)),
                mode=ExecutionMode.PARALLEL,
                dependencies=(Layer.DISCOVERY,),
                timeout_seconds=standard,
            ),
            LayerPlan(
                layer=Layer.CONTENT,
                # Service descriptions reuse the hero copy's voice
                steps=(StepPlan(AgentRole.HERO_COPY), StepPlan(AgentRole.SERVICE_DESCRIPTION)),
                mode=ExecutionMode.SEQUENTIAL,
                dependencies=(Layer.DISCOVERY,),
                timeout_seconds=standard,
            ),
            LayerPlan(
                layer=Layer.CODE,
                steps=(StepPlan(AgentRole.COMPONENT_CODE),),
                dependencies=(Layer.DESIGN, Layer.CONTENT),
                timeout_seconds=settings.long_layer_timeout_seconds,
            ),
            LayerPlan(
                layer=Layer.QUALITY,
                steps=(
                    StepPlan(AgentRole.SEO_EVALUATOR),
                    StepPlan(AgentRole.PERFORMANCE_EVALUATOR),
                    StepPlan(AgentRole.ACCESSIBILITY_EVALUATOR),
                ),
                mode=ExecutionMode.PARALLEL,
                dependencies=(Layer.CODE,),
                timeout_seconds=standard,
            ),
        ),
    ).validate()
