"""Quality layer evaluators.

Each evaluator scores the generated site on its own dimensions. Scores are
floats in [0, 1]; the orchestrator averages them per metric across
evaluators to decide whether another refinement iteration is needed.
"""

from typing import Any

from pydantic import BaseModel, Field

from src.sitegen.agents.base import Agent, AgentInput
from src.sitegen.core.exceptions import BusinessRuleError
from src.sitegen.models.enums import AgentRole, Layer
from src.sitegen.orchestration.scoring import grade_for


class Evaluation(BaseModel):
    scores: dict[str, float]
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class EvaluatorAgent(Agent[AgentInput, Evaluation]):
    """Shared behaviour of the quality evaluators."""

    layer = Layer.QUALITY
    input_model = AgentInput
    output_model = Evaluation
    temperature = 0.2
    metrics: tuple[str, ...] = ()

    def output_instructions(self) -> str:
        return (
            f"{super().output_instructions()}\n\nScore each of these metrics from 0 to 1: "
            f"{', '.join(self.metrics)}."
        )

    def validate_output(self, output: Evaluation) -> None:
        if not output.scores:
            raise BusinessRuleError(f"{self.name} returned no scores")
        out_of_range = {k: v for k, v in output.scores.items() if not 0.0 <= v <= 1.0}
        if out_of_range:
            raise BusinessRuleError(
                "Scores must be within [0, 1]", details={"out_of_range": out_of_range}
            )

    def evaluate(self, output: Evaluation) -> dict[str, Any]:
        mean = sum(output.scores.values()) / len(output.scores)
        return {
            "scores": dict(output.scores),
            "grade": grade_for(mean),
            "issues": list(output.issues),
            "recommendations": list(output.recommendations),
        }


class SeoEvaluatorAgent(EvaluatorAgent):
    role = AgentRole.SEO_EVALUATOR
    name = "SEO Evaluator"
    metrics = ("seo", "local_seo")
    instructions = (
        "Review the generated pages for search optimisation: titles and meta descriptions, "
        "heading structure, local business signals and internal linking."
    )


class PerformanceEvaluatorAgent(EvaluatorAgent):
    role = AgentRole.PERFORMANCE_EVALUATOR
    name = "Performance Evaluator"
    metrics = ("performance",)
    instructions = (
        "Review the generated components for runtime performance: image handling, bundle "
        "weight, client-side JavaScript and render-blocking resources."
    )


class AccessibilityEvaluatorAgent(EvaluatorAgent):
    role = AgentRole.ACCESSIBILITY_EVALUATOR
    name = "Accessibility Evaluator"
    metrics = ("accessibility",)
    instructions = (
        "Review the generated components against WCAG 2.1 AA: semantic landmarks, alt "
        "text, form labels, keyboard access and color contrast."
    )
