"""Agent contract.

An agent is one bounded unit of LLM work: it validates its input, prompts
the provider, parses and checks the output, and describes the artifacts
to persist. Agents never write to the store or the filesystem themselves.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar
from uuid import UUID

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from src.sitegen.agents.industry import guidance_for
from src.sitegen.agents.llm import LLMProvider, Message
from src.sitegen.agents.parsing import Content, extract_json
from src.sitegen.agents.pricing import TokenUsage
from src.sitegen.core.exceptions import ParseError, ValidationError
from src.sitegen.core.logging import get_logger
from src.sitegen.models.enums import AgentRole, Layer

logger = get_logger(__name__)

STRICT_JSON_INSTRUCTION = (
    "Your previous answer could not be parsed. Respond with exactly one ```json fenced "
    "block containing a single JSON object that matches the schema. No prose."
)


@dataclass(frozen=True)
class AgentContext:
    """Per-invocation context handed to an agent."""

    tenant_id: UUID
    project_id: UUID
    iteration: int = 0
    industry: str | None = None
    workflow_execution_id: UUID | None = None
    agent_execution_id: UUID | None = None
    strict_json: bool = False


@dataclass(frozen=True)
class Artifact:
    """A file an agent wants persisted, relative to the project's artifact root."""

    path: str
    content: str


@dataclass
class AgentResult[OutputT: BaseModel]:
    output: OutputT
    artifacts: list[Artifact] = field(default_factory=list)
    evaluation: dict[str, Any] | None = None


class AgentInput(BaseModel):
    """Fields every pipeline agent receives.

    ``upstream`` holds outputs of earlier agents keyed by role value, and
    ``quality_feedback`` carries reviewer notes into refinement iterations.
    """

    model_config = ConfigDict(extra="ignore")

    business_name: str = Field(min_length=1)
    industry: str | None = None
    description: str | None = None
    services: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    goals: list[str] = Field(default_factory=list)
    upstream: dict[str, dict[str, Any]] = Field(default_factory=dict)
    quality_feedback: list[str] = Field(default_factory=list)


class Agent[InputT: BaseModel, OutputT: BaseModel](ABC):
    """Base class for all agents."""

    role: ClassVar[AgentRole]
    layer: ClassVar[Layer]
    name: ClassVar[str]
    input_model: ClassVar[type[BaseModel]]
    output_model: ClassVar[type[BaseModel]]
    instructions: ClassVar[str]
    # Per-agent overrides of the configured defaults
    max_tokens: ClassVar[int | None] = None
    temperature: ClassVar[float | None] = None

    def __init__(
        self,
        provider: LLMProvider,
        *,
        model: str,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ):
        self.provider = provider
        self.model = model
        cls = type(self)
        self.max_tokens = cls.max_tokens if cls.max_tokens is not None else max_tokens
        self.temperature = cls.temperature if cls.temperature is not None else temperature
        # Summed over every provider call this instance makes
        self.usage = TokenUsage()

    # -- input -------------------------------------------------------------

    def validate_input(self, data: dict[str, Any]) -> InputT:
        """Validate raw input against the input model and domain preconditions."""
        try:
            validated = self.input_model.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Invalid input for {self.name}",
                details=e.errors(include_url=False, include_context=False),
            ) from e
        self.check_preconditions(validated)  # type: ignore[arg-type]
        return validated  # type: ignore[return-value]

    def check_preconditions(self, data: InputT) -> None:
        """Domain preconditions beyond schema shape. Raise ValidationError."""

    # -- prompting ---------------------------------------------------------

    def output_instructions(self) -> str:
        schema = json.dumps(self.output_model.model_json_schema(), indent=2)
        return (
            "Respond with a ```json fenced block containing one JSON object matching "
            f"this schema:\n{schema}"
        )

    def build_system_prompt(self, data: InputT, context: AgentContext) -> str:
        industry = getattr(data, "industry", None) or context.industry
        sections = [
            f"You are the {self.name} agent (role: {self.role.value}) in a website "
            "generation pipeline for local service businesses.",
            self.instructions,
            f"Industry guidance: {guidance_for(industry)}",
            self.output_instructions(),
        ]
        if context.iteration > 0:
            sections.append(
                f"This is refinement iteration {context.iteration}. Address every point "
                "of the quality feedback in the input."
            )
        if context.strict_json:
            sections.append(STRICT_JSON_INSTRUCTION)
        return "\n\n".join(sections)

    def build_messages(self, data: InputT, context: AgentContext) -> list[Message]:
        payload = data.model_dump(mode="json", exclude_defaults=True)
        return [{"role": "user", "content": f"Input:\n```json\n{json.dumps(payload, indent=2)}\n```"}]

    async def execute(self, data: InputT, context: AgentContext) -> Content:
        """Call the provider. Raises ProviderError on failure."""
        completion = await self.provider.complete(
            self.build_system_prompt(data, context),
            self.build_messages(data, context),
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        self.usage += completion.usage
        return completion.content

    # -- output ------------------------------------------------------------

    def parse_output(self, content: Content) -> OutputT:
        """Extract and validate the output JSON. Raises ParseError."""
        payload = extract_json(content)
        try:
            return self.output_model.model_validate(payload)  # type: ignore[return-value]
        except pydantic.ValidationError as e:
            raise ParseError(
                f"{self.name} output does not match schema",
                details=e.errors(include_url=False, include_context=False),
            ) from e

    def validate_output(self, output: OutputT) -> None:
        """Business invariants beyond schema shape. Raise BusinessRuleError."""

    def store_artifacts(self, output: OutputT, context: AgentContext) -> list[Artifact]:
        """Describe files to persist. Pure; the caller performs the I/O."""
        return []

    def evaluate(self, output: OutputT) -> dict[str, Any] | None:
        """Quality scores carried by the output, if this agent grades work."""
        return None

    # -- composition -------------------------------------------------------

    async def run(self, data: dict[str, Any], context: AgentContext) -> AgentResult[OutputT]:
        """Validate, execute, parse and check.

        A ParseError is retried once with a stricter prompt. ProviderError
        propagates to the caller, which owns the retry budget.
        """
        validated = self.validate_input(data)
        content = await self.execute(validated, context)
        try:
            output = self.parse_output(content)
        except ParseError as e:
            logger.warning("Unparseable output, re-prompting", agent=self.name, error=e.message)
            content = await self.execute(validated, replace(context, strict_json=True))
            output = self.parse_output(content)

        self.validate_output(output)
        return AgentResult(
            output=output,
            artifacts=self.store_artifacts(output, context),
            evaluation=self.evaluate(output),
        )
