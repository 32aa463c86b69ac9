"""Content layer agents: hero copy and service descriptions."""

from pydantic import BaseModel, Field

from src.sitegen.agents.base import Agent, AgentInput
from src.sitegen.core.exceptions import BusinessRuleError, ValidationError
from src.sitegen.models.enums import AgentRole, Layer

MAX_HEADLINE_WORDS = 12


class HeroCopy(BaseModel):
    headline: str = Field(min_length=1, max_length=90)
    subheadline: str = Field(min_length=1, max_length=200)
    primary_cta: str = Field(min_length=1, max_length=30)
    secondary_cta: str | None = Field(default=None, max_length=30)


class HeroCopyAgent(Agent[AgentInput, HeroCopy]):
    role = AgentRole.HERO_COPY
    layer = Layer.CONTENT
    name = "Hero Copy"
    input_model = AgentInput
    output_model = HeroCopy
    temperature = 0.8
    instructions = (
        "Write the home page hero: a short benefit-led headline, a supporting "
        "subheadline and call-to-action button labels."
    )

    def validate_output(self, output: HeroCopy) -> None:
        words = len(output.headline.split())
        if words > MAX_HEADLINE_WORDS:
            raise BusinessRuleError(
                f"Headline has {words} words, maximum is {MAX_HEADLINE_WORDS}"
            )


class ServiceDescription(BaseModel):
    service: str = Field(min_length=1)
    heading: str = Field(min_length=1)
    body: str = Field(min_length=1)


class ServiceDescriptions(BaseModel):
    descriptions: list[ServiceDescription]


class ServiceDescriptionAgent(Agent[AgentInput, ServiceDescriptions]):
    role = AgentRole.SERVICE_DESCRIPTION
    layer = Layer.CONTENT
    name = "Service Description"
    input_model = AgentInput
    output_model = ServiceDescriptions
    instructions = (
        "Write a persuasive description for each service, 80 to 150 words, ending with "
        "a reason to get in touch."
    )

    def check_preconditions(self, data: AgentInput) -> None:
        if not data.services:
            raise ValidationError("At least one service must be defined")

    def validate_output(self, output: ServiceDescriptions) -> None:
        if not output.descriptions:
            raise BusinessRuleError("No service descriptions were produced")
