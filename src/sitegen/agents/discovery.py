"""Discovery layer agents: business requirements, service catalog and the intake chat."""

import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.sitegen.agents.base import Agent, AgentContext, AgentInput
from src.sitegen.agents.extraction import PROFILE_SECTIONS
from src.sitegen.agents.llm import Message
from src.sitegen.agents.parsing import Content, content_to_text, strip_json_blocks
from src.sitegen.core.exceptions import BusinessRuleError, ParseError, ValidationError
from src.sitegen.models.enums import AgentRole, Layer


class BusinessRequirements(BaseModel):
    value_proposition: str = Field(min_length=1)
    target_audience: list[str] = Field(min_length=1)
    primary_goals: list[str] = Field(min_length=1)
    differentiators: list[str] = Field(default_factory=list)
    calls_to_action: list[str] = Field(min_length=1)


class BusinessRequirementsAgent(Agent[AgentInput, BusinessRequirements]):
    role = AgentRole.BUSINESS_REQUIREMENTS
    layer = Layer.DISCOVERY
    name = "Business Requirements"
    input_model = AgentInput
    output_model = BusinessRequirements
    instructions = (
        "Turn the business brief into website requirements: the value proposition, who "
        "the site is for, what it must achieve, what sets the business apart and the "
        "calls to action visitors should take."
    )


class ServiceDefinition(BaseModel):
    name: str = Field(min_length=1)
    slug: str = Field(pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$")
    summary: str = Field(min_length=1)
    benefits: list[str] = Field(default_factory=list)


class ServiceCatalog(BaseModel):
    services: list[ServiceDefinition]


class ServiceDefinitionAgent(Agent[AgentInput, ServiceCatalog]):
    role = AgentRole.SERVICE_DEFINITION
    layer = Layer.DISCOVERY
    name = "Service Definition"
    input_model = AgentInput
    output_model = ServiceCatalog
    instructions = (
        "Define one catalog entry per service the business offers: a display name, a URL "
        "slug, a one-sentence summary and the customer benefits."
    )

    def check_preconditions(self, data: AgentInput) -> None:
        if not data.services:
            raise ValidationError("At least one service must be defined")

    def validate_output(self, output: ServiceCatalog) -> None:
        if not output.services:
            raise BusinessRuleError("Service catalog is empty")
        slugs = [service.slug for service in output.services]
        if len(set(slugs)) != len(slugs):
            raise BusinessRuleError("Service slugs must be unique")


class DiscoveryChatInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = Field(min_length=1)
    history: list[dict[str, str]] = Field(default_factory=list)
    profile: dict[str, Any] = Field(default_factory=dict)
    industry: str | None = None


class DiscoveryChatOutput(BaseModel):
    reply: str = Field(min_length=1)
    # Raw response text; structured extraction happens against prior state
    evidence: str


class DiscoveryChatAgent(Agent[DiscoveryChatInput, DiscoveryChatOutput]):
    """Conversational intake. Runs standalone, outside of workflow layers."""

    role = AgentRole.DISCOVERY_CHAT
    layer = Layer.DISCOVERY
    name = "Discovery Chat"
    input_model = DiscoveryChatInput
    output_model = DiscoveryChatOutput
    max_tokens = 2048
    instructions = (
        "Interview the business owner to build their company profile. Ask one or two "
        "focused questions at a time about whatever is still missing."
    )

    def output_instructions(self) -> str:
        return (
            "Write your reply as plain text. After the reply, add a ```json fenced block "
            "with any profile facts learned from the latest message, keyed by section "
            f"({', '.join(PROFILE_SECTIONS)}). Omit the block if nothing new was learned."
        )

    def build_system_prompt(self, data: DiscoveryChatInput, context: AgentContext) -> str:
        known = json.dumps(data.profile, indent=2) if data.profile else "{}"
        return f"{super().build_system_prompt(data, context)}\n\nProfile collected so far:\n{known}"

    def build_messages(self, data: DiscoveryChatInput, context: AgentContext) -> list[Message]:
        messages: list[Message] = [
            {"role": turn["role"], "content": turn["content"]}
            for turn in data.history
            if turn.get("role") in ("user", "assistant") and turn.get("content")
        ]
        messages.append({"role": "user", "content": data.message})
        return messages

    def parse_output(self, content: Content) -> DiscoveryChatOutput:
        text = content_to_text(content)
        reply = strip_json_blocks(text)
        if not reply:
            raise ParseError("Discovery chat response contained no reply text")
        return DiscoveryChatOutput(reply=re.sub(r"\n{3,}", "\n\n", reply), evidence=text)
