"""Test helpers: provider and dispatcher doubles plus common data creation patterns."""

import json
import re
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.sitegen.agents.llm import Completion, Message
from src.sitegen.agents.pricing import TokenUsage
from src.sitegen.models import AgentExecution, AgentRole, Project, Tenant
from tests.factories import AgentExecutionFactory, ProjectFactory, TenantFactory

_ROLE_IN_PROMPT = re.compile(r"\(role: ([A-Z_]+)\)")

# Reported for every answered call
SCRIPTED_USAGE = TokenUsage(input_tokens=1000, output_tokens=500)

# A scripted answer: text, an exception to raise, or a coroutine function of the call index
Response = str | BaseException | Callable[[int], Awaitable[str]]


def fenced(payload: dict[str, Any], prose: str = "Here is the result.") -> str:
    """Wrap a payload the way the model is asked to answer."""
    return f"{prose}\n\n```json\n{json.dumps(payload)}\n```"


def quality_responses(*scores: float) -> dict[str, list[Response]]:
    """Evaluator answers per call: the n-th QUALITY run scores ``scores[n]`` on every metric."""
    responses: dict[str, list[Response]] = {}
    for role, metrics in (
        (AgentRole.SEO_EVALUATOR, ("seo", "local_seo")),
        (AgentRole.PERFORMANCE_EVALUATOR, ("performance",)),
        (AgentRole.ACCESSIBILITY_EVALUATOR, ("accessibility",)),
    ):
        responses[role.value] = [
            fenced(
                {
                    "scores": {metric: score for metric in metrics},
                    "issues": [] if score >= 0.7 else [f"{role.value.lower()} needs work"],
                    "recommendations": [],
                }
            )
            for score in scores
        ]
    return responses


DEFAULT_RESPONSES: dict[str, Response] = {
    AgentRole.SITE_PLANNER.value: fenced(
        {
            "site_name": "Summit Roofing",
            "routes": [
                {"path": "/", "title": "Home", "purpose": "Convert visitors", "sections": ["hero"]},
                {"path": "/about", "title": "About", "purpose": "Build trust", "sections": []},
                {"path": "/contact", "title": "Contact", "purpose": "Collect leads", "sections": []},
                {"path": "/services", "title": "Services", "purpose": "List services"},
            ],
            "navigation": ["/", "/services", "/about", "/contact"],
            "seo": {
                "default_meta": {
                    "title": "Summit Roofing | Austin Roof Repair",
                    "description": "Licensed roofers serving Austin since 1998.",
                },
                "keywords": ["roof repair austin"],
            },
        }
    ),
    AgentRole.BUSINESS_REQUIREMENTS.value: fenced(
        {
            "value_proposition": "Same-week roof repairs with a 10 year warranty",
            "target_audience": ["Austin homeowners"],
            "primary_goals": ["Book inspections"],
            "differentiators": ["Family owned"],
            "calls_to_action": ["Book a free inspection"],
        }
    ),
    AgentRole.SERVICE_DEFINITION.value: fenced(
        {
            "services": [
                {
                    "name": "Roof repair",
                    "slug": "roof-repair",
                    "summary": "Leak and storm damage repair",
                    "benefits": ["Fast response"],
                },
                {
                    "name": "Roof replacement",
                    "slug": "roof-replacement",
                    "summary": "Full tear-off and replacement",
                    "benefits": ["Financing available"],
                },
            ]
        }
    ),
    AgentRole.COLOR_PALETTE.value: fenced(
        {
            "primary": "#1D4ED8",
            "secondary": "#0F172A",
            "accent": "#F59E0B",
            "background": "#FFFFFF",
            "text": "#111111",
        }
    ),
    AgentRole.TYPOGRAPHY.value: fenced(
        {
            "heading_font": "Montserrat",
            "body_font": "Inter",
            "base_size_px": 16,
            "scale_ratio": 1.25,
            "line_height": 1.6,
        }
    ),
    AgentRole.HERO_COPY.value: fenced(
        {
            "headline": "Austin roofs fixed right the first time",
            "subheadline": "Licensed, insured and on site within 48 hours.",
            "primary_cta": "Get a free quote",
            "secondary_cta": "Call us",
        }
    ),
    AgentRole.SERVICE_DESCRIPTION.value: fenced(
        {
            "descriptions": [
                {"service": "Roof repair", "heading": "Roof repair", "body": "We fix leaks."},
                {
                    "service": "Roof replacement",
                    "heading": "Roof replacement",
                    "body": "New roofs built to last.",
                },
            ]
        }
    ),
    AgentRole.COMPONENT_CODE.value: fenced(
        {
            "framework": "nextjs",
            "entrypoint": "app/page.tsx",
            "files": [
                {"path": "app/page.tsx", "content": "export default function Page() {}"},
                {"path": "app/about/page.tsx", "content": "export default function About() {}"},
            ],
        }
    ),
    **{role: answers[0] for role, answers in quality_responses(0.9).items()},
    AgentRole.DISCOVERY_CHAT.value: (
        "Thanks! How many years have you been in business?\n\n"
        + "```json\n"
        + json.dumps({"company": {"name": "Summit Roofing", "city": "Austin"}})
        + "\n```"
    ),
}


@dataclass
class ProviderCall:
    role: str
    system_prompt: str
    messages: list[Message]


class ScriptedProvider:
    """LLM provider double answering by the agent role named in the system prompt.

    A role may be scripted with a single response or a list, consumed one per
    call with the last entry repeating.
    """

    def __init__(
        self,
        responses: dict[str, Response | list[Response]] | None = None,
        usage: TokenUsage = SCRIPTED_USAGE,
    ):
        self.usage = usage
        self.responses: dict[str, Response | list[Response]] = {
            **DEFAULT_RESPONSES,
            **(responses or {}),
        }
        self.calls: list[ProviderCall] = []
        self._counts: dict[str, int] = defaultdict(int)

    def script(self, role: AgentRole | str, *responses: Response) -> None:
        self.responses[AgentRole(role).value] = list(responses)

    def calls_for(self, role: AgentRole | str) -> list[ProviderCall]:
        return [call for call in self.calls if call.role == AgentRole(role).value]

    async def complete(
        self,
        system_prompt: str,
        messages: list[Message],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> Completion:
        match = _ROLE_IN_PROMPT.search(system_prompt)
        assert match is not None, "system prompt does not name the agent role"
        role = match.group(1)
        self.calls.append(ProviderCall(role, system_prompt, list(messages)))

        index = self._counts[role]
        self._counts[role] += 1
        scripted = self.responses[role]
        response = scripted[min(index, len(scripted) - 1)] if isinstance(scripted, list) else scripted

        if isinstance(response, BaseException):
            raise response
        if callable(response):
            response = await response(index)
        return Completion(content=response, usage=self.usage)


@dataclass
class RecordingDispatcher:
    """Background dispatcher double; ``fail_with`` makes every start raise."""

    workflow_runs: list[tuple[UUID, UUID]] = field(default_factory=list)
    agent_executions: list[tuple[UUID, UUID]] = field(default_factory=list)
    cancelled: list[UUID] = field(default_factory=list)
    fail_with: BaseException | None = None

    async def start_workflow_run(self, tenant_id: UUID, workflow_execution_id: UUID) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.workflow_runs.append((tenant_id, workflow_execution_id))
        return f"website-generation-{workflow_execution_id}"

    async def start_agent_execution(self, tenant_id: UUID, agent_execution_id: UUID) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.agent_executions.append((tenant_id, agent_execution_id))
        return f"agent-execution-{agent_execution_id}"

    async def cancel_workflow_run(self, workflow_execution_id: UUID) -> None:
        self.cancelled.append(workflow_execution_id)


async def create_tenant(session: AsyncSession, **tenant_kwargs) -> Tenant:
    """Create a tenant.

    Args:
        session: Database session
        **tenant_kwargs: Args passed to TenantFactory

    Returns:
        Created tenant
    """
    tenant = TenantFactory.build(**tenant_kwargs)
    session.add(tenant)
    await session.flush()
    return tenant


async def create_project(session: AsyncSession, tenant: Tenant, **project_kwargs) -> Project:
    """Create a DRAFT project in a tenant."""
    project = ProjectFactory.build(tenant_id=tenant.id, **project_kwargs)
    session.add(project)
    await session.flush()
    return project


async def create_agent_execution(
    session: AsyncSession,
    project: Project,
    **execution_kwargs,
) -> AgentExecution:
    """Create an agent execution owned by a project (PENDING SEO evaluator by default)."""
    execution = AgentExecutionFactory.build(
        tenant_id=project.tenant_id,
        project_id=project.id,
        **execution_kwargs,
    )
    session.add(execution)
    await session.flush()
    return execution
