"""Tests for the agent contract and the individual agents' business rules."""

import json
from uuid import uuid7

import pytest

from src.sitegen.agents.base import AgentContext, AgentInput
from src.sitegen.agents.code import ComponentCodeAgent
from src.sitegen.agents.content import HeroCopyAgent, ServiceDescriptionAgent
from src.sitegen.agents.design import ColorPaletteAgent, TypographyAgent, contrast_ratio
from src.sitegen.agents.discovery import DiscoveryChatAgent, ServiceDefinitionAgent
from src.sitegen.agents.quality import SeoEvaluatorAgent
from src.sitegen.agents.strategy import SitePlannerAgent
from src.sitegen.core.exceptions import (
    BusinessRuleError,
    ParseError,
    ProviderError,
    ValidationError,
)
from src.sitegen.models import AgentRole
from tests.helpers import ScriptedProvider, fenced

pytestmark = pytest.mark.unit

BRIEF = {
    "business_name": "Summit Roofing",
    "industry": "roofing",
    "services": ["Roof repair", "Roof replacement"],
}


@pytest.fixture
def context() -> AgentContext:
    return AgentContext(tenant_id=uuid7(), project_id=uuid7(), industry="roofing")


def build(agent_class, provider):
    return agent_class(provider, model="test-model")


class TestInputValidation:
    def test_missing_business_name(self, provider):
        with pytest.raises(ValidationError) as exc_info:
            build(SitePlannerAgent, provider).validate_input({"industry": "roofing"})
        assert exc_info.value.code == "validation_error"
        assert any(error["loc"] == ("business_name",) for error in exc_info.value.details)

    def test_unknown_fields_are_ignored(self, provider):
        validated = build(SitePlannerAgent, provider).validate_input({**BRIEF, "budget": "low"})
        assert isinstance(validated, AgentInput)
        assert validated.business_name == "Summit Roofing"

    @pytest.mark.parametrize("agent_class", [ServiceDefinitionAgent, ServiceDescriptionAgent])
    def test_services_required(self, provider, agent_class):
        with pytest.raises(ValidationError, match="service"):
            build(agent_class, provider).validate_input({**BRIEF, "services": []})

    async def test_invalid_input_never_reaches_provider(self, provider, context):
        with pytest.raises(ValidationError):
            await build(SitePlannerAgent, provider).run({}, context)
        assert provider.calls == []


class TestRun:
    async def test_site_planner_produces_output_and_artifacts(self, provider, context):
        result = await build(SitePlannerAgent, provider).run(BRIEF, context)

        assert {route.path for route in result.output.routes} >= {"/", "/about", "/contact"}
        assert [artifact.path for artifact in result.artifacts] == [
            "specs/site-spec.json",
            "specs/site-spec.md",
        ]
        spec = json.loads(result.artifacts[0].content)
        assert spec["site_name"] == "Summit Roofing"
        assert result.evaluation is None

    async def test_system_prompt_names_role_and_industry_guidance(self, provider, context):
        await build(HeroCopyAgent, provider).run(BRIEF, context)
        (call,) = provider.calls
        assert "(role: HERO_COPY)" in call.system_prompt
        assert "storm-damage repair" in call.system_prompt

    async def test_refinement_prompt_mentions_iteration(self, provider, context):
        refined = AgentContext(
            tenant_id=context.tenant_id, project_id=context.project_id, iteration=2
        )
        await build(HeroCopyAgent, provider).run(
            {**BRIEF, "quality_feedback": ["Shorter headline"]}, refined
        )
        (call,) = provider.calls
        assert "refinement iteration 2" in call.system_prompt
        assert "Shorter headline" in call.messages[0]["content"]

    async def test_unparseable_output_is_reprompted_once(self, context):
        provider = ScriptedProvider()
        provider.script(
            AgentRole.TYPOGRAPHY,
            "Sorry, I prefer not to answer in JSON.",
            fenced(
                {
                    "heading_font": "Lora",
                    "body_font": "Inter",
                    "base_size_px": 18,
                    "scale_ratio": 1.2,
                }
            ),
        )
        result = await build(TypographyAgent, provider).run(BRIEF, context)

        assert result.output.heading_font == "Lora"
        first, second = provider.calls_for(AgentRole.TYPOGRAPHY)
        assert "could not be parsed" not in first.system_prompt
        assert "could not be parsed" in second.system_prompt

    async def test_second_parse_failure_surfaces(self, context):
        provider = ScriptedProvider({AgentRole.TYPOGRAPHY.value: "still no json"})
        with pytest.raises(ParseError):
            await build(TypographyAgent, provider).run(BRIEF, context)
        assert len(provider.calls) == 2

    async def test_schema_mismatch_is_parse_error(self, context):
        provider = ScriptedProvider(
            {AgentRole.COLOR_PALETTE.value: fenced({"primary": "blue", "text": "#000000"})}
        )
        with pytest.raises(ParseError, match="does not match schema"):
            await build(ColorPaletteAgent, provider).run(BRIEF, context)

    async def test_provider_error_propagates(self, context):
        provider = ScriptedProvider({AgentRole.HERO_COPY.value: ProviderError("HTTP 529")})
        with pytest.raises(ProviderError):
            await build(HeroCopyAgent, provider).run(BRIEF, context)
        assert len(provider.calls) == 1


class TestBusinessRules:
    async def test_site_plan_requires_contact_route(self, context):
        provider = ScriptedProvider(
            {
                AgentRole.SITE_PLANNER.value: fenced(
                    {
                        "site_name": "Summit",
                        "routes": [
                            {"path": "/", "title": "Home", "purpose": "x"},
                            {"path": "/about", "title": "About", "purpose": "x"},
                            {"path": "/services", "title": "Services", "purpose": "x"},
                        ],
                        "seo": {"default_meta": {"title": "Summit", "description": "Roofing"}},
                    }
                )
            }
        )
        with pytest.raises(BusinessRuleError, match="/contact"):
            await build(SitePlannerAgent, provider).run(BRIEF, context)

    async def test_low_contrast_palette_rejected(self, context):
        provider = ScriptedProvider(
            {
                AgentRole.COLOR_PALETTE.value: fenced(
                    {
                        "primary": "#1D4ED8",
                        "secondary": "#0F172A",
                        "accent": "#F59E0B",
                        "background": "#FFFFFF",
                        "text": "#CCCCCC",
                    }
                )
            }
        )
        with pytest.raises(BusinessRuleError, match="contrast"):
            await build(ColorPaletteAgent, provider).run(BRIEF, context)

    def test_contrast_ratio_extremes(self):
        assert contrast_ratio("#000000", "#FFFFFF") == pytest.approx(21.0)
        assert contrast_ratio("#777777", "#777777") == pytest.approx(1.0)

    async def test_typography_scale_out_of_range(self, context):
        provider = ScriptedProvider(
            {
                AgentRole.TYPOGRAPHY.value: fenced(
                    {"heading_font": "A", "body_font": "B", "base_size_px": 16, "scale_ratio": 2.0}
                )
            }
        )
        with pytest.raises(BusinessRuleError, match="scale ratio"):
            await build(TypographyAgent, provider).run(BRIEF, context)

    async def test_headline_word_limit(self, context):
        provider = ScriptedProvider(
            {
                AgentRole.HERO_COPY.value: fenced(
                    {
                        "headline": "one two three four five six seven eight nine ten eleven twelve thirteen",
                        "subheadline": "Sub",
                        "primary_cta": "Call",
                    }
                )
            }
        )
        with pytest.raises(BusinessRuleError, match="13 words"):
            await build(HeroCopyAgent, provider).run(BRIEF, context)

    async def test_duplicate_service_slugs(self, context):
        service = {"name": "Repair", "slug": "repair", "summary": "x"}
        provider = ScriptedProvider(
            {AgentRole.SERVICE_DEFINITION.value: fenced({"services": [service, service]})}
        )
        with pytest.raises(BusinessRuleError, match="unique"):
            await build(ServiceDefinitionAgent, provider).run(BRIEF, context)

    async def test_component_paths_must_stay_relative(self, context):
        provider = ScriptedProvider(
            {
                AgentRole.COMPONENT_CODE.value: fenced(
                    {
                        "entrypoint": "app/page.tsx",
                        "files": [
                            {"path": "app/page.tsx", "content": ""},
                            {"path": "../../etc/passwd", "content": ""},
                        ],
                    }
                )
            }
        )
        with pytest.raises(BusinessRuleError, match="Unsafe file path"):
            await build(ComponentCodeAgent, provider).run(BRIEF, context)

    async def test_component_artifacts_are_per_iteration(self, provider, context):
        refined = AgentContext(
            tenant_id=context.tenant_id, project_id=context.project_id, iteration=1
        )
        result = await build(ComponentCodeAgent, provider).run(BRIEF, refined)
        assert [artifact.path for artifact in result.artifacts] == [
            "site/iteration-1/app/page.tsx",
            "site/iteration-1/app/about/page.tsx",
        ]


class TestEvaluators:
    async def test_evaluation_carries_scores_and_grade(self, provider, context):
        result = await build(SeoEvaluatorAgent, provider).run(BRIEF, context)
        assert result.evaluation == {
            "scores": {"seo": 0.9, "local_seo": 0.9},
            "grade": "A",
            "issues": [],
            "recommendations": [],
        }

    async def test_scores_out_of_range(self, context):
        provider = ScriptedProvider(
            {AgentRole.SEO_EVALUATOR.value: fenced({"scores": {"seo": 1.5}})}
        )
        with pytest.raises(BusinessRuleError, match="within"):
            await build(SeoEvaluatorAgent, provider).run(BRIEF, context)

    async def test_empty_scores(self, context):
        provider = ScriptedProvider({AgentRole.SEO_EVALUATOR.value: fenced({"scores": {}})})
        with pytest.raises(BusinessRuleError, match="no scores"):
            await build(SeoEvaluatorAgent, provider).run(BRIEF, context)


class TestDiscoveryChat:
    async def test_reply_strips_json_and_keeps_evidence(self, provider, context):
        result = await build(DiscoveryChatAgent, provider).run(
            {"message": "We are Summit Roofing in Austin"}, context
        )
        assert result.output.reply == "Thanks! How many years have you been in business?"
        assert '"city": "Austin"' in result.output.evidence

    async def test_history_becomes_conversation(self, provider, context):
        await build(DiscoveryChatAgent, provider).run(
            {
                "message": "About 20 years",
                "history": [
                    {"role": "assistant", "content": "What is your company called?"},
                    {"role": "user", "content": "Summit Roofing"},
                    {"role": "system", "content": "ignored"},
                ],
                "profile": {"company": {"name": "Summit Roofing"}},
            },
            context,
        )
        (call,) = provider.calls
        assert [message["role"] for message in call.messages] == ["assistant", "user", "user"]
        assert call.messages[-1]["content"] == "About 20 years"
        assert "Summit Roofing" in call.system_prompt

    async def test_json_only_reply_is_parse_error(self, context):
        provider = ScriptedProvider(
            {AgentRole.DISCOVERY_CHAT.value: fenced({"company": {"name": "X"}}, prose="")}
        )
        with pytest.raises(ParseError, match="no reply text"):
            await build(DiscoveryChatAgent, provider).run({"message": "hi"}, context)
