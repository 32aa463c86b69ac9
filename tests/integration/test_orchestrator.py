"""Integration tests for the workflow orchestrator."""

import asyncio
from dataclasses import replace

import pytest

from src.sitegen.core.config import get_settings
from src.sitegen.models import AgentRole, Layer, ProjectStatus
from src.sitegen.orchestration.orchestrator import WorkflowOrchestrator
from src.sitegen.orchestration.plan import WorkflowPlan, default_plan
from src.sitegen.orchestration.runner import AgentRunner
from src.sitegen.repositories import WorkflowExecutionRepository
from src.sitegen.services.execution_store import ExecutionStore
from tests.helpers import DEFAULT_RESPONSES, create_project, fenced, quality_responses

pytestmark = pytest.mark.integration


@pytest.fixture
def plan() -> WorkflowPlan:
    return default_plan(get_settings())


async def start(store: ExecutionStore, project, plan: WorkflowPlan):
    await store.transition_project(project.id, [ProjectStatus.DRAFT], ProjectStatus.IN_PROGRESS)
    workflow, _ = await store.create_workflow_run(
        project_id=project.id,
        iteration=0,
        planned=plan.planned_agents(0),
        workflow_type=plan.workflow_type,
    )
    return workflow


async def workflows_of(store: ExecutionStore, project_id):
    async with store.session() as session:
        rows = await WorkflowExecutionRepository(session, store.tenant_id).list_for_project(project_id)
    return sorted(rows, key=lambda row: row.iteration)


async def agents_by_role(store: ExecutionStore, workflow_id):
    return {row.agent_role: row for row in await store.list_workflow_agents(workflow_id)}


class TestPassingRun:
    async def test_every_layer_completes(self, project, store, runner, plan, provider):
        workflow = await start(store, project, plan)

        result = await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        assert result.id == workflow.id
        assert result.status == "COMPLETED"
        assert result.completed_steps == 11
        assert result.progress_percentage == 100.0
        assert result.current_step_name == Layer.QUALITY.value
        assert result.meta["qualityPassed"] is True
        assert result.meta["quality"]["compositeScore"] == 0.9
        assert result.meta["quality"]["grade"] == "A"

        agents = await agents_by_role(store, workflow.id)
        assert {row.status for row in agents.values()} == {"COMPLETED"}
        assert (await store.get_project(project.id)).status == "COMPLETED"
        assert AgentRole.DISCOVERY_CHAT.value not in {call.role for call in provider.calls}

    async def test_layers_respect_dependencies(self, project, store, runner, plan):
        workflow = await start(store, project, plan)
        await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        rows = list((await agents_by_role(store, workflow.id)).values())

        def finished(layer: Layer):
            return max(row.completed_at for row in rows if row.layer == layer.value)

        def started(layer: Layer):
            return min(row.started_at for row in rows if row.layer == layer.value)

        for layer_plan in plan.layers:
            for dependency in layer_plan.dependencies:
                assert started(layer_plan.layer) >= finished(dependency)

    async def test_upstream_outputs_flow_downstream(self, project, store, runner, plan):
        workflow = await start(store, project, plan)
        await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        agents = await agents_by_role(store, workflow.id)
        # Sequential layer: the second step sees the first one's output
        description_input = agents[AgentRole.SERVICE_DESCRIPTION.value].input
        assert description_input["upstream"][AgentRole.HERO_COPY.value]["headline"]
        code_input = agents[AgentRole.COMPONENT_CODE.value].input
        assert set(code_input["upstream"]) >= {"SITE_PLANNER", "COLOR_PALETTE", "SERVICE_DESCRIPTION"}
        assert code_input["business_name"] == project.name

    async def test_progress_never_decreases(self, engine, project, provider, artifacts, no_sleep, plan):
        observed: list[tuple[int, float]] = []

        class RecordingStore(ExecutionStore):
            async def refresh_progress(self, workflow_execution_id, step=None, step_name=None):
                workflow = await super().refresh_progress(workflow_execution_id, step, step_name)
                observed.append((workflow.completed_steps, workflow.progress_percentage))
                return workflow

        # One agent at a time so observations arrive in commit order
        settings = get_settings().model_copy(update={"max_parallel_agents": 1})
        store = RecordingStore(project.tenant_id, engine)
        runner = AgentRunner(store, provider, artifacts=artifacts, sleep=no_sleep)
        workflow = await start(store, project, plan)

        await WorkflowOrchestrator(store, runner, plan=plan, settings=settings).run(workflow.id)

        assert observed == sorted(observed)
        assert observed[-1] == (11, 100.0)


class TestRefinement:
    async def test_quality_failures_refine_until_passing(self, project, store, runner, plan, provider):
        provider.responses.update(quality_responses(0.5, 0.5, 0.9))
        workflow = await start(store, project, plan)

        result = await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        assert result.status == "COMPLETED"
        assert result.iteration == 2
        assert result.meta["qualityPassed"] is True

        refreshed = await store.get_project(project.id)
        assert refreshed.status == "COMPLETED"
        assert refreshed.current_iteration == 2

        chain = await workflows_of(store, project.id)
        assert [row.iteration for row in chain] == [0, 1, 2]
        assert [row.status for row in chain] == ["COMPLETED", "COMPLETED", "COMPLETED"]
        assert chain[0].meta["qualityPassed"] is False
        assert chain[0].meta["nextIteration"] == 1
        assert chain[1].meta["previousWorkflowExecutionId"] == str(chain[0].id)
        assert chain[1].total_steps == 4

    async def test_refinement_reruns_code_and_quality_only(
        self, project, store, runner, plan, provider
    ):
        provider.responses.update(quality_responses(0.5, 0.9))
        workflow = await start(store, project, plan)

        await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        assert len(provider.calls_for(AgentRole.SITE_PLANNER)) == 1
        assert len(provider.calls_for(AgentRole.HERO_COPY)) == 1
        assert len(provider.calls_for(AgentRole.COMPONENT_CODE)) == 2

        second = (await workflows_of(store, project.id))[1]
        agents = await agents_by_role(store, second.id)
        assert set(agents) == {
            "COMPONENT_CODE",
            "SEO_EVALUATOR",
            "PERFORMANCE_EVALUATOR",
            "ACCESSIBILITY_EVALUATOR",
        }
        assert {row.iteration for row in agents.values()} == {1}

        code_input = agents["COMPONENT_CODE"].input
        assert "HERO_COPY" in code_input["upstream"]
        assert "SEO_EVALUATOR" not in code_input["upstream"]
        assert "seo_evaluator needs work" in code_input["quality_feedback"]
        refined_call = provider.calls_for(AgentRole.COMPONENT_CODE)[1]
        assert "refinement iteration 1" in refined_call.system_prompt

    async def test_iteration_cap_fails_project(self, db_session, tenant, store, runner, plan, provider):
        project = await create_project(db_session, tenant, max_iterations=1)
        await db_session.commit()
        provider.responses.update(quality_responses(0.5))
        workflow = await start(store, project, plan)

        result = await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        assert result.id == workflow.id
        assert result.status == "FAILED"
        assert result.meta["qualityPassed"] is False
        assert "below 0.7" in result.error_message
        assert (await store.get_project(project.id)).status == "FAILED"
        assert len(await workflows_of(store, project.id)) == 1


class TestFailures:
    async def test_failed_layer_fails_workflow_and_cancels_the_rest(
        self, project, store, runner, plan, provider
    ):
        provider.script(
            AgentRole.TYPOGRAPHY,
            fenced({"heading_font": "A", "body_font": "B", "base_size_px": 16, "scale_ratio": 3.0}),
        )
        workflow = await start(store, project, plan)

        result = await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        assert result.status == "FAILED"
        assert result.error_message == "DESIGN layer failed: TYPOGRAPHY"
        agents = await agents_by_role(store, workflow.id)
        assert agents["TYPOGRAPHY"].status == "FAILED"
        assert agents["TYPOGRAPHY"].meta["errorType"] == "BusinessRuleError"
        assert agents["COLOR_PALETTE"].status == "COMPLETED"
        for role in ("HERO_COPY", "SERVICE_DESCRIPTION", "COMPONENT_CODE", "SEO_EVALUATOR"):
            assert agents[role].status == "CANCELLED"
        assert (await store.get_project(project.id)).status == "FAILED"
        assert provider.calls_for(AgentRole.COMPONENT_CODE) == []

    async def test_layer_timeout_fails_agent(self, project, store, runner, plan, provider):
        async def hang(index: int) -> str:
            await asyncio.sleep(5)
            return "never"

        provider.script(AgentRole.TYPOGRAPHY, hang)
        design = replace(plan.layer(Layer.DESIGN), timeout_seconds=0.05)
        fast_plan = replace(
            plan,
            layers=tuple(design if layer.layer == Layer.DESIGN else layer for layer in plan.layers),
        )
        workflow = await start(store, project, fast_plan)

        result = await WorkflowOrchestrator(store, runner, plan=fast_plan).run(workflow.id)

        assert result.status == "FAILED"
        typography = (await agents_by_role(store, workflow.id))["TYPOGRAPHY"]
        assert typography.meta["errorType"] == "TimeoutError"

    async def test_optional_step_failure_keeps_layer_going(self, project, store, runner, plan, provider):
        provider.script(
            AgentRole.TYPOGRAPHY,
            fenced({"heading_font": "A", "body_font": "B", "base_size_px": 16, "scale_ratio": 3.0}),
        )
        design = plan.layer(Layer.DESIGN)
        lenient = replace(
            design,
            steps=tuple(
                replace(step, optional=True) if step.role == AgentRole.TYPOGRAPHY else step
                for step in design.steps
            ),
        )
        lenient_plan = replace(
            plan,
            layers=tuple(lenient if layer.layer == Layer.DESIGN else layer for layer in plan.layers),
        )
        workflow = await start(store, project, lenient_plan)

        result = await WorkflowOrchestrator(store, runner, plan=lenient_plan).run(workflow.id)

        assert result.status == "COMPLETED"
        agents = await agents_by_role(store, workflow.id)
        assert agents["TYPOGRAPHY"].status == "FAILED"
        assert agents["COLOR_PALETTE"].status == "COMPLETED"
        assert agents["COMPONENT_CODE"].status == "COMPLETED"
        assert "TYPOGRAPHY" not in agents["COMPONENT_CODE"].input["upstream"]
        assert (await store.get_project(project.id)).status == "COMPLETED"

    async def test_unexpected_agent_error_fails_workflow(self, project, store, runner, plan, provider):
        provider.script(AgentRole.SITE_PLANNER, RuntimeError("boom"))
        workflow = await start(store, project, plan)

        result = await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        assert result.status == "FAILED"
        assert result.error_message == "ORCHESTRATOR layer failed: SITE_PLANNER"
        agents = await agents_by_role(store, workflow.id)
        assert agents["SITE_PLANNER"].status == "FAILED"
        assert agents["SITE_PLANNER"].meta["errorType"] == "RuntimeError"
        assert agents["COMPONENT_CODE"].status == "CANCELLED"
        assert (await store.get_project(project.id)).status == "FAILED"

    async def test_unexpected_orchestration_error_fails_workflow(
        self, engine, project, provider, artifacts, no_sleep, plan
    ):
        class BrokenStore(ExecutionStore):
            async def refresh_progress(self, workflow_execution_id, step=None, step_name=None):
                if step == 2:
                    raise RuntimeError("progress table locked")
                return await super().refresh_progress(workflow_execution_id, step, step_name)

        store = BrokenStore(project.tenant_id, engine)
        runner = AgentRunner(store, provider, artifacts=artifacts, sleep=no_sleep)
        workflow = await start(store, project, plan)

        result = await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        assert result.status == "FAILED"
        assert result.error_message == "Unexpected error: RuntimeError: progress table locked"
        agents = await agents_by_role(store, workflow.id)
        assert agents["SITE_PLANNER"].status == "COMPLETED"
        assert agents["COLOR_PALETTE"].status == "CANCELLED"
        assert (await store.get_project(project.id)).status == "FAILED"


class TestCancellation:
    async def test_cancel_during_run_stops_remaining_layers(
        self, project, store, runner, plan, provider
    ):
        workflow = await start(store, project, plan)

        async def cancel_midway(index: int) -> str:
            await store.cancel_workflow(workflow.id, reason="Cancelled by user")
            return DEFAULT_RESPONSES[AgentRole.HERO_COPY.value]

        provider.script(AgentRole.HERO_COPY, cancel_midway)

        result = await WorkflowOrchestrator(store, runner, plan=plan).run(workflow.id)

        assert result.status == "CANCELLED"
        assert result.error_message == "Cancelled by user"
        assert provider.calls_for(AgentRole.SERVICE_DESCRIPTION) == []
        assert provider.calls_for(AgentRole.COMPONENT_CODE) == []
        agents = await agents_by_role(store, workflow.id)
        assert agents["HERO_COPY"].status == "CANCELLED"
        assert agents["COLOR_PALETTE"].status == "COMPLETED"
        assert (await store.get_project(project.id)).status == "DRAFT"
