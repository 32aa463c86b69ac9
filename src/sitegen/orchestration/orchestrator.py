"""Workflow orchestrator.

Drives one workflow execution through its layers in the fixed order. Within
a layer, agents run concurrently or in declaration order, and the layer is
done only when every agent is terminal. A failing QUALITY layer spawns a
refinement iteration as a new workflow execution until the project's
iteration cap is reached.
"""

import asyncio
from typing import Any
from uuid import UUID

from src.sitegen.core.config import Settings, get_settings
from src.sitegen.core.exceptions import InvalidTransitionError, OrchestrationError
from src.sitegen.core.logging import bind_execution_context, get_logger
from src.sitegen.models import (
    AgentExecution,
    ExecutionStatus,
    Layer,
    Project,
    ProjectStatus,
    WorkflowExecution,
)
from src.sitegen.models.base import utc_now
from src.sitegen.orchestration.plan import ExecutionMode, LayerPlan, WorkflowPlan, default_plan
from src.sitegen.orchestration.runner import AgentRunner
from src.sitegen.orchestration.scoring import QualityReport, build_quality_report
from src.sitegen.services.execution_store import ExecutionStore

logger = get_logger(__name__)


def build_agent_input(
    project: Project,
    upstream: dict[str, dict[str, Any]],
    quality_feedback: list[str] | None = None,
) -> dict[str, Any]:
    """Input handed to a pipeline agent: the project brief plus upstream outputs."""
    return {
        **project.brief,
        "business_name": project.name,
        "industry": project.industry,
        "description": project.description,
        "upstream": dict(upstream),
        "quality_feedback": list(quality_feedback or []),
    }


class WorkflowOrchestrator:
    def __init__(
        self,
        store: ExecutionStore,
        runner: AgentRunner,
        *,
        plan: WorkflowPlan | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.runner = runner
        self.settings = settings or get_settings()
        self.plan = plan or default_plan(self.settings)

    async def run(self, workflow_execution_id: UUID) -> WorkflowExecution:
        """Execute a workflow and every refinement iteration it spawns.

        Returns the last workflow execution of the chain.
        """
        current: UUID | None = workflow_execution_id
        last = workflow_execution_id
        while current is not None:
            last = current
            current = await self.execute(current)
        return await self.store.get_workflow_execution(last)

    async def execute(self, workflow_execution_id: UUID) -> UUID | None:
        """Execute one workflow execution.

        Returns the id of the refinement iteration to run next, if any.
        """
        bind_execution_context(
            tenant_id=self.store.tenant_id, workflow_execution_id=workflow_execution_id
        )
        try:
            return await self._execute(workflow_execution_id)
        except asyncio.CancelledError:
            logger.info("Workflow run cancelled, recording cancellation")
            try:
                await self.store.cancel_workflow(workflow_execution_id, reason="Cancelled")
            except OrchestrationError as e:
                logger.warning("Could not record cancellation", error=e.message)
            raise
        except InvalidTransitionError as e:
            workflow = await self.store.get_workflow_execution(workflow_execution_id)
            if workflow.status == ExecutionStatus.CANCELLED.value:
                logger.info("Workflow was cancelled while running")
                return None
            logger.error(
                "Invalid transition halted workflow",
                error=e.message,
                current=e.current,
                requested=e.requested,
            )
            if not ExecutionStatus(workflow.status).is_terminal:
                await self._fail(workflow, e.message)
            return None
        except Exception as e:
            logger.exception("Workflow run crashed", error_type=type(e).__name__)
            workflow = await self.store.get_workflow_execution(workflow_execution_id)
            if not ExecutionStatus(workflow.status).is_terminal:
                await self._fail(workflow, f"Unexpected error: {type(e).__name__}: {e}")
            return None

    async def _execute(self, workflow_execution_id: UUID) -> UUID | None:
        workflow = await self.store.get_workflow_execution(workflow_execution_id)
        project = await self.store.get_project(workflow.project_id)
        workflow = await self.store.transition_workflow(
            workflow.id, ExecutionStatus.RUNNING, started_at=utc_now()
        )
        logger.info("Workflow started", iteration=workflow.iteration)

        rows = await self.store.list_workflow_agents(workflow.id)
        by_role = {row.agent_role: row for row in rows if row.iteration == workflow.iteration}

        outputs: dict[str, dict[str, Any]] = dict(workflow.meta.get("carriedOutputs", {}))
        feedback: list[str] = list(workflow.meta.get("qualityFeedback", []))
        completed_layers = set(self.plan.carried_layers(workflow.iteration))
        quality_rows: list[AgentExecution] = []

        for index, layer_plan in enumerate(self.plan.layers_for_iteration(workflow.iteration), 1):
            missing = set(layer_plan.dependencies) - completed_layers
            if missing:
                await self._fail(
                    workflow,
                    f"{layer_plan.layer.value} started before "
                    f"{', '.join(sorted(layer.value for layer in missing))} completed",
                )
                return None

            await self.store.refresh_progress(workflow.id, index, layer_plan.layer.value)
            finished = await self._run_layer(layer_plan, by_role, project, outputs, feedback)

            failed = [
                row
                for row, optional in finished
                if row.status == ExecutionStatus.FAILED.value and not optional
            ]
            if failed:
                roles = ", ".join(row.agent_role for row in failed)
                await self._fail(workflow, f"{layer_plan.layer.value} layer failed: {roles}")
                return None
            if any(row.status == ExecutionStatus.CANCELLED.value for row, _ in finished):
                # Only an external cancel moves a claimed agent to CANCELLED
                current = await self.store.get_workflow_execution(workflow.id)
                if current.status == ExecutionStatus.CANCELLED.value:
                    logger.info("Workflow was cancelled while running")
                    return None

            for row, _ in finished:
                if row.status == ExecutionStatus.COMPLETED.value and row.output is not None:
                    outputs[row.agent_role] = row.output
            if layer_plan.layer == Layer.QUALITY:
                quality_rows = [row for row, _ in finished]
            completed_layers.add(layer_plan.layer)
            logger.info("Layer completed", layer=layer_plan.layer.value)

        report = build_quality_report(
            [row.evaluation for row in quality_rows if row.evaluation], self.settings.pass_score
        )
        return await self._conclude(workflow, project, outputs, report)

    async def _run_layer(
        self,
        layer_plan: LayerPlan,
        by_role: dict[str, AgentExecution],
        project: Project,
        outputs: dict[str, dict[str, Any]],
        feedback: list[str],
    ) -> list[tuple[AgentExecution, bool]]:
        """Run every agent of a layer and wait for all of them (fan-out, fan-in)."""
        steps = [(by_role[step.role.value], step.optional) for step in layer_plan.steps]

        if layer_plan.mode == ExecutionMode.SEQUENTIAL:
            finished = []
            for row, optional in steps:
                # Later steps see earlier outputs of the same layer
                done = await self._run_agent(
                    row, layer_plan, build_agent_input(project, outputs, feedback), project
                )
                if done.status == ExecutionStatus.COMPLETED.value and done.output is not None:
                    outputs[done.agent_role] = done.output
                finished.append((done, optional))
            return finished

        agent_input = build_agent_input(project, outputs, feedback)
        semaphore = asyncio.Semaphore(self.settings.max_parallel_agents)

        async def bounded(row: AgentExecution) -> AgentExecution:
            async with semaphore:
                return await self._run_agent(row, layer_plan, agent_input, project)

        results = await asyncio.gather(
            *(bounded(row) for row, _ in steps), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return [(result, optional) for result, (_, optional) in zip(results, steps)]  # type: ignore[misc]

    async def _run_agent(
        self,
        row: AgentExecution,
        layer_plan: LayerPlan,
        agent_input: dict[str, Any],
        project: Project,
    ) -> AgentExecution:
        finished = await self.runner.run(
            row, agent_input, timeout=layer_plan.timeout_seconds, industry=project.industry
        )
        await self.store.refresh_progress(row.workflow_execution_id)  # type: ignore[arg-type]
        return finished

    async def _conclude(
        self,
        workflow: WorkflowExecution,
        project: Project,
        outputs: dict[str, dict[str, Any]],
        report: QualityReport,
    ) -> UUID | None:
        """Complete, refine or fail after the last layer."""
        quality = report.as_metadata()
        logger.info(
            "Quality evaluated",
            composite_score=report.composite,
            passed=report.passed,
            iteration=workflow.iteration,
        )

        if report.passed:
            await self.store.transition_workflow(
                workflow.id,
                ExecutionStatus.COMPLETED,
                meta_updates={"quality": quality, "qualityPassed": True},
                completed_at=utc_now(),
            )
            await self.store.transition_project(
                project.id, [ProjectStatus.IN_PROGRESS], ProjectStatus.COMPLETED
            )
            logger.info("Workflow completed")
            return None

        project = await self.store.get_project(project.id)
        if project.current_iteration + 1 < project.max_iterations:
            next_iteration = project.current_iteration + 1
            await self.store.transition_project(
                project.id,
                [ProjectStatus.IN_PROGRESS],
                ProjectStatus.IN_PROGRESS,
                current_iteration=next_iteration,
            )
            await self.store.transition_workflow(
                workflow.id,
                ExecutionStatus.COMPLETED,
                meta_updates={
                    "quality": quality,
                    "qualityPassed": False,
                    "nextIteration": next_iteration,
                },
                completed_at=utc_now(),
            )
            carried = {
                role: output
                for role, output in outputs.items()
                if role not in self._quality_roles()
            }
            successor, _ = await self.store.create_workflow_run(
                project_id=project.id,
                iteration=next_iteration,
                planned=self.plan.planned_agents(next_iteration),
                workflow_type=self.plan.workflow_type,
                meta={
                    "previousWorkflowExecutionId": str(workflow.id),
                    "carriedOutputs": carried,
                    "qualityFeedback": report.feedback,
                },
            )
            logger.info(
                "Quality below pass score, starting refinement iteration",
                next_iteration=next_iteration,
                successor_id=str(successor.id),
            )
            return successor.id

        await self._fail(
            workflow,
            f"Quality score {report.composite} below {self.settings.pass_score} "
            f"after {project.current_iteration + 1} iteration(s)",
            meta_updates={"quality": quality, "qualityPassed": False},
        )
        return None

    async def _fail(
        self,
        workflow: WorkflowExecution,
        message: str,
        meta_updates: dict[str, Any] | None = None,
    ) -> None:
        """Fail the workflow and its project, cancelling agents that never ran."""
        cancelled = await self.store.cancel_open_agents(workflow.id)
        await self.store.transition_workflow(
            workflow.id,
            ExecutionStatus.FAILED,
            meta_updates=meta_updates,
            error_message=message[:2000],
            completed_at=utc_now(),
        )
        await self.store.transition_project(
            workflow.project_id, [ProjectStatus.IN_PROGRESS], ProjectStatus.FAILED
        )
        logger.warning("Workflow failed", error=message, cancelled_agents=cancelled)

    def _quality_roles(self) -> set[str]:
        quality = self.plan.layer(Layer.QUALITY)
        return {step.role.value for step in quality.steps} if quality else set()
