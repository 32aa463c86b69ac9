"""
Website Generation Workflow.

Runs one workflow execution (and the refinement iterations it spawns) in a
single long, heartbeating activity. If the run crashes, the latest workflow
execution of the project is recorded as FAILED.

Cancelling this workflow cancels the activity; the orchestrator then moves
the open agent executions and the workflow execution to CANCELLED.
"""

from dataclasses import dataclass

from temporalio import workflow
from temporalio.exceptions import ActivityError

with workflow.unsafe.imports_passed_through():
    from src.sitegen.temporal.activities import (
        FailWorkflowInput,
        RunWorkflowInput,
        RunWorkflowOutput,
        TenantCtx,
        fail_workflow_execution,
        run_workflow_execution,
    )
    from src.sitegen.temporal.workflows._steps.common import (
        generation_activity_opts,
        short_activity_opts,
    )


@dataclass
class WebsiteGenerationInput:
    ctx: TenantCtx
    workflow_execution_id: str


def website_generation_workflow_id(workflow_execution_id: str) -> str:
    """Deterministic Temporal workflow ID for a workflow execution."""
    return f"website-generation-{workflow_execution_id}"


@workflow.defn
class WebsiteGenerationWorkflow:
    @workflow.run
    async def run(self, input: WebsiteGenerationInput) -> str:
        """
        Run the generation pipeline.

        Returns:
            Final status of the last workflow execution in the chain
        """
        workflow.logger.info(f"Starting website generation for {input.workflow_execution_id}")
        try:
            result: RunWorkflowOutput = await workflow.execute_activity(
                run_workflow_execution,
                RunWorkflowInput(ctx=input.ctx, workflow_execution_id=input.workflow_execution_id),
                **generation_activity_opts(),  # type: ignore[arg-type]
            )
        except ActivityError as e:
            cause = e.cause or e
            workflow.logger.error(f"Website generation crashed: {cause}")
            await workflow.execute_activity(
                fail_workflow_execution,
                FailWorkflowInput(
                    ctx=input.ctx,
                    workflow_execution_id=input.workflow_execution_id,
                    error_message=str(cause),
                ),
                **short_activity_opts(),  # type: ignore[arg-type]
            )
            raise

        workflow.logger.info(
            f"Website generation finished at iteration {result.iteration}: {result.status}"
        )
        return result.status
