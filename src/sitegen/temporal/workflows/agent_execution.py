"""
Agent Execution Workflow.

Runs a single PENDING agent execution, typically a retry successor created
by the retry coordinator. The periodic pending sweep covers successors whose
workflow never started.
"""

from dataclasses import dataclass

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from src.sitegen.temporal.activities import (
        RunAgentExecutionInput,
        RunAgentExecutionOutput,
        TenantCtx,
        run_agent_execution,
    )
    from src.sitegen.temporal.workflows._steps.common import generation_activity_opts


@dataclass
class AgentExecutionInput:
    ctx: TenantCtx
    agent_execution_id: str


def agent_execution_workflow_id(agent_execution_id: str) -> str:
    """Deterministic Temporal workflow ID for an agent execution."""
    return f"agent-execution-{agent_execution_id}"


@workflow.defn
class AgentExecutionWorkflow:
    @workflow.run
    async def run(self, input: AgentExecutionInput) -> str:
        """
        Run the agent execution.

        Returns:
            Final status of the agent execution
        """
        result: RunAgentExecutionOutput = await workflow.execute_activity(
            run_agent_execution,
            RunAgentExecutionInput(ctx=input.ctx, agent_execution_id=input.agent_execution_id),
            **generation_activity_opts(hours=1),  # type: ignore[arg-type]
        )
        workflow.logger.info(f"Agent execution {result.agent_execution_id}: {result.status}")
        return result.status
