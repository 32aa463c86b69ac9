"""Runs PENDING agent executions that no orchestrator run owns.

These are retry successors and standalone executions. Claiming goes through
the store's compare-and-set, so several dispatchers may sweep the same
tenant concurrently without running anything twice.
"""

from uuid import UUID

from src.sitegen.core.exceptions import InvalidTransitionError
from src.sitegen.core.logging import get_logger
from src.sitegen.models import AgentExecution, ExecutionStatus
from src.sitegen.orchestration.orchestrator import build_agent_input
from src.sitegen.orchestration.plan import WorkflowPlan
from src.sitegen.orchestration.runner import AgentRunner
from src.sitegen.services.execution_store import ExecutionStore

logger = get_logger(__name__)


def is_unowned(execution: AgentExecution) -> bool:
    """True for PENDING rows the orchestrator will never pick up itself.

    Inline executions (the discovery chat) are claimed by the request that
    created them.
    """
    if execution.meta.get("inline"):
        return False
    return bool(execution.meta.get("retryOf")) or execution.workflow_execution_id is None


class PendingDispatcher:
    def __init__(self, store: ExecutionStore, runner: AgentRunner, plan: WorkflowPlan):
        self.store = store
        self.runner = runner
        self.plan = plan

    async def dispatch(self, execution_id: UUID) -> AgentExecution:
        """Run one PENDING execution. Non-PENDING executions are returned untouched.

        Raises:
            NotFoundError: If the execution does not exist in this tenant.
            InvalidTransitionError: If another worker claimed it first.
        """
        execution = await self.store.get_agent_execution(execution_id)
        if execution.status != ExecutionStatus.PENDING.value:
            logger.info(
                "Execution no longer pending, skipping",
                agent_execution_id=str(execution.id),
                status=execution.status,
            )
            return execution

        project = await self.store.get_project(execution.project_id)
        agent_input = execution.input or build_agent_input(project, {})
        return await self.runner.run(
            execution,
            agent_input,
            timeout=self.plan.timeout_for(execution.layer),
            industry=project.industry,
        )

    async def sweep(self, limit: int) -> int:
        """Dispatch unowned PENDING executions, oldest first. Returns how many ran."""
        pending = [row for row in await self.store.list_pending(limit) if is_unowned(row)]
        dispatched = 0
        for execution in pending:
            try:
                await self.dispatch(execution.id)
            except InvalidTransitionError:
                logger.info("Execution claimed by another worker", agent_execution_id=str(execution.id))
                continue
            dispatched += 1
        if dispatched:
            logger.info("Pending sweep dispatched executions", count=dispatched)
        return dispatched
