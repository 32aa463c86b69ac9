"""Retry coordinator - supersedes a FAILED agent execution with a PENDING successor."""

from uuid import UUID

from src.sitegen.core.exceptions import NotFoundError, PreconditionError
from src.sitegen.core.logging import get_logger
from src.sitegen.models import AgentExecution, ExecutionStatus
from src.sitegen.models.base import utc_now
from src.sitegen.orchestration.state_machine import SUPERSEDABLE
from src.sitegen.repositories import AgentExecutionRepository
from src.sitegen.services.execution_store import ExecutionStore

logger = get_logger(__name__)


class RetryCoordinator:
    """Creates retry successors with lineage metadata.

    The successor is only recorded here. Running it is the caller's job:
    the API dispatches it through Temporal and the pending sweep picks up
    anything that was missed.
    """

    def __init__(self, store: ExecutionStore):
        self.store = store

    async def retry(self, execution_id: UUID, actor_id: UUID) -> AgentExecution:
        """Supersede a FAILED execution and return its PENDING successor.

        The original moves to CANCELLED (``retriedBy``, ``retriedAt``) and the
        successor copies its agent, layer, config, input and workflow with
        ``iteration + 1`` and ``retryOf``/``originalIteration``/``retriggeredBy``.
        Both writes commit together.

        Raises:
            NotFoundError: If the execution does not exist in this tenant.
            PreconditionError: If the execution is not FAILED. Nothing is modified.
        """
        async with self.store.session() as session:
            repo = AgentExecutionRepository(session, self.store.tenant_id)
            original = await repo.get_by_id(execution_id)
            if original is None:
                raise NotFoundError("AgentExecution", execution_id)
            if original.status != ExecutionStatus.FAILED.value:
                raise PreconditionError(
                    "Can only retry failed agent executions",
                    details={"status": original.status},
                )

            superseded = await repo.compare_and_set_status(
                original.id,
                [status.value for status in SUPERSEDABLE],
                ExecutionStatus.CANCELLED.value,
                {
                    "meta": {
                        **original.meta,
                        "retriedBy": str(actor_id),
                        "retriedAt": utc_now().isoformat(),
                    }
                },
            )
            if superseded is None:
                # Lost the race against a concurrent retry
                await session.rollback()
                raise PreconditionError("Can only retry failed agent executions")

            successor = AgentExecution(
                tenant_id=original.tenant_id,
                project_id=original.project_id,
                workflow_execution_id=original.workflow_execution_id,
                agent_name=original.agent_name,
                agent_role=original.agent_role,
                layer=original.layer,
                iteration=original.iteration + 1,
                input=original.input,
                config=dict(original.config),
                meta={
                    "retryOf": str(original.id),
                    "originalIteration": original.iteration,
                    "retriggeredBy": str(actor_id),
                },
            )
            repo.add(successor)
            await session.commit()

        logger.info(
            "Agent execution retried",
            agent_execution_id=str(execution_id),
            successor_id=str(successor.id),
            agent_role=successor.agent_role,
            iteration=successor.iteration,
        )
        return successor
