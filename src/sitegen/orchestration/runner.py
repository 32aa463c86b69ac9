"""Runs a single agent execution record from claim to terminal status."""

import asyncio
import time
from typing import Any

from src.sitegen.agents.base import Agent, AgentContext
from src.sitegen.agents.llm import LLMProvider
from src.sitegen.agents.pricing import calculate_cost
from src.sitegen.agents.registry import get_agent_spec
from src.sitegen.core.config import Settings, get_settings
from src.sitegen.core.exceptions import (
    AgentTimeoutError,
    InvalidTransitionError,
    OrchestrationError,
    error_classification,
)
from src.sitegen.core.logging import bind_execution_context, get_logger
from src.sitegen.models import AgentExecution, ExecutionStatus
from src.sitegen.models.base import utc_now
from src.sitegen.orchestration.retry_policy import BackoffPolicy, Sleep
from src.sitegen.services.artifacts import ArtifactStore, LocalArtifactStore
from src.sitegen.services.execution_store import ExecutionStore

logger = get_logger(__name__)


class AgentRunner:
    """Claims a PENDING execution, runs its agent and records the outcome.

    Agent failures end as FAILED records with ``errorType`` and
    ``errorMessage`` in metadata and are not raised. Unexpected exceptions
    are recorded the same way without retrying. Losing the claim raises
    :class:`InvalidTransitionError`; cancellation propagates.

    Token usage and its cost are recorded on both outcomes.
    """

    def __init__(
        self,
        store: ExecutionStore,
        provider: LLMProvider,
        *,
        settings: Settings | None = None,
        artifacts: ArtifactStore | None = None,
        backoff: BackoffPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.store = store
        self.provider = provider
        self.settings = settings or get_settings()
        self.artifacts = artifacts or LocalArtifactStore(self.settings.artifact_root)
        self.backoff = backoff or BackoffPolicy.from_settings(self.settings)
        self.sleep = sleep

    async def run(
        self,
        execution: AgentExecution,
        agent_input: dict[str, Any],
        *,
        timeout: float,
        industry: str | None = None,
    ) -> AgentExecution:
        bind_execution_context(
            tenant_id=execution.tenant_id,
            workflow_execution_id=execution.workflow_execution_id,
            agent_execution_id=execution.id,
            agent_role=execution.agent_role,
        )
        agent = get_agent_spec(execution.agent_role).build(self.provider, self.settings)

        # Raises InvalidTransitionError if another worker got here first
        await self.store.transition_agent(
            execution.id,
            ExecutionStatus.RUNNING,
            started_at=utc_now(),
            input=agent_input,
        )
        logger.info("Agent execution started", agent_name=execution.agent_name)

        context = AgentContext(
            tenant_id=execution.tenant_id,
            project_id=execution.project_id,
            iteration=execution.iteration,
            industry=industry,
            workflow_execution_id=execution.workflow_execution_id,
            agent_execution_id=execution.id,
        )
        started = time.monotonic()
        try:
            async with asyncio.timeout(timeout):
                result = await self.backoff.call(
                    lambda: agent.run(agent_input, context), sleep=self.sleep
                )
                written = await self.artifacts.write(context, result.artifacts)
        except InvalidTransitionError:
            raise
        except (OrchestrationError, OSError, TimeoutError) as e:
            error: BaseException = e
            if isinstance(e, TimeoutError):
                error = AgentTimeoutError(f"{execution.agent_name} exceeded its {timeout:g}s timeout")
            logger.warning(
                "Agent execution failed",
                error_type=error_classification(error),
                error=str(error),
            )
            return await self._fail(execution, error_classification(error), str(error), agent, started)
        except Exception as e:
            logger.exception("Agent execution crashed", error_type=type(e).__name__)
            return await self._fail(execution, type(e).__name__, str(e), agent, started)

        finished = await self.store.transition_agent(
            execution.id,
            ExecutionStatus.COMPLETED,
            meta_updates={"artifacts": written} if written else None,
            output=result.output.model_dump(mode="json"),
            evaluation=result.evaluation,
            execution_time_ms=_elapsed_ms(started),
            completed_at=utc_now(),
            **_usage_fields(agent),
        )
        logger.info(
            "Agent execution completed",
            agent_name=execution.agent_name,
            execution_time_ms=finished.execution_time_ms,
        )
        return finished

    async def _fail(
        self,
        execution: AgentExecution,
        error_type: str,
        message: str,
        agent: Agent,  # type: ignore[type-arg]
        started: float,
    ) -> AgentExecution:
        return await self.store.transition_agent(
            execution.id,
            ExecutionStatus.FAILED,
            meta_updates={"errorType": error_type, "errorMessage": message},
            execution_time_ms=_elapsed_ms(started),
            completed_at=utc_now(),
            **_usage_fields(agent),
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _usage_fields(agent: Agent) -> dict[str, Any]:  # type: ignore[type-arg]
    if not agent.usage.total:
        return {}
    return {
        "tokens_used": agent.usage.total,
        "cost_usd": calculate_cost(agent.usage, agent.model),
    }
