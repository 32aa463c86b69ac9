"""Progress event publisher.

Polls the execution store for one project and turns state changes into
events. Subscribers see changes at most ``interval`` seconds late (2 s by
default). Events are snapshots keyed by execution id and may repeat.
"""

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from datetime import datetime
from uuid import UUID

from src.sitegen.core.logging import get_logger
from src.sitegen.models import AgentExecution, WorkflowExecution
from src.sitegen.models.base import utc_now
from src.sitegen.orchestration.retry_policy import Sleep
from src.sitegen.schemas.events import (
    AgentStatusPayload,
    ConnectedPayload,
    ProgressEvent,
    WorkflowProgressPayload,
)
from src.sitegen.services.execution_store import ExecutionStore

logger = get_logger(__name__)

WorkflowSnapshot = tuple[UUID, str, int, int, float, int]


def format_sse(event: ProgressEvent) -> str:
    """Frame an event for a ``text/event-stream`` response."""
    return f"event: {event.event}\ndata: {json.dumps(event.data)}\n\n"


class ProgressPublisher:
    def __init__(
        self,
        store: ExecutionStore,
        project_id: UUID,
        *,
        interval: float = 2.0,
        recent_limit: int = 50,
        clock: Callable[[], datetime] = utc_now,
        sleep: Sleep = asyncio.sleep,
    ):
        self.store = store
        self.project_id = project_id
        self.interval = interval
        self.recent_limit = recent_limit
        self.clock = clock
        self.sleep = sleep
        self._workflow: WorkflowSnapshot | None = None
        self._agent_statuses: dict[UUID, str] = {}

    def connected(self) -> ProgressEvent:
        payload = ConnectedPayload(project_id=self.project_id, timestamp=self.clock())
        return ProgressEvent(event="connected", data=payload.to_wire(), kind="connected")

    async def poll(self) -> list[ProgressEvent]:
        """Events for everything that changed since the previous poll."""
        events = []

        workflow = await self.store.latest_workflow_execution(self.project_id)
        if workflow is not None:
            snapshot = _snapshot(workflow)
            if snapshot != self._workflow:
                self._workflow = snapshot
                events.append(self._workflow_event(workflow))

        agents = await self.store.recent_agent_executions(self.project_id, self.recent_limit)
        # Oldest first so a subscriber sees causal order within one poll
        for agent in reversed(agents):
            if self._agent_statuses.get(agent.id) != agent.status:
                self._agent_statuses[agent.id] = agent.status
                events.append(self._agent_event(agent))
        return events

    async def events(self) -> AsyncIterator[ProgressEvent]:
        """``connected``, then changes forever. A failed poll is logged and retried."""
        yield self.connected()
        while True:
            try:
                for event in await self.poll():
                    yield event
            except Exception:
                logger.exception("Progress poll failed", project_id=str(self.project_id))
            await self.sleep(self.interval)

    def _workflow_event(self, workflow: WorkflowExecution) -> ProgressEvent:
        payload = WorkflowProgressPayload(
            workflow_execution_id=workflow.id,
            status=workflow.status,
            current_step=workflow.current_step,
            current_step_name=workflow.current_step_name,
            total_steps=workflow.total_steps,
            completed_steps=workflow.completed_steps,
            progress_percentage=workflow.progress_percentage,
            iteration=workflow.iteration,
            timestamp=self.clock(),
        )
        return ProgressEvent(event="workflow.progress", data=payload.to_wire(), kind="workflow")

    def _agent_event(self, agent: AgentExecution) -> ProgressEvent:
        payload = AgentStatusPayload(
            agent_execution_id=agent.id,
            agent_role=agent.agent_role,
            agent_name=agent.agent_name,
            layer=agent.layer,
            status=agent.status,
            iteration=agent.iteration,
            execution_time_ms=agent.execution_time_ms,
            timestamp=self.clock(),
        )
        return ProgressEvent(
            event=f"agent.{agent.status.lower()}", data=payload.to_wire(), kind="agent"
        )


def _snapshot(workflow: WorkflowExecution) -> WorkflowSnapshot:
    return (
        workflow.id,
        workflow.status,
        workflow.current_step,
        workflow.completed_steps,
        workflow.progress_percentage,
        workflow.iteration,
    )
