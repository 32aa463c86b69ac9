"""Progress stream endpoint (Server-Sent Events)."""

from collections.abc import AsyncIterator
from uuid import UUID

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from src.sitegen.api.dependencies import CurrentIdentity, Store
from src.sitegen.core.config import get_settings
from src.sitegen.orchestration.progress import ProgressPublisher, format_sse

router = APIRouter(tags=["stream"])


@router.get(
    "/projects/{project_id}/stream",
    summary="Stream project progress",
    description=(
        "Server-Sent Events: ``connected`` first, then ``workflow.progress`` and "
        "``agent.<status>`` snapshots. Changes arrive at most two seconds late and "
        "may repeat."
    ),
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/event-stream": {}}},
        404: {"description": "Project not found"},
    },
)
async def stream_progress(
    project_id: UUID,
    request: Request,
    store: Store,
    _identity: CurrentIdentity,
) -> StreamingResponse:
    await store.get_project(project_id)
    settings = get_settings()
    publisher = ProgressPublisher(
        store,
        project_id,
        interval=settings.progress_poll_interval_seconds,
        recent_limit=settings.progress_recent_agents,
    )

    async def event_source() -> AsyncIterator[str]:
        async for event in publisher.events():
            if await request.is_disconnected():
                break
            yield format_sse(event)

    return StreamingResponse(
        event_source(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
