"""Shared wiring for activities: engine, provider, store and runner."""

import asyncio
from collections.abc import Awaitable
from contextlib import AbstractAsyncContextManager
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from temporalio import activity

from src.sitegen.agents.llm import AnthropicProvider, LLMProvider
from src.sitegen.core.config import get_settings
from src.sitegen.core.db import get_engine, get_session
from src.sitegen.orchestration.dispatcher import PendingDispatcher
from src.sitegen.orchestration.plan import default_plan
from src.sitegen.orchestration.runner import AgentRunner
from src.sitegen.services.execution_store import ExecutionStore
from src.sitegen.temporal.context import TenantCtx

HEARTBEAT_INTERVAL = timedelta(seconds=10)

_provider: LLMProvider | None = None


def get_provider() -> LLMProvider:
    """Get or create the LLM provider shared by every activity of the worker."""
    global _provider
    if _provider is None:
        settings = get_settings()
        _provider = AnthropicProvider(
            settings.anthropic_api_key,
            timeout=settings.llm_timeout_seconds,
        )
    return _provider


def set_provider(provider: LLMProvider | None) -> None:
    """Replace the shared provider (None resets to the configured one)."""
    global _provider
    _provider = provider


def build_store(ctx: TenantCtx) -> ExecutionStore:
    return ExecutionStore(ctx.tenant_uuid, get_engine())


def build_runner(store: ExecutionStore) -> AgentRunner:
    return AgentRunner(store, get_provider())


def build_dispatcher(store: ExecutionStore) -> PendingDispatcher:
    return PendingDispatcher(store, build_runner(store), default_plan(get_settings()))


def system_session() -> AbstractAsyncContextManager[AsyncSession]:
    """Session without a tenant, for cross-tenant system jobs."""
    return get_session(engine=get_engine())


async def heartbeat_until_done[T](work: Awaitable[T]) -> T:
    """Await ``work`` while heartbeating. Cancelling the activity cancels the work."""
    task = asyncio.ensure_future(work)
    try:
        while not task.done():
            await asyncio.wait({task}, timeout=HEARTBEAT_INTERVAL.total_seconds())
            if not task.done():
                activity.heartbeat()
        return task.result()
    except asyncio.CancelledError:
        task.cancel()
        # Let the work record its own cancellation before propagating
        await asyncio.gather(task, return_exceptions=True)
        raise
