"""Pending execution sweep activities."""

from dataclasses import dataclass

from temporalio import activity

from src.sitegen.repositories import TenantRepository
from src.sitegen.temporal.context import TenantCtx

from . import _runtime


@dataclass
class SweepPendingInput:
    ctx: TenantCtx
    limit: int = 50


@activity.defn
async def list_active_tenants() -> list[str]:
    """
    List ids of active tenants.

    Idempotency: Fully idempotent - read-only.
    """
    async with _runtime.system_session() as session:
        tenant_ids = await TenantRepository(session).list_active_ids()
    return [str(tenant_id) for tenant_id in tenant_ids]


@activity.defn
async def sweep_pending_executions(input: SweepPendingInput) -> int:
    """
    Dispatch PENDING executions of one tenant that no orchestrator run owns.

    Idempotency: every execution is claimed with PENDING -> RUNNING, so
    overlapping sweeps run each execution once.

    Returns:
        Number of executions dispatched
    """
    store = _runtime.build_store(input.ctx)
    count = await _runtime.heartbeat_until_done(
        _runtime.build_dispatcher(store).sweep(input.limit)
    )
    activity.logger.info(f"Swept tenant {input.ctx.tenant_id}: {count} execution(s) dispatched")
    return count
