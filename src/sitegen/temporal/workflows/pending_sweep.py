"""
Pending Sweep Workflow.

Dispatch PENDING agent executions that no orchestrator run owns, for every
active tenant. Designed to be run on a schedule via Temporal cron
(``PENDING_SWEEP_SCHEDULE``).

Idempotent: executions are claimed with a compare-and-set, so overlapping
sweeps never run an execution twice.
"""

import asyncio

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from src.sitegen.temporal.activities import (
        SweepPendingInput,
        TenantCtx,
        list_active_tenants,
        sweep_pending_executions,
    )
    from src.sitegen.temporal.workflows._steps.common import (
        generation_activity_opts,
        short_activity_opts,
    )

PENDING_SWEEP_WORKFLOW_ID = "pending-sweep"


@workflow.defn
class PendingSweepWorkflow:
    @workflow.run
    async def run(self, limit: int = 50) -> dict[str, int]:
        """
        Sweep every active tenant.

        Args:
            limit: Maximum PENDING executions inspected per tenant

        Returns:
            Executions dispatched per tenant id
        """
        tenant_ids: list[str] = await workflow.execute_activity(
            list_active_tenants,
            **short_activity_opts(),  # type: ignore[arg-type]
        )

        counts = await asyncio.gather(
            *(
                workflow.execute_activity(
                    sweep_pending_executions,
                    SweepPendingInput(ctx=TenantCtx(tenant_id=tenant_id), limit=limit),
                    **generation_activity_opts(hours=1),  # type: ignore[arg-type]
                )
                for tenant_id in tenant_ids
            )
        )
        result = dict(zip(tenant_ids, counts, strict=True))
        workflow.logger.info(
            f"Pending sweep complete: {sum(counts)} execution(s) across {len(tenant_ids)} tenant(s)"
        )
        return result
