"""
Temporal Worker - Separate process from API.

Run with:
    uv run python -m src.sitegen.temporal.worker                        # Development mode (all workloads)
    uv run python -m src.sitegen.temporal.worker --workload generation  # Generation runs only
    uv run python -m src.sitegen.temporal.worker --workload jobs        # Pending sweep only
"""

import argparse
import asyncio
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.worker import Worker

from src.sitegen.core.config import get_settings
from src.sitegen.core.db import dispose_engine
from src.sitegen.core.logging import get_logger, setup_logging
from src.sitegen.temporal.activities import (
    fail_workflow_execution,
    list_active_tenants,
    run_agent_execution,
    run_workflow_execution,
    sweep_pending_executions,
)
from src.sitegen.temporal.routing import QueueKind, task_queue_name
from src.sitegen.temporal.workflows import (
    PENDING_SWEEP_WORKFLOW_ID,
    AgentExecutionWorkflow,
    PendingSweepWorkflow,
    WebsiteGenerationWorkflow,
)

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments for worker workload selection."""
    parser = argparse.ArgumentParser(description="Temporal worker")
    parser.add_argument(
        "--workload",
        choices=["generation", "jobs", "all"],
        default="all",
        help="Worker workload type (default: all for development mode)",
    )
    return parser.parse_args()


async def create_worker(
    client: Client,
    task_queue: str,
    workflows: Sequence[type],
    activities: Sequence[object],  # type: ignore[type-arg]
    *,
    max_concurrent_activities: int = 100,
    max_concurrent_workflow_tasks: int = 100,
) -> Worker:
    """Create a worker with tuned settings.

    Args:
        client: Temporal client
        task_queue: Task queue name
        workflows: List of workflow classes
        activities: List of activity functions
        max_concurrent_activities: Max concurrent activity executions
        max_concurrent_workflow_tasks: Max concurrent workflow task executions

    Returns:
        Configured Worker instance
    """
    return Worker(
        client,
        task_queue=task_queue,
        workflows=list(workflows),
        activities=list(activities),  # type: ignore[arg-type]
        max_concurrent_activities=max_concurrent_activities,
        max_concurrent_workflow_tasks=max_concurrent_workflow_tasks,
    )


async def run_generation_workers(client: Client) -> None:
    """Run workers for generation queues (one per shard).

    Activities here hold LLM calls open for minutes, so concurrency is kept
    low; each activity already fans out up to ``max_parallel_agents`` calls.
    """
    settings = get_settings()
    workers = []

    generation_activities = [
        fail_workflow_execution,
        run_agent_execution,
        run_workflow_execution,
    ]

    for shard in range(settings.temporal_queue_shards):
        tq = task_queue_name(settings.temporal_queue_prefix, QueueKind.GENERATION, shard)
        worker = await create_worker(
            client,
            tq,
            workflows=[WebsiteGenerationWorkflow, AgentExecutionWorkflow],
            activities=generation_activities,
            max_concurrent_activities=10,
            max_concurrent_workflow_tasks=20,
        )
        workers.append(worker)
        logger.info("Created generation worker", task_queue=tq)

    logger.info("Starting generation workers", count=len(workers))
    await asyncio.gather(*(w.run() for w in workers))


async def ensure_pending_sweep(client: Client, task_queue: str) -> None:
    """Start the cron pending sweep if a schedule is configured."""
    settings = get_settings()
    if not settings.pending_sweep_schedule:
        logger.info("Pending sweep schedule not configured, skipping")
        return
    try:
        await client.start_workflow(
            PendingSweepWorkflow.run,
            settings.pending_sweep_batch_size,
            id=PENDING_SWEEP_WORKFLOW_ID,
            task_queue=task_queue,
            cron_schedule=settings.pending_sweep_schedule,
        )
        logger.info("Pending sweep scheduled", schedule=settings.pending_sweep_schedule)
    except WorkflowAlreadyStartedError:
        logger.info("Pending sweep already scheduled")


async def run_jobs_workers(client: Client) -> None:
    """Run the worker for the jobs queue (pending sweep).

    Sweeps run agents too, so this worker also needs provider credentials.
    """
    settings = get_settings()
    tq = task_queue_name(settings.temporal_queue_prefix, QueueKind.JOBS, 0)

    jobs_activities = [
        list_active_tenants,
        sweep_pending_executions,
    ]

    worker = await create_worker(
        client,
        tq,
        workflows=[PendingSweepWorkflow],
        activities=jobs_activities,
        max_concurrent_activities=10,
        max_concurrent_workflow_tasks=50,
    )
    await ensure_pending_sweep(client, tq)
    logger.info("Starting jobs worker", task_queue=tq)
    await worker.run()


async def run_health_server(
    workload: str,
    task_queues: list[str],
    port: int = WORKER_HEALTH_PORT,
) -> None:
    """Run a lightweight health server for K8s probes.

    Args:
        workload: Workload type (generation, jobs, all)
        task_queues: List of task queues being polled
        port: Port to listen on
    """
    health_app = FastAPI(title="Temporal Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str | list[str]]:
        return {
            "status": "healthy",
            "service": "temporal-worker",
            "workload": workload,
            "task_queues": task_queues,
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    config = uvicorn.Config(
        health_app,
        host="0.0.0.0",
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    logger.info("Starting health server", port=port, workload=workload)
    await server.serve()


async def main() -> None:
    """Main entry point for the Temporal worker.

    Supports three modes:
    - generation: Polls generation queues only (production deployment)
    - jobs: Polls jobs queue only (production deployment)
    - all: Polls all queues in one process (development mode)
    """
    args = parse_args()
    settings = get_settings()
    setup_logging(settings.debug)

    client = await Client.connect(
        settings.temporal_host,
        namespace=settings.temporal_namespace,
    )

    # Build task queue list for health reporting
    task_queues = []
    if args.workload in ["generation", "all"]:
        for shard in range(settings.temporal_queue_shards):
            tq = task_queue_name(settings.temporal_queue_prefix, QueueKind.GENERATION, shard)
            task_queues.append(tq)
    if args.workload in ["jobs", "all"]:
        tq = task_queue_name(settings.temporal_queue_prefix, QueueKind.JOBS, 0)
        task_queues.append(tq)

    logger.info("Starting worker", workload=args.workload, task_queues=task_queues)

    try:
        # Start health server alongside worker(s)
        health_task = asyncio.create_task(run_health_server(args.workload, task_queues))

        if args.workload == "generation":
            await run_generation_workers(client)
        elif args.workload == "jobs":
            await run_jobs_workers(client)
        elif args.workload == "all":
            # Development mode: run all workers in one process
            await asyncio.gather(
                run_generation_workers(client),
                run_jobs_workers(client),
            )

        # Wait for health server to finish (should never happen)
        await health_task
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
