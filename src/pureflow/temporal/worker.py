"""Housekeeping worker, run apart from the API:

    python -m src.pureflow.temporal.worker

It purges dead refresh tokens and, when CLEANUP_SCHEDULE is set, registers
the cron schedule that triggers the purge.
"""

import asyncio

import uvicorn
from fastapi import FastAPI
from temporalio.client import (
    Client,
    Schedule,
    ScheduleActionStartWorkflow,
    ScheduleAlreadyRunningError,
    ScheduleSpec,
)
from temporalio.worker import Worker

from src.pureflow.core.config import Settings, get_settings
from src.pureflow.core.db import dispose_engine
from src.pureflow.core.logging import get_logger, setup_logging
from src.pureflow.temporal.activities import cleanup_refresh_tokens
from src.pureflow.temporal.client import get_temporal_client
from src.pureflow.temporal.workflows import TokenCleanupWorkflow

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001
CLEANUP_SCHEDULE_ID = "token-cleanup"


async def ensure_cleanup_schedule(client: Client, settings: Settings) -> bool:
    """Register the token cleanup schedule.

    Returns False when there is no schedule configured or it already exists.
    """
    if not settings.cleanup_schedule:
        return False

    try:
        await client.create_schedule(
            CLEANUP_SCHEDULE_ID,
            Schedule(
                action=ScheduleActionStartWorkflow(
                    TokenCleanupWorkflow.run,
                    settings.cleanup_retention_days,
                    id=f"{CLEANUP_SCHEDULE_ID}-run",
                    task_queue=settings.temporal_task_queue,
                ),
                spec=ScheduleSpec(cron_expressions=[settings.cleanup_schedule]),
            ),
        )
    except ScheduleAlreadyRunningError:
        logger.info("Cleanup schedule already registered", schedule_id=CLEANUP_SCHEDULE_ID)
        return False

    logger.info(
        "Cleanup schedule registered",
        schedule_id=CLEANUP_SCHEDULE_ID,
        cron=settings.cleanup_schedule,
    )
    return True


def create_worker(client: Client, task_queue: str) -> Worker:
    return Worker(
        client,
        task_queue=task_queue,
        workflows=[TokenCleanupWorkflow],
        activities=[cleanup_refresh_tokens],
        max_concurrent_activities=10,
    )


async def run_health_server(task_queue: str, port: int = WORKER_HEALTH_PORT) -> None:
    """Liveness endpoint for the worker container."""
    health_app = FastAPI(title="pureflow token cleanup worker", openapi_url=None)

    @health_app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": "token-cleanup-worker",
            "task_queue": task_queue,
        }

    config = uvicorn.Config(health_app, host="0.0.0.0", port=port, log_level="warning")
    server = uvicorn.Server(config)
    logger.info("Worker health server starting", port=port)
    await server.serve()


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.debug)

    client = await get_temporal_client()
    await ensure_cleanup_schedule(client, settings)

    worker = create_worker(client, settings.temporal_task_queue)
    logger.info("Worker starting", task_queue=settings.temporal_task_queue)

    try:
        await asyncio.gather(
            worker.run(),
            run_health_server(settings.temporal_task_queue),
        )
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
