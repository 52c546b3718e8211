"""Scheduled purge of dead refresh tokens."""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.pureflow.temporal.activities import cleanup_refresh_tokens


@workflow.defn
class TokenCleanupWorkflow:
    """Delete expired and revoked refresh tokens past the retention window.

    Meant to run from a Temporal schedule (e.g. daily at 3am UTC). Deleting
    is idempotent, so overlapping or repeated runs are harmless.
    """

    @workflow.run
    async def run(self, retention_days: int = 30) -> dict[str, int]:
        workflow.logger.info(f"Starting token cleanup (retention: {retention_days} days)")

        deleted = await workflow.execute_activity(
            cleanup_refresh_tokens,
            retention_days,
            start_to_close_timeout=timedelta(minutes=5),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=2),
            ),
        )

        workflow.logger.info(f"Token cleanup complete: {deleted} refresh tokens deleted")
        return {"refresh_tokens": deleted}
