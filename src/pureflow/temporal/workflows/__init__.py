"""Temporal Workflows - Re-exports for worker registration."""

from src.pureflow.temporal.workflows.token_cleanup import TokenCleanupWorkflow

__all__ = ["TokenCleanupWorkflow"]
