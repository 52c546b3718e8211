"""Temporal activities - idempotent, safe to retry."""

from src.pureflow.temporal.activities.cleanup import cleanup_refresh_tokens

__all__ = ["cleanup_refresh_tokens"]
