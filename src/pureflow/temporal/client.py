"""Temporal client shared by the worker process."""

from temporalio.client import Client

from src.pureflow.core.config import get_settings

_client: Client | None = None


async def get_temporal_client() -> Client:
    """Connect on first use, then reuse the same client."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = await Client.connect(
            settings.temporal_host,
            namespace=settings.temporal_namespace,
        )
    return _client

