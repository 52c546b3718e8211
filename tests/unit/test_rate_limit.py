"""Tests for rate limiter configuration (src/pureflow/core/rate_limit.py)."""

from unittest.mock import MagicMock

import pytest

from src.pureflow.core.config import get_settings
from src.pureflow.core.rate_limit import (
    create_limiter,
    get_rate_limit_key,
    limiter,
    rate_limit_exceeded_handler,
)

pytestmark = pytest.mark.unit


def _request(host: str | None) -> MagicMock:
    request = MagicMock()
    request.client = MagicMock(host=host) if host else None
    request.headers = {}
    return request


def test_key_is_client_ip():
    assert get_rate_limit_key(_request("10.0.0.7")) == "10.0.0.7"


def test_key_ignores_forwarded_headers():
    request = _request("10.0.0.7")
    request.headers = {"X-Forwarded-For": "1.2.3.4"}

    assert get_rate_limit_key(request) == "10.0.0.7"


def test_disabled_in_testing():
    assert get_settings().app_env == "testing"
    assert limiter.enabled is False
    assert create_limiter().enabled is False


async def test_exceeded_response_uses_error_envelope():
    request = MagicMock()
    request.url.path = "/api/v1/auth/login"

    response = await rate_limit_exceeded_handler(request, MagicMock(detail="5 per 1 minute"))

    assert response.status_code == 429
    assert b'"success":false' in response.body
    assert b"5 per 1 minute" in response.body
