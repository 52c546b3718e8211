"""Tests for asyncpg SSL arguments."""

import ssl

import pytest

from src.pureflow.core.db.engine import ssl_connect_args

pytestmark = pytest.mark.unit


def test_disable_sends_no_ssl():
    assert ssl_connect_args("disable") == {}


@pytest.mark.parametrize("mode", ["prefer", "require"])
def test_encrypt_without_verification(mode: str):
    context = ssl_connect_args(mode)["ssl"]

    assert context.verify_mode == ssl.CERT_NONE
    assert context.check_hostname is False


def test_verify_ca_skips_hostname():
    context = ssl_connect_args("verify-ca")["ssl"]

    assert context.verify_mode == ssl.CERT_REQUIRED
    assert context.check_hostname is False


def test_verify_full_checks_hostname():
    context = ssl_connect_args("verify-full")["ssl"]

    assert context.verify_mode == ssl.CERT_REQUIRED
    assert context.check_hostname is True
