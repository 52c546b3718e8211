"""Tests for SqlCredentialStore transaction and blacklist handling.

The session and repositories are mocks; SQL behaviour is covered by the
integration suite.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import IntegrityError, OperationalError

from src.pureflow.core.cache import PREFIX_TOKEN_BLACKLIST
from src.pureflow.core.exceptions import StorageUnavailableError
from src.pureflow.core.security import hash_token
from src.pureflow.services import SqlCredentialStore
from tests.factories import RefreshTokenFactory, UserFactory

pytestmark = pytest.mark.unit


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    return session


@pytest.fixture
def user_repo() -> MagicMock:
    repo = MagicMock()
    repo.get_by_email = AsyncMock(return_value=None)
    repo.get_by_id = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def token_repo() -> MagicMock:
    repo = MagicMock()
    repo.get_valid_by_hash = AsyncMock(return_value=None)
    repo.revoke_by_hash = AsyncMock(return_value=True)
    repo.get_active_hashes_for_user = AsyncMock(return_value=[])
    repo.revoke_all_for_user = AsyncMock(return_value=0)
    return repo


@pytest.fixture
def sql_store(session: MagicMock, user_repo: MagicMock, token_repo: MagicMock) -> SqlCredentialStore:
    return SqlCredentialStore(session, user_repo, token_repo, blacklist_ttl=timedelta(days=30))


class TestAtomic:
    async def test_commits_once_on_success(self, sql_store: SqlCredentialStore, session):
        async with sql_store.atomic():
            await sql_store.revoke_refresh_token("old")
            await sql_store.insert_refresh_token(
                UserFactory.build().id, "new", datetime.now(UTC) + timedelta(days=7)
            )

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    async def test_rolls_back_on_error(self, sql_store: SqlCredentialStore, session):
        with pytest.raises(RuntimeError):
            async with sql_store.atomic():
                await sql_store.revoke_refresh_token("old")
                raise RuntimeError("boom")

        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()

    async def test_nested_units_join(self, sql_store: SqlCredentialStore, session):
        async with sql_store.atomic():
            async with sql_store.atomic():
                await sql_store.revoke_refresh_token("old")
            session.commit.assert_not_awaited()

        session.commit.assert_awaited_once()

    async def test_writes_outside_unit_commit_immediately(
        self, sql_store: SqlCredentialStore, session
    ):
        await sql_store.revoke_refresh_token("old")
        session.commit.assert_awaited_once()

    async def test_commit_failure_is_storage_error(self, sql_store: SqlCredentialStore, session):
        session.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection lost"))

        with pytest.raises(StorageUnavailableError) as exc_info:
            async with sql_store.atomic():
                await sql_store.revoke_refresh_token("old")

        assert isinstance(exc_info.value.__cause__, OperationalError)
        session.rollback.assert_awaited_once()

    async def test_failed_rollback_keeps_storage_error(
        self, sql_store: SqlCredentialStore, session
    ):
        session.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection lost"))
        session.rollback.side_effect = OperationalError("ROLLBACK", {}, Exception("gone"))

        with pytest.raises(StorageUnavailableError):
            async with sql_store.atomic():
                await sql_store.revoke_refresh_token("old")


class TestBlacklist:
    async def test_revocation_published_after_commit(
        self, sql_store: SqlCredentialStore, mock_redis: Redis
    ):
        async with sql_store.atomic():
            await sql_store.revoke_refresh_token("old")
            assert await mock_redis.exists(f"{PREFIX_TOKEN_BLACKLIST}:{hash_token('old')}") == 0

        assert await mock_redis.exists(f"{PREFIX_TOKEN_BLACKLIST}:{hash_token('old')}") == 1

    async def test_rolled_back_revocation_not_published(
        self, sql_store: SqlCredentialStore, mock_redis: Redis
    ):
        with pytest.raises(RuntimeError):
            async with sql_store.atomic():
                await sql_store.revoke_refresh_token("old")
                raise RuntimeError("boom")

        assert await mock_redis.exists(f"{PREFIX_TOKEN_BLACKLIST}:{hash_token('old')}") == 0

    async def test_lost_revocation_race_not_published(
        self, sql_store: SqlCredentialStore, token_repo, mock_redis: Redis
    ):
        token_repo.revoke_by_hash.return_value = False

        assert await sql_store.revoke_refresh_token("old") is False
        assert await mock_redis.keys("*") == []

    async def test_blacklisted_token_skips_database(
        self, sql_store: SqlCredentialStore, token_repo, mock_redis: Redis
    ):
        await mock_redis.set(f"{PREFIX_TOKEN_BLACKLIST}:{hash_token('revoked')}", "1")

        assert await sql_store.find_active_refresh_token("revoked") is None
        token_repo.get_valid_by_hash.assert_not_awaited()

    async def test_redis_down_falls_back_to_database(
        self, sql_store: SqlCredentialStore, token_repo, mock_redis_unavailable: None
    ):
        await sql_store.find_active_refresh_token("token")
        token_repo.get_valid_by_hash.assert_awaited_once_with(hash_token("token"))

    async def test_publish_failure_is_not_raised(
        self, sql_store: SqlCredentialStore, session, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(
            "src.pureflow.services.credential_store.blacklist_tokens",
            AsyncMock(side_effect=RedisConnectionError("down")),
        )

        assert await sql_store.revoke_refresh_token("old") is True
        session.commit.assert_awaited_once()

    async def test_revoke_all_publishes_every_hash(
        self, sql_store: SqlCredentialStore, token_repo, mock_redis: Redis
    ):
        token_repo.get_active_hashes_for_user.return_value = ["h1", "h2"]
        token_repo.revoke_all_for_user.return_value = 2

        assert await sql_store.revoke_all_for_user(UserFactory.build().id) == 2
        assert await mock_redis.exists(f"{PREFIX_TOKEN_BLACKLIST}:h1") == 1
        assert await mock_redis.exists(f"{PREFIX_TOKEN_BLACKLIST}:h2") == 1


class TestRefreshTokens:
    async def test_stores_hash_and_naive_expiry(self, sql_store: SqlCredentialStore, token_repo):
        expires_at = datetime(2026, 2, 1, 12, 0, tzinfo=UTC)

        await sql_store.insert_refresh_token(UserFactory.build().id, "raw-token", expires_at)

        row = token_repo.add.call_args.args[0]
        assert row.token_hash == hash_token("raw-token")
        assert row.expires_at == datetime(2026, 2, 1, 12, 0)
        assert row.expires_at.tzinfo is None

    async def test_found_token_has_aware_expiry(
        self, sql_store: SqlCredentialStore, token_repo, mock_redis_unavailable: None
    ):
        user = UserFactory.build()
        row = RefreshTokenFactory.build(user_id=user.id, expires_at=datetime(2026, 2, 1, 12, 0))
        token_repo.get_valid_by_hash.return_value = row

        found = await sql_store.find_active_refresh_token("raw-token")

        assert found is not None
        assert found.user_id == user.id
        assert found.expires_at == datetime(2026, 2, 1, 12, 0, tzinfo=UTC)
        assert found.revoked is False

    async def test_driver_error_is_storage_error(
        self, sql_store: SqlCredentialStore, token_repo, mock_redis_unavailable: None
    ):
        token_repo.get_valid_by_hash.side_effect = OperationalError(
            "SELECT", {}, Exception("connection refused")
        )

        with pytest.raises(StorageUnavailableError):
            await sql_store.find_active_refresh_token("raw-token")


class TestUsers:
    async def test_duplicate_email_is_value_error(self, sql_store: SqlCredentialStore, session):
        session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(ValueError, match="User already exists"):
            await sql_store.add_user(UserFactory.build())

        session.rollback.assert_awaited_once()

    async def test_duplicate_email_survives_failed_rollback(
        self, sql_store: SqlCredentialStore, session
    ):
        session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))
        session.rollback.side_effect = OperationalError("ROLLBACK", {}, Exception("gone"))

        with pytest.raises(ValueError, match="User already exists"):
            await sql_store.add_user(UserFactory.build())

    async def test_add_user_inside_unit_defers_commit(self, sql_store: SqlCredentialStore, session):
        async with sql_store.atomic():
            await sql_store.add_user(UserFactory.build())
            session.flush.assert_awaited_once()
            session.commit.assert_not_awaited()

        session.commit.assert_awaited_once()

    async def test_lookup_error_is_storage_error(self, sql_store: SqlCredentialStore, user_repo):
        user_repo.get_by_email.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(StorageUnavailableError):
            await sql_store.find_user_by_email("someone@example.com")
