"""
Tests for the Telegram identity store.
"""
import pytest

from attestation_bot.database.connection import DatabaseManager
from attestation_bot.database.repositories.user_repository import UserRepository
from attestation_bot.services.models import Caller, Role


async def make_repo(tmp_path):
    db_path = str(tmp_path / "identity.db")
    manager = DatabaseManager(db_path)
    await manager.init_db()
    return manager, UserRepository(db_path)


class TestIdentityStore:

    @pytest.mark.asyncio
    async def test_schema_created(self, tmp_path):
        manager, _ = await make_repo(tmp_path)

        assert await manager.missing_tables() == set()

    @pytest.mark.asyncio
    async def test_ensure_user_reports_new_users_once(self, tmp_path):
        _, users = await make_repo(tmp_path)

        assert await users.ensure_user(10, "Alice") is True
        assert await users.ensure_user(10, "Alice") is False

        user = await users.get_user(10)
        assert user["role"] == Role.EMPLOYEE.value
        assert user["full_name"] == "Alice"

    @pytest.mark.asyncio
    async def test_unlinked_user_has_no_caller(self, tmp_path):
        _, users = await make_repo(tmp_path)
        await users.ensure_user(10)

        assert await users.get_caller(10) is None
        assert await users.get_caller(99) is None

    @pytest.mark.asyncio
    async def test_set_identity_upserts(self, tmp_path):
        _, users = await make_repo(tmp_path)
        await users.ensure_user(10, "Alice")

        await users.set_identity(10, " Alice@Example.com ", Role.MANAGER)
        await users.set_identity(11, "bob@example.com", Role.ATTESTATION_COORDINATOR)

        assert await users.get_caller(10) == Caller(role=Role.MANAGER, email="alice@example.com")
        assert (await users.get_user(10))["full_name"] == "Alice"
        assert [u["telegram_id"] for u in await users.list_users()] == [10, 11]

    @pytest.mark.asyncio
    async def test_superadmin_is_always_admin(self, tmp_path):
        _, users = await make_repo(tmp_path)
        await users.set_identity(10, "lead@example.com", Role.MANAGER)

        assert await users.get_caller(10, {10}) == Caller(role=Role.ADMIN, email="lead@example.com")
        assert await users.get_caller(20, {20}) == Caller(role=Role.ADMIN, email="")
