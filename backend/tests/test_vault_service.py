"""Tests for VaultService / UserService against a real async SQLite session."""

import pytest
import pytest_asyncio
from fastapi import HTTPException

from otpvault.common.database import DatabaseManager
from otpvault.common.encryption import Cipher
from otpvault.common.errors import ConfigError
from otpvault.common.passwords import hash_password
from otpvault.domains.admin.service import SettingsService, UserService
from otpvault.domains.otp.totp import TotpEngine
from otpvault.domains.vault.models import Account
from otpvault.domains.vault.schemas import AccountCreate, AccountUpdate
from otpvault.domains.vault.service import VaultService

RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest_asyncio.fixture
async def db(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
    await manager.initialize()
    yield manager
    await manager.dispose()


@pytest.fixture
def vault(key) -> VaultService:
    return VaultService(Cipher(key), TotpEngine())


@pytest.fixture
def users() -> UserService:
    return UserService(bcrypt_rounds=4)


class TestVaultService:

    @pytest.mark.asyncio
    async def test_stored_fields_are_ciphertext(self, db, vault, users):
        async with db.get_session() as session:
            owner = await users.create_user(session, "alice@example.com", "user-password")
            created = await vault.create_account(
                session, owner.id,
                AccountCreate(service_name="GitHub", password="hunter2", otp_secret=RFC_SECRET),
            )
            stored = await session.get(Account, created.id)

        assert stored.encrypted_password != "hunter2"
        assert vault.cipher.decrypt(stored.encrypted_password) == "hunter2"
        assert vault.cipher.decrypt(stored.encrypted_otp_secret) == RFC_SECRET

    @pytest.mark.asyncio
    async def test_otp_preview_at_fixed_time(self, db, vault, users):
        async with db.get_session() as session:
            owner = await users.create_user(session, "alice@example.com", "user-password")
            created = await vault.create_account(
                session, owner.id, AccountCreate(service_name="GitHub", otp_secret=RFC_SECRET)
            )
            otp = await vault.otp_preview(session, owner.id, created.id, now=59)

        assert otp.current == "287082"
        assert otp.next == TotpEngine().current_code(RFC_SECRET, 89)
        assert otp.seconds_remaining == 1
        assert otp.period == 30

    @pytest.mark.asyncio
    async def test_update_clears_secret_when_sent_empty(self, db, vault, users):
        async with db.get_session() as session:
            owner = await users.create_user(session, "alice@example.com", "user-password")
            created = await vault.create_account(
                session, owner.id, AccountCreate(service_name="GitHub", otp_secret=RFC_SECRET)
            )
            updated = await vault.update_account(
                session, owner.id, created.id, AccountUpdate(service_name="GitHub", otp_secret="")
            )
            assert updated.otp_secret == ""

            with pytest.raises(HTTPException) as exc_info:
                await vault.otp_preview(session, owner.id, created.id)
            assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_other_owner_cannot_delete(self, db, vault, users):
        async with db.get_session() as session:
            alice = await users.create_user(session, "alice@example.com", "user-password")
            bob = await users.create_user(session, "bob@example.com", "user-password")
            created = await vault.create_account(session, alice.id, AccountCreate(service_name="GitHub"))

            with pytest.raises(HTTPException) as exc_info:
                await vault.delete_account(session, bob.id, created.id)
            assert exc_info.value.status_code == 404
            assert len(await vault.list_accounts(session, alice.id)) == 1


class TestUserService:

    @pytest.mark.asyncio
    async def test_authenticate(self, db, users):
        async with db.get_session() as session:
            await users.create_user(session, "alice@example.com", "user-password")
            assert await users.authenticate(session, "alice@example.com", "user-password") is not None
            assert await users.authenticate(session, "alice@example.com", "wrong") is None
            assert await users.authenticate(session, "nobody@example.com", "user-password") is None

    @pytest.mark.asyncio
    async def test_password_is_hashed(self, db, users):
        async with db.get_session() as session:
            user = await users.create_user(session, "alice@example.com", "user-password")
        assert user.password_hash != "user-password"
        assert user.password_hash.startswith("$2")

    @pytest.mark.asyncio
    async def test_ensure_superadmin_is_idempotent(self, db, users):
        async with db.get_session() as session:
            first = await users.ensure_superadmin(session, "root@example.com", "root-password")
            second = await users.ensure_superadmin(session, "root@example.com", "other-password")
        assert first.id == second.id
        assert first.role == "superadmin"

    @pytest.mark.asyncio
    async def test_bootstrap_password_over_bcrypt_limit(self, db, users):
        async with db.get_session() as session:
            with pytest.raises(ConfigError):
                await users.ensure_superadmin(session, "root@example.com", "\u00e9" * 40)

    def test_policy_counts_utf8_bytes(self, users):
        users.check_password_policy("\u00e9" * 36)
        with pytest.raises(HTTPException) as exc_info:
            users.check_password_policy("\u00e9" * 37)
        assert exc_info.value.status_code == 400

    def test_hash_password_rejects_long_input(self):
        with pytest.raises(ValueError):
            hash_password("a" * 73, rounds=4)


class TestSettingsService:

    @pytest.mark.asyncio
    async def test_default_and_toggle(self, db):
        service = SettingsService(registration_enabled_default=True)
        async with db.get_session() as session:
            assert await service.registration_enabled(session) is True
            await service.set_registration_enabled(session, False)
            assert await service.registration_enabled(session) is False
            assert await service.get_settings(session, include_all=False) == {"registration_enabled": False}
