"""Shared fixtures: fixed test keys and an app bound to a temporary SQLite file."""

import pytest
from fastapi.testclient import TestClient

from otpvault.common.config import Settings
from otpvault.main import create_app

TEST_KEY_HEX = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
OTHER_KEY_HEX = "ffeeddccbbaa99887766554433221100ffeeddccbbaa99887766554433221100"


@pytest.fixture
def key() -> bytes:
    return bytes.fromhex(TEST_KEY_HEX)


@pytest.fixture
def other_key() -> bytes:
    return bytes.fromhex(OTHER_KEY_HEX)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        encryption_key=TEST_KEY_HEX,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        log_dir=None,
        log_level="WARNING",
        bcrypt_rounds=4,
        superadmin_email="admin@example.com",
        superadmin_password="admin-password",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
