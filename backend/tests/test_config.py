"""Tests for start-up key loading - fail fast on bad keys, separate signing key."""

import pytest

from otpvault.common.config import (
    SecurityConfig,
    Settings,
    derive_signing_key,
    generate_encryption_key,
    parse_encryption_key,
)
from otpvault.common.errors import ConfigError
from otpvault.main import create_app

from conftest import TEST_KEY_HEX


def make_settings(**overrides) -> Settings:
    values = {"encryption_key": TEST_KEY_HEX, "log_dir": None}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestParseEncryptionKey:

    def test_valid_key(self):
        assert parse_encryption_key(TEST_KEY_HEX) == bytes.fromhex(TEST_KEY_HEX)

    @pytest.mark.parametrize("value", [None, "", "zz" * 32, "00" * 31, "00" * 33, "abc"])
    def test_invalid_key(self, value):
        with pytest.raises(ConfigError):
            parse_encryption_key(value)

    def test_generated_key_is_valid(self):
        key = generate_encryption_key()
        assert len(key) == 64
        assert len(parse_encryption_key(key)) == 32


class TestSecurityConfig:

    def test_derived_signing_key_differs_from_data_key(self):
        config = SecurityConfig.from_settings(make_settings())
        assert config.encryption_key == bytes.fromhex(TEST_KEY_HEX)
        assert config.signing_key != config.encryption_key
        assert config.signing_key == derive_signing_key(config.encryption_key)

    def test_explicit_session_secret(self):
        config = SecurityConfig.from_settings(make_settings(session_secret="another-secret"))
        assert config.signing_key == b"another-secret"

    def test_session_secret_equal_to_key_rejected(self):
        with pytest.raises(ConfigError):
            SecurityConfig.from_settings(make_settings(session_secret=TEST_KEY_HEX))

    def test_secure_cookies_outside_development(self):
        assert not SecurityConfig.from_settings(make_settings()).secure_cookies
        assert SecurityConfig.from_settings(make_settings(environment="production")).secure_cookies

    def test_repr_hides_keys(self):
        config = SecurityConfig.from_settings(make_settings())
        assert TEST_KEY_HEX not in repr(config)


class TestStartup:

    def test_missing_key_refuses_to_start(self):
        with pytest.raises(ConfigError):
            create_app(make_settings(encryption_key=None))

    def test_short_key_refuses_to_start(self):
        with pytest.raises(ConfigError):
            create_app(make_settings(encryption_key="00" * 16))
