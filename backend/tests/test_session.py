"""Tests for the session codec - issue/verify, expiry, tampering, malformed input."""

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from jose import jws, jwt

from otpvault.common.errors import Expired, InvalidSignature, Malformed, SessionError
from otpvault.domains.auth.session import Role, SessionClaims, SessionCodec, SessionToken

SIGNING_KEY = b"test-signing-key-0123456789abcdef"
NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _swap_char(segment: str, index: int) -> str:
    ch = segment[index]
    replacement = "A" if ch != "A" else "B"
    return segment[:index] + replacement + segment[index + 1:]


@pytest.fixture
def codec() -> SessionCodec:
    return SessionCodec(SIGNING_KEY)


class TestIssue:

    def test_token_shape(self, codec):
        token = codec.issue("user-1", Role.USER, NOW)
        assert isinstance(token, SessionToken)
        assert token.value.count(".") == 2
        assert token.issued_at == NOW
        assert token.expires_at == NOW + timedelta(hours=24)

    def test_claims_payload(self, codec):
        token = codec.issue("user-1", "superadmin", NOW)
        claims = jwt.get_unverified_claims(token.value)
        assert claims["sub"] == "user-1"
        assert claims["role"] == "superadmin"
        assert claims["iat"] == int(NOW.timestamp())
        assert claims["exp"] == int(NOW.timestamp()) + 86400

    def test_unknown_role_rejected(self, codec):
        with pytest.raises(ValueError):
            codec.issue("user-1", "root", NOW)


class TestVerify:

    @pytest.mark.parametrize("role", [Role.USER, Role.SUPERADMIN])
    def test_round_trip(self, codec, role):
        token = codec.issue("user-42", role, NOW)
        claims = codec.verify(token.value, NOW + timedelta(seconds=1))
        assert isinstance(claims, SessionClaims)
        assert claims.subject_id == "user-42"
        assert claims.role is role
        assert claims.expires_at == NOW + timedelta(hours=24)

    def test_just_before_expiry(self, codec):
        token = codec.issue("u", Role.USER, NOW)
        codec.verify(token.value, NOW + timedelta(hours=24) - timedelta(seconds=1))

    def test_expired(self, codec):
        token = codec.issue("u", Role.USER, NOW)
        with pytest.raises(Expired):
            codec.verify(token.value, NOW + timedelta(hours=24, seconds=1))

    def test_expired_exactly_at_exp(self, codec):
        token = codec.issue("u", Role.USER, NOW)
        with pytest.raises(Expired):
            codec.verify(token.value, NOW + timedelta(hours=24))

    def test_naive_now_is_treated_as_utc(self, codec):
        token = codec.issue("u", Role.USER, NOW)
        claims = codec.verify(token.value, NOW.replace(tzinfo=None) + timedelta(minutes=5))
        assert claims.subject_id == "u"

    def test_other_key_rejected(self, codec):
        token = codec.issue("u", Role.USER, NOW)
        with pytest.raises(InvalidSignature):
            SessionCodec(b"a-different-signing-key").verify(token.value, NOW)

    @pytest.mark.parametrize("secret", [b'{"keys": []}', b'["a", "b"]', b"12345"])
    def test_json_looking_secret_is_used_as_raw_key(self, secret):
        codec = SessionCodec(secret)
        token = codec.issue("u", Role.USER, NOW)
        assert codec.verify(token.value, NOW).subject_id == "u"


class TestTampering:

    @pytest.mark.parametrize("index", [0, 5, 10, -3, -1])
    def test_altered_payload_byte(self, codec, index):
        header, payload, signature = codec.issue("user-1", Role.USER, NOW).value.split(".")
        tampered = f"{header}.{_swap_char(payload, index)}.{signature}"
        with pytest.raises(InvalidSignature):
            codec.verify(tampered, NOW)

    def test_role_escalation(self, codec):
        header, payload, signature = codec.issue("user-1", Role.USER, NOW).value.split(".")
        forged = _b64({"sub": "user-1", "role": "superadmin",
                       "iat": int(NOW.timestamp()), "exp": int(NOW.timestamp()) + 86400})
        with pytest.raises(InvalidSignature):
            codec.verify(f"{header}.{forged}.{signature}", NOW)

    def test_alg_none(self, codec):
        _, payload, _ = codec.issue("user-1", Role.USER, NOW).value.split(".")
        header = _b64({"alg": "none", "typ": "JWT"})
        with pytest.raises(InvalidSignature):
            codec.verify(f"{header}.{payload}.c2ln", NOW)

    def test_altered_signature(self, codec):
        header, payload, signature = codec.issue("user-1", Role.USER, NOW).value.split(".")
        with pytest.raises(InvalidSignature):
            codec.verify(f"{header}.{payload}.{_swap_char(signature, 0)}", NOW)

    def test_foreign_hmac_algorithm(self, codec):
        ts = int(NOW.timestamp())
        token = jwt.encode({"sub": "u", "role": "superadmin", "iat": ts, "exp": ts + 60},
                           SIGNING_KEY, algorithm="HS512")
        with pytest.raises(InvalidSignature):
            codec.verify(token, NOW)

    def test_payload_swapped_from_other_token(self, codec):
        header, _, signature = codec.issue("user-1", Role.USER, NOW).value.split(".")
        _, other_payload, _ = codec.issue("admin-1", Role.SUPERADMIN, NOW).value.split(".")
        with pytest.raises(InvalidSignature):
            codec.verify(f"{header}.{other_payload}.{signature}", NOW)


class TestMalformed:

    @pytest.mark.parametrize("token", [
        "",
        "abc",
        "a.b",
        "a.b.c.d",
        "..",
        "!!!.payload.sig",
        f"{_b64({'alg': 'HS256'})[:-1]}%.x.y",
    ])
    def test_structurally_invalid(self, codec, token):
        with pytest.raises(Malformed):
            codec.verify(token, NOW)

    def test_header_not_an_object(self, codec):
        header = base64.urlsafe_b64encode(b"[1,2]").rstrip(b"=").decode()
        with pytest.raises(Malformed):
            codec.verify(f"{header}.e30.c2ln", NOW)

    def test_signed_but_missing_claims(self, codec):
        token = jwt.encode({"sub": "u"}, SIGNING_KEY, algorithm="HS256")
        with pytest.raises(Malformed):
            codec.verify(token, NOW)

    def test_signed_but_unknown_role(self, codec):
        ts = int(NOW.timestamp())
        token = jwt.encode({"sub": "u", "role": "root", "iat": ts, "exp": ts + 60},
                           SIGNING_KEY, algorithm="HS256")
        with pytest.raises(Malformed):
            codec.verify(token, NOW)

    @pytest.mark.parametrize("payload", [b"not json", b"[1,2]"])
    def test_signed_payload_not_an_object(self, codec, payload):
        token = jws.sign(payload, SIGNING_KEY, algorithm="HS256")
        with pytest.raises(Malformed):
            codec.verify(token, NOW)

    def test_all_failures_are_session_errors(self):
        assert issubclass(Malformed, SessionError)
        assert issubclass(InvalidSignature, SessionError)
        assert issubclass(Expired, SessionError)
