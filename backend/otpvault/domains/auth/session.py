"""
Session Token Utilities - 会话令牌签发与验证

Tokens are compact HS256 JWTs (header.payload.signature, base64url). The
server keeps no session state: a token is valid exactly when its signature
matches and ``exp`` is in the future.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from jose import jwk, jws, jwt
from jose.exceptions import JWSError, JWTError

from otpvault.common.errors import Expired, InvalidSignature, Malformed

logger = logging.getLogger(__name__)

# JWT Configuration
ALGORITHM = "HS256"
SESSION_TTL = timedelta(hours=24)


class Role(str, Enum):
    USER = "user"
    SUPERADMIN = "superadmin"


@dataclass(frozen=True)
class SessionToken:
    """A freshly issued token plus the instants the cookie needs."""

    value: str
    issued_at: datetime
    expires_at: datetime

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SessionClaims:
    subject_id: str
    role: Role
    issued_at: datetime
    expires_at: datetime

    @property
    def is_superadmin(self) -> bool:
        return self.role is Role.SUPERADMIN


def _utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _from_ts(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


class SessionCodec:
    """Signs and verifies session tokens with one symmetric key."""

    def __init__(self, signing_key: bytes, ttl: timedelta = SESSION_TTL):
        if not signing_key:
            raise ValueError("signing_key must not be empty")
        self._key = signing_key
        # Key object, not raw bytes: jws.verify JSON-parses raw keys
        self._verifier = jwk.construct(signing_key, ALGORITHM)
        self.ttl = ttl

    def __repr__(self) -> str:
        return f"<SessionCodec alg={ALGORITHM} ttl={self.ttl}>"

    def issue(
        self,
        subject_id: str,
        role: Union[Role, str],
        now: Optional[datetime] = None,
    ) -> SessionToken:
        """创建会话 token"""
        role = Role(role)
        issued = int(_utc(now).timestamp())
        expires = issued + int(self.ttl.total_seconds())

        claims = {
            "sub": str(subject_id),
            "role": role.value,
            "iat": issued,
            "exp": expires,
        }
        value = jwt.encode(claims, self._key, algorithm=ALGORITHM)
        return SessionToken(value=value, issued_at=_from_ts(issued), expires_at=_from_ts(expires))

    def verify(self, token: str, now: Optional[datetime] = None) -> SessionClaims:
        """
        验证 token 并返回 claims

        Raises:
            Malformed: token structure or claims are invalid
            InvalidSignature: signature does not match header+payload
            Expired: ``exp`` is not after ``now``
        """
        if not token or not isinstance(token, str):
            raise Malformed("Token is empty")

        segments = token.split(".")
        if len(segments) != 3 or not all(segments):
            raise Malformed("Token must have three non-empty segments")

        # Decodes all three segments; any structural defect surfaces here
        try:
            header = jws.get_unverified_header(token)
        except (JWSError, ValueError) as e:
            raise Malformed(f"Token header is invalid: {e}") from e
        if header.get("alg") != ALGORITHM:
            raise InvalidSignature(f"Unexpected token algorithm: {header.get('alg')!r}")

        # Claims are only read once the signature over header.payload holds
        try:
            jws.verify(token, self._verifier, algorithms=[ALGORITHM])
        except JWSError as e:
            raise InvalidSignature("Token signature verification failed") from e

        try:
            claims: Dict[str, Any] = jwt.get_unverified_claims(token)
        except JWTError as e:
            raise Malformed(f"Token payload is invalid: {e}") from e

        subject_id = claims.get("sub")
        issued = claims.get("iat")
        expires = claims.get("exp")
        if not isinstance(subject_id, str) or not subject_id:
            raise Malformed("Token has no subject")
        if not isinstance(issued, int) or not isinstance(expires, int):
            raise Malformed("Token timestamps must be integers")
        try:
            role = Role(claims.get("role"))
        except ValueError:
            raise Malformed(f"Token role {claims.get('role')!r} is not recognised")

        if expires <= _utc(now).timestamp():
            raise Expired("Session has expired")

        return SessionClaims(
            subject_id=subject_id,
            role=role,
            issued_at=_from_ts(issued),
            expires_at=_from_ts(expires),
        )
