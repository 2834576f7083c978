"""
Access Gate - 按路径分类决定放行 / 重定向 / 拒绝

Evaluated exactly once per inbound request. Pure decision logic: the HTTP
translation lives in ``middleware.py``.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from otpvault.common.errors import AccessError, Forbidden, SessionError, Unauthorized
from .session import SessionClaims, SessionCodec

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
REGISTER_PATH = "/register"
LANDING_PATH = "/"
API_PREFIX = "/api/"
AUTH_API_PREFIX = "/api/auth"
SETTINGS_API_PATH = "/api/settings"
STATIC_PREFIX = "/static/"

PUBLIC_PAGES = frozenset({LOGIN_PATH, REGISTER_PATH})
ADMIN_PREFIXES = ("/admin", "/api/users")


class RequestClass(str, Enum):
    PUBLIC = "public"
    AUTHENTICATED_ONLY = "authenticated_only"
    ADMIN_ONLY = "admin_only"


class GateAction(str, Enum):
    ALLOW = "allow"
    REDIRECT = "redirect"
    DENY = "deny"


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    status_code: int = 200
    location: Optional[str] = None
    error: Optional[AccessError] = None
    claims: Optional[SessionClaims] = None

    @property
    def allowed(self) -> bool:
        return self.action is GateAction.ALLOW


def _normalize(path: str) -> str:
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def is_api_path(path: str) -> bool:
    return path.startswith(API_PREFIX)


def is_static_asset(path: str) -> bool:
    return path.startswith(STATIC_PREFIX) or "favicon" in path


def classify(path: str, method: str = "GET") -> RequestClass:
    """Map a request path + method onto its access class."""
    path = _normalize(path)
    method = method.upper()

    if path in PUBLIC_PAGES:
        return RequestClass.PUBLIC
    if path == SETTINGS_API_PATH:
        # Reading the registration flag is public; changing settings is admin-only
        return RequestClass.PUBLIC if method in ("GET", "HEAD") else RequestClass.ADMIN_ONLY
    if any(_under(path, prefix) for prefix in ADMIN_PREFIXES):
        return RequestClass.ADMIN_ONLY
    return RequestClass.AUTHENTICATED_ONLY


class AccessGate:
    """Decision table over (request class, session validity, role)."""

    def __init__(self, codec: SessionCodec):
        self.codec = codec

    def resolve_session(self, cookie: Optional[str], now: Optional[datetime] = None) -> Optional[SessionClaims]:
        """A missing cookie and a rejected token both mean "no session"."""
        if not cookie:
            return None
        try:
            return self.codec.verify(cookie, now)
        except SessionError as e:
            logger.debug(f"Session rejected ({type(e).__name__}): {e}")
            return None

    def evaluate(
        self,
        path: str,
        method: str = "GET",
        cookie: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> GateDecision:
        path = _normalize(path)
        request_class = classify(path, method)
        claims = self.resolve_session(cookie, now)

        if request_class is RequestClass.PUBLIC:
            if claims is not None and path in PUBLIC_PAGES:
                return GateDecision(GateAction.REDIRECT, status_code=303, location=LANDING_PATH)
            return GateDecision(GateAction.ALLOW, claims=claims)

        if claims is None:
            if is_api_path(path) and not _under(path, AUTH_API_PREFIX):
                return GateDecision(GateAction.DENY, status_code=401, error=Unauthorized())
            if not is_api_path(path) and not is_static_asset(path):
                return GateDecision(GateAction.REDIRECT, status_code=303, location=LOGIN_PATH)

        if request_class is RequestClass.ADMIN_ONLY and (claims is None or not claims.is_superadmin):
            return GateDecision(GateAction.DENY, status_code=403, error=Forbidden())

        return GateDecision(GateAction.ALLOW, claims=claims)
