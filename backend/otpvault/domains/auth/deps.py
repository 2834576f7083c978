"""
Auth Dependencies - 依赖注入函数

The gate middleware verifies the cookie once per request; these
dependencies hand the resulting claims to route handlers as parameters.
"""
from fastapi import Depends, Request, Response
from typing import Optional
import logging

from otpvault.common.errors import Forbidden, Unauthorized
from .session import SessionClaims, SessionToken

logger = logging.getLogger(__name__)

# Cookie name for the session token
SESSION_COOKIE_NAME = "session"


def set_session_cookie(response: Response, token: SessionToken, secure: bool) -> None:
    max_age = int((token.expires_at - token.issued_at).total_seconds())
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token.value,
        max_age=max_age,
        expires=token.expires_at,
        path="/",
        httponly=True,
        samesite="lax",
        secure=secure,
    )


def clear_session_cookie(response: Response, secure: bool) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=secure,
    )


async def get_session_optional(request: Request) -> Optional[SessionClaims]:
    """获取当前会话（可选，未登录返回None）"""
    return getattr(request.state, "session", None)


async def require_session(
    claims: Optional[SessionClaims] = Depends(get_session_optional)
) -> SessionClaims:
    """获取当前会话（必须登录，未登录返回401）"""
    if claims is None:
        raise Unauthorized()
    return claims


async def require_superadmin(
    claims: SessionClaims = Depends(require_session)
) -> SessionClaims:
    """超级管理员权限（否则返回403）"""
    if not claims.is_superadmin:
        raise Forbidden()
    return claims
