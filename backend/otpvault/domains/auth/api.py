"""
Auth API - 登录 / 登出 / 注册 / 账户自助管理
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from otpvault.common.database import get_db_session
from otpvault.domains.admin.api import get_settings_service, get_user_service
from otpvault.domains.admin.schemas import UserResponse
from otpvault.domains.admin.service import SettingsService, UserService
from .deps import clear_session_cookie, require_session, set_session_cookie
from .schemas import ChangePasswordRequest, DeleteAccountRequest, LoginRequest, RegisterRequest
from .session import SessionClaims

logger = logging.getLogger(__name__)

router = APIRouter()


def _secure_cookies(request: Request) -> bool:
    return request.app.state.security.secure_cookies


# =============================================================================
# Session Management
# =============================================================================

@router.post("/login")
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """邮箱密码登录，签发会话 cookie"""
    user = await service.authenticate(session, data.email, data.password)
    if user is None:
        logger.info("Login failed: invalid credentials")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = request.app.state.codec.issue(user.id, user.role)
    set_session_cookie(response, token, secure=_secure_cookies(request))
    logger.info(f"User {user.id} logged in")
    return {"success": True, "user": {"email": user.email, "role": user.role}}


@router.post("/logout")
async def logout(request: Request, response: Response):
    """用户登出"""
    clear_session_cookie(response, secure=_secure_cookies(request))
    return {"success": True}


@router.get("/me", response_model=UserResponse)
async def me(
    claims: SessionClaims = Depends(require_session),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """获取当前登录用户信息"""
    return await service.get_user(session, claims.subject_id)


# =============================================================================
# Registration & account self-service
# =============================================================================

@router.post("/register", response_model=UserResponse)
async def register(
    data: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
    settings_service: SettingsService = Depends(get_settings_service),
):
    """注册新用户 (role = user)"""
    if not await settings_service.registration_enabled(session):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Registration is currently disabled.")

    if data.password != data.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Passwords do not match")
    service.check_password_policy(data.password)

    return await service.create_user(session, data.email, data.password)


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    claims: SessionClaims = Depends(require_session),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    await service.change_password(
        session,
        claims.subject_id,
        data.current_password,
        data.new_password,
        data.confirm_password,
    )
    return {"success": True, "message": "Password updated successfully"}


@router.delete("/delete-account")
async def delete_account(
    data: DeleteAccountRequest,
    request: Request,
    response: Response,
    claims: SessionClaims = Depends(require_session),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """删除自己的账户（需验证密码），并清除会话"""
    user = await service.get_user(session, claims.subject_id)
    if not await service.authenticate(session, user.email, data.password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect password")

    await service.delete_user(session, claims.subject_id)
    clear_session_cookie(response, secure=_secure_cookies(request))
    return {"success": True, "message": "Account deleted successfully"}
