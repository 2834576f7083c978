"""
Admin API - 用户管理 (superadmin) 与系统设置
"""
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from otpvault.common.database import get_db_session
from otpvault.domains.auth.deps import get_session_optional, require_superadmin
from otpvault.domains.auth.session import SessionClaims
from .schemas import SettingsUpdate, UserCreate, UserResponse, UserUpdate
from .service import SettingsService, UserService

logger = logging.getLogger(__name__)

users_router = APIRouter()
settings_router = APIRouter()


def get_user_service(request: Request) -> UserService:
    settings = request.app.state.settings
    return UserService(
        bcrypt_rounds=settings.bcrypt_rounds,
        password_min_length=settings.password_min_length,
    )


def get_settings_service(request: Request) -> SettingsService:
    return SettingsService(request.app.state.settings.registration_enabled_default)


# =============================================================================
# Users
# =============================================================================

@users_router.get("", response_model=List[UserResponse])
async def list_users(
    _admin: SessionClaims = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """列出所有用户"""
    return await service.list_users(session)


@users_router.post("", response_model=UserResponse)
async def create_user(
    data: UserCreate,
    _admin: SessionClaims = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """创建用户"""
    return await service.admin_create_user(session, data)


@users_router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    _admin: SessionClaims = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    return await service.get_user(session, user_id)


@users_router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    _admin: SessionClaims = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    return await service.update_user(session, user_id, data)


@users_router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    admin: SessionClaims = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
    service: UserService = Depends(get_user_service),
):
    """删除用户及其所有账户"""
    if user_id == admin.subject_id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account from admin panel")
    await service.delete_user(session, user_id)
    return {"success": True}


# =============================================================================
# Settings
# =============================================================================

@settings_router.get("")
async def get_settings(
    claims: Optional[SessionClaims] = Depends(get_session_optional),
    session: AsyncSession = Depends(get_db_session),
    service: SettingsService = Depends(get_settings_service),
):
    """公开读取 registration_enabled；超级管理员可见全部设置"""
    include_all = claims is not None and claims.is_superadmin
    return await service.get_settings(session, include_all=include_all)


@settings_router.post("")
async def update_settings(
    data: SettingsUpdate,
    _admin: SessionClaims = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
    service: SettingsService = Depends(get_settings_service),
):
    if data.registration_enabled is not None:
        await service.set_registration_enabled(session, data.registration_enabled)
    return {"success": True}
