"""Vault API - 账户凭据 CRUD 与 OTP 预览"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from otpvault.common.database import get_db_session
from otpvault.domains.auth.deps import require_session
from otpvault.domains.auth.session import SessionClaims
from .schemas import AccountCreate, AccountResponse, AccountUpdate, OtpResponse
from .service import VaultService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_vault_service(request: Request) -> VaultService:
    return VaultService(request.app.state.cipher, request.app.state.totp)


@router.get("", response_model=List[AccountResponse])
async def list_accounts(
    claims: SessionClaims = Depends(require_session),
    session: AsyncSession = Depends(get_db_session),
    service: VaultService = Depends(get_vault_service),
):
    return await service.list_accounts(session, claims.subject_id)


@router.post("", response_model=AccountResponse)
async def create_account(
    data: AccountCreate,
    claims: SessionClaims = Depends(require_session),
    session: AsyncSession = Depends(get_db_session),
    service: VaultService = Depends(get_vault_service),
):
    return await service.create_account(session, claims.subject_id, data)


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: str,
    data: AccountUpdate,
    claims: SessionClaims = Depends(require_session),
    session: AsyncSession = Depends(get_db_session),
    service: VaultService = Depends(get_vault_service),
):
    return await service.update_account(session, claims.subject_id, account_id, data)


@router.delete("/{account_id}")
async def delete_account(
    account_id: str,
    claims: SessionClaims = Depends(require_session),
    session: AsyncSession = Depends(get_db_session),
    service: VaultService = Depends(get_vault_service),
):
    await service.delete_account(session, claims.subject_id, account_id)
    return {"success": True}


@router.get("/{account_id}/otp", response_model=OtpResponse)
async def get_otp(
    account_id: str,
    claims: SessionClaims = Depends(require_session),
    session: AsyncSession = Depends(get_db_session),
    service: VaultService = Depends(get_vault_service),
):
    """当前与下一个验证码 - 前端每秒轮询"""
    return await service.otp_preview(session, claims.subject_id, account_id)
