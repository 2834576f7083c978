"""
Vault service - 凭据的加密读写与 OTP 预览

Every secret field goes through the Cipher before persistence and after
retrieval; plaintext never reaches the database.
"""

import logging
import time
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from otpvault.common.encryption import Cipher
from otpvault.common.errors import InvalidSecret
from otpvault.domains.otp.totp import INVALID_CODE, TotpEngine, normalize_secret
from otpvault.domains.vault.models import Account
from otpvault.domains.vault.repository import AccountRepository
from otpvault.domains.vault.schemas import AccountCreate, AccountResponse, AccountUpdate, OtpResponse

logger = logging.getLogger(__name__)


class VaultService:

    def __init__(self, cipher: Cipher, totp: TotpEngine):
        self.cipher = cipher
        self.totp = totp
        self.repository = AccountRepository()

    def to_response(self, account: Account) -> AccountResponse:
        """Decrypt an entry. DecryptError propagates to the app-level handler."""
        return AccountResponse(
            id=account.id,
            service_name=account.service_name,
            username=account.username,
            password=self.cipher.decrypt(account.encrypted_password),
            otp_secret=self.cipher.decrypt(account.encrypted_otp_secret),
            created_at=account.created_at,
            updated_at=account.updated_at,
        )

    async def _get_owned(self, session: AsyncSession, owner_id: str, account_id: str) -> Account:
        account = await self.repository.get_for_owner(session, account_id, owner_id)
        if account is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
        return account

    async def list_accounts(self, session: AsyncSession, owner_id: str) -> List[AccountResponse]:
        accounts = await self.repository.list_for_owner(session, owner_id)
        return [self.to_response(a) for a in accounts]

    async def create_account(self, session: AsyncSession, owner_id: str, data: AccountCreate) -> AccountResponse:
        account = Account(
            owner_id=owner_id,
            service_name=data.service_name,
            username=data.username or "",
            encrypted_password=self.cipher.encrypt(data.password),
            encrypted_otp_secret=self.cipher.encrypt(normalize_secret(data.otp_secret)),
        )
        account = await self.repository.create(session, account)
        logger.info(f"Created account {account.id} for user {owner_id}")
        return self.to_response(account)

    async def update_account(
        self,
        session: AsyncSession,
        owner_id: str,
        account_id: str,
        data: AccountUpdate,
    ) -> AccountResponse:
        account = await self._get_owned(session, owner_id, account_id)

        account.service_name = data.service_name
        account.username = data.username or ""
        if "password" in data.model_fields_set:
            account.encrypted_password = self.cipher.encrypt(data.password or "")
        if "otp_secret" in data.model_fields_set:
            account.encrypted_otp_secret = self.cipher.encrypt(normalize_secret(data.otp_secret or ""))

        await session.flush()
        return self.to_response(account)

    async def delete_account(self, session: AsyncSession, owner_id: str, account_id: str) -> None:
        account = await self._get_owned(session, owner_id, account_id)
        await self.repository.delete(session, account)
        logger.info(f"Deleted account {account_id} for user {owner_id}")

    async def otp_preview(
        self,
        session: AsyncSession,
        owner_id: str,
        account_id: str,
        now: Optional[float] = None,
    ) -> OtpResponse:
        """Current/next codes for an entry; an undecodable secret shows as INVALID."""
        account = await self._get_owned(session, owner_id, account_id)
        secret = self.cipher.decrypt(account.encrypted_otp_secret)
        if not secret:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No secret key")

        if now is None:
            now = time.time()
        remaining = self.totp.seconds_remaining(now)
        try:
            snapshot = self.totp.snapshot(secret, now)
        except InvalidSecret as e:
            logger.warning(f"Account {account_id} has an invalid TOTP secret: {e}")
            return OtpResponse(
                current=INVALID_CODE,
                next=INVALID_CODE,
                seconds_remaining=remaining,
                period=self.totp.period,
            )

        return OtpResponse(
            current=snapshot.current,
            next=snapshot.next,
            seconds_remaining=snapshot.seconds_remaining,
            period=snapshot.period,
        )
