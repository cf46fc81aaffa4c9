from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from collection_service.domain.models import (
    Currency,
    Merchant,
    MerchantKey,
    MerchantStatus,
    VirtualAccount,
)
from collection_service.infrastructure.database import remote_call


_MERCHANT_COLUMNS = """
    id, first_name, middle_name, last_name, email, phone_number, address,
    preferred_currency, status, created_at, updated_at
"""


def _to_merchant(row: Any) -> Merchant:
    return Merchant(
        id=row.id,
        first_name=row.first_name,
        middle_name=row.middle_name,
        last_name=row.last_name,
        email=row.email,
        phone_number=row.phone_number,
        address=row.address,
        preferred_currency=Currency(row.preferred_currency),
        status=MerchantStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class MerchantRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @remote_call("merchant_read")
    async def get(self, merchant_id: str) -> Merchant | None:
        result = await self._session.execute(
            text(f"SELECT {_MERCHANT_COLUMNS} FROM merchants WHERE id = :id"),
            {"id": merchant_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return _to_merchant(row)

    @remote_call("merchant_list")
    async def list_paginated(
        self,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Merchant], int]:
        pattern = f"%{search}%" if search else None
        result = await self._session.execute(
            text(f"""
                SELECT {_MERCHANT_COLUMNS}
                FROM merchants
                WHERE (CAST(:pattern AS VARCHAR) IS NULL OR first_name ILIKE :pattern)
                ORDER BY created_at DESC
                LIMIT :limit OFFSET :offset
            """),
            {"pattern": pattern, "limit": limit, "offset": offset},
        )
        merchants = [_to_merchant(row) for row in result.fetchall()]

        count_result = await self._session.execute(
            text("""
                SELECT COUNT(*) FROM merchants
                WHERE (CAST(:pattern AS VARCHAR) IS NULL OR first_name ILIKE :pattern)
            """),
            {"pattern": pattern},
        )
        return merchants, int(count_result.scalar_one())

    @remote_call("merchant_insert")
    async def add(self, merchant: Merchant) -> None:
        await self._session.execute(
            text("""
                INSERT INTO merchants
                    (id, first_name, middle_name, last_name, email, phone_number,
                     address, preferred_currency, status, created_at, updated_at)
                VALUES
                    (:id, :first_name, :middle_name, :last_name, :email, :phone_number,
                     :address, :preferred_currency, :status, :created_at, :updated_at)
            """),
            {
                "id": merchant.id,
                "first_name": merchant.first_name,
                "middle_name": merchant.middle_name,
                "last_name": merchant.last_name,
                "email": merchant.email,
                "phone_number": merchant.phone_number,
                "address": merchant.address,
                "preferred_currency": merchant.preferred_currency.value,
                "status": merchant.status.value,
                "created_at": merchant.created_at,
                "updated_at": merchant.updated_at,
            },
        )

    @remote_call("merchant_key_insert")
    async def add_key(self, key: MerchantKey) -> None:
        await self._session.execute(
            text("""
                INSERT INTO merchant_keys (merchant_id, public_key, secret_key_hash, active, created_at)
                VALUES (:merchant_id, :public_key, :secret_key_hash, :active, :created_at)
            """),
            {
                "merchant_id": key.merchant_id,
                "public_key": key.public_key,
                "secret_key_hash": key.secret_key_hash,
                "active": key.active,
                "created_at": key.created_at,
            },
        )

    @remote_call("merchant_key_read")
    async def get_key(self, public_key: str) -> MerchantKey | None:
        result = await self._session.execute(
            text("""
                SELECT merchant_id, public_key, secret_key_hash, active, created_at
                FROM merchant_keys
                WHERE public_key = :public_key
            """),
            {"public_key": public_key},
        )
        row = result.fetchone()
        if not row:
            return None
        return MerchantKey(
            merchant_id=row.merchant_id,
            public_key=row.public_key,
            secret_key_hash=row.secret_key_hash,
            active=row.active,
            created_at=row.created_at,
        )

    @remote_call("virtual_account_insert")
    async def add_virtual_account(self, account: VirtualAccount) -> None:
        await self._session.execute(
            text("""
                INSERT INTO virtual_accounts
                    (id, merchant_id, account_number, account_name, bank_code, bank_name, created_at)
                VALUES
                    (:id, :merchant_id, :account_number, :account_name, :bank_code, :bank_name, :created_at)
            """),
            {
                "id": account.id,
                "merchant_id": account.merchant_id,
                "account_number": account.account_number,
                "account_name": account.account_name,
                "bank_code": account.bank_code,
                "bank_name": account.bank_name,
                "created_at": account.created_at,
            },
        )

    @remote_call("virtual_account_read")
    async def get_virtual_account(self, merchant_id: str) -> VirtualAccount | None:
        result = await self._session.execute(
            text("""
                SELECT id, merchant_id, account_number, account_name, bank_code, bank_name, created_at
                FROM virtual_accounts
                WHERE merchant_id = :merchant_id
                ORDER BY created_at
                LIMIT 1
            """),
            {"merchant_id": merchant_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return VirtualAccount(
            id=row.id,
            merchant_id=row.merchant_id,
            account_number=row.account_number,
            account_name=row.account_name,
            bank_code=row.bank_code,
            bank_name=row.bank_name,
            created_at=row.created_at,
        )
