from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from collection_service.domain.models import Currency, Payout, PayoutDestination, PayoutStatus
from collection_service.infrastructure.database import remote_call


_COLUMNS = """
    id, reference, merchant_id, amount, currency, status,
    account_name, account_number, bank_code, bank_name,
    created_at, updated_at
"""


def _to_payout(row: Any) -> Payout:
    return Payout(
        id=row.id,
        reference=row.reference,
        merchant_id=row.merchant_id,
        amount=row.amount,
        currency=Currency(row.currency),
        status=PayoutStatus(row.status),
        destination=PayoutDestination(
            account_name=row.account_name,
            account_number=row.account_number,
            bank_code=row.bank_code,
            bank_name=row.bank_name,
        ),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class PayoutRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @remote_call("payout_read")
    async def get(self, payout_id: str) -> Payout | None:
        result = await self._session.execute(
            text(f"SELECT {_COLUMNS} FROM payouts WHERE id = :id"),
            {"id": payout_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return _to_payout(row)

    @remote_call("payout_list")
    async def list_paginated(
        self,
        merchant_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Payout], int]:
        result = await self._session.execute(
            text(f"""
                SELECT {_COLUMNS}
                FROM payouts
                WHERE (CAST(:merchant_id AS VARCHAR) IS NULL OR merchant_id = :merchant_id)
                ORDER BY created_at DESC
                LIMIT :limit OFFSET :offset
            """),
            {"merchant_id": merchant_id, "limit": limit, "offset": offset},
        )
        payouts = [_to_payout(row) for row in result.fetchall()]

        count_result = await self._session.execute(
            text("""
                SELECT COUNT(*) FROM payouts
                WHERE (CAST(:merchant_id AS VARCHAR) IS NULL OR merchant_id = :merchant_id)
            """),
            {"merchant_id": merchant_id},
        )
        return payouts, int(count_result.scalar_one())

    @remote_call("payout_insert")
    async def add(self, payout: Payout) -> None:
        await self._session.execute(
            text("""
                INSERT INTO payouts
                    (id, reference, merchant_id, amount, currency, status,
                     account_name, account_number, bank_code, bank_name,
                     created_at, updated_at)
                VALUES
                    (:id, :reference, :merchant_id, :amount, :currency, :status,
                     :account_name, :account_number, :bank_code, :bank_name,
                     :created_at, :updated_at)
            """),
            {
                "id": payout.id,
                "reference": payout.reference,
                "merchant_id": payout.merchant_id,
                "amount": payout.amount,
                "currency": payout.currency.value,
                "status": payout.status.value,
                "account_name": payout.destination.account_name,
                "account_number": payout.destination.account_number,
                "bank_code": payout.destination.bank_code,
                "bank_name": payout.destination.bank_name,
                "created_at": payout.created_at,
                "updated_at": payout.updated_at,
            },
        )
