"""Merchant balance rows.

Every mutation is a single conditional `UPDATE ... RETURNING`, so concurrent
requests against the same (merchant_id, currency) row serialize inside the
database and never lose an update. No row returned means the row is missing
or the guard on the balance column rejected the change.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from collection_service.domain.models import Currency, MerchantBalance
from collection_service.infrastructure.database import remote_call


_RETURNING = """
    RETURNING merchant_id, currency, available_balance,
              pending_settlement_balance, updated_at
"""

_CREDIT_AVAILABLE_SQL = text(f"""
    UPDATE merchant_balances
    SET available_balance = available_balance + :amount,
        updated_at = :updated_at
    WHERE merchant_id = :merchant_id AND currency = :currency
    {_RETURNING}
""")

_CREDIT_PENDING_SQL = text(f"""
    UPDATE merchant_balances
    SET pending_settlement_balance = pending_settlement_balance + :amount,
        updated_at = :updated_at
    WHERE merchant_id = :merchant_id AND currency = :currency
    {_RETURNING}
""")

_RELEASE_PENDING_SQL = text(f"""
    UPDATE merchant_balances
    SET available_balance = available_balance + :amount,
        pending_settlement_balance = pending_settlement_balance - :amount,
        updated_at = :updated_at
    WHERE merchant_id = :merchant_id AND currency = :currency
      AND pending_settlement_balance >= :amount
    {_RETURNING}
""")

_DEBIT_AVAILABLE_SQL = text(f"""
    UPDATE merchant_balances
    SET available_balance = available_balance - :amount,
        updated_at = :updated_at
    WHERE merchant_id = :merchant_id AND currency = :currency
      AND available_balance >= :amount
    {_RETURNING}
""")


def _to_balance(row: Any) -> MerchantBalance:
    return MerchantBalance(
        merchant_id=row.merchant_id,
        currency=Currency(row.currency),
        available_balance=row.available_balance,
        pending_settlement_balance=row.pending_settlement_balance,
        updated_at=row.updated_at,
    )


class BalanceRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @remote_call("balance_read")
    async def get(self, merchant_id: str, currency: Currency) -> MerchantBalance | None:
        result = await self._session.execute(
            text("""
                SELECT merchant_id, currency, available_balance,
                       pending_settlement_balance, updated_at
                FROM merchant_balances
                WHERE merchant_id = :merchant_id AND currency = :currency
            """),
            {"merchant_id": merchant_id, "currency": currency.value},
        )
        row = result.fetchone()
        if not row:
            return None
        return _to_balance(row)

    @remote_call("balance_list")
    async def list_for_merchant(self, merchant_id: str) -> list[MerchantBalance]:
        result = await self._session.execute(
            text("""
                SELECT merchant_id, currency, available_balance,
                       pending_settlement_balance, updated_at
                FROM merchant_balances
                WHERE merchant_id = :merchant_id
                ORDER BY currency
            """),
            {"merchant_id": merchant_id},
        )
        return [_to_balance(row) for row in result.fetchall()]

    @remote_call("balance_insert")
    async def add(self, balance: MerchantBalance) -> None:
        await self._session.execute(
            text("""
                INSERT INTO merchant_balances
                    (merchant_id, currency, available_balance,
                     pending_settlement_balance, updated_at)
                VALUES
                    (:merchant_id, :currency, :available_balance,
                     :pending_settlement_balance, :updated_at)
            """),
            {
                "merchant_id": balance.merchant_id,
                "currency": balance.currency.value,
                "available_balance": balance.available_balance,
                "pending_settlement_balance": balance.pending_settlement_balance,
                "updated_at": balance.updated_at,
            },
        )

    @remote_call("balance_credit_available")
    async def credit_available(
        self, merchant_id: str, currency: Currency, amount: Decimal
    ) -> MerchantBalance | None:
        return await self._mutate(_CREDIT_AVAILABLE_SQL, merchant_id, currency, amount)

    @remote_call("balance_credit_pending")
    async def credit_pending(
        self, merchant_id: str, currency: Currency, amount: Decimal
    ) -> MerchantBalance | None:
        return await self._mutate(_CREDIT_PENDING_SQL, merchant_id, currency, amount)

    @remote_call("balance_release_pending")
    async def release_pending(
        self, merchant_id: str, currency: Currency, amount: Decimal
    ) -> MerchantBalance | None:
        return await self._mutate(_RELEASE_PENDING_SQL, merchant_id, currency, amount)

    @remote_call("balance_debit_available")
    async def debit_available(
        self, merchant_id: str, currency: Currency, amount: Decimal
    ) -> MerchantBalance | None:
        return await self._mutate(_DEBIT_AVAILABLE_SQL, merchant_id, currency, amount)

    async def _mutate(
        self,
        statement: Any,
        merchant_id: str,
        currency: Currency,
        amount: Decimal,
    ) -> MerchantBalance | None:
        result = await self._session.execute(
            statement,
            {
                "merchant_id": merchant_id,
                "currency": currency.value,
                "amount": amount,
                "updated_at": datetime.now(UTC),
            },
        )
        row = result.fetchone()
        if not row:
            return None
        return _to_balance(row)
