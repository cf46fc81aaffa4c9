from datetime import UTC, datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from collection_service.domain.models import (
    CardDetails,
    Currency,
    Transaction,
    TransactionStatus,
    TransactionType,
    VirtualAccountDetails,
)
from collection_service.infrastructure.database import remote_call


_COLUMNS = """
    id, reference, merchant_id, amount, currency, status, tx_type,
    payment_method_id, description, customer_name, customer_email,
    customer_phone_number, fee_rate, fee_amount, total_amount,
    card_last_four, card_holder_name, card_expiry,
    customer_account_name, customer_account_number, customer_bank_code,
    settled_at, created_at, updated_at
"""


def _to_transaction(row: Any) -> Transaction:
    tx_type = TransactionType(row.tx_type) if row.tx_type else None
    details: CardDetails | VirtualAccountDetails | None = None
    if tx_type is TransactionType.CARD:
        details = CardDetails(
            last_four=row.card_last_four,
            holder_name=row.card_holder_name,
            expiry=row.card_expiry,
        )
    elif tx_type is TransactionType.VIRTUAL_ACCOUNT:
        details = VirtualAccountDetails(
            account_name=row.customer_account_name,
            account_number=row.customer_account_number,
            bank_code=row.customer_bank_code,
        )

    return Transaction(
        id=row.id,
        reference=row.reference,
        merchant_id=row.merchant_id,
        amount=row.amount,
        currency=Currency(row.currency),
        status=TransactionStatus(row.status),
        tx_type=tx_type,
        payment_method_id=row.payment_method_id,
        description=row.description,
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        customer_phone_number=row.customer_phone_number,
        fee_rate=row.fee_rate,
        fee_amount=row.fee_amount,
        total_amount=row.total_amount,
        details=details,
        settled_at=row.settled_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _detail_columns(transaction: Transaction) -> dict[str, str | None]:
    columns: dict[str, str | None] = {
        "card_last_four": None,
        "card_holder_name": None,
        "card_expiry": None,
        "customer_account_name": None,
        "customer_account_number": None,
        "customer_bank_code": None,
    }
    match transaction.details:
        case CardDetails(last_four=last_four, holder_name=holder_name, expiry=expiry):
            columns.update(
                card_last_four=last_four,
                card_holder_name=holder_name,
                card_expiry=expiry,
            )
        case VirtualAccountDetails(account_name=name, account_number=number, bank_code=bank_code):
            columns.update(
                customer_account_name=name,
                customer_account_number=number,
                customer_bank_code=bank_code,
            )
    return columns


class TransactionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @remote_call("transaction_read")
    async def get(self, transaction_id: str) -> Transaction | None:
        result = await self._session.execute(
            text(f"SELECT {_COLUMNS} FROM transactions WHERE id = :id"),
            {"id": transaction_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return _to_transaction(row)

    @remote_call("transaction_read")
    async def get_for_update(self, transaction_id: str) -> Transaction | None:
        result = await self._session.execute(
            text(f"SELECT {_COLUMNS} FROM transactions WHERE id = :id FOR UPDATE"),
            {"id": transaction_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return _to_transaction(row)

    @remote_call("transaction_list")
    async def list_paginated(
        self,
        merchant_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        params: dict[str, Any] = {"merchant_id": merchant_id, "limit": limit, "offset": offset}
        result = await self._session.execute(
            text(f"""
                SELECT {_COLUMNS}
                FROM transactions
                WHERE (CAST(:merchant_id AS VARCHAR) IS NULL OR merchant_id = :merchant_id)
                ORDER BY created_at DESC
                LIMIT :limit OFFSET :offset
            """),
            params,
        )
        transactions = [_to_transaction(row) for row in result.fetchall()]

        count_result = await self._session.execute(
            text("""
                SELECT COUNT(*) FROM transactions
                WHERE (CAST(:merchant_id AS VARCHAR) IS NULL OR merchant_id = :merchant_id)
            """),
            {"merchant_id": merchant_id},
        )
        return transactions, int(count_result.scalar_one())

    @remote_call("transaction_insert")
    async def add(self, transaction: Transaction) -> None:
        await self._session.execute(
            text("""
                INSERT INTO transactions
                    (id, reference, merchant_id, amount, currency, status,
                     description, created_at, updated_at)
                VALUES
                    (:id, :reference, :merchant_id, :amount, :currency, :status,
                     :description, :created_at, :updated_at)
            """),
            {
                "id": transaction.id,
                "reference": transaction.reference,
                "merchant_id": transaction.merchant_id,
                "amount": transaction.amount,
                "currency": transaction.currency.value,
                "status": transaction.status.value,
                "description": transaction.description,
                "created_at": transaction.created_at,
                "updated_at": transaction.updated_at,
            },
        )

    @remote_call("transaction_update")
    async def save_capture(self, transaction: Transaction) -> None:
        """Persist the payment details and financial fields set by a capture."""
        await self._session.execute(
            text("""
                UPDATE transactions
                SET status = :status,
                    tx_type = :tx_type,
                    payment_method_id = :payment_method_id,
                    description = :description,
                    customer_name = :customer_name,
                    customer_email = :customer_email,
                    customer_phone_number = :customer_phone_number,
                    fee_rate = :fee_rate,
                    fee_amount = :fee_amount,
                    total_amount = :total_amount,
                    card_last_four = :card_last_four,
                    card_holder_name = :card_holder_name,
                    card_expiry = :card_expiry,
                    customer_account_name = :customer_account_name,
                    customer_account_number = :customer_account_number,
                    customer_bank_code = :customer_bank_code,
                    settled_at = :settled_at,
                    updated_at = :updated_at
                WHERE id = :id
            """),
            {
                "id": transaction.id,
                "status": transaction.status.value,
                "tx_type": transaction.tx_type.value if transaction.tx_type else None,
                "payment_method_id": transaction.payment_method_id,
                "description": transaction.description,
                "customer_name": transaction.customer_name,
                "customer_email": transaction.customer_email,
                "customer_phone_number": transaction.customer_phone_number,
                "fee_rate": transaction.fee_rate,
                "fee_amount": transaction.fee_amount,
                "total_amount": transaction.total_amount,
                "settled_at": transaction.settled_at,
                "updated_at": datetime.now(UTC),
                **_detail_columns(transaction),
            },
        )

    @remote_call("transaction_update")
    async def mark_settled(self, transaction_id: str, settled_at: datetime) -> None:
        await self._session.execute(
            text("""
                UPDATE transactions
                SET status = :status,
                    settled_at = :settled_at,
                    updated_at = :updated_at
                WHERE id = :id
            """),
            {
                "id": transaction_id,
                "status": TransactionStatus.SUCCESS.value,
                "settled_at": settled_at,
                "updated_at": datetime.now(UTC),
            },
        )
