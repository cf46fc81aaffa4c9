from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from collection_service.domain.models import Currency, FeeType, PaymentMethod
from collection_service.infrastructure.database import remote_call


_COLUMNS = """
    id, name, fee_type, fee_rate, fee_amount, minimum_amount,
    maximum_amount, allowed_currencies, available
"""


def _to_payment_method(row: Any) -> PaymentMethod:
    return PaymentMethod(
        id=row.id,
        name=row.name,
        fee_type=FeeType(row.fee_type) if row.fee_type else None,
        fee_rate=row.fee_rate if row.fee_rate is not None else Decimal("0"),
        fee_amount=row.fee_amount if row.fee_amount is not None else Decimal("0"),
        minimum_amount=row.minimum_amount,
        maximum_amount=row.maximum_amount,
        allowed_currencies=frozenset(Currency(c) for c in row.allowed_currencies or []),
        available=row.available,
    )


class PaymentMethodRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @remote_call("payment_method_read")
    async def get(self, method_id: str) -> PaymentMethod | None:
        result = await self._session.execute(
            text(f"SELECT {_COLUMNS} FROM payment_methods WHERE id = :id"),
            {"id": method_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return _to_payment_method(row)

    @remote_call("payment_method_list")
    async def list_available(self, currency: Currency) -> list[PaymentMethod]:
        result = await self._session.execute(
            text(f"""
                SELECT {_COLUMNS}
                FROM payment_methods
                WHERE available AND :currency = ANY(allowed_currencies)
                ORDER BY name
            """),
            {"currency": currency.value},
        )
        return [_to_payment_method(row) for row in result.fetchall()]
