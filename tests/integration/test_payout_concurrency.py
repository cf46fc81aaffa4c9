"""Concurrent payouts against one balance row in PostgreSQL."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import text

from collection_service.application import (
    AuditRecorder,
    PayoutService,
    RequestPayoutCommand,
    UnitOfWork,
)
from collection_service.domain.exceptions import InsufficientFundsError
from collection_service.domain.models import Currency, Payout, PayoutDestination
from collection_service.infrastructure.database import Database
from tests.integration.conftest import register_merchant, set_available_balance


pytestmark = pytest.mark.integration


DESTINATION = PayoutDestination(
    account_name="Ada Obi",
    account_number="0123456789",
    bank_code="058",
    bank_name="GTB",
)


async def request_payout(database: Database, audit: AuditRecorder, merchant_id: str, amount: Decimal) -> Payout:
    """One request, one session: the way the HTTP layer runs it."""
    async with database.session() as session:
        service = PayoutService(UnitOfWork(session), audit)
        return await service.request_payout(
            RequestPayoutCommand(
                merchant_id=merchant_id,
                amount=amount,
                currency=Currency.NGN,
                destination=DESTINATION,
            )
        )


async def available_balance(database: Database, merchant_id: str) -> Decimal:
    async with database.session() as session:
        result = await session.execute(
            text("SELECT available_balance FROM merchant_balances WHERE merchant_id = :m AND currency = 'NGN'"),
            {"m": merchant_id},
        )
        return result.scalar_one()


async def payout_count(database: Database, merchant_id: str) -> int:
    async with database.session() as session:
        result = await session.execute(
            text("SELECT count(*) FROM payouts WHERE merchant_id = :m"),
            {"m": merchant_id},
        )
        return result.scalar_one()


class TestConcurrentPayouts:
    @pytest.mark.parametrize(
        ("balance", "amount", "attempts"),
        [
            ("10000", "3000", 10),
            ("10000", "5000", 6),
            ("4500", "1500", 8),
        ],
    )
    async def test_balance_never_goes_negative(
        self,
        database: Database,
        audit: AuditRecorder,
        balance: str,
        amount: str,
        attempts: int,
    ) -> None:
        """Exactly floor(balance / amount) payouts succeed, whatever the interleaving."""
        registered = await register_merchant(database)
        merchant_id = registered.merchant.id
        await set_available_balance(database, merchant_id, Currency.NGN, Decimal(balance))

        results = await asyncio.gather(
            *(request_payout(database, audit, merchant_id, Decimal(amount)) for _ in range(attempts)),
            return_exceptions=True,
        )

        succeeded = [r for r in results if isinstance(r, Payout)]
        failed = [r for r in results if not isinstance(r, Payout)]
        expected = int(Decimal(balance) // Decimal(amount))
        assert len(succeeded) == expected
        assert all(isinstance(e, InsufficientFundsError) for e in failed)
        assert await available_balance(database, merchant_id) == Decimal(balance) - expected * Decimal(amount)
        assert await payout_count(database, merchant_id) == expected

    async def test_sequential_payout_scenario(self, database: Database, audit: AuditRecorder) -> None:
        registered = await register_merchant(database, first_name="Bola")
        merchant_id = registered.merchant.id
        await set_available_balance(database, merchant_id, Currency.NGN, Decimal("10000"))

        await request_payout(database, audit, merchant_id, Decimal("5000"))
        await request_payout(database, audit, merchant_id, Decimal("5000"))
        with pytest.raises(InsufficientFundsError):
            await request_payout(database, audit, merchant_id, Decimal("5000"))

        assert await available_balance(database, merchant_id) == Decimal("0.00")
        assert await payout_count(database, merchant_id) == 2
