from dataclasses import dataclass
from decimal import Decimal

import structlog

from collection_service.application.audit import AuditRecorder
from collection_service.application.common import Page, check_page, compensate
from collection_service.application.ledger import BalanceLedger
from collection_service.application.unit_of_work import UnitOfWork
from collection_service.domain.exceptions import (
    BalanceNotFoundError,
    DomainError,
    InsufficientFundsError,
    InvalidAmountError,
    PayoutLimitError,
    PayoutNotFoundError,
)
from collection_service.domain.lifecycle import advance_payout
from collection_service.domain.models import (
    PAYOUT_MAXIMUM,
    PAYOUT_MINIMUM,
    Currency,
    Money,
    Payout,
    PayoutDestination,
    PayoutStatus,
    round2,
)
from collection_service.infrastructure.metrics import PAYOUTS_TOTAL, track_duration


logger = structlog.get_logger()


@dataclass
class RequestPayoutCommand:
    merchant_id: str
    amount: Decimal
    currency: Currency
    destination: PayoutDestination


def check_payout_bounds(amount: Decimal, currency: Currency) -> None:
    if amount <= 0:
        raise InvalidAmountError(amount, "Amount must be positive")
    if amount < PAYOUT_MINIMUM[currency]:
        raise PayoutLimitError(amount, currency.value, PAYOUT_MINIMUM[currency], below=True)
    if amount > PAYOUT_MAXIMUM[currency]:
        raise PayoutLimitError(amount, currency.value, PAYOUT_MAXIMUM[currency], below=False)


class PayoutService:
    def __init__(self, uow: UnitOfWork, audit: AuditRecorder) -> None:
        self.uow = uow
        self.audit = audit
        self.ledger = BalanceLedger(uow.balances)

    @track_duration("payout")
    async def request_payout(self, cmd: RequestPayoutCommand) -> Payout:
        amount = round2(cmd.amount)
        log = logger.bind(
            merchant_id=cmd.merchant_id,
            amount=str(amount),
            currency=cmd.currency.value,
        )
        check_payout_bounds(amount, cmd.currency)

        async with self.uow:
            balance = await self.uow.balances.get(cmd.merchant_id, cmd.currency)
            if balance is None:
                raise BalanceNotFoundError(cmd.merchant_id, cmd.currency.value)
            if balance.available_balance < amount:
                PAYOUTS_TOTAL.labels(currency=cmd.currency.value, outcome="insufficient_funds").inc()
                log.info(
                    "payout_declined",
                    reason="INSUFFICIENT_FUNDS",
                    available=str(balance.available_balance),
                )
                raise InsufficientFundsError(
                    cmd.merchant_id, cmd.currency.value, amount, balance.available_balance
                )

            payout = Payout.create(cmd.merchant_id, Money(amount, cmd.currency), cmd.destination)
            # Issued once the debit commits
            advance_payout(payout, PayoutStatus.SUCCESS)

            try:
                await self.uow.payouts.add(payout)
                await self.ledger.debit(cmd.merchant_id, cmd.currency, amount)
                await self.uow.commit()
            except DomainError as e:
                outcome = "insufficient_funds" if isinstance(e, InsufficientFundsError) else "failed"
                PAYOUTS_TOTAL.labels(currency=cmd.currency.value, outcome=outcome).inc()
                await compensate(
                    self.uow,
                    self.audit,
                    log,
                    operation="payout",
                    db_table="payouts",
                    table_id=payout.id,
                    attempted_changes={
                        "reference": payout.reference,
                        "amount": str(amount),
                        "currency": cmd.currency.value,
                        "status": payout.status.value,
                    },
                    error=e,
                    merchant_id=cmd.merchant_id,
                )
                raise

        PAYOUTS_TOTAL.labels(currency=cmd.currency.value, outcome="success").inc()
        log.info("payout_requested", payout_id=payout.id, reference=payout.reference)
        return payout

    async def get_payout(self, payout_id: str) -> Payout:
        async with self.uow:
            payout = await self.uow.payouts.get(payout_id)
        if payout is None:
            raise PayoutNotFoundError(payout_id)
        return payout

    async def list_payouts(
        self,
        merchant_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Page[Payout]:
        check_page(limit, offset)
        async with self.uow:
            payouts, count = await self.uow.payouts.list_paginated(merchant_id, limit, offset)
        return Page(items=payouts, count=count, limit=limit, offset=offset)
