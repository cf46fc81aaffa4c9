from decimal import Decimal
from typing import NoReturn

import structlog

from collection_service.domain.exceptions import BalanceNotFoundError, InsufficientFundsError
from collection_service.domain.models import Currency, MerchantBalance, round2
from collection_service.infrastructure.repositories import BalanceRepository


logger = structlog.get_logger()


class BalanceLedger:
    """Atomic credit/debit operations on a merchant's balance for one currency.

    Virtual-account funds are final and go straight to the available balance.
    Card funds are held in the pending settlement balance at capture and moved
    to the available balance when the card transaction settles.
    """

    def __init__(self, balances: BalanceRepository) -> None:
        self._balances = balances

    async def credit_available(self, merchant_id: str, currency: Currency, amount: Decimal) -> MerchantBalance:
        amount = round2(amount)
        balance = await self._balances.credit_available(merchant_id, currency, amount)
        if balance is None:
            raise BalanceNotFoundError(merchant_id, currency.value)
        logger.info(
            "balance_credited",
            merchant_id=merchant_id,
            currency=currency.value,
            column="available_balance",
            amount=str(amount),
            available_after=str(balance.available_balance),
        )
        return balance

    async def hold_pending(self, merchant_id: str, currency: Currency, amount: Decimal) -> MerchantBalance:
        amount = round2(amount)
        balance = await self._balances.credit_pending(merchant_id, currency, amount)
        if balance is None:
            raise BalanceNotFoundError(merchant_id, currency.value)
        logger.info(
            "balance_credited",
            merchant_id=merchant_id,
            currency=currency.value,
            column="pending_settlement_balance",
            amount=str(amount),
            pending_after=str(balance.pending_settlement_balance),
        )
        return balance

    async def release_pending(self, merchant_id: str, currency: Currency, amount: Decimal) -> MerchantBalance:
        amount = round2(amount)
        balance = await self._balances.release_pending(merchant_id, currency, amount)
        if balance is None:
            await self._raise_rejected(merchant_id, currency, amount, "pending_settlement_balance")
        logger.info(
            "balance_settled",
            merchant_id=merchant_id,
            currency=currency.value,
            amount=str(amount),
            available_after=str(balance.available_balance),
            pending_after=str(balance.pending_settlement_balance),
        )
        return balance

    async def debit(self, merchant_id: str, currency: Currency, amount: Decimal) -> MerchantBalance:
        amount = round2(amount)
        balance = await self._balances.debit_available(merchant_id, currency, amount)
        if balance is None:
            await self._raise_rejected(merchant_id, currency, amount, "available_balance")
        logger.info(
            "balance_debited",
            merchant_id=merchant_id,
            currency=currency.value,
            amount=str(amount),
            available_after=str(balance.available_balance),
        )
        return balance

    async def _raise_rejected(self, merchant_id: str, currency: Currency, amount: Decimal, column: str) -> NoReturn:
        current = await self._balances.get(merchant_id, currency)
        if current is None:
            raise BalanceNotFoundError(merchant_id, currency.value)
        available = getattr(current, column)
        raise InsufficientFundsError(merchant_id, currency.value, amount, available, column=column)
