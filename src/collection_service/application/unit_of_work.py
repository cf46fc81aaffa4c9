from types import TracebackType
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession

from collection_service.infrastructure.database import remote_call
from collection_service.infrastructure.repositories import (
    BalanceRepository,
    MerchantRepository,
    PaymentMethodRepository,
    PayoutRepository,
    TransactionRepository,
)


class UnitOfWork:
    """One database transaction spanning every repository of a request."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._rollback_attempted = False
        self.merchants = MerchantRepository(session)
        self.balances = BalanceRepository(session)
        self.payment_methods = PaymentMethodRepository(session)
        self.transactions = TransactionRepository(session)
        self.payouts = PayoutRepository(session)

    async def __aenter__(self) -> Self:
        self._rollback_attempted = False
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and not self._rollback_attempted:
            await self.rollback()

    @remote_call("commit")
    async def commit(self) -> None:
        await self._session.commit()

    @remote_call("rollback")
    async def rollback(self) -> None:
        self._rollback_attempted = True
        await self._session.rollback()
