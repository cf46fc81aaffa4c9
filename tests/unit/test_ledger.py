"""Unit tests for BalanceLedger."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from collection_service.application.ledger import BalanceLedger
from collection_service.domain.exceptions import BalanceNotFoundError, InsufficientFundsError
from collection_service.domain.models import Currency
from tests.conftest import create_balance


@pytest.fixture
def ledger(mock_balance_repository: AsyncMock) -> BalanceLedger:
    return BalanceLedger(mock_balance_repository)


class TestCredits:
    async def test_credit_available_rounds_amount(
        self, ledger: BalanceLedger, mock_balance_repository: AsyncMock
    ) -> None:
        mock_balance_repository.credit_available.return_value = create_balance(available="1950")

        balance = await ledger.credit_available("merchant-001", Currency.NGN, Decimal("1949.995"))

        assert balance.available_balance == Decimal("1950")
        mock_balance_repository.credit_available.assert_called_once_with(
            "merchant-001", Currency.NGN, Decimal("1950.00")
        )

    async def test_hold_pending_uses_pending_column(
        self, ledger: BalanceLedger, mock_balance_repository: AsyncMock
    ) -> None:
        mock_balance_repository.credit_pending.return_value = create_balance(pending="1970")

        await ledger.hold_pending("merchant-001", Currency.NGN, Decimal("1970"))

        mock_balance_repository.credit_pending.assert_called_once()
        mock_balance_repository.credit_available.assert_not_called()

    @pytest.mark.parametrize("operation", ["credit_available", "hold_pending"])
    async def test_credit_to_missing_balance(
        self, ledger: BalanceLedger, mock_balance_repository: AsyncMock, operation: str
    ) -> None:
        with pytest.raises(BalanceNotFoundError):
            await getattr(ledger, operation)("merchant-001", Currency.USD, Decimal("10"))


class TestDebits:
    async def test_debit(self, ledger: BalanceLedger, mock_balance_repository: AsyncMock) -> None:
        mock_balance_repository.debit_available.return_value = create_balance(available="5000")

        balance = await ledger.debit("merchant-001", Currency.NGN, Decimal("5000"))

        assert balance.available_balance == Decimal("5000")

    async def test_rejected_debit_reports_current_balance(
        self, ledger: BalanceLedger, mock_balance_repository: AsyncMock
    ) -> None:
        mock_balance_repository.debit_available.return_value = None
        mock_balance_repository.get.return_value = create_balance(available="120.50")

        with pytest.raises(InsufficientFundsError) as exc_info:
            await ledger.debit("merchant-001", Currency.NGN, Decimal("5000"))

        assert exc_info.value.available == Decimal("120.50")
        assert exc_info.value.required == Decimal("5000.00")
        assert exc_info.value.column == "available_balance"

    async def test_rejected_release_reports_pending_balance(
        self, ledger: BalanceLedger, mock_balance_repository: AsyncMock
    ) -> None:
        mock_balance_repository.release_pending.return_value = None
        mock_balance_repository.get.return_value = create_balance(available="9000", pending="10")

        with pytest.raises(InsufficientFundsError) as exc_info:
            await ledger.release_pending("merchant-001", Currency.NGN, Decimal("1970"))

        assert exc_info.value.available == Decimal("10")
        assert exc_info.value.column == "pending_settlement_balance"

    async def test_rejected_debit_without_balance_row(
        self, ledger: BalanceLedger, mock_balance_repository: AsyncMock
    ) -> None:
        mock_balance_repository.debit_available.return_value = None
        mock_balance_repository.get.return_value = None

        with pytest.raises(BalanceNotFoundError):
            await ledger.debit("merchant-001", Currency.NGN, Decimal("5000"))
