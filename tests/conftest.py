"""Shared pytest fixtures for collection service tests."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from collection_service.application.audit import AuditRecorder
from collection_service.application.unit_of_work import UnitOfWork
from collection_service.domain.models import (
    CardDetails,
    Currency,
    FeeType,
    Merchant,
    MerchantBalance,
    MerchantStatus,
    PaymentMethod,
    Transaction,
    TransactionStatus,
    TransactionType,
    VirtualAccount,
)


@pytest.fixture
def mock_merchant_repository() -> AsyncMock:
    """Create mock MerchantRepository."""
    repo = AsyncMock()
    repo.get = AsyncMock(return_value=None)
    repo.list_paginated = AsyncMock(return_value=([], 0))
    repo.add = AsyncMock(return_value=None)
    repo.add_key = AsyncMock(return_value=None)
    repo.get_key = AsyncMock(return_value=None)
    repo.add_virtual_account = AsyncMock(return_value=None)
    repo.get_virtual_account = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def mock_balance_repository() -> AsyncMock:
    """Create mock BalanceRepository."""
    repo = AsyncMock()
    repo.get = AsyncMock(return_value=None)
    repo.list_for_merchant = AsyncMock(return_value=[])
    repo.add = AsyncMock(return_value=None)
    repo.credit_available = AsyncMock(return_value=None)
    repo.credit_pending = AsyncMock(return_value=None)
    repo.release_pending = AsyncMock(return_value=None)
    repo.debit_available = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def mock_payment_method_repository() -> AsyncMock:
    """Create mock PaymentMethodRepository."""
    repo = AsyncMock()
    repo.get = AsyncMock(return_value=None)
    repo.list_available = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_transaction_repository() -> AsyncMock:
    """Create mock TransactionRepository."""
    repo = AsyncMock()
    repo.get = AsyncMock(return_value=None)
    repo.get_for_update = AsyncMock(return_value=None)
    repo.list_paginated = AsyncMock(return_value=([], 0))
    repo.add = AsyncMock(return_value=None)
    repo.save_capture = AsyncMock(return_value=None)
    repo.mark_settled = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def mock_payout_repository() -> AsyncMock:
    """Create mock PayoutRepository."""
    repo = AsyncMock()
    repo.get = AsyncMock(return_value=None)
    repo.list_paginated = AsyncMock(return_value=([], 0))
    repo.add = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def mock_uow(
    mock_merchant_repository: AsyncMock,
    mock_balance_repository: AsyncMock,
    mock_payment_method_repository: AsyncMock,
    mock_transaction_repository: AsyncMock,
    mock_payout_repository: AsyncMock,
) -> AsyncMock:
    """Create mock Unit of Work with all repositories."""
    uow = AsyncMock(spec=UnitOfWork)
    uow.merchants = mock_merchant_repository
    uow.balances = mock_balance_repository
    uow.payment_methods = mock_payment_method_repository
    uow.transactions = mock_transaction_repository
    uow.payouts = mock_payout_repository
    uow.commit = AsyncMock(return_value=None)
    uow.rollback = AsyncMock(return_value=None)

    # Configure async context manager
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=None)

    return uow


@pytest.fixture
def mock_audit() -> AsyncMock:
    """Create mock AuditRecorder."""
    audit = AsyncMock(spec=AuditRecorder)
    audit.record = AsyncMock(return_value=None)
    return audit


@pytest.fixture
def sample_merchant() -> Merchant:
    return create_merchant("merchant-001")


@pytest.fixture
def sample_virtual_account() -> VirtualAccount:
    return VirtualAccount(
        id="va-001",
        merchant_id="merchant-001",
        account_number="0123456789",
        account_name="Habaripay | Ada Obi",
        bank_code="058",
        bank_name="GTB",
    )


@pytest.fixture
def card_method() -> PaymentMethod:
    """Card method charging 1.5%."""
    return create_payment_method("pm_card", TransactionType.CARD, fee_type=FeeType.PERCENTAGE, fee_rate="1.5")


@pytest.fixture
def virtual_account_method() -> PaymentMethod:
    """Virtual account method charging a flat 50.00."""
    return create_payment_method(
        "pm_virtual_account", TransactionType.VIRTUAL_ACCOUNT, fee_type=FeeType.FLAT, fee_amount="50"
    )


@pytest.fixture
def pending_transaction() -> Transaction:
    """Initialized, uncaptured NGN 2000.00 transaction."""
    return create_transaction("tx-001", amount="2000")


@pytest.fixture
def captured_card_transaction() -> Transaction:
    """Card transaction captured at 1.5% and awaiting settlement."""
    return create_transaction(
        "tx-002",
        amount="2000",
        tx_type=TransactionType.CARD,
        payment_method_id="pm_card",
        fee_rate="1.5",
        fee_amount="30.00",
        total_amount="1970.00",
        details=CardDetails(last_four="1111", holder_name="Ada Obi", expiry="12/30"),
    )


def create_merchant(
    merchant_id: str,
    first_name: str = "Ada",
    last_name: str = "Obi",
    status: str = "active",
) -> Merchant:
    """Helper to create Merchant with custom values."""
    return Merchant(
        id=merchant_id,
        first_name=first_name,
        last_name=last_name,
        email=f"{first_name.lower()}@example.com",
        phone_number="+2348000000000",
        status=MerchantStatus(status),
    )


def create_balance(
    merchant_id: str = "merchant-001",
    available: str = "0",
    pending: str = "0",
    currency: Currency = Currency.NGN,
) -> MerchantBalance:
    """Helper to create MerchantBalance with custom values."""
    return MerchantBalance(
        merchant_id=merchant_id,
        currency=currency,
        available_balance=Decimal(available),
        pending_settlement_balance=Decimal(pending),
        updated_at=datetime.now(UTC),
    )


def create_payment_method(
    method_id: str,
    tx_type: TransactionType,
    fee_type: FeeType | None = FeeType.PERCENTAGE,
    fee_rate: str = "0",
    fee_amount: str = "0",
    minimum_amount: str = "100",
    maximum_amount: str = "5000000",
    currencies: frozenset[Currency] = frozenset({Currency.NGN, Currency.USD}),
    available: bool = True,
) -> PaymentMethod:
    """Helper to create PaymentMethod with custom values."""
    return PaymentMethod(
        id=method_id,
        name=tx_type.value,
        fee_type=fee_type,
        fee_rate=Decimal(fee_rate),
        fee_amount=Decimal(fee_amount),
        minimum_amount=Decimal(minimum_amount),
        maximum_amount=Decimal(maximum_amount),
        allowed_currencies=currencies,
        available=available,
    )


def create_transaction(
    transaction_id: str,
    amount: str = "2000",
    currency: Currency = Currency.NGN,
    status: TransactionStatus = TransactionStatus.PENDING,
    tx_type: TransactionType | None = None,
    payment_method_id: str | None = None,
    fee_rate: str | None = None,
    fee_amount: str | None = None,
    total_amount: str | None = None,
    details: CardDetails | None = None,
    merchant_id: str = "merchant-001",
) -> Transaction:
    """Helper to create Transaction with custom values."""
    return Transaction(
        id=transaction_id,
        reference=f"tx_{transaction_id}",
        merchant_id=merchant_id,
        amount=Decimal(amount),
        currency=currency,
        status=status,
        tx_type=tx_type,
        payment_method_id=payment_method_id,
        fee_rate=Decimal(fee_rate) if fee_rate is not None else None,
        fee_amount=Decimal(fee_amount) if fee_amount is not None else None,
        total_amount=Decimal(total_amount) if total_amount is not None else None,
        details=details,
    )
