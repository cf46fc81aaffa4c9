from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from ulid import ULID

from collection_service.domain.references import PAYOUT_PREFIX, TRANSACTION_PREFIX, generate_reference


CENT = Decimal("0.01")


def round2(value: Decimal | int | float | str) -> Decimal:
    """Round half-up to two fraction digits."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class Currency(Enum):
    NGN = "NGN"
    USD = "USD"


PAYOUT_MINIMUM = {
    Currency.NGN: Decimal("1000"),
    Currency.USD: Decimal("100"),
}

PAYOUT_MAXIMUM = {
    Currency.NGN: Decimal("1000000"),
    Currency.USD: Decimal("10000"),
}


class MerchantStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class TransactionType(Enum):
    CARD = "card"
    VIRTUAL_ACCOUNT = "virtual_account"


class TransactionStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class PayoutStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class FeeType(Enum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        object.__setattr__(self, "amount", round2(self.amount))


@dataclass
class Merchant:
    id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    middle_name: str | None = None
    address: str | None = None
    preferred_currency: Currency = Currency.NGN
    status: MerchantStatus = MerchantStatus.ACTIVE
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(p for p in parts if p)


@dataclass
class MerchantKey:
    merchant_id: str
    public_key: str
    secret_key_hash: str
    active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class VirtualAccount:
    id: str
    merchant_id: str
    account_number: str
    account_name: str
    bank_code: str
    bank_name: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class MerchantBalance:
    merchant_id: str
    currency: Currency
    available_balance: Decimal = Decimal("0.00")
    pending_settlement_balance: Decimal = Decimal("0.00")
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class PaymentMethod:
    id: str
    name: str
    fee_type: FeeType | None
    fee_rate: Decimal = Decimal("0")
    fee_amount: Decimal = Decimal("0")
    minimum_amount: Decimal = Decimal("0")
    maximum_amount: Decimal = Decimal("0")
    allowed_currencies: frozenset[Currency] = frozenset()
    available: bool = True


@dataclass(frozen=True)
class CardDetails:
    """Card metadata kept on a captured transaction. The verification code is never stored."""

    last_four: str
    holder_name: str
    expiry: str


@dataclass(frozen=True)
class VirtualAccountDetails:
    account_name: str
    account_number: str
    bank_code: str


PaymentDetails = CardDetails | VirtualAccountDetails


@dataclass
class Transaction:
    id: str
    reference: str
    merchant_id: str
    amount: Decimal
    currency: Currency
    status: TransactionStatus = TransactionStatus.PENDING
    tx_type: TransactionType | None = None
    payment_method_id: str | None = None
    description: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone_number: str | None = None
    fee_rate: Decimal | None = None
    fee_amount: Decimal | None = None
    total_amount: Decimal | None = None
    details: PaymentDetails | None = None
    settled_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def initialize(cls, merchant_id: str, amount: Money) -> "Transaction":
        return cls(
            id=str(ULID()),
            reference=generate_reference(TRANSACTION_PREFIX),
            merchant_id=merchant_id,
            amount=amount.amount,
            currency=amount.currency,
        )


@dataclass
class PayoutDestination:
    account_name: str
    account_number: str
    bank_code: str
    bank_name: str


@dataclass
class Payout:
    id: str
    reference: str
    merchant_id: str
    amount: Decimal
    currency: Currency
    destination: PayoutDestination
    status: PayoutStatus = PayoutStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def create(cls, merchant_id: str, amount: Money, destination: PayoutDestination) -> "Payout":
        return cls(
            id=str(ULID()),
            reference=generate_reference(PAYOUT_PREFIX),
            merchant_id=merchant_id,
            amount=amount.amount,
            currency=amount.currency,
            destination=destination,
        )


@dataclass(frozen=True)
class AuditLogEntry:
    event_type: str
    db_table: str
    table_id: str | None = None
    status: str = "failure"
    attempted_changes: dict[str, Any] | None = None
    error_message: str | None = None
    context: dict[str, Any] | None = None
    user_type: str | None = None
    user_id: str | None = None
    id: str = field(default_factory=lambda: str(ULID()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
