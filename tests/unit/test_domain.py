"""Unit tests for domain models, references and exceptions."""

import re
from decimal import Decimal

import pytest

from collection_service.domain.exceptions import (
    AlreadySettledError,
    AuthError,
    ConflictError,
    DomainError,
    InsufficientFundsError,
    InvalidAmountError,
    MismatchError,
    NotFoundError,
    PayoutLimitError,
    TransactionNotFoundError,
    ValidationError,
)
from collection_service.domain.models import (
    Currency,
    Merchant,
    Money,
    Payout,
    PayoutDestination,
    PayoutStatus,
    Transaction,
    TransactionStatus,
    round2,
)
from collection_service.domain.references import (
    PAYOUT_PREFIX,
    PUBLIC_KEY_PREFIX,
    SECRET_KEY_PREFIX,
    TRANSACTION_PREFIX,
    generate_account_number,
    generate_reference,
    hash_secret,
    verify_secret,
)


class TestRounding:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1.005", "1.01"),
            ("1.004", "1.00"),
            ("2.5", "2.50"),
            ("0.125", "0.13"),
            (10, "10.00"),
        ],
    )
    def test_round2_is_half_up(self, value: str | int, expected: str) -> None:
        assert round2(value) == Decimal(expected)

    def test_round2_accepts_float_without_binary_noise(self) -> None:
        assert round2(0.1 + 0.2) == Decimal("0.30")


class TestMoney:
    def test_money_rounds_amount(self) -> None:
        money = Money(Decimal("10.005"), Currency.NGN)
        assert money.amount == Decimal("10.01")

    def test_money_with_zero_amount(self) -> None:
        assert Money(Decimal("0"), Currency.USD).amount == Decimal("0.00")

    def test_money_cannot_be_negative(self) -> None:
        with pytest.raises(ValueError, match="cannot be negative"):
            Money(Decimal("-1"), Currency.NGN)

    def test_money_is_immutable(self) -> None:
        money = Money(Decimal("1"), Currency.NGN)
        with pytest.raises(AttributeError):
            money.amount = Decimal("2")  # type: ignore[misc]


class TestMerchant:
    def test_full_name_skips_missing_middle_name(self) -> None:
        merchant = Merchant(id="m", first_name="Ada", last_name="Obi", email="a@b.co", phone_number="1")
        assert merchant.full_name == "Ada Obi"

    def test_full_name_with_middle_name(self) -> None:
        merchant = Merchant(
            id="m", first_name="Ada", middle_name="Ngozi", last_name="Obi", email="a@b.co", phone_number="1"
        )
        assert merchant.full_name == "Ada Ngozi Obi"


class TestTransaction:
    def test_initialize_creates_pending_uncaptured_transaction(self) -> None:
        tx = Transaction.initialize("merchant-001", Money(Decimal("2000"), Currency.NGN))

        assert tx.status is TransactionStatus.PENDING
        assert tx.tx_type is None
        assert tx.amount == Decimal("2000.00")
        assert tx.currency is Currency.NGN
        assert tx.reference.startswith("tx_")
        assert len(tx.id) == 26  # ULID length

    def test_initialize_generates_unique_references(self) -> None:
        refs = {Transaction.initialize("m", Money(Decimal("1"), Currency.NGN)).reference for _ in range(50)}
        assert len(refs) == 50


class TestPayout:
    def test_create_starts_pending(self) -> None:
        payout = Payout.create(
            "merchant-001",
            Money(Decimal("5000"), Currency.NGN),
            PayoutDestination(account_name="Ada", account_number="0123456789", bank_code="058", bank_name="GTB"),
        )

        assert payout.status is PayoutStatus.PENDING
        assert payout.reference.startswith("px_")
        assert payout.amount == Decimal("5000.00")


class TestReferences:
    @pytest.mark.parametrize("prefix", [TRANSACTION_PREFIX, PAYOUT_PREFIX, PUBLIC_KEY_PREFIX, SECRET_KEY_PREFIX])
    def test_reference_carries_192_bits_of_hex(self, prefix: str) -> None:
        reference = generate_reference(prefix)

        assert re.fullmatch(rf"{prefix}_[0-9a-f]{{48}}", reference)

    def test_hash_secret_is_sha256_hex(self) -> None:
        digest = hash_secret("sqsk_secret")

        assert re.fullmatch(r"[0-9a-f]{64}", digest)
        assert digest != "sqsk_secret"

    def test_verify_secret(self) -> None:
        digest = hash_secret("sqsk_secret")

        assert verify_secret("sqsk_secret", digest) is True
        assert verify_secret("sqsk_other", digest) is False

    def test_account_number_is_ten_digits(self) -> None:
        assert re.fullmatch(r"[0-9]{10}", generate_account_number())


class TestDomainExceptions:
    def test_taxonomy(self) -> None:
        assert issubclass(InvalidAmountError, ValidationError)
        assert issubclass(PayoutLimitError, ValidationError)
        assert issubclass(TransactionNotFoundError, NotFoundError)
        assert issubclass(AlreadySettledError, ConflictError)
        assert issubclass(MismatchError, ConflictError)
        for error_type in (ValidationError, NotFoundError, AuthError, ConflictError, InsufficientFundsError):
            assert issubclass(error_type, DomainError)

    def test_insufficient_funds_error(self) -> None:
        error = InsufficientFundsError("merchant-001", "NGN", Decimal("5000.00"), Decimal("100.00"))

        assert error.code == "INSUFFICIENT_FUNDS"
        assert error.required == Decimal("5000.00")
        assert error.available == Decimal("100.00")
        assert "available_balance" in str(error)

    def test_payout_limit_messages(self) -> None:
        below = PayoutLimitError(Decimal("10"), "NGN", Decimal("1000"), below=True)
        above = PayoutLimitError(Decimal("2000000"), "NGN", Decimal("1000000"), below=False)

        assert str(below) == "Amount must be more than NGN1000.00"
        assert str(above) == "Amount must be less than NGN1000000.00"

    def test_mismatch_error(self) -> None:
        error = MismatchError("amount", Decimal("2000.00"), Decimal("1999.00"))

        assert error.field == "amount"
        assert "expected 2000.00, got 1999.00" in str(error)
