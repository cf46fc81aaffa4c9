from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import structlog

from collection_service.application.audit import AuditRecorder
from collection_service.application.common import Page, check_page, compensate
from collection_service.application.ledger import BalanceLedger
from collection_service.application.merchants import ensure_can_collect
from collection_service.application.payment_methods import PaymentMethodRegistry
from collection_service.application.unit_of_work import UnitOfWork
from collection_service.domain.exceptions import (
    DomainError,
    InvalidAmountError,
    MerchantNotFoundError,
    MismatchError,
    TransactionNotFoundError,
    ValidationError,
    VirtualAccountMissingError,
)
from collection_service.domain.fees import compute_fee
from collection_service.domain.lifecycle import (
    CAPTURE_EVENTS,
    TransactionEvent,
    TransactionStage,
    next_stage,
    status_for,
)
from collection_service.domain.models import (
    CardDetails,
    Currency,
    Money,
    PaymentMethod,
    Transaction,
    TransactionType,
    VirtualAccount,
    VirtualAccountDetails,
    round2,
)
from collection_service.infrastructure.metrics import (
    CARD_SETTLEMENTS_TOTAL,
    TRANSACTIONS_CAPTURED_TOTAL,
    TRANSACTIONS_INITIALIZED_TOTAL,
    track_duration,
)


logger = structlog.get_logger()


@dataclass
class InitializeTransactionCommand:
    merchant_id: str
    amount: Decimal
    currency: Currency
    description: str | None = None


@dataclass
class InitializedTransaction:
    transaction: Transaction
    virtual_account: VirtualAccount
    payment_methods: list[PaymentMethod]


@dataclass
class CardInput:
    card_number: str
    holder_name: str
    expiry: str
    verification_code: str


@dataclass
class VirtualAccountInput:
    account_name: str
    account_number: str
    bank_code: str


@dataclass
class CapturePaymentCommand:
    transaction_id: str
    amount: Decimal
    currency: Currency
    tx_type: TransactionType
    payment_method_id: str
    payment: CardInput | VirtualAccountInput
    description: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone_number: str | None = None


@dataclass
class SettleCardCommand:
    transaction_id: str
    amount: Decimal
    currency: Currency
    card_number: str


def _ensure_matches(transaction: Transaction, amount: Decimal, currency: Currency) -> None:
    if round2(amount) != transaction.amount:
        raise MismatchError("amount", transaction.amount, round2(amount))
    if currency is not transaction.currency:
        raise MismatchError("currency", transaction.currency.value, currency.value)


def _last_four(card_number: str) -> str:
    return "".join(card_number.split())[-4:]


def _payment_details(cmd: CapturePaymentCommand) -> CardDetails | VirtualAccountDetails:
    match cmd.tx_type, cmd.payment:
        case TransactionType.CARD, CardInput() as card:
            return CardDetails(
                last_four=_last_four(card.card_number),
                holder_name=card.holder_name,
                expiry=card.expiry,
            )
        case TransactionType.VIRTUAL_ACCOUNT, VirtualAccountInput() as account:
            return VirtualAccountDetails(
                account_name=account.account_name,
                account_number=account.account_number,
                bank_code=account.bank_code,
            )
    raise ValidationError(f"Payment details do not match transaction type {cmd.tx_type.value}")


def _capture_changes(transaction: Transaction) -> dict[str, Any]:
    return {
        "status": transaction.status.value,
        "tx_type": transaction.tx_type.value if transaction.tx_type else None,
        "payment_method_id": transaction.payment_method_id,
        "fee_rate": str(transaction.fee_rate),
        "fee_amount": str(transaction.fee_amount),
        "total_amount": str(transaction.total_amount),
    }


class TransactionService:
    """Drives a transaction from initialization through capture to settlement."""

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder) -> None:
        self.uow = uow
        self.audit = audit
        self.ledger = BalanceLedger(uow.balances)
        self.payment_methods = PaymentMethodRegistry(uow.payment_methods)

    async def initialize(self, cmd: InitializeTransactionCommand) -> InitializedTransaction:
        log = logger.bind(
            merchant_id=cmd.merchant_id,
            amount=str(cmd.amount),
            currency=cmd.currency.value,
        )
        amount = round2(cmd.amount)
        if amount <= 0:
            raise InvalidAmountError(cmd.amount, "Amount must be positive")

        async with self.uow:
            virtual_account = await self.uow.merchants.get_virtual_account(cmd.merchant_id)
            if virtual_account is None:
                raise VirtualAccountMissingError(cmd.merchant_id)

            methods = await self.payment_methods.available_for(cmd.currency)

            transaction = Transaction.initialize(cmd.merchant_id, Money(amount, cmd.currency))
            transaction.description = cmd.description
            await self.uow.transactions.add(transaction)
            await self.uow.commit()

        TRANSACTIONS_INITIALIZED_TOTAL.labels(currency=cmd.currency.value).inc()
        log.info(
            "transaction_initialized",
            transaction_id=transaction.id,
            reference=transaction.reference,
            payment_methods=[m.name for m in methods],
        )
        return InitializedTransaction(
            transaction=transaction,
            virtual_account=virtual_account,
            payment_methods=methods,
        )

    @track_duration("capture")
    async def capture(self, cmd: CapturePaymentCommand) -> Transaction:
        log = logger.bind(
            transaction_id=cmd.transaction_id,
            tx_type=cmd.tx_type.value,
            amount=str(cmd.amount),
            currency=cmd.currency.value,
        )
        details = _payment_details(cmd)

        async with self.uow:
            transaction = await self.uow.transactions.get_for_update(cmd.transaction_id)
            if transaction is None:
                raise TransactionNotFoundError(cmd.transaction_id)
            await self._ensure_merchant_collects(transaction.merchant_id)

            stage = next_stage(transaction, CAPTURE_EVENTS[cmd.tx_type])
            _ensure_matches(transaction, cmd.amount, cmd.currency)
            method = await self.payment_methods.resolve(
                cmd.payment_method_id,
                cmd.tx_type,
                transaction.currency,
                transaction.amount,
            )
            fees = compute_fee(transaction.amount, method)

            transaction.tx_type = cmd.tx_type
            transaction.status = status_for(stage)
            transaction.payment_method_id = method.id
            transaction.details = details
            transaction.fee_rate = fees.fee_rate
            transaction.fee_amount = fees.fee_amount
            transaction.total_amount = fees.net_amount
            transaction.description = cmd.description or transaction.description
            transaction.customer_name = cmd.customer_name
            transaction.customer_email = cmd.customer_email
            transaction.customer_phone_number = cmd.customer_phone_number
            if stage is TransactionStage.SETTLED:
                transaction.settled_at = datetime.now(UTC)

            log.info(
                "capture_validated",
                step="1/3",
                payment_method_id=method.id,
                fee_amount=str(fees.fee_amount),
                total_amount=str(fees.net_amount),
            )

            try:
                await self.uow.transactions.save_capture(transaction)
                log.info("capture_persisted", step="2/3", status=transaction.status.value)

                if stage is TransactionStage.SETTLED:
                    await self.ledger.credit_available(
                        transaction.merchant_id, transaction.currency, fees.net_amount
                    )
                else:
                    await self.ledger.hold_pending(transaction.merchant_id, transaction.currency, fees.net_amount)

                await self.uow.commit()
            except DomainError as e:
                TRANSACTIONS_CAPTURED_TOTAL.labels(tx_type=cmd.tx_type.value, outcome="failed").inc()
                await compensate(
                    self.uow,
                    self.audit,
                    log,
                    operation="capture",
                    db_table="transactions",
                    table_id=transaction.id,
                    attempted_changes=_capture_changes(transaction),
                    error=e,
                    merchant_id=transaction.merchant_id,
                )
                raise

        TRANSACTIONS_CAPTURED_TOTAL.labels(tx_type=cmd.tx_type.value, outcome="success").inc()
        log.info("transaction_captured", step="3/3", status=transaction.status.value)
        return transaction

    @track_duration("card_settlement")
    async def settle_card(self, cmd: SettleCardCommand) -> Transaction:
        log = logger.bind(
            transaction_id=cmd.transaction_id,
            amount=str(cmd.amount),
            currency=cmd.currency.value,
        )

        async with self.uow:
            transaction = await self.uow.transactions.get_for_update(cmd.transaction_id)
            if transaction is None:
                raise TransactionNotFoundError(cmd.transaction_id)
            await self._ensure_merchant_collects(transaction.merchant_id)

            _ensure_matches(transaction, cmd.amount, cmd.currency)
            if transaction.tx_type not in (None, TransactionType.CARD):
                raise MismatchError("tx_type", TransactionType.CARD.value, transaction.tx_type.value)
            next_stage(transaction, TransactionEvent.SETTLE)

            if isinstance(transaction.details, CardDetails):
                if _last_four(cmd.card_number) != transaction.details.last_four:
                    raise MismatchError("card_number", transaction.details.last_four, _last_four(cmd.card_number))

            total_amount = transaction.total_amount if transaction.total_amount is not None else transaction.amount
            settled_at = datetime.now(UTC)
            try:
                await self.ledger.release_pending(transaction.merchant_id, transaction.currency, total_amount)
                await self.uow.transactions.mark_settled(transaction.id, settled_at)
                await self.uow.commit()
            except DomainError as e:
                CARD_SETTLEMENTS_TOTAL.labels(outcome="failed").inc()
                await compensate(
                    self.uow,
                    self.audit,
                    log,
                    operation="card_settlement",
                    db_table="transactions",
                    table_id=transaction.id,
                    attempted_changes={
                        "status": "success",
                        "settled_at": settled_at.isoformat(),
                        "total_amount": str(total_amount),
                    },
                    error=e,
                    merchant_id=transaction.merchant_id,
                )
                raise

        transaction.status = status_for(TransactionStage.SETTLED)
        transaction.settled_at = settled_at
        CARD_SETTLEMENTS_TOTAL.labels(outcome="success").inc()
        log.info("card_settlement_completed", total_amount=str(total_amount))
        return transaction

    async def _ensure_merchant_collects(self, merchant_id: str) -> None:
        merchant = await self.uow.merchants.get(merchant_id)
        if merchant is None:
            raise MerchantNotFoundError(merchant_id)
        ensure_can_collect(merchant)

    async def get_transaction(self, transaction_id: str) -> Transaction:
        async with self.uow:
            transaction = await self.uow.transactions.get(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    async def list_transactions(
        self,
        merchant_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Page[Transaction]:
        check_page(limit, offset)
        async with self.uow:
            transactions, count = await self.uow.transactions.list_paginated(merchant_id, limit, offset)
        return Page(items=transactions, count=count, limit=limit, offset=offset)
