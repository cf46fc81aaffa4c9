"""Guarded state transitions for transactions and payouts.

A transaction persists only `pending`, `success` or `failed`; its lifecycle
stage is derived from that status plus whether payment details have been
captured yet.
"""

from enum import Enum

from collection_service.domain.exceptions import (
    AlreadyCapturedError,
    AlreadySettledError,
    InvalidTransitionError,
)
from collection_service.domain.models import (
    Payout,
    PayoutStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)


class TransactionStage(Enum):
    INITIALIZED = "INITIALIZED"
    AWAITING_SETTLEMENT = "AWAITING_SETTLEMENT"
    SETTLED = "SETTLED"
    FAILED = "FAILED"


class TransactionEvent(Enum):
    CAPTURE_CARD = "CAPTURE_CARD"
    CAPTURE_VIRTUAL_ACCOUNT = "CAPTURE_VIRTUAL_ACCOUNT"
    SETTLE = "SETTLE"


TRANSACTION_TRANSITIONS: dict[TransactionStage, dict[TransactionEvent, TransactionStage]] = {
    TransactionStage.INITIALIZED: {
        TransactionEvent.CAPTURE_CARD: TransactionStage.AWAITING_SETTLEMENT,
        TransactionEvent.CAPTURE_VIRTUAL_ACCOUNT: TransactionStage.SETTLED,
    },
    TransactionStage.AWAITING_SETTLEMENT: {
        TransactionEvent.SETTLE: TransactionStage.SETTLED,
    },
    TransactionStage.SETTLED: {},
    TransactionStage.FAILED: {},
}

STAGE_STATUS = {
    TransactionStage.INITIALIZED: TransactionStatus.PENDING,
    TransactionStage.AWAITING_SETTLEMENT: TransactionStatus.PENDING,
    TransactionStage.SETTLED: TransactionStatus.SUCCESS,
    TransactionStage.FAILED: TransactionStatus.FAILED,
}

CAPTURE_EVENTS = {
    TransactionType.CARD: TransactionEvent.CAPTURE_CARD,
    TransactionType.VIRTUAL_ACCOUNT: TransactionEvent.CAPTURE_VIRTUAL_ACCOUNT,
}

PAYOUT_TRANSITIONS: dict[PayoutStatus, frozenset[PayoutStatus]] = {
    PayoutStatus.PENDING: frozenset({PayoutStatus.SUCCESS, PayoutStatus.FAILED}),
    PayoutStatus.SUCCESS: frozenset(),
    PayoutStatus.FAILED: frozenset(),
}


def stage_of(transaction: Transaction) -> TransactionStage:
    if transaction.status is TransactionStatus.SUCCESS:
        return TransactionStage.SETTLED
    if transaction.status is TransactionStatus.FAILED:
        return TransactionStage.FAILED
    if transaction.tx_type is None:
        return TransactionStage.INITIALIZED
    return TransactionStage.AWAITING_SETTLEMENT


def next_stage(transaction: Transaction, event: TransactionEvent) -> TransactionStage:
    """Return the stage `event` leads to, or raise if the table forbids it."""
    stage = stage_of(transaction)
    target = TRANSACTION_TRANSITIONS[stage].get(event)
    if target is not None:
        return target

    if stage is TransactionStage.SETTLED:
        raise AlreadySettledError(transaction.id)
    if stage is TransactionStage.AWAITING_SETTLEMENT and event in CAPTURE_EVENTS.values():
        raise AlreadyCapturedError(transaction.id)
    raise InvalidTransitionError("Transaction", transaction.id, stage.value, event.value)


def status_for(stage: TransactionStage) -> TransactionStatus:
    return STAGE_STATUS[stage]


def advance_payout(payout: Payout, target: PayoutStatus) -> None:
    if target not in PAYOUT_TRANSITIONS[payout.status]:
        raise InvalidTransitionError("Payout", payout.id, payout.status.value, target.value)
    payout.status = target
