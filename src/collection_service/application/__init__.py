"""Application layer - services and use cases."""

from collection_service.application.audit import AuditRecorder
from collection_service.application.ledger import BalanceLedger
from collection_service.application.merchants import (
    MerchantService,
    RegisteredMerchant,
    RegisterMerchantCommand,
)
from collection_service.application.payment_methods import PaymentMethodRegistry
from collection_service.application.payouts import PayoutService, RequestPayoutCommand
from collection_service.application.transactions import (
    CapturePaymentCommand,
    CardInput,
    InitializedTransaction,
    InitializeTransactionCommand,
    SettleCardCommand,
    TransactionService,
    VirtualAccountInput,
)
from collection_service.application.unit_of_work import UnitOfWork


__all__ = [
    "AuditRecorder",
    "BalanceLedger",
    "CapturePaymentCommand",
    "CardInput",
    "InitializeTransactionCommand",
    "InitializedTransaction",
    "MerchantService",
    "PaymentMethodRegistry",
    "PayoutService",
    "RegisterMerchantCommand",
    "RegisteredMerchant",
    "RequestPayoutCommand",
    "SettleCardCommand",
    "TransactionService",
    "UnitOfWork",
    "VirtualAccountInput",
]
