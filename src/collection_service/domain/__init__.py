"""Domain layer - business entities and rules."""

from collection_service.domain.exceptions import (
    AlreadyCapturedError,
    AlreadySettledError,
    AuthError,
    CompensationFailure,
    ConflictError,
    DependencyError,
    DomainError,
    InsufficientFundsError,
    MismatchError,
    NotFoundError,
    ValidationError,
)
from collection_service.domain.fees import FeeBreakdown, compute_fee
from collection_service.domain.models import (
    AuditLogEntry,
    CardDetails,
    Currency,
    FeeType,
    Merchant,
    MerchantBalance,
    MerchantStatus,
    Money,
    PaymentMethod,
    Payout,
    PayoutStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
    VirtualAccountDetails,
    round2,
)


__all__ = [
    "AlreadyCapturedError",
    "AlreadySettledError",
    "AuditLogEntry",
    "AuthError",
    "CardDetails",
    "CompensationFailure",
    "ConflictError",
    "Currency",
    "DependencyError",
    "DomainError",
    "FeeBreakdown",
    "FeeType",
    "InsufficientFundsError",
    "Merchant",
    "MerchantBalance",
    "MerchantStatus",
    "MismatchError",
    "Money",
    "NotFoundError",
    "PaymentMethod",
    "Payout",
    "PayoutStatus",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "ValidationError",
    "VirtualAccountDetails",
    "compute_fee",
    "round2",
]
