"""Repository implementations."""

from collection_service.infrastructure.repositories.audit_logs import AuditLogRepository
from collection_service.infrastructure.repositories.balances import BalanceRepository
from collection_service.infrastructure.repositories.merchants import MerchantRepository
from collection_service.infrastructure.repositories.payment_methods import PaymentMethodRepository
from collection_service.infrastructure.repositories.payouts import PayoutRepository
from collection_service.infrastructure.repositories.transactions import TransactionRepository


__all__ = [
    "AuditLogRepository",
    "BalanceRepository",
    "MerchantRepository",
    "PaymentMethodRepository",
    "PayoutRepository",
    "TransactionRepository",
]
