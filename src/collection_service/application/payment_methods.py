from decimal import Decimal

from collection_service.domain.exceptions import (
    NoPaymentMethodError,
    PaymentMethodRejectedError,
    RejectionReason,
)
from collection_service.domain.models import Currency, PaymentMethod, TransactionType
from collection_service.infrastructure.repositories import PaymentMethodRepository


class PaymentMethodRegistry:
    def __init__(self, payment_methods: PaymentMethodRepository) -> None:
        self._payment_methods = payment_methods

    async def resolve(
        self,
        method_id: str,
        tx_type: TransactionType,
        currency: Currency,
        amount: Decimal,
    ) -> PaymentMethod:
        """Return the method if it can carry this payment; the first failing check wins."""
        method = await self._payment_methods.get(method_id)
        if method is None or method.name != tx_type.value:
            raise PaymentMethodRejectedError(
                method_id,
                RejectionReason.METHOD_MISMATCH,
                f"Payment method {method_id} does not support {tx_type.value} payments",
            )
        if currency not in method.allowed_currencies:
            raise PaymentMethodRejectedError(
                method_id,
                RejectionReason.CURRENCY_NOT_ALLOWED,
                f"Payment method {method_id} does not accept {currency.value}",
            )
        if not method.available:
            raise PaymentMethodRejectedError(
                method_id,
                RejectionReason.METHOD_UNAVAILABLE,
                f"Payment method {method_id} is currently unavailable",
            )
        if amount < method.minimum_amount:
            raise PaymentMethodRejectedError(
                method_id,
                RejectionReason.BELOW_MINIMUM,
                f"Amount must be at least {currency.value}{method.minimum_amount:.2f}",
            )
        if amount > method.maximum_amount:
            raise PaymentMethodRejectedError(
                method_id,
                RejectionReason.ABOVE_MAXIMUM,
                f"Amount must not exceed {currency.value}{method.maximum_amount:.2f}",
            )
        return method

    async def available_for(self, currency: Currency) -> list[PaymentMethod]:
        methods = await self._payment_methods.list_available(currency)
        if not methods:
            raise NoPaymentMethodError(currency.value)
        return methods
