from decimal import Decimal
from enum import Enum


class DomainError(Exception):
    """Base exception for domain errors."""

    code = "DOMAIN_ERROR"


class ValidationError(DomainError):
    """Raised when input is malformed or missing. Never touches the store."""

    code = "VALIDATION_ERROR"


class NotFoundError(DomainError):
    """Raised when an entity is absent or its id is malformed."""

    code = "NOT_FOUND"


class AuthError(DomainError):
    """Raised when merchant credentials are missing, invalid or inactive."""

    code = "UNAUTHORIZED"


class ConflictError(DomainError):
    """Raised when an operation conflicts with the current state of an entity."""

    code = "CONFLICT"


class DependencyError(DomainError):
    """Raised when a call to the relational store fails or times out."""

    code = "DEPENDENCY_FAILURE"

    def __init__(self, operation: str, message: str, transient: bool = False) -> None:
        self.operation = operation
        self.transient = transient
        super().__init__(f"{operation} failed: {message}")


class CompensationFailure(DomainError):
    """Raised when undoing a partially applied operation itself failed."""

    code = "COMPENSATION_FAILURE"

    def __init__(self, operation: str, original: Exception, cause: Exception) -> None:
        self.operation = operation
        self.original = original
        self.cause = cause
        super().__init__(f"Compensation for {operation} failed after '{original}': {cause}")


class InsufficientFundsError(DomainError):
    """Raised when a balance cannot cover the requested amount."""

    code = "INSUFFICIENT_FUNDS"

    def __init__(
        self,
        merchant_id: str,
        currency: str,
        required: Decimal,
        available: Decimal | None = None,
        column: str = "available_balance",
    ) -> None:
        self.merchant_id = merchant_id
        self.currency = currency
        self.required = required
        self.available = available
        self.column = column
        detail = f", available {available}" if available is not None else ""
        super().__init__(
            f"Merchant {merchant_id} has insufficient {currency} {column}: required {required}{detail}"
        )


class InvalidAmountError(ValidationError):
    code = "INVALID_AMOUNT"

    def __init__(self, amount: Decimal, reason: str) -> None:
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount}: {reason}")


class PayoutLimitError(ValidationError):
    """Raised when a payout amount falls outside the configured bounds for its currency."""

    code = "PAYOUT_LIMIT"

    def __init__(self, amount: Decimal, currency: str, bound: Decimal, below: bool) -> None:
        self.amount = amount
        self.currency = currency
        self.bound = bound
        self.below = below
        if below:
            message = f"Amount must be more than {currency}{bound:.2f}"
        else:
            message = f"Amount must be less than {currency}{bound:.2f}"
        super().__init__(message)


class RejectionReason(Enum):
    METHOD_MISMATCH = "METHOD_MISMATCH"
    CURRENCY_NOT_ALLOWED = "CURRENCY_NOT_ALLOWED"
    METHOD_UNAVAILABLE = "METHOD_UNAVAILABLE"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    ABOVE_MAXIMUM = "ABOVE_MAXIMUM"


class PaymentMethodRejectedError(ValidationError):
    """Raised when a payment method cannot be used for the requested payment."""

    code = "PAYMENT_METHOD_REJECTED"

    def __init__(self, method_id: str, reason: RejectionReason, message: str) -> None:
        self.method_id = method_id
        self.reason = reason
        super().__init__(message)


class NoPaymentMethodError(ValidationError):
    code = "NO_PAYMENT_METHOD"

    def __init__(self, currency: str) -> None:
        self.currency = currency
        super().__init__(f"No payment method is available for {currency}")


class VirtualAccountMissingError(NotFoundError):
    code = "VIRTUAL_ACCOUNT_MISSING"

    def __init__(self, merchant_id: str) -> None:
        self.merchant_id = merchant_id
        super().__init__(f"Merchant {merchant_id} has no virtual account")


class MerchantNotFoundError(NotFoundError):
    def __init__(self, merchant_id: str) -> None:
        self.merchant_id = merchant_id
        super().__init__(f"Merchant {merchant_id} not found")


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: str) -> None:
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class PayoutNotFoundError(NotFoundError):
    def __init__(self, payout_id: str) -> None:
        self.payout_id = payout_id
        super().__init__(f"Payout {payout_id} not found")


class BalanceNotFoundError(NotFoundError):
    def __init__(self, merchant_id: str, currency: str) -> None:
        self.merchant_id = merchant_id
        self.currency = currency
        super().__init__(f"No {currency} balance for merchant {merchant_id}")


class InvalidCredentialsError(AuthError):
    code = "INVALID_CREDENTIALS"

    def __init__(self) -> None:
        super().__init__("Invalid merchant credentials")


class MerchantInactiveError(AuthError):
    code = "MERCHANT_INACTIVE"


class AlreadySettledError(ConflictError):
    code = "ALREADY_SETTLED"

    def __init__(self, transaction_id: str) -> None:
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} has already been settled")


class AlreadyCapturedError(ConflictError):
    code = "ALREADY_CAPTURED"

    def __init__(self, transaction_id: str) -> None:
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} has already been captured and awaits settlement")


class MismatchError(ConflictError):
    """Raised when a request disagrees with the transaction it references."""

    code = "MISMATCH"

    def __init__(self, field: str, expected: object, actual: object) -> None:
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(f"{field} mismatch: expected {expected}, got {actual}")


class InvalidTransitionError(ConflictError):
    code = "INVALID_TRANSITION"

    def __init__(self, entity: str, entity_id: str, state: str, event: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.state = state
        self.event = event
        super().__init__(f"{entity} {entity_id} cannot handle {event} in state {state}")
