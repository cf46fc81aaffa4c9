from dataclasses import dataclass
from decimal import Decimal

from collection_service.domain.models import FeeType, PaymentMethod, round2


ZERO = Decimal("0.00")


@dataclass(frozen=True)
class FeeBreakdown:
    fee_rate: Decimal
    fee_amount: Decimal
    net_amount: Decimal


def compute_fee(amount: Decimal, method: PaymentMethod) -> FeeBreakdown:
    """Split `amount` into the method's fee and the merchant's net.

    Each step is rounded half-up to two places before the next one runs,
    so `fee_amount + net_amount == round2(amount)`.
    """
    if method.fee_type is FeeType.PERCENTAGE:
        fee_rate = method.fee_rate
        fee_amount = round2(amount * method.fee_rate / 100)
    elif method.fee_type is FeeType.FLAT:
        fee_rate = ZERO
        fee_amount = round2(method.fee_amount)
    else:
        fee_rate = ZERO
        fee_amount = ZERO

    return FeeBreakdown(
        fee_rate=fee_rate,
        fee_amount=fee_amount,
        net_amount=round2(amount - fee_amount),
    )
