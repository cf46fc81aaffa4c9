from typing import Any

import structlog
from fastapi import APIRouter, Query, status

from collection_service.api.dependencies import CurrentMerchant, Transactions
from collection_service.api.schemas import (
    CardSettlementRequest,
    InitializedTransactionResponse,
    InitializeTransactionRequest,
    PaymentMethodResponse,
    PayRequest,
    TransactionResponse,
    VirtualAccountResponse,
    envelope,
)
from collection_service.application import (
    CapturePaymentCommand,
    CardInput,
    InitializeTransactionCommand,
    SettleCardCommand,
    VirtualAccountInput,
)
from collection_service.domain.models import TransactionType


logger = structlog.get_logger()

router = APIRouter(tags=["transactions"])


def _payment_input(body: PayRequest) -> CardInput | VirtualAccountInput:
    # Presence and format of these fields is enforced by PayRequest
    if body.tx_type is TransactionType.CARD:
        return CardInput(
            card_number=body.card_number or "",
            holder_name=body.card_holder_name or "",
            expiry=body.card_expiration_date or "",
            verification_code=body.card_verification_code or "",
        )
    return VirtualAccountInput(
        account_name=body.customer_account_name or "",
        account_number=body.customer_account_number or "",
        bank_code=body.customer_bank_code or "",
    )


@router.post("/transactions/initialize", status_code=status.HTTP_201_CREATED)
async def initialize_transaction(
    body: InitializeTransactionRequest,
    merchant: CurrentMerchant,
    transactions: Transactions,
) -> dict[str, Any]:
    logger.info("request_received", method="InitializeTransaction")
    result = await transactions.initialize(
        InitializeTransactionCommand(
            merchant_id=merchant.id,
            amount=body.amount,
            currency=body.currency,
            description=body.description,
        )
    )
    return envelope(
        InitializedTransactionResponse(
            transaction=TransactionResponse.from_domain(result.transaction),
            virtual_account=VirtualAccountResponse.from_domain(result.virtual_account),
            payment_methods=[PaymentMethodResponse.from_domain(m) for m in result.payment_methods],
        )
    )


@router.post("/pay")
async def pay(body: PayRequest, transactions: Transactions) -> dict[str, Any]:
    logger.info("request_received", method="Pay", transaction_id=body.transaction_id)
    transaction = await transactions.capture(
        CapturePaymentCommand(
            transaction_id=body.transaction_id,
            amount=body.amount,
            currency=body.currency,
            tx_type=body.tx_type,
            payment_method_id=body.payment_method_id,
            payment=_payment_input(body),
            description=body.tx_desc,
            customer_name=body.customer_name,
            customer_email=body.customer_email,
            customer_phone_number=body.customer_phone_number,
        )
    )
    return envelope(TransactionResponse.from_domain(transaction))


@router.post("/card-settlement")
async def card_settlement(body: CardSettlementRequest, transactions: Transactions) -> dict[str, Any]:
    logger.info("request_received", method="CardSettlement", transaction_id=body.transaction_id)
    transaction = await transactions.settle_card(
        SettleCardCommand(
            transaction_id=body.transaction_id,
            amount=body.amount,
            currency=body.currency,
            card_number=body.card_number,
        )
    )
    return envelope(TransactionResponse.from_domain(transaction))


@router.get("/transactions")
async def list_transactions(
    transactions: Transactions,
    merchant: str | None = Query(None, description="Filter by merchant id"),
    limit: int = Query(50),
    offset: int = Query(0),
) -> dict[str, Any]:
    page = await transactions.list_transactions(merchant_id=merchant, limit=limit, offset=offset)
    return envelope([TransactionResponse.from_domain(t) for t in page.items], count=page.count)


@router.get("/transactions/{transaction_id}")
async def get_transaction(transaction_id: str, transactions: Transactions) -> dict[str, Any]:
    transaction = await transactions.get_transaction(transaction_id)
    return envelope(TransactionResponse.from_domain(transaction))
