from typing import Any

import structlog
from fastapi import APIRouter, Query, status

from collection_service.api.dependencies import CurrentMerchant, Payouts
from collection_service.api.schemas import PayoutResponse, RequestPayoutRequest, envelope
from collection_service.application import RequestPayoutCommand
from collection_service.domain.models import PayoutDestination


logger = structlog.get_logger()

router = APIRouter(tags=["payouts"])


@router.get("/payouts")
async def list_payouts(
    payouts: Payouts,
    merchant: str | None = Query(None, description="Filter by merchant id"),
    limit: int = Query(50),
    offset: int = Query(0),
) -> dict[str, Any]:
    page = await payouts.list_payouts(merchant_id=merchant, limit=limit, offset=offset)
    return envelope([PayoutResponse.from_domain(p) for p in page.items], count=page.count)


@router.get("/my-payouts")
async def list_own_payouts(
    merchant: CurrentMerchant,
    payouts: Payouts,
    limit: int = Query(50),
    offset: int = Query(0),
) -> dict[str, Any]:
    page = await payouts.list_payouts(merchant_id=merchant.id, limit=limit, offset=offset)
    return envelope([PayoutResponse.from_domain(p) for p in page.items], count=page.count)


@router.get("/payouts/{payout_id}")
async def get_payout(payout_id: str, payouts: Payouts) -> dict[str, Any]:
    payout = await payouts.get_payout(payout_id)
    return envelope(PayoutResponse.from_domain(payout))


@router.post("/request-payout", status_code=status.HTTP_201_CREATED)
async def request_payout(
    body: RequestPayoutRequest,
    merchant: CurrentMerchant,
    payouts: Payouts,
) -> dict[str, Any]:
    logger.info("request_received", method="RequestPayout")
    payout = await payouts.request_payout(
        RequestPayoutCommand(
            merchant_id=merchant.id,
            amount=body.amount,
            currency=body.currency,
            destination=PayoutDestination(
                account_name=body.account_name,
                account_number=body.account_number,
                bank_code=body.bank_code,
                bank_name=body.bank_name,
            ),
        )
    )
    return envelope(PayoutResponse.from_domain(payout))
