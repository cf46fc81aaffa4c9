from typing import Any

import structlog
from fastapi import APIRouter, Query, status

from collection_service.api.dependencies import CurrentMerchant, Merchants
from collection_service.api.schemas import (
    BalanceResponse,
    CreateMerchantRequest,
    MerchantResponse,
    RegisteredMerchantResponse,
    VirtualAccountResponse,
    envelope,
)
from collection_service.application import RegisterMerchantCommand


logger = structlog.get_logger()

router = APIRouter(tags=["merchants"])


@router.post("/create-merchant", status_code=status.HTTP_201_CREATED)
async def create_merchant(body: CreateMerchantRequest, merchants: Merchants) -> dict[str, Any]:
    logger.info("request_received", method="CreateMerchant")
    registered = await merchants.register(
        RegisterMerchantCommand(
            first_name=body.first_name,
            middle_name=body.middle_name,
            last_name=body.last_name,
            email=body.email,
            phone_number=body.phone_number,
            address=body.address,
        )
    )
    return envelope(
        RegisteredMerchantResponse(
            merchant=MerchantResponse.from_domain(registered.merchant),
            virtual_account=VirtualAccountResponse.from_domain(registered.virtual_account),
            balances=[BalanceResponse.from_domain(b) for b in registered.balances],
            public_key=registered.public_key,
            secret_key=registered.secret_key,
        )
    )


@router.get("/merchants")
async def list_merchants(
    merchants: Merchants,
    limit: int = Query(50),
    offset: int = Query(0),
    search: str | None = Query(None, description="Case-insensitive first name filter"),
) -> dict[str, Any]:
    page = await merchants.list_merchants(search=search, limit=limit, offset=offset)
    return envelope([MerchantResponse.from_domain(m) for m in page.items], count=page.count)


@router.get("/merchants/{merchant_id}")
async def get_merchant(merchant_id: str, merchants: Merchants) -> dict[str, Any]:
    merchant = await merchants.get_merchant(merchant_id)
    return envelope(MerchantResponse.from_domain(merchant))


@router.get("/merchants/{merchant_id}/balance")
async def get_merchant_balance(merchant_id: str, merchants: Merchants) -> dict[str, Any]:
    balances = await merchants.get_balances(merchant_id)
    return envelope([BalanceResponse.from_domain(b) for b in balances])


@router.get("/balance")
async def get_own_balance(merchant: CurrentMerchant, merchants: Merchants) -> dict[str, Any]:
    balances = await merchants.get_balances(merchant.id)
    return envelope([BalanceResponse.from_domain(b) for b in balances])
