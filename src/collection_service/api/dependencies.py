from collections.abc import AsyncGenerator
from typing import Annotated

import structlog
from fastapi import Depends, Header, Request

from collection_service.application import (
    AuditRecorder,
    MerchantService,
    PayoutService,
    TransactionService,
    UnitOfWork,
)
from collection_service.domain.models import Merchant
from collection_service.infrastructure.database import Database


PUBLIC_KEY_HEADER = "X-Merchant-Public-Key"


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_uow(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[UnitOfWork, None]:
    async with database.session() as session:
        yield UnitOfWork(session)


def get_audit(database: Annotated[Database, Depends(get_database)]) -> AuditRecorder:
    return AuditRecorder(database)


def get_merchant_service(uow: Annotated[UnitOfWork, Depends(get_uow)]) -> MerchantService:
    return MerchantService(uow)


def get_transaction_service(
    uow: Annotated[UnitOfWork, Depends(get_uow)],
    audit: Annotated[AuditRecorder, Depends(get_audit)],
) -> TransactionService:
    return TransactionService(uow, audit)


def get_payout_service(
    uow: Annotated[UnitOfWork, Depends(get_uow)],
    audit: Annotated[AuditRecorder, Depends(get_audit)],
) -> PayoutService:
    return PayoutService(uow, audit)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_current_merchant(
    merchants: Annotated[MerchantService, Depends(get_merchant_service)],
    public_key: Annotated[str | None, Header(alias=PUBLIC_KEY_HEADER)] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> Merchant:
    """Resolve the calling merchant from its public key header and bearer secret."""
    merchant = await merchants.authenticate(public_key, _bearer_token(authorization))
    structlog.contextvars.bind_contextvars(merchant_id=merchant.id)
    return merchant


CurrentMerchant = Annotated[Merchant, Depends(get_current_merchant)]
Merchants = Annotated[MerchantService, Depends(get_merchant_service)]
Transactions = Annotated[TransactionService, Depends(get_transaction_service)]
Payouts = Annotated[PayoutService, Depends(get_payout_service)]
