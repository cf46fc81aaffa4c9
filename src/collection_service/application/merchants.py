from dataclasses import dataclass

import structlog
from ulid import ULID

from collection_service.application.common import Page, check_page
from collection_service.application.unit_of_work import UnitOfWork
from collection_service.config import settings
from collection_service.domain.exceptions import (
    AuthError,
    InvalidCredentialsError,
    MerchantInactiveError,
    MerchantNotFoundError,
)
from collection_service.domain.models import (
    Currency,
    Merchant,
    MerchantBalance,
    MerchantKey,
    MerchantStatus,
    VirtualAccount,
)
from collection_service.domain.references import (
    PUBLIC_KEY_PREFIX,
    SECRET_KEY_PREFIX,
    generate_account_number,
    generate_reference,
    hash_secret,
    verify_secret,
)


logger = structlog.get_logger()


INACTIVE_MESSAGES = {
    MerchantStatus.INACTIVE: "Merchant is not active to collect payments. Kindly contact support.",
    MerchantStatus.SUSPENDED: "Merchant is suspended. Kindly contact support.",
}


def ensure_can_collect(merchant: Merchant) -> None:
    if merchant.status is not MerchantStatus.ACTIVE:
        raise MerchantInactiveError(
            INACTIVE_MESSAGES.get(
                merchant.status,
                "This merchant is not allowed to collect payments. Kindly contact support.",
            )
        )


@dataclass
class RegisterMerchantCommand:
    first_name: str
    last_name: str
    email: str
    phone_number: str
    middle_name: str | None = None
    address: str | None = None


@dataclass
class RegisteredMerchant:
    """Registration result. `secret_key` is the only clear-text copy ever handed out."""

    merchant: Merchant
    virtual_account: VirtualAccount
    balances: list[MerchantBalance]
    public_key: str
    secret_key: str


class MerchantService:
    def __init__(self, uow: UnitOfWork) -> None:
        self.uow = uow

    async def register(self, cmd: RegisterMerchantCommand) -> RegisteredMerchant:
        merchant = Merchant(
            id=str(ULID()),
            first_name=cmd.first_name,
            middle_name=cmd.middle_name,
            last_name=cmd.last_name,
            email=cmd.email,
            phone_number=cmd.phone_number,
            address=cmd.address,
            preferred_currency=Currency.NGN,
        )
        public_key = generate_reference(PUBLIC_KEY_PREFIX)
        secret_key = generate_reference(SECRET_KEY_PREFIX)
        virtual_account = VirtualAccount(
            id=str(ULID()),
            merchant_id=merchant.id,
            account_number=generate_account_number(),
            account_name=f"{settings.virtual_account_name_prefix} | {merchant.full_name}",
            bank_code=settings.virtual_account_bank_code,
            bank_name=settings.virtual_account_bank_name,
        )
        balances = [MerchantBalance(merchant_id=merchant.id, currency=currency) for currency in Currency]

        async with self.uow:
            await self.uow.merchants.add(merchant)
            await self.uow.merchants.add_key(
                MerchantKey(
                    merchant_id=merchant.id,
                    public_key=public_key,
                    secret_key_hash=hash_secret(secret_key),
                )
            )
            await self.uow.merchants.add_virtual_account(virtual_account)
            for balance in balances:
                await self.uow.balances.add(balance)
            await self.uow.commit()

        logger.info(
            "merchant_registered",
            merchant_id=merchant.id,
            virtual_account_number=virtual_account.account_number,
        )
        return RegisteredMerchant(
            merchant=merchant,
            virtual_account=virtual_account,
            balances=balances,
            public_key=public_key,
            secret_key=secret_key,
        )

    async def authenticate(self, public_key: str | None, secret_key: str | None) -> Merchant:
        if not public_key or not secret_key:
            raise AuthError("Missing merchant credentials")

        async with self.uow:
            key = await self.uow.merchants.get_key(public_key)
            if key is None or not verify_secret(secret_key, key.secret_key_hash):
                logger.info("merchant_authentication_failed", public_key=public_key)
                raise InvalidCredentialsError()
            if not key.active:
                raise MerchantInactiveError("Merchant is not active")

            merchant = await self.uow.merchants.get(key.merchant_id)

        if merchant is None:
            raise MerchantNotFoundError(key.merchant_id)
        ensure_can_collect(merchant)
        return merchant

    async def get_merchant(self, merchant_id: str) -> Merchant:
        async with self.uow:
            merchant = await self.uow.merchants.get(merchant_id)
        if merchant is None:
            raise MerchantNotFoundError(merchant_id)
        return merchant

    async def list_merchants(
        self,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Page[Merchant]:
        check_page(limit, offset)
        search = search.strip() if search else None
        async with self.uow:
            merchants, count = await self.uow.merchants.list_paginated(search or None, limit, offset)
        return Page(items=merchants, count=count, limit=limit, offset=offset)

    async def get_balances(self, merchant_id: str) -> list[MerchantBalance]:
        async with self.uow:
            merchant = await self.uow.merchants.get(merchant_id)
            if merchant is None:
                raise MerchantNotFoundError(merchant_id)
            return await self.uow.balances.list_for_merchant(merchant_id)
