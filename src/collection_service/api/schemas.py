import re
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, field_validator, model_validator

from collection_service.domain.models import (
    CardDetails,
    Currency,
    Merchant,
    MerchantBalance,
    PaymentMethod,
    Payout,
    Transaction,
    TransactionType,
    VirtualAccount,
    VirtualAccountDetails,
)


# Money travels as a JSON number
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


EXPIRY_PATTERN = re.compile(r"^(0[1-9]|1[0-2])/?([0-9]{2})$")
VERIFICATION_CODE_PATTERN = re.compile(r"^[0-9]{3}$")
ACCOUNT_NUMBER_PATTERN = re.compile(r"^[0-9]{6,}$")
BANK_CODE_PATTERN = re.compile(r"^[0-9]{3}$")


def luhn_valid(number: str) -> bool:
    digits = "".join(number.split())
    if not digits.isdigit() or not 12 <= len(digits) <= 19:
        return False
    total = 0
    for i, ch in enumerate(reversed(digits)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


class RequestModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("currency", mode="before", check_fields=False)
    @classmethod
    def upper_currency(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v


class CreateMerchantRequest(RequestModel):
    first_name: str = Field(min_length=1)
    middle_name: str | None = None
    last_name: str = Field(min_length=1)
    email: EmailStr
    phone_number: str = Field(min_length=1)
    address: str | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class InitializeTransactionRequest(RequestModel):
    amount: Decimal = Field(gt=0)
    currency: Currency
    description: str | None = None


class PayRequest(RequestModel):
    """Capture request. Card fields are required for card payments, account fields otherwise."""

    transaction_id: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    currency: Currency
    tx_type: TransactionType
    payment_method_id: str = Field(min_length=1)
    tx_desc: str | None = None
    customer_name: str | None = None
    customer_email: EmailStr | None = None
    customer_phone_number: str | None = None

    card_number: str | None = None
    card_holder_name: str | None = None
    card_expiration_date: str | None = None
    card_verification_code: str | None = None

    customer_account_name: str | None = None
    customer_account_number: str | None = None
    customer_bank_code: str | None = None

    @field_validator("customer_email", mode="before")
    @classmethod
    def blank_customer_email(cls, v: Any) -> Any:
        return v or None

    @field_validator("customer_email")
    @classmethod
    def lower_customer_email(cls, v: str | None) -> str | None:
        return v.lower() if v else None

    @model_validator(mode="after")
    def check_payment_details(self) -> "PayRequest":
        if self.tx_type is TransactionType.CARD:
            if not self.card_number or not luhn_valid(self.card_number):
                raise ValueError("Card number must be a valid credit card number")
            self.card_number = "".join(self.card_number.split())
            if not self.card_holder_name:
                raise ValueError("Card holder name is required for card transactions")
            expiry = "".join((self.card_expiration_date or "").split())
            if not EXPIRY_PATTERN.match(expiry):
                raise ValueError("Card expiration date must be in MM/YY format")
            self.card_expiration_date = expiry
            if not self.card_verification_code or not VERIFICATION_CODE_PATTERN.match(
                self.card_verification_code
            ):
                raise ValueError("CVV must be 3 digits")
        else:
            if not self.customer_account_name:
                raise ValueError("Customer account name is required for virtual account transactions")
            if not self.customer_account_number or not ACCOUNT_NUMBER_PATTERN.match(
                self.customer_account_number
            ):
                raise ValueError("Customer account number must contain at least 6 digits")
            if not self.customer_bank_code or not BANK_CODE_PATTERN.match(self.customer_bank_code):
                raise ValueError("Customer bank code must be 3 digits")
        return self


class CardSettlementRequest(RequestModel):
    transaction_id: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    currency: Currency
    card_number: str

    @field_validator("card_number")
    @classmethod
    def validate_card_number(cls, v: str) -> str:
        if not luhn_valid(v):
            raise ValueError("Card number must be a valid credit card number")
        return "".join(v.split())


class RequestPayoutRequest(RequestModel):
    amount: Decimal = Field(gt=0)
    currency: Currency
    account_name: str = Field(min_length=1)
    account_number: str = Field(min_length=1)
    bank_code: str = Field(min_length=1)
    bank_name: str = Field(min_length=1)


class MerchantResponse(BaseModel):
    id: str
    first_name: str
    middle_name: str | None
    last_name: str
    email: str
    phone_number: str
    address: str | None
    preferred_currency: str
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, merchant: Merchant) -> "MerchantResponse":
        return cls(
            id=merchant.id,
            first_name=merchant.first_name,
            middle_name=merchant.middle_name,
            last_name=merchant.last_name,
            email=merchant.email,
            phone_number=merchant.phone_number,
            address=merchant.address,
            preferred_currency=merchant.preferred_currency.value,
            status=merchant.status.value,
            created_at=merchant.created_at,
        )


class VirtualAccountResponse(BaseModel):
    account_number: str
    account_name: str
    bank_code: str
    bank_name: str

    @classmethod
    def from_domain(cls, account: VirtualAccount) -> "VirtualAccountResponse":
        return cls(
            account_number=account.account_number,
            account_name=account.account_name,
            bank_code=account.bank_code,
            bank_name=account.bank_name,
        )


class BalanceResponse(BaseModel):
    currency: str
    available_balance: Amount
    pending_settlement_balance: Amount
    updated_at: datetime

    @classmethod
    def from_domain(cls, balance: MerchantBalance) -> "BalanceResponse":
        return cls(
            currency=balance.currency.value,
            available_balance=balance.available_balance,
            pending_settlement_balance=balance.pending_settlement_balance,
            updated_at=balance.updated_at,
        )


class RegisteredMerchantResponse(BaseModel):
    merchant: MerchantResponse
    virtual_account: VirtualAccountResponse
    balances: list[BalanceResponse]
    public_key: str
    secret_key: str


class PaymentMethodResponse(BaseModel):
    id: str
    name: str
    fee_type: str | None
    fee_rate: Amount
    fee_amount: Amount
    minimum_amount: Amount
    maximum_amount: Amount

    @classmethod
    def from_domain(cls, method: PaymentMethod) -> "PaymentMethodResponse":
        return cls(
            id=method.id,
            name=method.name,
            fee_type=method.fee_type.value if method.fee_type else None,
            fee_rate=method.fee_rate,
            fee_amount=method.fee_amount,
            minimum_amount=method.minimum_amount,
            maximum_amount=method.maximum_amount,
        )


class TransactionResponse(BaseModel):
    id: str
    reference: str
    merchant_id: str
    amount: Amount
    currency: str
    status: str
    tx_type: str | None
    payment_method_id: str | None
    description: str | None
    customer_name: str | None
    customer_email: str | None
    customer_phone_number: str | None
    fee_rate: Amount | None
    fee_amount: Amount | None
    total_amount: Amount | None
    card_last_four: str | None = None
    card_holder_name: str | None = None
    card_expiration_date: str | None = None
    customer_account_name: str | None = None
    customer_account_number: str | None = None
    customer_bank_code: str | None = None
    settled_at: datetime | None
    created_at: datetime

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionResponse":
        details: dict[str, Any] = {}
        match tx.details:
            case CardDetails(last_four=last_four, holder_name=holder_name, expiry=expiry):
                details = {
                    "card_last_four": last_four,
                    "card_holder_name": holder_name,
                    "card_expiration_date": expiry,
                }
            case VirtualAccountDetails(account_name=name, account_number=number, bank_code=code):
                details = {
                    "customer_account_name": name,
                    "customer_account_number": number,
                    "customer_bank_code": code,
                }
        return cls(
            id=tx.id,
            reference=tx.reference,
            merchant_id=tx.merchant_id,
            amount=tx.amount,
            currency=tx.currency.value,
            status=tx.status.value,
            tx_type=tx.tx_type.value if tx.tx_type else None,
            payment_method_id=tx.payment_method_id,
            description=tx.description,
            customer_name=tx.customer_name,
            customer_email=tx.customer_email,
            customer_phone_number=tx.customer_phone_number,
            fee_rate=tx.fee_rate,
            fee_amount=tx.fee_amount,
            total_amount=tx.total_amount,
            settled_at=tx.settled_at,
            created_at=tx.created_at,
            **details,
        )


class InitializedTransactionResponse(BaseModel):
    transaction: TransactionResponse
    virtual_account: VirtualAccountResponse
    payment_methods: list[PaymentMethodResponse]


class PayoutResponse(BaseModel):
    id: str
    reference: str
    merchant_id: str
    amount: Amount
    currency: str
    status: str
    account_name: str
    account_number: str
    bank_code: str
    bank_name: str
    created_at: datetime

    @classmethod
    def from_domain(cls, payout: Payout) -> "PayoutResponse":
        return cls(
            id=payout.id,
            reference=payout.reference,
            merchant_id=payout.merchant_id,
            amount=payout.amount,
            currency=payout.currency.value,
            status=payout.status.value,
            account_name=payout.destination.account_name,
            account_number=payout.destination.account_number,
            bank_code=payout.destination.bank_code,
            bank_name=payout.destination.bank_name,
            created_at=payout.created_at,
        )


def envelope(data: BaseModel | list[BaseModel], count: int | None = None) -> dict[str, Any]:
    if isinstance(data, list):
        payload: Any = [item.model_dump(mode="json") for item in data]
    else:
        payload = data.model_dump(mode="json")
    body: dict[str, Any] = {"data": payload, "error": None}
    if count is not None:
        body["count"] = count
    return body


def error_envelope(code: str, message: str) -> dict[str, Any]:
    return {"data": None, "error": {"code": code, "message": message}}
