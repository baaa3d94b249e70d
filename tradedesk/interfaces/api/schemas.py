"""
Request and response models for the HTTP API.

Money and prices are serialized as decimal strings.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, SecretStr

from tradedesk.domain.entities import (
    Account,
    BankDetail,
    FundRequest,
    Holding,
    KycSubmission,
    Order,
    UpiDetail,
    WithdrawalRequest,
)
from tradedesk.domain.value_objects import MAX_AMOUNT, MAX_PRICE

Decision = Literal["approved", "rejected"]

MAX_QUANTITY = 10_000_000


# Auth
class RegisterRequest(BaseModel):
    """User registration request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: SecretStr = Field(..., min_length=12, max_length=128)
    full_name: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=20)


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str
    verification_status: str = "pending"


class LoginRequest(BaseModel):
    email: EmailStr
    password: SecretStr
    device_id: str | None = None


class LoginResponse(BaseModel):
    """Login response."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user_id: str
    roles: list[str]
    verification_status: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    everywhere: bool = False


class ChangePasswordRequest(BaseModel):
    current_password: SecretStr
    new_password: SecretStr = Field(..., min_length=12, max_length=128)


class MessageResponse(BaseModel):
    message: str


# Profiles
class AccountOut(BaseModel):
    id: UUID
    user_id: UUID
    email: str
    full_name: str | None
    phone: str | None
    funds: Decimal
    is_verified: bool
    verification_status: str
    verification_date: datetime | None
    verification_notes: str | None
    role: str
    created_at: datetime

    @classmethod
    def from_entity(cls, account: Account) -> "AccountOut":
        return cls(
            id=account.id,
            user_id=account.user_id,
            email=account.email,
            full_name=account.full_name,
            phone=account.phone,
            funds=account.funds,
            is_verified=account.is_verified,
            verification_status=account.verification_status.value,
            verification_date=account.verification_date,
            verification_notes=account.verification_notes,
            role=account.role.value,
            created_at=account.created_at,
        )


class AccountPage(BaseModel):
    accounts: list[AccountOut]
    total: int
    page: int
    total_pages: int
    status_counts: dict[str, int]


class ReviewRequest(BaseModel):
    decision: Decision
    notes: str | None = Field(None, max_length=1000)


class AdjustFundsRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT)
    operation: Literal["add", "deduct"]


class DeleteUserResponse(BaseModel):
    user_id: UUID
    deleted_rows: dict[str, int]


class DashboardOut(BaseModel):
    total_users: int
    pending_verifications: int
    pending_kyc: int
    pending_fund_requests: int
    pending_withdrawals: int


# Trading
class PlaceOrderRequest(BaseModel):
    """Simulated order; market orders fill at the last traded price."""

    model_config = ConfigDict(str_strip_whitespace=True)

    symbol: str = Field(..., min_length=1, max_length=32)
    side: Literal["buy", "sell"]
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY)
    order_type: Literal["market", "limit"] = "market"
    limit_price: Decimal | None = Field(None, gt=0, le=MAX_PRICE)


class OrderOut(BaseModel):
    id: UUID
    user_id: UUID
    stock_symbol: str
    order_type: str
    price_type: str
    quantity: int
    price: Decimal
    total_amount: Decimal
    status: str
    created_at: datetime

    @classmethod
    def from_entity(cls, order: Order) -> "OrderOut":
        return cls(
            id=order.id,
            user_id=order.user_id,
            stock_symbol=order.symbol,
            order_type=order.side.value,
            price_type=order.mode.value,
            quantity=order.quantity,
            price=order.price,
            total_amount=order.total_amount,
            status=order.status.value,
            created_at=order.created_at,
        )


class HoldingOut(BaseModel):
    id: UUID
    user_id: UUID
    stock_symbol: str
    quantity: int
    avg_price: Decimal
    current_price: Decimal | None
    profit_loss: Decimal
    invested_value: Decimal
    market_value: Decimal
    created_at: datetime
    updated_at: datetime
    full_name: str | None = None
    email: str | None = None

    @classmethod
    def from_entity(
        cls, holding: Holding, full_name: str | None = None, email: str | None = None
    ) -> "HoldingOut":
        return cls(
            id=holding.id,
            user_id=holding.user_id,
            stock_symbol=holding.symbol,
            quantity=holding.quantity,
            avg_price=holding.avg_price,
            current_price=holding.current_price,
            profit_loss=holding.profit_loss,
            invested_value=holding.invested_value,
            market_value=holding.market_value,
            created_at=holding.created_at,
            updated_at=holding.updated_at,
            full_name=full_name,
            email=email,
        )


class PlaceOrderResponse(BaseModel):
    order: OrderOut
    holding: HoldingOut | None
    holding_closed: bool
    available_funds: Decimal


class PortfolioMetricsOut(BaseModel):
    total_value: Decimal
    total_invested: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percentage: Decimal
    total_holdings: int


class PortfolioOut(BaseModel):
    holdings: list[HoldingOut]
    metrics: PortfolioMetricsOut
    available_funds: Decimal


class UpsertHoldingRequest(BaseModel):
    quantity: int = Field(..., ge=0, le=MAX_QUANTITY)
    avg_price: Decimal = Field(..., gt=0, le=MAX_PRICE)
    current_price: Decimal = Field(..., gt=0, le=MAX_PRICE)


class RefreshPricesOut(BaseModel):
    message: str
    updated_count: int
    error_count: int
    prices: dict[str, Decimal]


# Funds
class DepositRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT)
    receipt_image_url: str = Field(..., min_length=1, max_length=2048)


class WithdrawalRequestIn(BaseModel):
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT)


class FundMovementOut(BaseModel):
    id: UUID
    user_id: UUID
    amount: Decimal
    status: str
    receipt_image_url: str | None = None
    admin_notes: str | None
    reviewed_by: UUID | None
    reviewed_at: datetime | None
    created_at: datetime
    full_name: str | None = None
    email: str | None = None

    @classmethod
    def from_entity(
        cls,
        movement: FundRequest | WithdrawalRequest,
        full_name: str | None = None,
        email: str | None = None,
    ) -> "FundMovementOut":
        return cls(
            id=movement.id,
            user_id=movement.user_id,
            amount=movement.amount,
            status=movement.status.value,
            receipt_image_url=getattr(movement, "receipt_image_url", None),
            admin_notes=movement.admin_notes,
            reviewed_by=movement.reviewed_by,
            reviewed_at=movement.reviewed_at,
            created_at=movement.created_at,
            full_name=full_name,
            email=email,
        )


class FundMovementResult(BaseModel):
    request: FundMovementOut
    available_funds: Decimal | None = None


class FundMovementList(BaseModel):
    items: list[FundMovementOut]
    status_counts: dict[str, int]


class FundReviewRequest(BaseModel):
    decision: Decision
    admin_notes: str | None = Field(None, max_length=1000)


# KYC
class KycSubmitRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    aadhar_card_url: str = Field(..., min_length=1)
    pan_card_url: str = Field(..., min_length=1)
    bank_name: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=1, max_length=34)
    ifsc_code: str = Field(..., min_length=11, max_length=11)
    account_holder_name: str = Field(..., min_length=1)


class KycOut(BaseModel):
    id: UUID
    user_id: UUID
    aadhar_card_url: str
    pan_card_url: str
    bank_name: str
    account_number: str
    ifsc_code: str
    account_holder_name: str
    kyc_status: str
    verified_by: UUID | None
    verification_date: datetime | None
    verification_notes: str | None
    created_at: datetime
    full_name: str | None = None
    email: str | None = None

    @classmethod
    def from_entity(
        cls, kyc: KycSubmission, full_name: str | None = None, email: str | None = None
    ) -> "KycOut":
        docs = kyc.documents
        return cls(
            id=kyc.id,
            user_id=kyc.user_id,
            aadhar_card_url=docs.aadhar_card_url,
            pan_card_url=docs.pan_card_url,
            bank_name=docs.bank_name,
            account_number=docs.account_number,
            ifsc_code=docs.ifsc_code,
            account_holder_name=docs.account_holder_name,
            kyc_status=kyc.kyc_status.value,
            verified_by=kyc.verified_by,
            verification_date=kyc.verification_date,
            verification_notes=kyc.verification_notes,
            created_at=kyc.created_at,
            full_name=full_name,
            email=email,
        )


class KycList(BaseModel):
    items: list[KycOut]
    status_counts: dict[str, int]


# Payment settings
class BankDetailIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    account_name: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=1)
    bank_name: str = Field(..., min_length=1)
    ifsc_code: str = Field(..., min_length=1)
    branch: str | None = None
    is_active: bool = True


class UpiDetailIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    upi_id: str = Field(..., min_length=1)
    upi_name: str = Field(..., min_length=1)
    description: str | None = None
    is_active: bool = True


class ActiveToggle(BaseModel):
    is_active: bool


class BankDetailOut(BaseModel):
    id: UUID
    account_name: str
    account_number: str
    bank_name: str
    ifsc_code: str
    branch: str | None
    is_active: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, bank: BankDetail) -> "BankDetailOut":
        return cls(
            id=bank.id,
            account_name=bank.account_name,
            account_number=bank.account_number,
            bank_name=bank.bank_name,
            ifsc_code=bank.ifsc_code,
            branch=bank.branch,
            is_active=bank.is_active,
            created_at=bank.created_at,
        )


class UpiDetailOut(BaseModel):
    id: UUID
    upi_id: str
    upi_name: str
    description: str | None
    is_active: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, upi: UpiDetail) -> "UpiDetailOut":
        return cls(
            id=upi.id,
            upi_id=upi.upi_id,
            upi_name=upi.upi_name,
            description=upi.description,
            is_active=upi.is_active,
            created_at=upi.created_at,
        )


class PaymentMethodsOut(BaseModel):
    banks: list[BankDetailOut]
    upis: list[UpiDetailOut]


# Watchlist
class WatchlistAddRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    symbol: str = Field(..., min_length=1, max_length=32)
    name: str | None = Field(None, max_length=200)


class WatchlistItemOut(BaseModel):
    id: UUID
    stock_symbol: str
    stock_name: str | None
    added_at: datetime
    current_price: Decimal | None = None
    percent_change: Decimal | None = None
    net_change: Decimal | None = None
