"""
Payment Settings Use Cases

Administrators maintain the bank accounts and UPI handles users pay
deposits into. Users only ever see the active ones.
"""

from dataclasses import dataclass, field
from uuid import UUID

from tradedesk.application.interfaces.exceptions import EntityNotFoundError
from tradedesk.application.interfaces.unit_of_work import IUnitOfWork
from tradedesk.domain.entities import BankDetail, UpiDetail
from tradedesk.domain.clock import utc_now

from .base import TransactionalUseCase, UseCaseResponse
from .base_request import BaseRequestDTO

BANK = "bank"
UPI = "upi"


@dataclass
class SaveBankDetailRequest(BaseRequestDTO):
    """Create when ``bank_id`` is None, otherwise update."""

    account_name: str
    account_number: str
    bank_name: str
    ifsc_code: str
    branch: str | None = None
    is_active: bool = True
    bank_id: UUID | None = None


@dataclass
class SaveUpiDetailRequest(BaseRequestDTO):
    upi_id: str
    upi_name: str
    description: str | None = None
    is_active: bool = True
    detail_id: UUID | None = None


@dataclass
class SetActiveRequest(BaseRequestDTO):
    kind: str  # "bank" or "upi"
    detail_id: UUID
    is_active: bool


@dataclass
class DeleteUpiDetailRequest(BaseRequestDTO):
    detail_id: UUID


@dataclass
class ListPaymentMethodsRequest(BaseRequestDTO):
    active_only: bool = True


@dataclass
class PaymentDetailResponse(UseCaseResponse):
    bank: BankDetail | None = None
    upi: UpiDetail | None = None


@dataclass
class ListPaymentMethodsResponse(UseCaseResponse):
    banks: list[BankDetail] = field(default_factory=list)
    upis: list[UpiDetail] = field(default_factory=list)


class SaveBankDetailUseCase(TransactionalUseCase[SaveBankDetailRequest, PaymentDetailResponse]):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "SaveBankDetailUseCase")

    async def validate(self, request: SaveBankDetailRequest) -> str | None:
        return None

    async def process(self, request: SaveBankDetailRequest) -> PaymentDetailResponse:
        repo = self.unit_of_work.payment_settings
        bank = BankDetail(
            account_name=request.account_name,
            account_number=request.account_number,
            bank_name=request.bank_name,
            ifsc_code=request.ifsc_code,
            branch=request.branch,
            is_active=request.is_active,
        )

        if request.bank_id is not None:
            existing = await repo.get_bank(request.bank_id)
            if existing is None:
                raise EntityNotFoundError("Bank detail", request.bank_id)
            bank.id = existing.id
            bank.created_at = existing.created_at
            bank.updated_at = utc_now()

        await repo.save_bank(bank)
        return PaymentDetailResponse(success=True, bank=bank, request_id=request.request_id)


class SaveUpiDetailUseCase(TransactionalUseCase[SaveUpiDetailRequest, PaymentDetailResponse]):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "SaveUpiDetailUseCase")

    async def validate(self, request: SaveUpiDetailRequest) -> str | None:
        return None

    async def process(self, request: SaveUpiDetailRequest) -> PaymentDetailResponse:
        repo = self.unit_of_work.payment_settings
        upi = UpiDetail(
            upi_id=request.upi_id,
            upi_name=request.upi_name,
            description=request.description,
            is_active=request.is_active,
        )

        if request.detail_id is not None:
            existing = await repo.get_upi(request.detail_id)
            if existing is None:
                raise EntityNotFoundError("UPI detail", request.detail_id)
            upi.id = existing.id
            upi.created_at = existing.created_at
            upi.updated_at = utc_now()

        await repo.save_upi(upi)
        return PaymentDetailResponse(success=True, upi=upi, request_id=request.request_id)


class SetPaymentMethodActiveUseCase(TransactionalUseCase[SetActiveRequest, PaymentDetailResponse]):
    """Show or hide a bank account or UPI handle from users."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "SetPaymentMethodActiveUseCase")

    async def validate(self, request: SetActiveRequest) -> str | None:
        if request.kind not in (BANK, UPI):
            return f"Invalid payment method kind: {request.kind}"
        return None

    async def process(self, request: SetActiveRequest) -> PaymentDetailResponse:
        repo = self.unit_of_work.payment_settings
        if request.kind == BANK:
            bank = await repo.get_bank(request.detail_id)
            if bank is None:
                raise EntityNotFoundError("Bank detail", request.detail_id)
            bank.set_active(request.is_active)
            await repo.save_bank(bank)
            return PaymentDetailResponse(success=True, bank=bank, request_id=request.request_id)

        upi = await repo.get_upi(request.detail_id)
        if upi is None:
            raise EntityNotFoundError("UPI detail", request.detail_id)
        upi.set_active(request.is_active)
        await repo.save_upi(upi)
        return PaymentDetailResponse(success=True, upi=upi, request_id=request.request_id)


class DeleteUpiDetailUseCase(TransactionalUseCase[DeleteUpiDetailRequest, PaymentDetailResponse]):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "DeleteUpiDetailUseCase")

    async def validate(self, request: DeleteUpiDetailRequest) -> str | None:
        return None

    async def process(self, request: DeleteUpiDetailRequest) -> PaymentDetailResponse:
        repo = self.unit_of_work.payment_settings
        upi = await repo.get_upi(request.detail_id)
        if upi is None:
            raise EntityNotFoundError("UPI detail", request.detail_id)
        await repo.delete_upi(upi.id)
        return PaymentDetailResponse(success=True, upi=upi, request_id=request.request_id)


class ListPaymentMethodsUseCase(
    TransactionalUseCase[ListPaymentMethodsRequest, ListPaymentMethodsResponse]
):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ListPaymentMethodsUseCase")

    async def validate(self, request: ListPaymentMethodsRequest) -> str | None:
        return None

    async def process(self, request: ListPaymentMethodsRequest) -> ListPaymentMethodsResponse:
        repo = self.unit_of_work.payment_settings
        return ListPaymentMethodsResponse(
            success=True,
            banks=await repo.list_banks(active_only=request.active_only),
            upis=await repo.list_upis(active_only=request.active_only),
            request_id=request.request_id,
        )
