"""
Back-office endpoints.

Every route requires the ``admin`` role.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tradedesk.application.use_cases.accounts import (
    AdjustFundsRequest,
    AdjustFundsUseCase,
    AdminDashboardRequest,
    AdminDashboardUseCase,
    DeleteUserRequest,
    DeleteUserUseCase,
    ListAccountsRequest,
    ListAccountsUseCase,
    ReviewVerificationRequest,
    ReviewVerificationUseCase,
)
from tradedesk.application.use_cases.funds import (
    ListFundMovementsRequest,
    ListFundRequestsUseCase,
    ListWithdrawalsUseCase,
    ReviewFundMovementRequest,
    ReviewFundRequestUseCase,
    ReviewWithdrawalUseCase,
)
from tradedesk.application.use_cases.kyc import (
    ListKycRequest,
    ListKycUseCase,
    ReviewKycRequest,
    ReviewKycUseCase,
)
from tradedesk.application.use_cases.payment_settings import (
    BANK,
    UPI,
    DeleteUpiDetailRequest,
    DeleteUpiDetailUseCase,
    ListPaymentMethodsRequest,
    ListPaymentMethodsUseCase,
    SaveBankDetailRequest,
    SaveBankDetailUseCase,
    SaveUpiDetailRequest,
    SaveUpiDetailUseCase,
    SetActiveRequest,
    SetPaymentMethodActiveUseCase,
)
from tradedesk.infrastructure.auth import JWTService
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork

from ..dependencies import CurrentUser, get_jwt_service, get_unit_of_work, require_admin
from ..errors import unwrap
from ..schemas import (
    AccountOut,
    AccountPage,
    ActiveToggle,
    BankDetailIn,
    BankDetailOut,
    DashboardOut,
    DeleteUserResponse,
    FundMovementList,
    FundMovementOut,
    FundMovementResult,
    FundReviewRequest,
    KycList,
    KycOut,
    PaymentMethodsOut,
    ReviewRequest,
    UpiDetailIn,
    UpiDetailOut,
)
from ..schemas import AdjustFundsRequest as AdjustFundsBody
from .funds import STATUS_PATTERN, movement_list

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/dashboard", response_model=DashboardOut)
async def dashboard(uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work)) -> DashboardOut:
    response = unwrap(await AdminDashboardUseCase(uow).execute(AdminDashboardRequest()))
    return DashboardOut(
        total_users=response.total_users,
        pending_verifications=response.pending_verifications,
        pending_kyc=response.pending_kyc,
        pending_fund_requests=response.pending_fund_requests,
        pending_withdrawals=response.pending_withdrawals,
    )


# Accounts
@router.get("/accounts", response_model=AccountPage)
async def list_accounts(
    search: str | None = Query(None, max_length=100),
    status_filter: str | None = Query(None, alias="status", pattern=STATUS_PATTERN),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> AccountPage:
    """Accounts with their role, newest first, ten per page by default."""
    response = unwrap(
        await ListAccountsUseCase(uow).execute(
            ListAccountsRequest(
                search=search, status=status_filter, page=page, page_size=page_size
            )
        )
    )
    return AccountPage(
        accounts=[AccountOut.from_entity(a) for a in response.accounts],
        total=response.total,
        page=response.page,
        total_pages=response.total_pages,
        status_counts=response.status_counts,
    )


@router.post("/accounts/{user_id}/verification", response_model=AccountOut)
async def review_verification(
    user_id: UUID,
    body: ReviewRequest,
    admin: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> AccountOut:
    response = unwrap(
        await ReviewVerificationUseCase(uow).execute(
            ReviewVerificationRequest(
                user_id=user_id,
                decision=body.decision,
                notes=body.notes,
                actor_id=admin.user_id,
            )
        )
    )
    return AccountOut.from_entity(response.account)


@router.post("/accounts/{user_id}/funds", response_model=AccountOut)
async def adjust_funds(
    user_id: UUID,
    body: AdjustFundsBody,
    admin: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> AccountOut:
    """Add to or deduct from a balance; deductions stop at zero."""
    response = unwrap(
        await AdjustFundsUseCase(uow).execute(
            AdjustFundsRequest(
                user_id=user_id,
                amount=body.amount,
                operation=body.operation,
                actor_id=admin.user_id,
            )
        )
    )
    return AccountOut.from_entity(response.account)


@router.delete("/users/{user_id}", response_model=DeleteUserResponse)
async def delete_user(
    user_id: UUID,
    admin: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
    jwt_service: JWTService = Depends(get_jwt_service),
) -> DeleteUserResponse:
    response = unwrap(
        await DeleteUserUseCase(uow).execute(
            DeleteUserRequest(user_id=user_id, admin_id=admin.user_id, actor_id=admin.user_id)
        )
    )
    jwt_service.revoke_all_user_tokens(str(user_id))
    return DeleteUserResponse(user_id=user_id, deleted_rows=response.deleted_rows)


# KYC
@router.get("/kyc", response_model=KycList)
async def list_kyc(
    search: str | None = Query(None, max_length=100),
    status_filter: str | None = Query(None, alias="status", pattern=STATUS_PATTERN),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> KycList:
    response = unwrap(
        await ListKycUseCase(uow).execute(ListKycRequest(status=status_filter, search=search))
    )
    return KycList(
        items=[KycOut.from_entity(v.submission, v.full_name, v.email) for v in response.items],
        status_counts=response.status_counts,
    )


@router.post("/kyc/{kyc_id}/review", response_model=KycOut)
async def review_kyc(
    kyc_id: UUID,
    body: ReviewRequest,
    admin: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> KycOut:
    response = unwrap(
        await ReviewKycUseCase(uow).execute(
            ReviewKycRequest(
                kyc_id=kyc_id,
                reviewer_id=admin.user_id,
                decision=body.decision,
                notes=body.notes,
                actor_id=admin.user_id,
            )
        )
    )
    return KycOut.from_entity(response.submission)


# Deposits and withdrawals
@router.get("/deposits", response_model=FundMovementList)
async def list_deposits(
    search: str | None = Query(None, max_length=100),
    status_filter: str | None = Query(None, alias="status", pattern=STATUS_PATTERN),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> FundMovementList:
    response = unwrap(
        await ListFundRequestsUseCase(uow).execute(
            ListFundMovementsRequest(status=status_filter, search=search)
        )
    )
    return movement_list(response)


@router.post("/deposits/{fund_request_id}/review", response_model=FundMovementResult)
async def review_deposit(
    fund_request_id: UUID,
    body: FundReviewRequest,
    admin: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> FundMovementResult:
    """Approving credits the user's balance in the same transaction."""
    response = unwrap(
        await ReviewFundRequestUseCase(uow).execute(
            ReviewFundMovementRequest(
                request_id_to_review=fund_request_id,
                reviewer_id=admin.user_id,
                actor_id=admin.user_id,
                decision=body.decision,
                admin_notes=body.admin_notes,
            )
        )
    )
    return FundMovementResult(
        request=FundMovementOut.from_entity(response.request),
        available_funds=response.available_funds,
    )


@router.get("/withdrawals", response_model=FundMovementList)
async def list_withdrawals(
    search: str | None = Query(None, max_length=100),
    status_filter: str | None = Query(None, alias="status", pattern=STATUS_PATTERN),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> FundMovementList:
    response = unwrap(
        await ListWithdrawalsUseCase(uow).execute(
            ListFundMovementsRequest(status=status_filter, search=search)
        )
    )
    return movement_list(response)


@router.post("/withdrawals/{withdrawal_id}/review", response_model=FundMovementResult)
async def review_withdrawal(
    withdrawal_id: UUID,
    body: FundReviewRequest,
    admin: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> FundMovementResult:
    """Rejecting returns the reserved amount to the user."""
    response = unwrap(
        await ReviewWithdrawalUseCase(uow).execute(
            ReviewFundMovementRequest(
                request_id_to_review=withdrawal_id,
                reviewer_id=admin.user_id,
                actor_id=admin.user_id,
                decision=body.decision,
                admin_notes=body.admin_notes,
            )
        )
    )
    return FundMovementResult(
        request=FundMovementOut.from_entity(response.request),
        available_funds=response.available_funds,
    )


# Payment settings
@router.get("/payment-methods", response_model=PaymentMethodsOut)
async def all_payment_methods(
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> PaymentMethodsOut:
    response = unwrap(
        await ListPaymentMethodsUseCase(uow).execute(ListPaymentMethodsRequest(active_only=False))
    )
    return PaymentMethodsOut(
        banks=[BankDetailOut.from_entity(b) for b in response.banks],
        upis=[UpiDetailOut.from_entity(u) for u in response.upis],
    )


@router.post("/bank-details", response_model=BankDetailOut, status_code=status.HTTP_201_CREATED)
async def create_bank_detail(
    body: BankDetailIn, uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work)
) -> BankDetailOut:
    response = unwrap(
        await SaveBankDetailUseCase(uow).execute(SaveBankDetailRequest(**body.model_dump()))
    )
    return BankDetailOut.from_entity(response.bank)


@router.put("/bank-details/{bank_id}", response_model=BankDetailOut)
async def update_bank_detail(
    bank_id: UUID, body: BankDetailIn, uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work)
) -> BankDetailOut:
    response = unwrap(
        await SaveBankDetailUseCase(uow).execute(
            SaveBankDetailRequest(bank_id=bank_id, **body.model_dump())
        )
    )
    return BankDetailOut.from_entity(response.bank)


@router.patch("/bank-details/{bank_id}/active", response_model=BankDetailOut)
async def toggle_bank_detail(
    bank_id: UUID, body: ActiveToggle, uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work)
) -> BankDetailOut:
    response = unwrap(
        await SetPaymentMethodActiveUseCase(uow).execute(
            SetActiveRequest(kind=BANK, detail_id=bank_id, is_active=body.is_active)
        )
    )
    return BankDetailOut.from_entity(response.bank)


@router.post("/upi-details", response_model=UpiDetailOut, status_code=status.HTTP_201_CREATED)
async def create_upi_detail(
    body: UpiDetailIn, uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work)
) -> UpiDetailOut:
    response = unwrap(
        await SaveUpiDetailUseCase(uow).execute(SaveUpiDetailRequest(**body.model_dump()))
    )
    return UpiDetailOut.from_entity(response.upi)


@router.put("/upi-details/{detail_id}", response_model=UpiDetailOut)
async def update_upi_detail(
    detail_id: UUID, body: UpiDetailIn, uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work)
) -> UpiDetailOut:
    response = unwrap(
        await SaveUpiDetailUseCase(uow).execute(
            SaveUpiDetailRequest(detail_id=detail_id, **body.model_dump())
        )
    )
    return UpiDetailOut.from_entity(response.upi)


@router.patch("/upi-details/{detail_id}/active", response_model=UpiDetailOut)
async def toggle_upi_detail(
    detail_id: UUID, body: ActiveToggle, uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work)
) -> UpiDetailOut:
    response = unwrap(
        await SetPaymentMethodActiveUseCase(uow).execute(
            SetActiveRequest(kind=UPI, detail_id=detail_id, is_active=body.is_active)
        )
    )
    return UpiDetailOut.from_entity(response.upi)


@router.delete("/upi-details/{detail_id}", response_model=UpiDetailOut)
async def delete_upi_detail(
    detail_id: UUID, uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work)
) -> UpiDetailOut:
    response = unwrap(
        await DeleteUpiDetailUseCase(uow).execute(DeleteUpiDetailRequest(detail_id=detail_id))
    )
    return UpiDetailOut.from_entity(response.upi)
