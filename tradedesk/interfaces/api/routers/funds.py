"""Deposits, withdrawals and the company payment details users pay into."""

from fastapi import APIRouter, Depends, Query, status

from tradedesk.application.use_cases.funds import (
    ListFundMovementsRequest,
    ListFundMovementsResponse,
    ListFundRequestsUseCase,
    ListWithdrawalsUseCase,
    SubmitFundRequestRequest,
    SubmitFundRequestUseCase,
    SubmitWithdrawalRequest,
    SubmitWithdrawalUseCase,
)
from tradedesk.application.use_cases.payment_settings import (
    ListPaymentMethodsRequest,
    ListPaymentMethodsUseCase,
)
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork

from ..dependencies import CurrentUser, get_unit_of_work, require_user
from ..errors import unwrap
from ..schemas import (
    BankDetailOut,
    DepositRequest,
    FundMovementList,
    FundMovementOut,
    FundMovementResult,
    PaymentMethodsOut,
    UpiDetailOut,
    WithdrawalRequestIn,
)

router = APIRouter(prefix="/funds", tags=["Funds"])

STATUS_PATTERN = "^(pending|approved|rejected)$"


def movement_list(response: ListFundMovementsResponse) -> FundMovementList:
    return FundMovementList(
        items=[
            FundMovementOut.from_entity(view.request, view.full_name, view.email)
            for view in response.items
        ],
        status_counts=response.status_counts,
    )


@router.post("/deposits", response_model=FundMovementResult, status_code=status.HTTP_201_CREATED)
async def submit_deposit(
    body: DepositRequest,
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> FundMovementResult:
    """Report a deposit with its payment receipt; credited once approved."""
    response = unwrap(
        await SubmitFundRequestUseCase(uow).execute(
            SubmitFundRequestRequest(
                user_id=user.user_id,
                amount=body.amount,
                receipt_image_url=body.receipt_image_url,
            )
        )
    )
    return FundMovementResult(
        request=FundMovementOut.from_entity(response.request),
        available_funds=response.available_funds,
    )


@router.get("/deposits", response_model=FundMovementList)
async def my_deposits(
    status_filter: str | None = Query(None, alias="status", pattern=STATUS_PATTERN),
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> FundMovementList:
    response = unwrap(
        await ListFundRequestsUseCase(uow).execute(
            ListFundMovementsRequest(user_id=user.user_id, status=status_filter)
        )
    )
    return movement_list(response)


@router.post(
    "/withdrawals", response_model=FundMovementResult, status_code=status.HTTP_201_CREATED
)
async def submit_withdrawal(
    body: WithdrawalRequestIn,
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> FundMovementResult:
    """Request a payout. The amount is held back from the balance until reviewed."""
    response = unwrap(
        await SubmitWithdrawalUseCase(uow).execute(
            SubmitWithdrawalRequest(user_id=user.user_id, amount=body.amount)
        )
    )
    return FundMovementResult(
        request=FundMovementOut.from_entity(response.request),
        available_funds=response.available_funds,
    )


@router.get("/withdrawals", response_model=FundMovementList)
async def my_withdrawals(
    status_filter: str | None = Query(None, alias="status", pattern=STATUS_PATTERN),
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> FundMovementList:
    response = unwrap(
        await ListWithdrawalsUseCase(uow).execute(
            ListFundMovementsRequest(user_id=user.user_id, status=status_filter)
        )
    )
    return movement_list(response)


@router.get("/payment-methods", response_model=PaymentMethodsOut)
async def payment_methods(
    _: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> PaymentMethodsOut:
    response = unwrap(
        await ListPaymentMethodsUseCase(uow).execute(ListPaymentMethodsRequest(active_only=True))
    )
    return PaymentMethodsOut(
        banks=[BankDetailOut.from_entity(b) for b in response.banks],
        upis=[UpiDetailOut.from_entity(u) for u in response.upis],
    )
