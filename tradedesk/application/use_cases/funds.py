"""
Fund Movement Use Cases

Deposits are credited when an administrator approves them. Withdrawals
reserve the amount as soon as they are submitted and give it back if
they are rejected. Each balance change is written in the same
transaction as the request row it belongs to.
"""

from abc import abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from tradedesk.application.interfaces.exceptions import EntityNotFoundError
from tradedesk.application.interfaces.unit_of_work import IUnitOfWork
from tradedesk.domain.entities import Account, FundRequest, WithdrawalRequest
from tradedesk.domain.value_objects.money import format_inr, to_decimal
from tradedesk.domain.value_objects.review import ReviewStatus, parse_decision

from .base import TransactionalUseCase, UseCaseResponse
from .base_request import BaseRequestDTO
from .common import matches_search, require_account, require_verified_account


# Request/Response DTOs
@dataclass
class SubmitFundRequestRequest(BaseRequestDTO):
    user_id: UUID
    amount: Decimal
    receipt_image_url: str


@dataclass
class SubmitWithdrawalRequest(BaseRequestDTO):
    user_id: UUID
    amount: Decimal


@dataclass
class ReviewFundMovementRequest(BaseRequestDTO):
    """Admin decision on a deposit or withdrawal."""

    request_id_to_review: UUID
    reviewer_id: UUID
    decision: str  # "approved" or "rejected"
    admin_notes: str | None = None


@dataclass
class ListFundMovementsRequest(BaseRequestDTO):
    """Listing filter; ``user_id`` restricts to one user's own requests."""

    user_id: UUID | None = None
    status: str | None = None
    search: str | None = None


@dataclass
class FundMovementView:
    """A request joined with the name and email of its owner."""

    request: FundRequest | WithdrawalRequest
    full_name: str | None = None
    email: str | None = None


@dataclass
class FundMovementResponse(UseCaseResponse):
    request: FundRequest | WithdrawalRequest | None = None
    available_funds: Decimal | None = None


@dataclass
class ListFundMovementsResponse(UseCaseResponse):
    items: list[FundMovementView] = field(default_factory=list)
    status_counts: dict[str, int] = field(default_factory=dict)


def _validate_amount(amount: Decimal | None) -> str | None:
    if amount is None:
        return "Amount is required"
    if to_decimal(amount) <= 0:
        return "Amount must be positive"
    return None


def _validate_decision(decision: str) -> str | None:
    try:
        parse_decision(decision)
    except ValueError as e:
        return str(e)
    return None


def _validate_status(status: str | None) -> str | None:
    if status is not None and status not in [s.value for s in ReviewStatus]:
        return f"Invalid status: {status}"
    return None


# Use Case Implementations
class SubmitFundRequestUseCase(TransactionalUseCase[SubmitFundRequestRequest, FundMovementResponse]):
    """A user reports a deposit, attaching the payment receipt."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "SubmitFundRequestUseCase")

    async def validate(self, request: SubmitFundRequestRequest) -> str | None:
        if not request.receipt_image_url or not request.receipt_image_url.strip():
            return "Payment receipt is required"
        return _validate_amount(request.amount)

    async def process(self, request: SubmitFundRequestRequest) -> FundMovementResponse:
        account = await require_verified_account(self.unit_of_work, request.user_id)

        fund_request = FundRequest(
            user_id=request.user_id,
            amount=to_decimal(request.amount),
            receipt_image_url=request.receipt_image_url,
        )
        await self.unit_of_work.fund_requests.save(fund_request)

        return FundMovementResponse(
            success=True,
            request=fund_request,
            available_funds=account.funds,
            request_id=request.request_id,
        )


class ReviewFundRequestUseCase(
    TransactionalUseCase[ReviewFundMovementRequest, FundMovementResponse]
):
    """Approving a deposit credits the user's balance."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ReviewFundRequestUseCase")

    async def validate(self, request: ReviewFundMovementRequest) -> str | None:
        return _validate_decision(request.decision)

    async def process(self, request: ReviewFundMovementRequest) -> FundMovementResponse:
        fund_request = await self.unit_of_work.fund_requests.get(
            request.request_id_to_review, for_update=True
        )
        if fund_request is None:
            raise EntityNotFoundError("Fund request", request.request_id_to_review)

        decision = parse_decision(request.decision)
        fund_request.review(decision, request.reviewer_id, request.admin_notes)

        account = await require_account(self.unit_of_work, fund_request.user_id, for_update=True)
        if decision is ReviewStatus.APPROVED:
            account.credit(fund_request.amount)
            await self.unit_of_work.accounts.save(account)

        await self.unit_of_work.fund_requests.save(fund_request)

        self.logger.info(
            f"Deposit of {format_inr(fund_request.amount)} {decision.value} "
            f"(request {fund_request.id})",
            extra=request.log_context(),
        )
        return FundMovementResponse(
            success=True,
            request=fund_request,
            available_funds=account.funds,
            request_id=request.request_id,
        )


class SubmitWithdrawalUseCase(TransactionalUseCase[SubmitWithdrawalRequest, FundMovementResponse]):
    """Reserve the amount and queue a withdrawal for review."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "SubmitWithdrawalUseCase")

    async def validate(self, request: SubmitWithdrawalRequest) -> str | None:
        return _validate_amount(request.amount)

    async def process(self, request: SubmitWithdrawalRequest) -> FundMovementResponse:
        account = await require_verified_account(self.unit_of_work, request.user_id)

        withdrawal = WithdrawalRequest(user_id=request.user_id, amount=to_decimal(request.amount))
        account.debit(withdrawal.amount)

        await self.unit_of_work.accounts.save(account)
        await self.unit_of_work.withdrawals.save(withdrawal)

        return FundMovementResponse(
            success=True,
            request=withdrawal,
            available_funds=account.funds,
            request_id=request.request_id,
        )


class ReviewWithdrawalUseCase(
    TransactionalUseCase[ReviewFundMovementRequest, FundMovementResponse]
):
    """Approving keeps the reservation; rejecting returns it to the balance."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ReviewWithdrawalUseCase")

    async def validate(self, request: ReviewFundMovementRequest) -> str | None:
        return _validate_decision(request.decision)

    async def process(self, request: ReviewFundMovementRequest) -> FundMovementResponse:
        withdrawal = await self.unit_of_work.withdrawals.get(
            request.request_id_to_review, for_update=True
        )
        if withdrawal is None:
            raise EntityNotFoundError("Withdrawal request", request.request_id_to_review)

        decision = parse_decision(request.decision)
        withdrawal.review(decision, request.reviewer_id, request.admin_notes)

        account = await require_account(self.unit_of_work, withdrawal.user_id, for_update=True)
        if decision is ReviewStatus.REJECTED:
            account.credit(withdrawal.amount)
            await self.unit_of_work.accounts.save(account)

        await self.unit_of_work.withdrawals.save(withdrawal)

        self.logger.info(
            f"Withdrawal of {format_inr(withdrawal.amount)} {decision.value} "
            f"(request {withdrawal.id})",
            extra=request.log_context(),
        )
        return FundMovementResponse(
            success=True,
            request=withdrawal,
            available_funds=account.funds,
            request_id=request.request_id,
        )


class _ListFundMovementsUseCase(
    TransactionalUseCase[ListFundMovementsRequest, ListFundMovementsResponse]
):
    async def validate(self, request: ListFundMovementsRequest) -> str | None:
        return _validate_status(request.status)

    @abstractmethod
    async def _load(self, user_id: UUID | None) -> list[FundRequest] | list[WithdrawalRequest]:
        """Movements of one user, or of everyone when ``user_id`` is None."""

    async def process(self, request: ListFundMovementsRequest) -> ListFundMovementsResponse:
        movements = await self._load(request.user_id)
        counts = Counter(m.status.value for m in movements)

        accounts: dict[UUID, Account] = await self.unit_of_work.accounts.get_many(
            list({m.user_id for m in movements})
        )

        items = []
        for movement in movements:
            if request.status and movement.status.value != request.status:
                continue
            account = accounts.get(movement.user_id)
            full_name = account.full_name if account else None
            email = account.email if account else None
            if not matches_search(
                request.search, full_name, email, movement.status.value, movement.amount
            ):
                continue
            items.append(FundMovementView(request=movement, full_name=full_name, email=email))

        return ListFundMovementsResponse(
            success=True,
            items=items,
            status_counts={s.value: counts.get(s.value, 0) for s in ReviewStatus},
            request_id=request.request_id,
        )


class ListFundRequestsUseCase(_ListFundMovementsUseCase):
    """Deposit requests, newest first."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ListFundRequestsUseCase")

    async def _load(self, user_id: UUID | None) -> list[FundRequest]:
        return await self.unit_of_work.fund_requests.find(user_id=user_id)


class ListWithdrawalsUseCase(_ListFundMovementsUseCase):
    """Withdrawal requests, newest first."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ListWithdrawalsUseCase")

    async def _load(self, user_id: UUID | None) -> list[WithdrawalRequest]:
        return await self.unit_of_work.withdrawals.find(user_id=user_id)
