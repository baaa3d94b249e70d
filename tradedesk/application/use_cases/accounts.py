"""
Account Use Cases

Profile lookup and the administrator's user-management operations:
verification review, listing, balance adjustment and user deletion.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from tradedesk.application.interfaces.exceptions import EntityNotFoundError
from tradedesk.application.interfaces.unit_of_work import IUnitOfWork
from tradedesk.domain.entities import Account
from tradedesk.domain.exceptions import PermissionDeniedError
from tradedesk.domain.value_objects.money import format_inr, to_decimal
from tradedesk.domain.value_objects.review import ReviewStatus, parse_decision

from .base import TransactionalUseCase, UseCaseResponse
from .base_request import BaseRequestDTO
from .common import require_account

DEFAULT_PAGE_SIZE = 10


# Request/Response DTOs
@dataclass
class GetProfileRequest(BaseRequestDTO):
    user_id: UUID


@dataclass
class AccountResponse(UseCaseResponse):
    account: Account | None = None


@dataclass
class ReviewVerificationRequest(BaseRequestDTO):
    user_id: UUID
    decision: str
    notes: str | None = None


@dataclass
class ListAccountsRequest(BaseRequestDTO):
    search: str | None = None
    status: str | None = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass
class ListAccountsResponse(UseCaseResponse):
    accounts: list[Account] = field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 0
    status_counts: dict[str, int] = field(default_factory=dict)


@dataclass
class AdjustFundsRequest(BaseRequestDTO):
    user_id: UUID
    amount: Decimal
    operation: str  # "add" or "deduct"


@dataclass
class DeleteUserRequest(BaseRequestDTO):
    user_id: UUID
    admin_id: UUID


@dataclass
class DeleteUserResponse(UseCaseResponse):
    deleted_rows: dict[str, int] = field(default_factory=dict)


@dataclass
class AdminDashboardRequest(BaseRequestDTO):
    pass


@dataclass
class AdminDashboardResponse(UseCaseResponse):
    total_users: int = 0
    pending_verifications: int = 0
    pending_kyc: int = 0
    pending_fund_requests: int = 0
    pending_withdrawals: int = 0


# Use Case Implementations
class GetProfileUseCase(TransactionalUseCase[GetProfileRequest, AccountResponse]):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "GetProfileUseCase")

    async def validate(self, request: GetProfileRequest) -> str | None:
        return None

    async def process(self, request: GetProfileRequest) -> AccountResponse:
        account = await require_account(self.unit_of_work, request.user_id)
        return AccountResponse(success=True, account=account, request_id=request.request_id)


class ReviewVerificationUseCase(TransactionalUseCase[ReviewVerificationRequest, AccountResponse]):
    """Approve or reject a newly registered account."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ReviewVerificationUseCase")

    async def validate(self, request: ReviewVerificationRequest) -> str | None:
        try:
            parse_decision(request.decision)
        except ValueError as e:
            return str(e)
        return None

    async def process(self, request: ReviewVerificationRequest) -> AccountResponse:
        account = await require_account(self.unit_of_work, request.user_id, for_update=True)
        account.review_verification(parse_decision(request.decision), request.notes)
        await self.unit_of_work.accounts.save(account)

        self.logger.info(
            f"Account {account.user_id} verification {account.verification_status.value}"
        )
        return AccountResponse(success=True, account=account, request_id=request.request_id)


class ListAccountsUseCase(TransactionalUseCase[ListAccountsRequest, ListAccountsResponse]):
    """Paginated account listing, newest first, searchable by name or email."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ListAccountsUseCase")

    async def validate(self, request: ListAccountsRequest) -> str | None:
        if request.page < 1:
            return "Page must be at least 1"
        if not 1 <= request.page_size <= 100:
            return "Page size must be between 1 and 100"
        if request.status is not None and request.status not in [s.value for s in ReviewStatus]:
            return f"Invalid status: {request.status}"
        return None

    async def process(self, request: ListAccountsRequest) -> ListAccountsResponse:
        status = ReviewStatus(request.status) if request.status else None
        accounts, total = await self.unit_of_work.accounts.list_accounts(
            search=request.search,
            status=status,
            offset=(request.page - 1) * request.page_size,
            limit=request.page_size,
        )
        counts = await self.unit_of_work.accounts.count_by_status()

        return ListAccountsResponse(
            success=True,
            accounts=accounts,
            total=total,
            page=request.page,
            total_pages=math.ceil(total / request.page_size),
            status_counts=counts,
            request_id=request.request_id,
        )


class AdjustFundsUseCase(TransactionalUseCase[AdjustFundsRequest, AccountResponse]):
    """Manual balance correction; a deduction never takes the balance below zero."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "AdjustFundsUseCase")

    async def validate(self, request: AdjustFundsRequest) -> str | None:
        if request.operation not in ("add", "deduct"):
            return f"Invalid operation: {request.operation}"
        if request.amount is None or to_decimal(request.amount) <= 0:
            return "Amount must be positive"
        return None

    async def process(self, request: AdjustFundsRequest) -> AccountResponse:
        account = await require_account(self.unit_of_work, request.user_id, for_update=True)
        if request.operation == "add":
            account.credit(to_decimal(request.amount))
        else:
            account.deduct_up_to(to_decimal(request.amount))
        await self.unit_of_work.accounts.save(account)

        self.logger.info(
            f"Funds {request.operation} {format_inr(request.amount)} for {account.user_id}; "
            f"balance {format_inr(account.funds)}",
            extra=request.log_context(),
        )
        return AccountResponse(success=True, account=account, request_id=request.request_id)


class DeleteUserUseCase(TransactionalUseCase[DeleteUserRequest, DeleteUserResponse]):
    """
    Remove a user and everything they own.

    Dependent rows go first and the login credentials last, all in one
    transaction.
    """

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "DeleteUserUseCase")

    async def validate(self, request: DeleteUserRequest) -> str | None:
        return None

    async def process(self, request: DeleteUserRequest) -> DeleteUserResponse:
        if request.user_id == request.admin_id:
            raise PermissionDeniedError("Administrators cannot delete their own account")

        uow = self.unit_of_work
        account = await uow.accounts.get_by_user_id(request.user_id)
        if account is None and not await uow.credentials.exists(request.user_id):
            raise EntityNotFoundError("User", request.user_id)

        deleted = {
            "orders": await uow.orders.delete_for_user(request.user_id),
            "user_portfolios": await uow.holdings.delete_for_user(request.user_id),
            "user_watchlist": await uow.watchlist.delete_for_user(request.user_id),
            "fund_requests": await uow.fund_requests.delete_for_user(request.user_id),
            "withdrawal_requests": await uow.withdrawals.delete_for_user(request.user_id),
            "kyc_documents": await uow.kyc.delete_for_user(request.user_id),
        }
        await uow.accounts.delete(request.user_id)
        await uow.credentials.delete(request.user_id)

        self.logger.warning(
            f"User {request.user_id} deleted by admin {request.admin_id}",
            extra={**request.log_context(), "deleted_rows": deleted},
        )
        return DeleteUserResponse(success=True, deleted_rows=deleted, request_id=request.request_id)


class AdminDashboardUseCase(TransactionalUseCase[AdminDashboardRequest, AdminDashboardResponse]):
    """Headline counts for the back office."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "AdminDashboardUseCase")

    async def validate(self, request: AdminDashboardRequest) -> str | None:
        return None

    async def process(self, request: AdminDashboardRequest) -> AdminDashboardResponse:
        uow = self.unit_of_work
        pending = ReviewStatus.PENDING.value

        account_counts = await uow.accounts.count_by_status()
        kyc_counts = await uow.kyc.count_by_status()
        fund_counts = await uow.fund_requests.count_by_status()
        withdrawal_counts = await uow.withdrawals.count_by_status()

        return AdminDashboardResponse(
            success=True,
            total_users=sum(account_counts.values()),
            pending_verifications=account_counts.get(pending, 0),
            pending_kyc=kyc_counts.get(pending, 0),
            pending_fund_requests=fund_counts.get(pending, 0),
            pending_withdrawals=withdrawal_counts.get(pending, 0),
            request_id=request.request_id,
        )
