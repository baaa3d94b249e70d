"""
KYC Use Cases

Users submit identity documents and their payout bank account; an
administrator approves or rejects the submission.
"""

from collections import Counter
from dataclasses import dataclass, field
from uuid import UUID

from tradedesk.application.interfaces.exceptions import EntityNotFoundError
from tradedesk.application.interfaces.unit_of_work import IUnitOfWork
from tradedesk.domain.entities import KycDocuments, KycSubmission
from tradedesk.domain.value_objects.review import ReviewStatus, parse_decision

from .base import TransactionalUseCase, UseCaseResponse
from .base_request import BaseRequestDTO
from .common import matches_search, require_account


@dataclass
class SubmitKycRequest(BaseRequestDTO):
    user_id: UUID
    aadhar_card_url: str
    pan_card_url: str
    bank_name: str
    account_number: str
    ifsc_code: str
    account_holder_name: str


@dataclass
class GetKycRequest(BaseRequestDTO):
    user_id: UUID


@dataclass
class ReviewKycRequest(BaseRequestDTO):
    kyc_id: UUID
    reviewer_id: UUID
    decision: str
    notes: str | None = None


@dataclass
class ListKycRequest(BaseRequestDTO):
    status: str | None = None
    search: str | None = None


@dataclass
class KycResponse(UseCaseResponse):
    submission: KycSubmission | None = None


@dataclass
class KycView:
    submission: KycSubmission
    full_name: str | None = None
    email: str | None = None


@dataclass
class ListKycResponse(UseCaseResponse):
    items: list[KycView] = field(default_factory=list)
    status_counts: dict[str, int] = field(default_factory=dict)


class SubmitKycUseCase(TransactionalUseCase[SubmitKycRequest, KycResponse]):
    """Create the user's KYC row, or replace it with a fresh pending submission."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "SubmitKycUseCase")

    async def validate(self, request: SubmitKycRequest) -> str | None:
        missing = [
            name
            for name in (
                "aadhar_card_url",
                "pan_card_url",
                "bank_name",
                "account_number",
                "ifsc_code",
                "account_holder_name",
            )
            if not (getattr(request, name) or "").strip()
        ]
        if missing:
            return f"Missing required fields: {', '.join(missing)}"
        return None

    async def process(self, request: SubmitKycRequest) -> KycResponse:
        await require_account(self.unit_of_work, request.user_id)

        documents = KycDocuments(
            aadhar_card_url=request.aadhar_card_url,
            pan_card_url=request.pan_card_url,
            bank_name=request.bank_name,
            account_number=request.account_number,
            ifsc_code=request.ifsc_code,
            account_holder_name=request.account_holder_name,
        )

        submission = await self.unit_of_work.kyc.get_for_user(request.user_id)
        if submission is None:
            submission = KycSubmission(user_id=request.user_id, documents=documents)
        else:
            submission.resubmit(documents)

        await self.unit_of_work.kyc.save(submission)
        return KycResponse(success=True, submission=submission, request_id=request.request_id)


class GetKycUseCase(TransactionalUseCase[GetKycRequest, KycResponse]):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "GetKycUseCase")

    async def validate(self, request: GetKycRequest) -> str | None:
        return None

    async def process(self, request: GetKycRequest) -> KycResponse:
        submission = await self.unit_of_work.kyc.get_for_user(request.user_id)
        return KycResponse(success=True, submission=submission, request_id=request.request_id)


class ReviewKycUseCase(TransactionalUseCase[ReviewKycRequest, KycResponse]):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ReviewKycUseCase")

    async def validate(self, request: ReviewKycRequest) -> str | None:
        try:
            parse_decision(request.decision)
        except ValueError as e:
            return str(e)
        return None

    async def process(self, request: ReviewKycRequest) -> KycResponse:
        submission = await self.unit_of_work.kyc.get(request.kyc_id, for_update=True)
        if submission is None:
            raise EntityNotFoundError("KYC submission", request.kyc_id)

        submission.review(parse_decision(request.decision), request.reviewer_id, request.notes)
        await self.unit_of_work.kyc.save(submission)

        self.logger.info(
            f"KYC {submission.id} {submission.kyc_status.value} by {request.reviewer_id}"
        )
        return KycResponse(success=True, submission=submission, request_id=request.request_id)


class ListKycUseCase(TransactionalUseCase[ListKycRequest, ListKycResponse]):
    """All submissions for review, with per-status counts and free-text search."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ListKycUseCase")

    async def validate(self, request: ListKycRequest) -> str | None:
        if request.status is not None and request.status not in [s.value for s in ReviewStatus]:
            return f"Invalid status: {request.status}"
        return None

    async def process(self, request: ListKycRequest) -> ListKycResponse:
        submissions = await self.unit_of_work.kyc.find()
        counts = Counter(s.kyc_status.value for s in submissions)
        accounts = await self.unit_of_work.accounts.get_many(
            list({s.user_id for s in submissions})
        )

        items = []
        for submission in submissions:
            if request.status and submission.kyc_status.value != request.status:
                continue
            account = accounts.get(submission.user_id)
            full_name = account.full_name if account else None
            email = account.email if account else None
            docs = submission.documents
            if not matches_search(
                request.search, full_name, email, docs.account_holder_name, docs.bank_name
            ):
                continue
            items.append(KycView(submission=submission, full_name=full_name, email=email))

        return ListKycResponse(
            success=True,
            items=items,
            status_counts={s.value: counts.get(s.value, 0) for s in ReviewStatus},
            request_id=request.request_id,
        )
