"""
KYC Entity - Identity documents and payout bank account for one user
"""

# Standard library imports
import re
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from ..clock import utc_now
from ..exceptions import InvalidStatusTransitionError, ValidationError
from ..value_objects.review import ReviewStatus, ensure_pending

IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")

REQUIRED_FIELDS = (
    "aadhar_card_url",
    "pan_card_url",
    "bank_name",
    "account_number",
    "ifsc_code",
    "account_holder_name",
)


@dataclass
class KycDocuments:
    """The user-supplied part of a KYC submission."""

    aadhar_card_url: str
    pan_card_url: str
    bank_name: str
    account_number: str
    ifsc_code: str
    account_holder_name: str

    def __post_init__(self) -> None:
        for name in REQUIRED_FIELDS:
            value = (getattr(self, name) or "").strip()
            if not value:
                raise ValidationError(f"{name} is required", details={"field": name})
            setattr(self, name, value)

        self.ifsc_code = self.ifsc_code.upper()
        if not IFSC_PATTERN.match(self.ifsc_code):
            raise ValidationError(
                "Invalid IFSC code", details={"field": "ifsc_code", "value": self.ifsc_code}
            )
        self.account_number = self.account_number.replace(" ", "")
        if not self.account_number.isdigit():
            raise ValidationError("Account number must be numeric", details={"field": "account_number"})


@dataclass
class KycSubmission:
    """
    KYC entity backing the ``kyc_documents`` table; one row per user.

    Resubmitting moves the row back to pending, except once it is approved.
    """

    user_id: UUID
    documents: KycDocuments
    kyc_status: ReviewStatus = ReviewStatus.PENDING
    verified_by: UUID | None = None
    verification_date: datetime | None = None
    verification_notes: str | None = None

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def resubmit(self, documents: KycDocuments) -> None:
        if self.kyc_status is ReviewStatus.APPROVED:
            raise InvalidStatusTransitionError(
                "KYC", self.kyc_status.value, ReviewStatus.PENDING.value
            )
        self.documents = documents
        self.kyc_status = ReviewStatus.PENDING
        self.verified_by = None
        self.verification_date = None
        self.verification_notes = None
        self.updated_at = utc_now()

    def review(self, decision: ReviewStatus, reviewer_id: UUID, notes: str | None = None) -> None:
        ensure_pending("KYC", self.kyc_status, decision)
        self.kyc_status = decision
        self.verified_by = reviewer_id
        self.verification_notes = notes
        self.verification_date = utc_now()
        self.updated_at = self.verification_date
