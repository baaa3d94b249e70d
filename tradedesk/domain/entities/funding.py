"""
Funding Entities - Deposit (fund) requests and withdrawal requests
"""

# Standard library imports
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from ..clock import utc_now
from ..exceptions import ValidationError
from ..value_objects.money import quantize_amount
from ..value_objects.review import ReviewStatus, ensure_pending


@dataclass
class _CashRequest:
    user_id: UUID
    amount: Decimal
    status: ReviewStatus = ReviewStatus.PENDING
    admin_notes: str | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    entity_type = "Request"

    def __post_init__(self) -> None:
        self.amount = quantize_amount(self.amount)
        if self.amount <= 0:
            raise ValidationError(
                f"{self.entity_type} amount must be positive",
                details={"amount": str(self.amount)},
            )

    def review(self, decision: ReviewStatus, reviewer_id: UUID, notes: str | None = None) -> None:
        """Approve or reject; only pending requests can be reviewed."""
        ensure_pending(self.entity_type, self.status, decision)
        self.status = decision
        self.admin_notes = notes
        self.reviewed_by = reviewer_id
        self.reviewed_at = utc_now()
        self.updated_at = self.reviewed_at


@dataclass
class FundRequest(_CashRequest):
    """A user's claim to have paid money in, backed by a payment receipt."""

    receipt_image_url: str = ""

    entity_type = "Fund request"

    def __post_init__(self) -> None:
        super().__post_init__()
        self.receipt_image_url = (self.receipt_image_url or "").strip()
        if not self.receipt_image_url:
            raise ValidationError("Payment receipt is required")


@dataclass
class WithdrawalRequest(_CashRequest):
    """A request to pay money out. The amount is reserved when submitted."""

    entity_type = "Withdrawal request"
