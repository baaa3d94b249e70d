"""Review status shared by account verification, KYC and fund movements."""

from enum import Enum

from ..exceptions import InvalidStatusTransitionError


class ReviewStatus(Enum):
    """Lifecycle of anything an administrator approves or rejects."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_final(self) -> bool:
        return self is not ReviewStatus.PENDING


def parse_decision(value: str) -> ReviewStatus:
    """Parse an admin decision; only approve/reject are decisions."""
    try:
        status = ReviewStatus(value.lower())
    except ValueError:
        raise ValueError(f"Invalid review decision: {value}") from None
    if status is ReviewStatus.PENDING:
        raise ValueError("Review decision must be 'approved' or 'rejected'")
    return status


def ensure_pending(entity_type: str, current: ReviewStatus, target: ReviewStatus) -> None:
    """Guard a pending -> approved|rejected transition."""
    if current.is_final:
        raise InvalidStatusTransitionError(entity_type, current.value, target.value)
