"""
Account Entity - A trader's profile, cash balance and verification state
"""

# Standard library imports
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from ..clock import utc_now
from ..exceptions import InsufficientFundsError, ValidationError
from ..value_objects.money import MAX_AMOUNT, quantize_amount, to_decimal
from ..value_objects.review import ReviewStatus, ensure_pending


class Role(Enum):
    """Application role enumeration"""

    USER = "user"
    ADMIN = "admin"


@dataclass
class Account:
    """
    Account entity backing the ``profiles`` table.

    Holds the cash balance used for simulated trading. Administrators
    approve new accounts before they may trade or move funds.
    """

    user_id: UUID
    email: str
    full_name: str | None = None
    phone: str | None = None
    funds: Decimal = field(default_factory=lambda: Decimal("0"))

    verification_status: ReviewStatus = ReviewStatus.PENDING
    verification_date: datetime | None = None
    verification_notes: str | None = None
    role: Role = Role.USER

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.funds = quantize_amount(self.funds)
        if self.funds < 0:
            raise ValidationError("Account funds cannot be negative")

    @property
    def is_verified(self) -> bool:
        return self.verification_status is ReviewStatus.APPROVED

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def can_trade(self) -> bool:
        """Admins and approved accounts may trade and move funds."""
        return self.is_admin or self.is_verified

    def credit(self, amount: Decimal) -> Decimal:
        """Add cash to the balance and return the new balance."""
        amount = self._positive(amount)
        balance = quantize_amount(self.funds + amount)
        if balance > MAX_AMOUNT:
            raise ValidationError(
                f"Balance would exceed the {MAX_AMOUNT} limit",
                details={"funds": str(self.funds), "amount": str(amount)},
            )
        self.funds = balance
        self.updated_at = utc_now()
        return self.funds

    def debit(self, amount: Decimal) -> Decimal:
        """Remove cash from the balance and return the new balance."""
        amount = self._positive(amount)
        if amount > self.funds:
            raise InsufficientFundsError(required=amount, available=self.funds)
        self.funds = quantize_amount(self.funds - amount)
        self.updated_at = utc_now()
        return self.funds

    def deduct_up_to(self, amount: Decimal) -> Decimal:
        """Admin deduction: remove up to ``amount``, never going below zero."""
        amount = self._positive(amount)
        self.funds = quantize_amount(max(Decimal("0"), self.funds - amount))
        self.updated_at = utc_now()
        return self.funds

    def review_verification(self, decision: ReviewStatus, notes: str | None = None) -> None:
        """Record an administrator's approve/reject decision.

        Rejected accounts can be re-reviewed; approved ones stay approved.
        """
        if self.verification_status is ReviewStatus.APPROVED:
            ensure_pending("Account verification", self.verification_status, decision)
        self.verification_status = decision
        self.verification_notes = notes
        self.verification_date = utc_now()
        self.updated_at = self.verification_date

    @staticmethod
    def _positive(amount: Decimal | float | int | str) -> Decimal:
        value = quantize_amount(to_decimal(amount))
        if value <= 0:
            raise ValidationError("Amount must be positive", details={"amount": str(value)})
        return value
