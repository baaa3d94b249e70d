"""
Payment Destination Entities - Where users send deposits (bank or UPI)
"""

# Standard library imports
import re
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from ..clock import utc_now
from ..exceptions import ValidationError
from .kyc import IFSC_PATTERN

UPI_PATTERN = re.compile(r"^[\w.\-]{2,256}@[A-Za-z]{2,64}$")


def _require(value: str | None, name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{name} is required", details={"field": name})
    return value


@dataclass
class BankDetail:
    """A company bank account shown to users funding their wallet."""

    account_name: str
    account_number: str
    bank_name: str
    ifsc_code: str
    branch: str | None = None
    is_active: bool = True

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.account_name = _require(self.account_name, "account_name")
        self.account_number = _require(self.account_number, "account_number")
        self.bank_name = _require(self.bank_name, "bank_name")
        self.ifsc_code = _require(self.ifsc_code, "ifsc_code").upper()
        if not IFSC_PATTERN.match(self.ifsc_code):
            raise ValidationError("Invalid IFSC code", details={"field": "ifsc_code"})

    def set_active(self, active: bool) -> None:
        self.is_active = active
        self.updated_at = utc_now()


@dataclass
class UpiDetail:
    """A company UPI handle shown to users funding their wallet."""

    upi_id: str
    upi_name: str
    description: str | None = None
    is_active: bool = True

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.upi_id = _require(self.upi_id, "upi_id")
        self.upi_name = _require(self.upi_name, "upi_name")
        if not UPI_PATTERN.match(self.upi_id):
            raise ValidationError("Invalid UPI ID", details={"field": "upi_id"})

    def set_active(self, active: bool) -> None:
        self.is_active = active
        self.updated_at = utc_now()
