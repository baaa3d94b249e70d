"""
Domain-level exceptions for the trading back office.

These exceptions are raised within domain entities and services when a
business rule is violated. Each carries a stable ``error_code`` which the
application layer passes through to callers.
"""

from decimal import Decimal
from typing import Any


class DomainException(Exception):
    """Base exception for all domain-level errors."""

    error_code = "domain_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class ValidationError(DomainException):
    """Raised when entity attributes fail validation."""

    error_code = "validation_error"


class OrderValidationError(ValidationError):
    """Raised when an order request cannot be turned into an order."""

    pass


class InsufficientFundsError(DomainException):
    """Raised when an account balance cannot cover a debit."""

    error_code = "insufficient_funds"

    def __init__(self, required: Decimal, available: Decimal) -> None:
        super().__init__(
            f"Insufficient funds: required {required}, available {available}",
            details={"required": str(required), "available": str(available)},
        )
        self.required = required
        self.available = available


class InsufficientHoldingsError(DomainException):
    """Raised when selling more shares than are held."""

    error_code = "insufficient_holdings"

    def __init__(self, symbol: str, requested: int, held: int) -> None:
        super().__init__(
            f"Insufficient holdings of {symbol}: requested {requested}, held {held}",
            details={"symbol": symbol, "requested": requested, "held": held},
        )
        self.symbol = symbol
        self.requested = requested
        self.held = held


class InvalidStatusTransitionError(DomainException):
    """Raised when a reviewed item is moved out of a final state."""

    error_code = "invalid_transition"

    def __init__(self, entity_type: str, current: str, target: str) -> None:
        super().__init__(
            f"{entity_type} cannot move from '{current}' to '{target}'",
            details={"entity_type": entity_type, "current": current, "target": target},
        )
        self.entity_type = entity_type
        self.current = current
        self.target = target


class AccountNotVerifiedError(DomainException):
    """Raised when an unverified account attempts a restricted operation."""

    error_code = "account_not_verified"

    def __init__(self, user_id: Any) -> None:
        super().__init__(
            "Account is pending verification", details={"user_id": str(user_id)}
        )
        self.user_id = user_id


class PermissionDeniedError(DomainException):
    """Raised when the acting user lacks the role for an operation."""

    error_code = "forbidden"
