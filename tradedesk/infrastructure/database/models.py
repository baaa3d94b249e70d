"""
Database models.

SQLAlchemy models for login credentials, sessions and the audit trail,
and for the trading tables: profiles, roles, orders, portfolios, KYC
documents, fund movements, payment settings and watchlists.
"""

from datetime import timedelta
from typing import Any
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import INET
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import String as SQLString
from sqlalchemy.types import TypeDecorator

from tradedesk.domain.clock import utc_now


class IPAddress(TypeDecorator[str]):
    """Database-agnostic IP address field."""

    impl = SQLString
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(INET())
        else:
            return dialect.type_descriptor(SQLString(45))  # IPv6 max length


Base = declarative_base()

MONEY = Numeric(14, 2)
PRICE = Numeric(14, 4)


class User(Base):  # type: ignore[valid-type, misc]
    """Login credentials with lockout tracking."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Security features
    failed_login_attempts = Column(Integer, default=0)
    locked_until = Column(DateTime, nullable=True)
    last_login_at = Column(DateTime)
    last_login_ip = Column(IPAddress)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    def is_locked(self) -> bool:
        """Check if account is currently locked."""
        if self.locked_until:
            return bool(utc_now() < self.locked_until)
        return False

    def lock_account(self, duration_minutes: int = 30) -> None:
        """Lock account for specified duration."""
        self.locked_until = utc_now() + timedelta(minutes=duration_minutes)  # type: ignore[assignment]
        self.failed_login_attempts = 0  # type: ignore[assignment]

    def increment_failed_attempts(self) -> int:
        current = getattr(self, "failed_login_attempts", 0) or 0
        self.failed_login_attempts = current + 1  # type: ignore[assignment]
        return current + 1

    def reset_failed_attempts(self) -> None:
        """Reset failed login attempts after successful login."""
        self.failed_login_attempts = 0  # type: ignore[assignment]
        self.locked_until = None  # type: ignore[assignment]


class UserSession(Base):  # type: ignore[valid-type, misc]
    """One login; revoked on logout or password change."""

    __tablename__ = "user_sessions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_family = Column(String(64), index=True)

    # Device info
    device_id = Column(String(255))
    user_agent = Column(Text)
    ip_address = Column(IPAddress)

    expires_at = Column(DateTime, nullable=False)

    # Status
    is_active = Column(Boolean, default=True)
    revoked_at = Column(DateTime)
    revoked_reason = Column(Text)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)
    last_activity = Column(DateTime, default=utc_now)

    __table_args__ = (Index("idx_session_user", "user_id", "is_active"),)

    def is_expired(self) -> bool:
        return bool(utc_now() > self.expires_at)

    def is_valid(self) -> bool:
        """Check if session is valid."""
        return bool(self.is_active and not self.is_expired() and not self.revoked_at)

    def revoke(self, reason: str | None = None) -> None:
        """Revoke the session."""
        self.is_active = False  # type: ignore[assignment]
        self.revoked_at = utc_now()  # type: ignore[assignment]
        self.revoked_reason = reason  # type: ignore[assignment]

    def update_activity(self) -> None:
        self.last_activity = utc_now()  # type: ignore[assignment]


class AuthAuditLog(Base):  # type: ignore[valid-type, misc]
    """Audit log for security events."""

    __tablename__ = "auth_audit_log"

    id = Column(Uuid, primary_key=True, default=uuid4)
    # No foreign key: entries outlive deleted users
    user_id = Column(Uuid, nullable=True, index=True)
    event_type = Column(String(50), nullable=False, index=True)
    event_data = Column(JSON)
    ip_address = Column(IPAddress)
    user_agent = Column(Text)
    success = Column(Boolean, default=True)
    error_message = Column(Text)
    created_at = Column(DateTime, default=utc_now, index=True)


class Profile(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    email = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255))
    phone = Column(String(32))
    funds = Column(MONEY, nullable=False, default=0)

    is_verified = Column(Boolean, default=False)
    verification_status = Column(String(20), nullable=False, default="pending", index=True)
    verification_date = Column(DateTime)
    verification_notes = Column(Text)

    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class UserRole(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "user_roles"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default="user")
    created_at = Column(DateTime, default=utc_now)

    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)


class OrderRecord(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    stock_symbol = Column(String(32), nullable=False)
    order_type = Column(String(10), nullable=False)  # buy / sell
    price_type = Column(String(10), nullable=False, default="market")  # market / limit
    quantity = Column(Integer, nullable=False)
    price = Column(PRICE, nullable=False)
    total_amount = Column(MONEY, nullable=False)
    status = Column(String(20), nullable=False, default="completed")
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class PortfolioEntry(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "user_portfolios"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    stock_symbol = Column(String(32), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    avg_price = Column(PRICE, nullable=False)
    current_price = Column(PRICE)
    profit_loss = Column(MONEY, default=0)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "stock_symbol", name="uq_user_portfolios_user_symbol"),
    )


class PortfolioPriceUpdate(Base):  # type: ignore[valid-type, misc]
    """Daily closing price per symbol written by the refresh job."""

    __tablename__ = "portfolio_price_updates"

    id = Column(Uuid, primary_key=True, default=uuid4)
    stock_symbol = Column(String(32), nullable=False)
    current_price = Column(PRICE, nullable=False)
    price_date = Column(Date, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("stock_symbol", "price_date", name="uq_price_updates_symbol_date"),
    )


class KycDocument(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "kyc_documents"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, unique=True, nullable=False)
    aadhar_card_url = Column(Text, nullable=False)
    pan_card_url = Column(Text, nullable=False)
    bank_name = Column(String(255), nullable=False)
    account_number = Column(String(34), nullable=False)
    ifsc_code = Column(String(11), nullable=False)
    account_holder_name = Column(String(255), nullable=False)
    kyc_status = Column(String(20), nullable=False, default="pending", index=True)
    verified_by = Column(Uuid)
    verification_date = Column(DateTime)
    verification_notes = Column(Text)
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class FundRequestRecord(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "fund_requests"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    receipt_image_url = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    admin_notes = Column(Text)
    reviewed_by = Column(Uuid)
    reviewed_at = Column(DateTime)
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class WithdrawalRequestRecord(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "withdrawal_requests"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    admin_notes = Column(Text)
    reviewed_by = Column(Uuid)
    reviewed_at = Column(DateTime)
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class BankDetailRecord(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "bank_details"

    id = Column(Uuid, primary_key=True, default=uuid4)
    account_name = Column(String(255), nullable=False)
    account_number = Column(String(34), nullable=False)
    bank_name = Column(String(255), nullable=False)
    branch = Column(String(255))
    ifsc_code = Column(String(11), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class UpiDetailRecord(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "upi_details"

    id = Column(Uuid, primary_key=True, default=uuid4)
    upi_id = Column(String(255), nullable=False)
    upi_name = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class WatchlistEntry(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "user_watchlist"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    stock_symbol = Column(String(32), nullable=False)
    stock_name = Column(String(255))
    added_at = Column(DateTime, default=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "stock_symbol", name="uq_user_watchlist_user_symbol"),
    )

