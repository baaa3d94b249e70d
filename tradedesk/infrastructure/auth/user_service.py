"""
Sign-up, login and session lifecycle.

Every login opens a ``UserSession`` row that owns one refresh-token
family. Failed logins count towards a temporary lockout, and each
security-relevant step leaves an ``AuthAuditLog`` row committed together
with the change it records.
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, NoReturn
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select
from sqlalchemy.orm import Session

from tradedesk.domain.clock import utc_now
from tradedesk.domain.entities import Role
from tradedesk.domain.value_objects import ReviewStatus
from tradedesk.infrastructure.database.models import AuthAuditLog, Profile, User, UserRole, UserSession

from .jwt_service import JWTService, TokenRevokedException
from .passwords import PasswordHasher, PasswordValidator

logger = logging.getLogger(__name__)


class AuthenticationError(ValueError):
    """Credentials were rejected."""

    error_code = "unauthorized"


class AccountLockedError(AuthenticationError):
    """Too many failed attempts; the account is temporarily locked."""

    error_code = "account_locked"


class EmailAlreadyRegisteredError(ValueError):
    error_code = "conflict"


@dataclass
class AuthenticationResult:
    """Token pair handed to the client after login or refresh."""

    user_id: str
    access_token: str
    refresh_token: str
    expires_in: int
    roles: list[str]
    verification_status: str = ReviewStatus.PENDING.value
    session_id: str | None = None


@dataclass
class RegistrationResult:
    user_id: str
    email: str
    roles: list[str] = field(default_factory=list)


def normalize_email(email: str) -> str:
    try:
        return validate_email(email, check_deliverability=False).normalized.lower()
    except EmailNotValidError as e:
        raise ValueError(f"Invalid email: {e}")


def _require_strong(password: str, email: str) -> None:
    ok, problems = PasswordValidator.validate(password, email=email)
    if not ok:
        raise ValueError(f"Invalid password: {'; '.join(problems)}")


class UserService:
    """Works on one request's database session; commits its own changes."""

    def __init__(
        self,
        db_session: Session,
        jwt_service: JWTService,
        password_hasher: PasswordHasher | None = None,
        max_login_attempts: int = 5,
        lockout_duration_minutes: int = 30,
    ) -> None:
        self.db = db_session
        self.jwt_service = jwt_service
        self.password_hasher = password_hasher or PasswordHasher()
        self.max_login_attempts = max_login_attempts
        self.lockout_duration_minutes = lockout_duration_minutes

    async def register_user(
        self,
        email: str,
        password: str,
        full_name: str | None = None,
        phone: str | None = None,
        roles: list[str] | None = None,
    ) -> RegistrationResult:
        """
        Create the login, its profile and its roles in one commit.

        The profile starts with zero funds and ``pending`` verification;
        trading stays closed until an administrator approves it.

        Raises:
            ValueError: Malformed email, weak password or unknown role
            EmailAlreadyRegisteredError: The email already has an account
        """
        email = normalize_email(email)
        _require_strong(password, email)
        roles = [Role(r).value for r in roles or [Role.USER.value]]

        taken = self.db.scalars(select(User.id).where(User.email == email)).first()
        if taken is not None:
            raise EmailAlreadyRegisteredError("Email already registered")

        user = User(email=email, password_hash=self.password_hasher.hash(password))
        self.db.add(user)
        self.db.flush()
        self.db.add(
            Profile(
                user_id=user.id,
                email=email,
                full_name=(full_name or "").strip() or None,
                phone=(phone or "").strip() or None,
                funds=0,
                is_verified=False,
                verification_status=ReviewStatus.PENDING.value,
            )
        )
        self.db.add_all([UserRole(user_id=user.id, role=role) for role in roles])
        self._audit("user_registration", user.id, {"email": email, "roles": roles})
        self.db.commit()

        logger.info(f"Registered {email} with roles {roles}")
        return RegistrationResult(user_id=str(user.id), email=email, roles=roles)

    async def authenticate(
        self,
        email: str,
        password: str,
        device_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthenticationResult:
        """
        Check credentials and open a new session.

        Unknown emails still pay for a bcrypt check so response time does
        not reveal which addresses have accounts.

        Raises:
            AccountLockedError: The account is locked, or this failure locked it
            AuthenticationError: Wrong email or password
        """
        user = self.db.scalars(select(User).where(User.email == email.strip().lower())).first()

        if user is None:
            self.password_hasher.verify_dummy(password)
            self._refuse_login(
                None,
                {"identifier": email, "reason": "User not found"},
                ip_address,
                AuthenticationError("Invalid credentials"),
            )

        password_ok = self.password_hasher.verify(password, str(user.password_hash))
        if user.is_locked():
            self._refuse_login(
                user.id,
                {"reason": "Account locked"},
                ip_address,
                AccountLockedError(f"Account locked until {user.locked_until}"),
            )

        if not password_ok:
            attempts = user.increment_failed_attempts()
            if attempts >= self.max_login_attempts:
                user.lock_account(self.lockout_duration_minutes)
                logger.warning(f"Locked {user.email} after {attempts} failed logins")
                self._refuse_login(
                    user.id,
                    {"attempts": attempts},
                    ip_address,
                    AccountLockedError("Account locked due to too many failed attempts"),
                    event_type="account_locked",
                )
            self._refuse_login(
                user.id,
                {"reason": "Invalid password", "attempts": attempts},
                ip_address,
                AuthenticationError("Invalid credentials"),
            )

        if self.password_hasher.needs_rehash(str(user.password_hash)):
            user.password_hash = self.password_hasher.hash(password)
        return self._open_session(user, device_id, ip_address, user_agent)

    def _refuse_login(
        self,
        user_id: UUID | None,
        details: dict[str, Any],
        ip_address: str | None,
        error: AuthenticationError,
        event_type: str = "login_failed",
    ) -> NoReturn:
        self._audit(event_type, user_id, details, ip_address=ip_address, success=False)
        self.db.commit()
        raise error

    def _open_session(
        self,
        user: User,
        device_id: str | None,
        ip_address: str | None,
        user_agent: str | None,
    ) -> AuthenticationResult:
        user.reset_failed_attempts()
        user.last_login_at = utc_now()  # type: ignore[assignment]
        user.last_login_ip = ip_address

        session = UserSession(
            user_id=user.id,
            token_family=f"family_{secrets.token_urlsafe(8)}",
            device_id=device_id or secrets.token_urlsafe(16),
            user_agent=user_agent,
            ip_address=ip_address,
            expires_at=utc_now() + self.jwt_service.refresh_token_expire,
        )
        self.db.add(session)
        self.db.flush()

        sid = str(session.id)
        roles = self.get_roles(user.id)
        access = self.jwt_service.create_access_token(
            user_id=str(user.id), email=str(user.email), roles=roles, session_id=sid
        )
        refresh = self.jwt_service.create_refresh_token(
            user_id=str(user.id), session_id=sid, token_family=str(session.token_family)
        )
        self._audit(
            "login_success",
            user.id,
            {"session_id": sid, "device_id": session.device_id},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.commit()

        logger.info(f"{user.email} logged in from {ip_address or 'unknown address'}")
        return self._result(user.id, access, refresh, roles, sid)

    async def refresh(self, refresh_token: str) -> AuthenticationResult:
        """
        Exchange a refresh token for a new pair within the same session.

        Raises:
            TokenRevokedException: The session was closed or the user deleted
            TokenExpiredException, TokenReuseException, InvalidTokenException:
                The refresh token itself is unusable
        """
        payload = self.jwt_service.verify_refresh_token(refresh_token)
        user_id = UUID(payload["sub"])
        session = self.db.get(UserSession, UUID(payload["sid"]))
        user = self.db.get(User, user_id)
        if user is None or session is None or not session.is_valid():
            self.jwt_service.revoke_token_family(payload.get("token_family"))
            raise TokenRevokedException("Session has ended")

        roles = self.get_roles(user_id)
        access, refresh = self.jwt_service.rotate_refresh_token(
            refresh_token, email=str(user.email), roles=roles
        )
        session.update_activity()
        self.db.commit()
        return self._result(user_id, access, refresh, roles, str(session.id))

    async def logout(self, user_id: str, session_id: str | None, everywhere: bool = False) -> None:
        """End the current session, or with ``everywhere`` every session of the user."""
        uid = UUID(user_id)
        if everywhere:
            self._end_sessions(uid, "User logged out from all devices")
        elif session_id is not None:
            self._end_sessions(uid, "User logged out", only=UUID(session_id))
        else:
            return

        self._audit("logout_all" if everywhere else "logout", uid, {"session_id": session_id})
        self.db.commit()
        logger.info(f"User {user_id} logged out{' everywhere' if everywhere else ''}")

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> bool:
        """
        Replace the password and sign the user out of every session.

        Raises:
            AuthenticationError: If the current password is wrong
            ValueError: If the new password is weak or unchanged
        """
        uid = UUID(user_id)
        user = self.db.get(User, uid)
        if user is None:
            raise ValueError("User not found")

        if not self.password_hasher.verify(current_password, str(user.password_hash)):
            self._audit(
                "password_change_failed", uid, {"reason": "Invalid current password"}, success=False
            )
            self.db.commit()
            raise AuthenticationError("Invalid current password")
        if new_password == current_password:
            raise ValueError("New password must differ from the current password")
        _require_strong(new_password, str(user.email))

        user.password_hash = self.password_hasher.hash(new_password)
        self._end_sessions(uid, "Password changed")
        self._audit("password_changed", uid)
        self.db.commit()

        logger.info(f"Password changed for {user.email}")
        return True

    def _end_sessions(self, user_id: UUID, reason: str, only: UUID | None = None) -> None:
        """Close open sessions and revoke their tokens; all of them unless ``only`` is set."""
        query = select(UserSession).where(
            UserSession.user_id == user_id, UserSession.is_active.is_(True)
        )
        if only is not None:
            query = query.where(UserSession.id == only)

        for session in self.db.scalars(query).all():
            session.revoke(reason)
            self.jwt_service.revoke_session_tokens(str(session.id), session.token_family)
        if only is None:
            self.jwt_service.revoke_all_user_tokens(str(user_id))

    def get_roles(self, user_id: UUID) -> list[str]:
        return sorted(self.db.scalars(select(UserRole.role).where(UserRole.user_id == user_id)).all())

    def _result(
        self, user_id: UUID, access: str, refresh: str, roles: list[str], session_id: str
    ) -> AuthenticationResult:
        status = self.db.scalars(
            select(Profile.verification_status).where(Profile.user_id == user_id)
        ).first()
        return AuthenticationResult(
            user_id=str(user_id),
            access_token=access,
            refresh_token=refresh,
            expires_in=self.jwt_service.access_token_ttl,
            roles=roles,
            verification_status=status or ReviewStatus.PENDING.value,
            session_id=session_id,
        )

    def _audit(
        self,
        event_type: str,
        user_id: UUID | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        success: bool = True,
    ) -> None:
        """Stage an audit row; it commits with the caller's changes."""
        self.db.add(
            AuthAuditLog(
                user_id=user_id,
                event_type=event_type,
                event_data=details or {},
                ip_address=ip_address,
                user_agent=user_agent,
                success=success,
            )
        )
