"""
Unit tests for UserService against an in-memory database.

Tests cover:
- Registration creates login, profile and role rows
- Duplicate emails and weak passwords are refused
- Lockout after repeated failures
- Token refresh, logout and password change end the right sessions
"""

from decimal import Decimal
from uuid import UUID

import pytest
from sqlalchemy import func, select

from tradedesk.infrastructure.auth import (
    AccountLockedError,
    AuthenticationError,
    EmailAlreadyRegisteredError,
    PasswordHasher,
    TokenRevokedException,
    UserService,
)
from tradedesk.infrastructure.database.models import AuthAuditLog, Profile, UserRole, UserSession

PASSWORD = "Tr@de-Desk#2024x"
NEW_PASSWORD = "N3w!Passw0rd-Zz"


@pytest.fixture
def user_service(db_session, jwt_service):
    return UserService(
        db_session=db_session,
        jwt_service=jwt_service,
        password_hasher=PasswordHasher(rounds=4),
    )


@pytest.fixture
async def registered(user_service):
    return await user_service.register_user(
        "Trader@Example.com", PASSWORD, full_name="  Asha Rao  "
    )


class TestRegistration:
    @pytest.mark.asyncio
    async def test_creates_pending_profile_with_zero_funds(
        self, user_service, registered, db_session
    ):
        profile = db_session.scalars(
            select(Profile).where(Profile.user_id == UUID(registered.user_id))
        ).one()

        assert registered.email == "trader@example.com"
        assert registered.roles == ["user"]
        assert profile.full_name == "Asha Rao"
        assert Decimal(profile.funds) == Decimal("0")
        assert profile.verification_status == "pending"
        assert profile.is_verified is False

    @pytest.mark.asyncio
    async def test_duplicate_email_ignores_case(self, user_service, registered):
        with pytest.raises(EmailAlreadyRegisteredError):
            await user_service.register_user("TRADER@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_weak_password(self, user_service):
        with pytest.raises(ValueError, match="Invalid password"):
            await user_service.register_user("weak@example.com", "password")

    @pytest.mark.asyncio
    async def test_invalid_email(self, user_service):
        with pytest.raises(ValueError, match="Invalid email"):
            await user_service.register_user("not-an-email", PASSWORD)

    @pytest.mark.asyncio
    async def test_admin_role(self, user_service, db_session):
        result = await user_service.register_user(
            "ops@example.com", PASSWORD, roles=["admin", "user"]
        )

        assert user_service.get_roles(UUID(result.user_id)) == ["admin", "user"]
        assert db_session.scalar(select(func.count()).select_from(UserRole)) == 2


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_login_is_case_insensitive(self, user_service, registered, jwt_service):
        result = await user_service.authenticate("TRADER@EXAMPLE.COM", PASSWORD)

        payload = jwt_service.verify_access_token(result.access_token)
        assert payload["sub"] == registered.user_id
        assert result.verification_status == "pending"
        assert result.expires_in == 900

    @pytest.mark.asyncio
    async def test_unknown_email(self, user_service, db_session):
        with pytest.raises(AuthenticationError):
            await user_service.authenticate("ghost@example.com", PASSWORD)

        event = db_session.scalars(select(AuthAuditLog)).one()
        assert event.event_type == "login_failed"
        assert event.success is False

    @pytest.mark.asyncio
    async def test_lockout_after_five_failures(self, user_service, registered):
        for _ in range(4):
            with pytest.raises(AuthenticationError) as exc_info:
                await user_service.authenticate("trader@example.com", "Wrong#Passw0rd")
            assert not isinstance(exc_info.value, AccountLockedError)

        with pytest.raises(AccountLockedError):
            await user_service.authenticate("trader@example.com", "Wrong#Passw0rd")

        # Even the right password is refused while locked
        with pytest.raises(AccountLockedError):
            await user_service.authenticate("trader@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_success_resets_failed_attempts(self, user_service, registered):
        for _ in range(4):
            with pytest.raises(AuthenticationError):
                await user_service.authenticate("trader@example.com", "Wrong#Passw0rd")

        await user_service.authenticate("trader@example.com", PASSWORD)

        with pytest.raises(AuthenticationError) as exc_info:
            await user_service.authenticate("trader@example.com", "Wrong#Passw0rd")
        assert not isinstance(exc_info.value, AccountLockedError)


class TestSessions:
    @pytest.mark.asyncio
    async def test_refresh_rotates_tokens(self, user_service, registered, jwt_service):
        login = await user_service.authenticate("trader@example.com", PASSWORD)

        refreshed = await user_service.refresh(login.refresh_token)

        assert refreshed.session_id == login.session_id
        assert refreshed.refresh_token != login.refresh_token
        assert jwt_service.verify_access_token(refreshed.access_token)["sid"] == login.session_id

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, user_service, registered, jwt_service, db_session):
        login = await user_service.authenticate("trader@example.com", PASSWORD)

        await user_service.logout(registered.user_id, login.session_id)

        with pytest.raises(TokenRevokedException):
            jwt_service.verify_access_token(login.access_token)
        with pytest.raises(TokenRevokedException):
            await user_service.refresh(login.refresh_token)
        session = db_session.get(UserSession, UUID(login.session_id))
        assert session.is_active is False

    @pytest.mark.asyncio
    async def test_logout_everywhere(self, user_service, registered, jwt_service):
        first = await user_service.authenticate("trader@example.com", PASSWORD)
        second = await user_service.authenticate("trader@example.com", PASSWORD)

        await user_service.logout(registered.user_id, first.session_id, everywhere=True)

        for login in (first, second):
            with pytest.raises(TokenRevokedException):
                jwt_service.verify_access_token(login.access_token)

    @pytest.mark.asyncio
    async def test_change_password(self, user_service, registered, jwt_service):
        login = await user_service.authenticate("trader@example.com", PASSWORD)

        assert await user_service.change_password(registered.user_id, PASSWORD, NEW_PASSWORD)

        with pytest.raises(TokenRevokedException):
            jwt_service.verify_access_token(login.access_token)
        with pytest.raises(AuthenticationError):
            await user_service.authenticate("trader@example.com", PASSWORD)
        await user_service.authenticate("trader@example.com", NEW_PASSWORD)

    @pytest.mark.asyncio
    async def test_change_password_requires_current(self, user_service, registered):
        with pytest.raises(AuthenticationError):
            await user_service.change_password(registered.user_id, "Wrong#Passw0rd", NEW_PASSWORD)

    @pytest.mark.asyncio
    async def test_change_password_to_same(self, user_service, registered):
        with pytest.raises(ValueError, match="differ"):
            await user_service.change_password(registered.user_id, PASSWORD, PASSWORD)
