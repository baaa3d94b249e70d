"""
FastAPI dependencies.

Services are built once in ``create_app`` and kept on ``app.state``;
these functions hand them to route handlers.
"""

from collections.abc import Generator
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from tradedesk.application.interfaces.market_data import IMarketDataProvider
from tradedesk.domain.entities import Role
from tradedesk.infrastructure.auth import JWTService, PasswordHasher, RequireRole, UserService
from tradedesk.infrastructure.config import Settings
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork


@dataclass(frozen=True)
class CurrentUser:
    user_id: UUID
    email: str | None
    roles: tuple[str, ...]
    session_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN.value in self.roles


def get_settings(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def get_db(request: Request) -> Generator[Session, None, None]:
    """Get database session."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_jwt_service(request: Request) -> JWTService:
    return request.app.state.jwt_service  # type: ignore[no-any-return]


def get_user_service(
    db: Session = Depends(get_db),
    jwt_service: JWTService = Depends(get_jwt_service),
    settings: Settings = Depends(get_settings),
) -> UserService:
    """Get user service instance."""
    return UserService(
        db_session=db,
        jwt_service=jwt_service,
        password_hasher=PasswordHasher(settings.auth.bcrypt_rounds),
        max_login_attempts=settings.auth.max_login_attempts,
        lockout_duration_minutes=settings.auth.lockout_minutes,
    )


def get_unit_of_work(request: Request) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(request.app.state.session_factory)


def get_market_data(request: Request) -> IMarketDataProvider:
    return request.app.state.market_data  # type: ignore[no-any-return]


async def require_user(request: Request) -> CurrentUser:
    """Authenticated caller, from a valid access token and live session."""
    payload = await request.app.state.jwt_bearer(request)
    return CurrentUser(
        user_id=UUID(payload["sub"]),
        email=payload.get("email"),
        roles=tuple(payload.get("roles", [])),
        session_id=payload.get("sid"),
    )


require_admin_role = RequireRole(Role.ADMIN.value)


async def require_admin(
    user: CurrentUser = Depends(require_user), _: bool = Depends(require_admin_role)
) -> CurrentUser:
    return user
