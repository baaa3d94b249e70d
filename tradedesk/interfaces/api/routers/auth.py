"""
Authentication endpoints: registration, login, token refresh, logout,
password change and the caller's profile.
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from tradedesk.application.use_cases.accounts import GetProfileRequest, GetProfileUseCase
from tradedesk.infrastructure.auth import UserService
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork

from ..dependencies import CurrentUser, get_unit_of_work, get_user_service, require_user
from ..errors import unwrap
from ..schemas import (
    AccountOut,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    RegisterResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest, user_service: UserService = Depends(get_user_service)
) -> RegisterResponse:
    """
    Register a new account.

    The account starts with zero funds and must be approved by an
    administrator before it can trade or move money.
    """
    result = await user_service.register_user(
        email=body.email,
        password=body.password.get_secret_value(),
        full_name=body.full_name,
        phone=body.phone,
    )
    return RegisterResponse(
        user_id=result.user_id,
        email=result.email,
        message="Registration successful. Your account is pending verification.",
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request, body: LoginRequest, user_service: UserService = Depends(get_user_service)
) -> LoginResponse:
    client_ip = request.client.host if request.client else None
    result = await user_service.authenticate(
        email=body.email,
        password=body.password.get_secret_value(),
        device_id=body.device_id,
        ip_address=client_ip,
        user_agent=request.headers.get("User-Agent"),
    )
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
        user_id=result.user_id,
        roles=result.roles,
        verification_status=result.verification_status,
    )


@router.post("/refresh", response_model=LoginResponse)
async def refresh(
    body: RefreshTokenRequest, user_service: UserService = Depends(get_user_service)
) -> LoginResponse:
    """Rotate a refresh token. Reusing an old one ends the session."""
    result = await user_service.refresh(body.refresh_token)
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
        user_id=result.user_id,
        roles=result.roles,
        verification_status=result.verification_status,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    body: LogoutRequest | None = None,
    user: CurrentUser = Depends(require_user),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    everywhere = bool(body and body.everywhere)
    await user_service.logout(str(user.user_id), user.session_id, everywhere=everywhere)
    return MessageResponse(message="Logged out")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: CurrentUser = Depends(require_user),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Change the password; every session must log in again."""
    await user_service.change_password(
        str(user.user_id),
        body.current_password.get_secret_value(),
        body.new_password.get_secret_value(),
    )
    return MessageResponse(message="Password changed. Please log in again.")


@router.get("/me", response_model=AccountOut)
async def me(
    user: CurrentUser = Depends(require_user), uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work)
) -> AccountOut:
    response = unwrap(await GetProfileUseCase(uow).execute(GetProfileRequest(user_id=user.user_id)))
    return AccountOut.from_entity(response.account)
