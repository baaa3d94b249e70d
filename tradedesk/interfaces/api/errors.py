"""
Translation of use case failures and service exceptions into HTTP errors.
"""

import logging
from typing import Any, TypeVar

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from tradedesk.application.interfaces.exceptions import RepositoryError
from tradedesk.application.interfaces.market_data import MarketDataError
from tradedesk.application.use_cases.base import INTERNAL_ERROR, UseCaseResponse, error_code_for
from tradedesk.infrastructure.auth import (
    InvalidTokenException,
    TokenExpiredException,
    TokenReuseException,
    TokenRevokedException,
)
from tradedesk.infrastructure.auth.user_service import AccountLockedError, AuthenticationError

logger = logging.getLogger(__name__)

TResponse = TypeVar("TResponse", bound=UseCaseResponse)

STATUS_BY_CODE = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "domain_error": status.HTTP_400_BAD_REQUEST,
    "unauthorized": status.HTTP_401_UNAUTHORIZED,
    "insufficient_funds": status.HTTP_402_PAYMENT_REQUIRED,
    "insufficient_holdings": status.HTTP_402_PAYMENT_REQUIRED,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "account_not_verified": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "account_locked": status.HTTP_423_LOCKED,
    "market_data_unavailable": status.HTTP_502_BAD_GATEWAY,
    "market_data_not_configured": status.HTTP_503_SERVICE_UNAVAILABLE,
    "repository_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "transaction_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
    INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(code: str | None) -> int:
    return STATUS_BY_CODE.get(code or INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_body(message: str, code: str) -> dict[str, Any]:
    return {"error": message, "code": code}


def api_error(message: str, code: str) -> HTTPException:
    return HTTPException(status_code=status_for(code), detail=error_body(message, code))


def unwrap(response: TResponse) -> TResponse:
    """Return a successful use case response or raise the matching HTTP error."""
    if response.success:
        return response

    code = response.error_code or INTERNAL_ERROR
    message = response.error or "Request failed"
    if status_for(code) >= 500 and code != "market_data_unavailable":
        # Internal details stay in the log
        message = "Internal server error"
    raise api_error(message, code)


def _json_error(exc: Exception, code: str, message: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(code), content={"detail": error_body(message or str(exc), code)}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map exceptions that escape the use case template to HTTP responses."""

    @app.exception_handler(AccountLockedError)
    async def account_locked_handler(request: Request, exc: AccountLockedError) -> JSONResponse:
        return _json_error(exc, "account_locked")

    @app.exception_handler(AuthenticationError)
    async def authentication_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        response = _json_error(exc, "unauthorized")
        response.headers["WWW-Authenticate"] = "Bearer"
        return response

    @app.exception_handler(TokenExpiredException)
    @app.exception_handler(TokenRevokedException)
    @app.exception_handler(TokenReuseException)
    @app.exception_handler(InvalidTokenException)
    async def token_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.warning(f"Rejected token on {request.url.path}: {exc}")
        return _json_error(exc, "unauthorized")

    @app.exception_handler(MarketDataError)
    async def market_data_handler(request: Request, exc: MarketDataError) -> JSONResponse:
        return _json_error(exc, error_code_for(exc))

    @app.exception_handler(RepositoryError)
    async def repository_handler(request: Request, exc: RepositoryError) -> JSONResponse:
        code = error_code_for(exc)
        if status_for(code) >= 500:
            logger.error(f"Repository failure on {request.url.path}: {exc}")
            return _json_error(exc, code, "Internal server error")
        return _json_error(exc, code)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return _json_error(exc, error_code_for(exc))
