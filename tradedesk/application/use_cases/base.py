"""
Use case template.

Every use case runs the same way: validate, then process, with rejected
requests turned into failed responses carrying a stable error code. The
HTTP layer maps those codes to status codes, so use cases never raise
for an expected rejection.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar
from uuid import UUID, uuid4

from tradedesk.application.interfaces.exceptions import RepositoryError
from tradedesk.application.interfaces.market_data import MarketDataError
from tradedesk.domain.exceptions import DomainException

logger = logging.getLogger(__name__)

TRequest = TypeVar("TRequest")
TResponse = TypeVar("TResponse")

VALIDATION_ERROR = "validation_error"
INTERNAL_ERROR = "internal_error"

# Errors that describe a rejected request rather than a fault
EXPECTED_ERRORS = (
    DomainException,
    RepositoryError,
    MarketDataError,
    ValueError,
    ArithmeticError,
)


@dataclass
class UseCaseResponse:
    """Outcome of a use case; subclasses add their payload fields."""

    success: bool
    error: str | None = None
    error_code: str | None = None
    request_id: UUID | None = None

    @classmethod
    def failure(
        cls, error: str, request_id: UUID | None, error_code: str = VALIDATION_ERROR
    ) -> "UseCaseResponse":
        return UseCaseResponse(
            success=False, error=error, error_code=error_code, request_id=request_id
        )


def error_code_for(exc: BaseException) -> str:
    """Stable code for an exception; unknown exceptions are internal errors."""
    code = getattr(exc, "error_code", None)
    if code:
        return str(code)
    if isinstance(exc, (ValueError, ArithmeticError)):
        return VALIDATION_ERROR
    return INTERNAL_ERROR


def _log_context(request: Any) -> dict[str, Any]:
    context = getattr(request, "log_context", None)
    if callable(context):
        return context()
    return {"request_id": str(getattr(request, "request_id", None) or uuid4())}


class UseCase(ABC, Generic[TRequest, TResponse]):
    """Validate-then-process template shared by all use cases."""

    def __init__(self, name: str | None = None) -> None:
        self.name = name or self.__class__.__name__
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    async def execute(self, request: TRequest) -> TResponse:
        extra = {**_log_context(request), "use_case": self.name}
        request_id = getattr(request, "request_id", None)
        self.logger.debug(f"Executing {self.name}", extra=extra)

        try:
            problem = await self.validate(request)
            if problem:
                self.logger.info(f"{self.name} refused: {problem}", extra=extra)
                return self._failure(problem, request_id)

            response = await self.process(request)
        except EXPECTED_ERRORS as e:
            code = error_code_for(e)
            self.logger.warning(
                f"{self.name} rejected: {e}", extra={**extra, "error_code": code}
            )
            return self._failure(str(e), request_id, code)
        except Exception as e:
            self.logger.error(f"{self.name} failed: {e}", extra=extra, exc_info=True)
            return self._failure(str(e), request_id, INTERNAL_ERROR)

        self.logger.info(
            f"{self.name} finished",
            extra={**extra, "success": getattr(response, "success", True)},
        )
        return response

    @abstractmethod
    async def validate(self, request: TRequest) -> str | None:
        """Return a message when the request is malformed, None when it may proceed."""

    @abstractmethod
    async def process(self, request: TRequest) -> TResponse:
        """Carry out the request; raise an expected error to reject it."""

    def _failure(
        self, error: str, request_id: UUID | None, error_code: str = VALIDATION_ERROR
    ) -> TResponse:
        return UseCaseResponse.failure(error, request_id, error_code)  # type: ignore[return-value]


class TransactionalUseCase(UseCase[TRequest, TResponse]):
    """
    Use case that runs inside a unit of work.

    The unit of work commits only when the response reports success; a
    failed response or an escaping exception rolls everything back, so a
    rejected order never leaves a half-debited balance behind.
    """

    def __init__(self, unit_of_work: Any, name: str | None = None) -> None:
        super().__init__(name)
        self.unit_of_work = unit_of_work

    async def execute(self, request: TRequest) -> TResponse:
        extra = _log_context(request)

        async with self.unit_of_work as uow:
            try:
                response = await super().execute(request)
            except Exception:
                await uow.rollback()
                self.logger.error(f"{self.name} aborted; transaction rolled back", extra=extra)
                raise

            if getattr(response, "success", True):
                await uow.commit()
            else:
                await uow.rollback()
                self.logger.debug(f"{self.name} rolled back", extra=extra)
            return response
