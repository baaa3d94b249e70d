"""Tests for the validate-then-process template and its transaction handling."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from uuid import uuid4

import pytest

from tradedesk.application.interfaces.market_data import MarketDataError
from tradedesk.application.use_cases.base import (
    INTERNAL_ERROR,
    VALIDATION_ERROR,
    TransactionalUseCase,
    UseCaseResponse,
    error_code_for,
)
from tradedesk.application.use_cases.base_request import BaseRequestDTO
from tradedesk.domain.exceptions import InsufficientFundsError


@dataclass(kw_only=True)
class EchoRequest(BaseRequestDTO):
    value: int


@dataclass
class EchoResponse(UseCaseResponse):
    value: int | None = None


class RecordingUnitOfWork:
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class EchoUseCase(TransactionalUseCase[EchoRequest, EchoResponse]):
    def __init__(self, uow, failure=None):
        super().__init__(uow)
        self.failure = failure

    async def validate(self, request):
        return "Value must be positive" if request.value <= 0 else None

    async def process(self, request):
        if self.failure:
            raise self.failure
        return EchoResponse(success=True, value=request.value, request_id=request.request_id)


@pytest.fixture
def uow():
    return RecordingUnitOfWork()


@pytest.mark.asyncio
async def test_success_commits(uow):
    request = EchoRequest(value=3)

    response = await EchoUseCase(uow).execute(request)

    assert response.success
    assert response.value == 3
    assert response.request_id == request.request_id
    assert (uow.commits, uow.rollbacks) == (1, 0)


@pytest.mark.asyncio
async def test_validation_failure_rolls_back(uow):
    response = await EchoUseCase(uow).execute(EchoRequest(value=0))

    assert not response.success
    assert response.error == "Value must be positive"
    assert response.error_code == VALIDATION_ERROR
    assert (uow.commits, uow.rollbacks) == (0, 1)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure,code",
    [
        (InsufficientFundsError(Decimal("500"), Decimal("100")), "insufficient_funds"),
        (MarketDataError("Quote service unavailable"), "market_data_unavailable"),
        (ValueError("Quantity must be positive"), VALIDATION_ERROR),
        (InvalidOperation("quantize result has too many digits"), VALIDATION_ERROR),
        (RuntimeError("boom"), INTERNAL_ERROR),
    ],
)
async def test_errors_become_failed_responses(uow, failure, code):
    response = await EchoUseCase(uow, failure).execute(EchoRequest(value=1))

    assert not response.success
    assert response.error_code == code
    assert uow.rollbacks == 1


def test_log_context_includes_actor():
    actor = uuid4()
    request = EchoRequest(value=1, actor_id=actor)

    assert request.log_context() == {
        "request_id": str(request.request_id),
        "actor_id": str(actor),
    }
    assert "actor_id" not in EchoRequest(value=1).log_context()


def test_error_code_prefers_exception_attribute():
    assert error_code_for(InsufficientFundsError(Decimal("1"), Decimal("0"))) == "insufficient_funds"
    assert error_code_for(KeyError("x")) == INTERNAL_ERROR
