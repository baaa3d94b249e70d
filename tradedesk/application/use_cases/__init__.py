"""
Use cases of the trading back office.

Each use case validates its request, runs inside one unit of work and
returns a ``UseCaseResponse`` carrying either data or an error code.
"""

from .base import TransactionalUseCase, UseCase, UseCaseResponse
from .base_request import BaseRequestDTO

__all__ = ["BaseRequestDTO", "TransactionalUseCase", "UseCase", "UseCaseResponse"]
