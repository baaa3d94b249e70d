"""
Unit of Work Interface

Defines the contract for managing transactions across multiple repositories.
Every write of a business operation happens inside one unit of work, so
a failure part-way through leaves no partial balance or status change.
"""

# Standard library imports
from abc import abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from .repositories import (
    IAccountRepository,
    ICredentialRepository,
    IFundRequestRepository,
    IHoldingRepository,
    IKycRepository,
    IOrderRepository,
    IPaymentSettingsRepository,
    IPriceHistoryRepository,
    IWatchlistRepository,
    IWithdrawalRepository,
)


class IUnitOfWork(Protocol):
    """
    Unit of Work interface for transaction management.

    Used as an async context manager; repositories are only usable
    while the context is open.
    """

    accounts: IAccountRepository
    orders: IOrderRepository
    holdings: IHoldingRepository
    fund_requests: IFundRequestRepository
    withdrawals: IWithdrawalRepository
    kyc: IKycRepository
    payment_settings: IPaymentSettingsRepository
    watchlist: IWatchlistRepository
    price_history: IPriceHistoryRepository
    credentials: ICredentialRepository

    @abstractmethod
    async def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            TransactionError: If commit fails
        """
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    @abstractmethod
    async def flush(self) -> None:
        """Flush pending changes so constraint violations surface early."""
        ...

    def savepoint(self) -> AbstractAsyncContextManager[None]:
        """Nested transaction; an error inside rolls back only its own writes."""
        ...

    async def __aenter__(self) -> "IUnitOfWork": ...

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...
