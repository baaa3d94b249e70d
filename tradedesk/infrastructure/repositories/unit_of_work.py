"""
SQLAlchemy Unit of Work Implementation

Concrete implementation of IUnitOfWork over a SQLAlchemy session.
Manages one transaction across all repositories so a business operation
either writes everything or nothing.
"""

# Standard library imports
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# Local imports
from tradedesk.application.interfaces.exceptions import TransactionError, TransactionNotActiveError
from tradedesk.infrastructure.database.connection import SessionFactory

from .account_repository import SqlAlchemyAccountRepository, SqlAlchemyCredentialRepository
from .funding_repository import SqlAlchemyFundRequestRepository, SqlAlchemyWithdrawalRepository
from .kyc_repository import SqlAlchemyKycRepository
from .order_repository import SqlAlchemyOrderRepository
from .payment_settings_repository import SqlAlchemyPaymentSettingsRepository
from .portfolio_repository import SqlAlchemyHoldingRepository, SqlAlchemyPriceHistoryRepository
from .watchlist_repository import SqlAlchemyWatchlistRepository

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork:
    """
    SQLAlchemy implementation of IUnitOfWork.

    Each ``async with`` opens a fresh session; repositories are only
    available inside the block.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """
        Initialize Unit of Work with a session factory.

        Args:
            session_factory: Callable returning a new SQLAlchemy session
        """
        self.session_factory = session_factory
        self._session: Session | None = None
        self._repositories: dict[str, Any] = {}

    @property
    def session(self) -> Session:
        if self._session is None:
            raise TransactionNotActiveError()
        return self._session

    def _repository(self, name: str) -> Any:
        if self._session is None:
            raise TransactionNotActiveError()
        return self._repositories[name]

    @property
    def accounts(self) -> SqlAlchemyAccountRepository:
        return self._repository("accounts")

    @property
    def orders(self) -> SqlAlchemyOrderRepository:
        return self._repository("orders")

    @property
    def holdings(self) -> SqlAlchemyHoldingRepository:
        return self._repository("holdings")

    @property
    def fund_requests(self) -> SqlAlchemyFundRequestRepository:
        return self._repository("fund_requests")

    @property
    def withdrawals(self) -> SqlAlchemyWithdrawalRepository:
        return self._repository("withdrawals")

    @property
    def kyc(self) -> SqlAlchemyKycRepository:
        return self._repository("kyc")

    @property
    def payment_settings(self) -> SqlAlchemyPaymentSettingsRepository:
        return self._repository("payment_settings")

    @property
    def watchlist(self) -> SqlAlchemyWatchlistRepository:
        return self._repository("watchlist")

    @property
    def price_history(self) -> SqlAlchemyPriceHistoryRepository:
        return self._repository("price_history")

    @property
    def credentials(self) -> SqlAlchemyCredentialRepository:
        return self._repository("credentials")

    async def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            TransactionError: If commit fails
        """
        try:
            self.session.commit()
            logger.debug("Unit of Work transaction committed")
        except TransactionNotActiveError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Failed to commit transaction: {e}")
            self.session.rollback()
            raise TransactionError(f"Failed to commit transaction: {e}", cause=e) from e

    async def rollback(self) -> None:
        if self._session is None:
            logger.warning("No active transaction to rollback")
            return
        self._session.rollback()
        logger.debug("Unit of Work transaction rolled back")

    async def flush(self) -> None:
        try:
            self.session.flush()
        except TransactionNotActiveError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Failed to flush transaction: {e}")
            raise TransactionError(f"Failed to flush transaction: {e}", cause=e) from e

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """
        Run a block inside a nested transaction.

        An exception escaping the block undoes only that block's writes;
        the outer transaction stays usable and still needs a commit.

        Raises:
            TransactionError: If the nested writes cannot be flushed
        """
        try:
            with self.session.begin_nested():
                yield
                self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Savepoint rolled back: {e}")
            raise TransactionError(f"Failed to write savepoint: {e}", cause=e) from e

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        session = self.session_factory()
        self._session = session
        self._repositories = {
            "accounts": SqlAlchemyAccountRepository(session),
            "orders": SqlAlchemyOrderRepository(session),
            "holdings": SqlAlchemyHoldingRepository(session),
            "fund_requests": SqlAlchemyFundRequestRepository(session),
            "withdrawals": SqlAlchemyWithdrawalRepository(session),
            "kyc": SqlAlchemyKycRepository(session),
            "payment_settings": SqlAlchemyPaymentSettingsRepository(session),
            "watchlist": SqlAlchemyWatchlistRepository(session),
            "price_history": SqlAlchemyPriceHistoryRepository(session),
            "credentials": SqlAlchemyCredentialRepository(session),
        }
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        """
        Roll back anything uncommitted and release the session.

        Callers commit explicitly; leaving the block never commits.
        """
        try:
            if self._session is not None:
                if exc_type is not None:
                    logger.debug(f"Rolling back after {exc_type.__name__}")
                self._session.rollback()
                self._session.close()
        finally:
            self._session = None
            self._repositories = {}
        return False  # Don't suppress exceptions
