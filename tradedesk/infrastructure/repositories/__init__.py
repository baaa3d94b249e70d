"""
Repository implementations for data persistence.

SQLAlchemy implementations of the application's repository interfaces,
bundled into a unit of work.
"""

from .account_repository import SqlAlchemyAccountRepository, SqlAlchemyCredentialRepository
from .funding_repository import SqlAlchemyFundRequestRepository, SqlAlchemyWithdrawalRepository
from .kyc_repository import SqlAlchemyKycRepository
from .order_repository import SqlAlchemyOrderRepository
from .payment_settings_repository import SqlAlchemyPaymentSettingsRepository
from .portfolio_repository import SqlAlchemyHoldingRepository, SqlAlchemyPriceHistoryRepository
from .unit_of_work import SqlAlchemyUnitOfWork
from .watchlist_repository import SqlAlchemyWatchlistRepository

__all__ = [
    "SqlAlchemyAccountRepository",
    "SqlAlchemyCredentialRepository",
    "SqlAlchemyFundRequestRepository",
    "SqlAlchemyHoldingRepository",
    "SqlAlchemyKycRepository",
    "SqlAlchemyOrderRepository",
    "SqlAlchemyPaymentSettingsRepository",
    "SqlAlchemyPriceHistoryRepository",
    "SqlAlchemyUnitOfWork",
    "SqlAlchemyWatchlistRepository",
    "SqlAlchemyWithdrawalRepository",
]
