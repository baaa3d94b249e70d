"""Domain entities with business logic."""

from .account import Account, Role
from .funding import FundRequest, WithdrawalRequest
from .holding import Holding
from .kyc import KycDocuments, KycSubmission
from .order import Order, OrderMode, OrderRequest, OrderSide, OrderStatus
from .payment import BankDetail, UpiDetail
from .watchlist import WatchlistItem

__all__ = [
    "Account",
    "BankDetail",
    "FundRequest",
    "Holding",
    "KycDocuments",
    "KycSubmission",
    "Order",
    "OrderMode",
    "OrderRequest",
    "OrderSide",
    "OrderStatus",
    "Role",
    "UpiDetail",
    "WatchlistItem",
    "WithdrawalRequest",
]
