"""
Repository Interfaces

Persistence contracts for the domain entities. Implementations live in
the infrastructure layer; use cases only see these protocols.
"""

from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from tradedesk.domain.entities import (
    Account,
    BankDetail,
    FundRequest,
    Holding,
    KycSubmission,
    Order,
    OrderSide,
    UpiDetail,
    WatchlistItem,
    WithdrawalRequest,
)
from tradedesk.domain.value_objects import ReviewStatus


class IAccountRepository(Protocol):
    async def get_by_user_id(self, user_id: UUID, for_update: bool = False) -> Account | None:
        """
        Load an account.

        Args:
            user_id: Owner of the account
            for_update: Lock the row until the transaction ends

        Returns:
            The account, or None if the user has no profile
        """
        ...

    async def get_many(self, user_ids: list[UUID]) -> dict[UUID, Account]: ...

    async def save(self, account: Account) -> Account: ...

    async def list_accounts(
        self,
        search: str | None = None,
        status: ReviewStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Account], int]:
        """Accounts newest first, with the total count before paging."""
        ...

    async def count_by_status(self) -> dict[str, int]: ...

    async def delete(self, user_id: UUID) -> None:
        """Delete the profile and role rows of a user."""
        ...


class IOrderRepository(Protocol):
    async def save(self, order: Order) -> Order: ...

    async def list_for_user(
        self, user_id: UUID, side: OrderSide | None = None, limit: int | None = None
    ) -> list[Order]: ...

    async def delete_for_user(self, user_id: UUID) -> int: ...


class IHoldingRepository(Protocol):
    async def get(self, holding_id: UUID) -> Holding | None: ...

    async def get_for_user(
        self, user_id: UUID, symbol: str, for_update: bool = False
    ) -> Holding | None: ...

    async def list_for_user(self, user_id: UUID) -> list[Holding]: ...

    async def list_all(self) -> list[Holding]: ...

    async def list_by_symbol(self, symbol: str) -> list[Holding]: ...

    async def distinct_symbols(self, min_quantity: int = 1) -> list[str]: ...

    async def save(self, holding: Holding) -> Holding: ...

    async def delete(self, holding_id: UUID) -> None: ...

    async def delete_for_user(self, user_id: UUID) -> int: ...


class IFundRequestRepository(Protocol):
    async def get(self, request_id: UUID, for_update: bool = False) -> FundRequest | None: ...

    async def save(self, request: FundRequest) -> FundRequest: ...

    async def find(
        self, user_id: UUID | None = None, status: ReviewStatus | None = None
    ) -> list[FundRequest]: ...

    async def count_by_status(self) -> dict[str, int]: ...

    async def delete_for_user(self, user_id: UUID) -> int: ...


class IWithdrawalRepository(Protocol):
    async def get(
        self, request_id: UUID, for_update: bool = False
    ) -> WithdrawalRequest | None: ...

    async def save(self, request: WithdrawalRequest) -> WithdrawalRequest: ...

    async def find(
        self, user_id: UUID | None = None, status: ReviewStatus | None = None
    ) -> list[WithdrawalRequest]: ...

    async def count_by_status(self) -> dict[str, int]: ...

    async def delete_for_user(self, user_id: UUID) -> int: ...


class IKycRepository(Protocol):
    async def get(self, kyc_id: UUID, for_update: bool = False) -> KycSubmission | None: ...

    async def get_for_user(self, user_id: UUID) -> KycSubmission | None: ...

    async def save(self, submission: KycSubmission) -> KycSubmission: ...

    async def find(self, status: ReviewStatus | None = None) -> list[KycSubmission]: ...

    async def count_by_status(self) -> dict[str, int]: ...

    async def delete_for_user(self, user_id: UUID) -> int: ...


class IPaymentSettingsRepository(Protocol):
    async def get_bank(self, bank_id: UUID) -> BankDetail | None: ...

    async def save_bank(self, bank: BankDetail) -> BankDetail: ...

    async def list_banks(self, active_only: bool = False) -> list[BankDetail]: ...

    async def get_upi(self, upi_id: UUID) -> UpiDetail | None: ...

    async def save_upi(self, upi: UpiDetail) -> UpiDetail: ...

    async def delete_upi(self, upi_id: UUID) -> None: ...

    async def list_upis(self, active_only: bool = False) -> list[UpiDetail]: ...


class IWatchlistRepository(Protocol):
    async def list_for_user(self, user_id: UUID) -> list[WatchlistItem]:
        """Items newest first."""
        ...

    async def add(self, item: WatchlistItem) -> WatchlistItem:
        """
        Raises:
            DuplicateEntityError: If the symbol is already watched
        """
        ...

    async def remove(self, user_id: UUID, symbol: str) -> bool: ...

    async def delete_for_user(self, user_id: UUID) -> int: ...


class IPriceHistoryRepository(Protocol):
    async def record(self, symbol: str, price: Decimal, price_date: date) -> None:
        """Store the day's price for a symbol, replacing an earlier one that day."""
        ...


class ICredentialRepository(Protocol):
    async def exists(self, user_id: UUID) -> bool: ...

    async def delete(self, user_id: UUID) -> None:
        """Remove login credentials and sessions of a user."""
        ...
