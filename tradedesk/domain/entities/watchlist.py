"""
Watchlist Entity - A stock a user is following
"""

# Standard library imports
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from ..clock import utc_now
from ..exceptions import ValidationError


@dataclass
class WatchlistItem:
    """Watchlist entry backing ``user_watchlist``; unique per user and symbol."""

    user_id: UUID
    stock_symbol: str
    stock_name: str | None = None

    id: UUID = field(default_factory=uuid4)
    added_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.stock_symbol = self.stock_symbol.strip().upper()
        if not self.stock_symbol:
            raise ValidationError("Stock symbol cannot be empty")
        if self.stock_name is not None:
            self.stock_name = self.stock_name.strip() or None
