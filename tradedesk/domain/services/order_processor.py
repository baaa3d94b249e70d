"""
Order Processor - Domain service applying a filled order to an account.

A buy debits the account and opens or re-averages the holding. A sell
checks the held quantity, credits the account and shrinks the holding;
a holding sold down to zero is reported as closed so the caller can
delete it. The processor mutates the entities it is given and persists
nothing, so the caller decides the transaction boundary.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from ..entities.account import Account
from ..entities.holding import Holding
from ..entities.order import Order, OrderSide
from ..exceptions import InsufficientHoldingsError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Outcome of applying one order."""

    order: Order
    account: Account
    holding: Holding | None
    holding_closed: bool = False


class OrderProcessor:
    """Applies simulated fills to an account and its holding."""

    def execute(
        self,
        order: Order,
        account: Account,
        holding: Holding | None,
        last_price: Decimal,
    ) -> ExecutionResult:
        """
        Apply ``order`` to ``account`` and ``holding``.

        Args:
            order: The order, already priced
            account: Account of the order's owner
            holding: The owner's current holding of the symbol, if any
            last_price: Last traded price used to mark the holding

        Returns:
            ExecutionResult with the updated entities

        Raises:
            InsufficientFundsError: If a buy costs more than the balance
            InsufficientHoldingsError: If a sell exceeds the held quantity
        """
        if order.user_id != account.user_id:
            raise ValidationError("Order does not belong to this account")
        if holding is not None and holding.symbol != order.symbol:
            raise ValidationError("Holding symbol does not match order")

        if order.side is OrderSide.BUY:
            return self._execute_buy(order, account, holding, last_price)
        return self._execute_sell(order, account, holding, last_price)

    def _execute_buy(
        self, order: Order, account: Account, holding: Holding | None, last_price: Decimal
    ) -> ExecutionResult:
        account.debit(order.total_amount)

        if holding is None:
            holding = Holding.open(
                user_id=account.user_id,
                symbol=order.symbol,
                quantity=order.quantity,
                price=order.price,
                ltp=last_price,
            )
        else:
            holding.apply_buy(order.quantity, order.price, last_price)

        logger.info(
            f"Bought {order.quantity} {order.symbol} at {order.price} for user {account.user_id}"
        )
        return ExecutionResult(order=order, account=account, holding=holding)

    def _execute_sell(
        self, order: Order, account: Account, holding: Holding | None, last_price: Decimal
    ) -> ExecutionResult:
        held = holding.quantity if holding else 0
        if holding is None or order.quantity > held:
            raise InsufficientHoldingsError(order.symbol, order.quantity, held)

        holding.apply_sell(order.quantity, last_price)
        account.credit(order.total_amount)

        logger.info(
            f"Sold {order.quantity} {order.symbol} at {order.price} for user {account.user_id}"
        )
        return ExecutionResult(
            order=order, account=account, holding=holding, holding_closed=holding.is_closed
        )
