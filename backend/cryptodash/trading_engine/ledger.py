"""
Execution Ledger

Authoritative state of one running simulation: cash balance, per-symbol
positions, the order log and the last known market price per symbol.

All mutations go through ``ledger.lock`` (a single asyncio.Lock). Mutating
methods refuse to run unless the lock is held, and none of them await, so
readers in the same event loop never observe a half-applied change.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Dict, List, Optional

from cryptodash.config import settings
from cryptodash.exceptions import NotFoundError
from cryptodash.trading_engine.orders import Order, OrderStatus, PendingOrder, Position

logger = logging.getLogger(__name__)


class ExecutionLedger:
    """Balance, positions and orders for one simulation (construct one and pass it around)"""

    def __init__(self, initial_balance: Optional[float] = None):
        self._balance = settings.initial_balance if initial_balance is None else float(initial_balance)
        self._positions: Dict[str, Position] = {}
        # Append-only log of order ids (oldest first) plus an index by id
        self._order_log: List[str] = []
        self._orders: Dict[str, Order] = {}
        self._market_prices: Dict[str, float] = {}
        self.lock = asyncio.Lock()

    # ----------------------------------------------------------
    # Read-only snapshots
    # ----------------------------------------------------------

    def get_balance(self) -> float:
        return self._balance

    def get_orders(self) -> List[Order]:
        """All orders, most recent first"""
        return [self._orders[order_id] for order_id in reversed(self._order_log)]

    def find_order(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    def get_order(self, order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def pending_orders(self, symbol: Optional[str] = None) -> List[PendingOrder]:
        """Pending orders (oldest first), optionally for one symbol"""
        return [
            order
            for order in (self._orders[order_id] for order_id in self._order_log)
            if isinstance(order, PendingOrder) and (symbol is None or order.symbol == symbol)
        ]

    def get_positions(self) -> List[Position]:
        return list(self._positions.values())

    def get_position(self, symbol: str) -> Optional[Position]:
        return self._positions.get(symbol)

    def get_market_price(self, symbol: str) -> Optional[float]:
        return self._market_prices.get(symbol)

    # ----------------------------------------------------------
    # Mutations (caller must hold self.lock)
    # ----------------------------------------------------------

    def _require_lock(self) -> None:
        if not self.lock.locked():
            raise RuntimeError("Ledger mutations require ledger.lock to be held")

    def append_order(self, order: PendingOrder) -> None:
        self._require_lock()
        if order.id in self._orders:
            raise ValueError(f"Duplicate order id {order.id}")
        self._order_log.append(order.id)
        self._orders[order.id] = order

    def transition_order(self, order: Order) -> None:
        """Replace a pending order with its terminal variant"""
        self._require_lock()
        current = self._orders.get(order.id)
        if current is None:
            raise NotFoundError(f"Order {order.id} not found")
        if current.status is not OrderStatus.PENDING:
            raise ValueError(
                f"Order {order.id} is already {current.status.value}; terminal states are final"
            )
        self._orders[order.id] = order

    def debit(self, amount: float) -> None:
        self._require_lock()
        self._balance -= amount

    def credit(self, amount: float) -> None:
        self._require_lock()
        self._balance += amount

    def set_position(self, position: Position) -> None:
        self._require_lock()
        self._positions[position.symbol] = position

    def remove_position(self, symbol: str) -> None:
        self._require_lock()
        self._positions.pop(symbol, None)

    def set_market_price(self, symbol: str, price: float) -> None:
        self._require_lock()
        self._market_prices[symbol] = price

    def mark_to_market(self, symbol: str, price: float) -> None:
        """Refresh unrealized P&L of the symbol's position at the given price"""
        self._require_lock()
        position = self._positions.get(symbol)
        if position is None:
            return
        self._positions[symbol] = replace(
            position, unrealized_pnl=(price - position.average_price) * position.amount
        )
