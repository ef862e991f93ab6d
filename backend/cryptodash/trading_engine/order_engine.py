"""
Order Engine

Accepts orders against an ExecutionLedger, simulates venue latency for
market orders, and exposes cancellation.

Lifecycle per order: pending -> filled | rejected | cancelled (one way).
Placement, the delayed execution and cancellation all mutate the ledger
under ``ledger.lock``, so a cancel racing a scheduled execution is decided
by whichever acquires the lock first: a cancel that gets there first wins,
and once execution holds the lock the cancel finds a terminal order and
returns False.
"""

import asyncio
import logging
import math
import random
import time
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from cryptodash.config import settings
from cryptodash.exceptions import ValidationError
from cryptodash.order_validation import validate_order
from cryptodash.trading_engine.buy_executor import execute_buy
from cryptodash.trading_engine.ledger import ExecutionLedger
from cryptodash.trading_engine.orders import (
    Order,
    OrderResult,
    OrderSide,
    OrderType,
    PendingOrder,
    Position,
)
from cryptodash.trading_engine.sell_executor import execute_sell
from cryptodash.trading_engine.trigger_monitor import find_triggered_orders

logger = logging.getLogger(__name__)


def random_fill_delay() -> float:
    """Simulated venue latency in seconds, uniform in [fill_delay_min, fill_delay_max)"""
    return random.uniform(settings.fill_delay_min, settings.fill_delay_max)


def _new_order_id() -> str:
    return f"order_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class OrderEngine:
    """
    Simulated order execution on top of an ExecutionLedger

    Args:
        ledger: The simulation's ledger (one per running simulation)
        delay_fn: Returns the market-order execution delay in seconds
        evaluate_triggers: Fill limit/stop orders when a price tick reaches
            them (defaults to settings.evaluate_order_triggers, off)
    """

    def __init__(
        self,
        ledger: ExecutionLedger,
        delay_fn: Optional[Callable[[], float]] = None,
        evaluate_triggers: Optional[bool] = None,
    ):
        self.ledger = ledger
        self._delay_fn = delay_fn or random_fill_delay
        self.evaluate_triggers = (
            settings.evaluate_order_triggers if evaluate_triggers is None else evaluate_triggers
        )
        self._execution_tasks: Dict[str, asyncio.Task] = {}

    # ----------------------------------------------------------
    # Commands
    # ----------------------------------------------------------

    async def place_order(
        self,
        symbol: str,
        side: str,
        order_type: str,
        amount: float,
        price: Optional[float] = None,
    ) -> OrderResult:
        """
        Validate and record a new pending order

        Returns immediately with the order id; fills and rejections are
        observed later through get_orders(). Invalid input yields
        OrderResult(success=False) and nothing is recorded.
        """
        try:
            request = validate_order(symbol, side, order_type, amount, price)
        except ValidationError as e:
            logger.warning(f"Order validation failed: {e.message}")
            return OrderResult(success=False, error=e.message)

        order = PendingOrder(
            id=_new_order_id(),
            symbol=request.symbol,
            side=request.side,
            order_type=request.order_type,
            amount=request.amount,
            limit_price=request.limit_price,
            created_at=datetime.utcnow(),
        )

        async with self.ledger.lock:
            self.ledger.append_order(order)

        price_note = "" if order.limit_price is None else f" @ {order.limit_price}"
        logger.info(
            f"Order {order.id} accepted: {order.side.value} {order.amount} {order.symbol} "
            f"({order.order_type.value}{price_note})"
        )

        if order.order_type is OrderType.MARKET:
            self._schedule_execution(order.id)

        return OrderResult(success=True, order_id=order.id)

    async def cancel_order(self, order_id: str) -> bool:
        """Cancel a pending order. Returns False for unknown or already-terminal orders."""
        async with self.ledger.lock:
            order = self.ledger.find_order(order_id)
            if not isinstance(order, PendingOrder):
                return False
            self.ledger.transition_order(order.cancel())

        task = self._execution_tasks.pop(order_id, None)
        if task is not None:
            task.cancel()

        logger.info(f"Order {order_id} cancelled")
        return True

    async def on_price_tick(self, symbol: str, price: float) -> List[Order]:
        """
        Record the latest market price for a symbol

        Marks the symbol's position to market and, when trigger evaluation
        is enabled, fills the limit/stop orders the price has reached.

        Returns:
            Orders that reached a terminal state because of this tick
        """
        if not math.isfinite(price) or price <= 0:
            logger.warning(f"Ignoring invalid price tick for {symbol}: {price}")
            return []

        symbol = symbol.upper()
        executed: List[Order] = []

        async with self.ledger.lock:
            self.ledger.set_market_price(symbol, price)
            self.ledger.mark_to_market(symbol, price)

            if self.evaluate_triggers:
                for order in find_triggered_orders(self.ledger.pending_orders(symbol), price):
                    logger.info(
                        f"Order {order.id} triggered at {price} ({order.order_type.value} {order.limit_price})"
                    )
                    executed.append(self._execute(order, order.limit_price))

        return executed

    async def drain(self) -> None:
        """Wait until every scheduled market-order execution has finished"""
        while self._execution_tasks:
            await asyncio.gather(*list(self._execution_tasks.values()), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel every outstanding execution task (orders stay pending)"""
        tasks = list(self._execution_tasks.values())
        self._execution_tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} scheduled executions")

    # ----------------------------------------------------------
    # Snapshots
    # ----------------------------------------------------------

    def get_balance(self) -> float:
        return self.ledger.get_balance()

    def get_orders(self) -> List[Order]:
        return self.ledger.get_orders()

    def get_order(self, order_id: str) -> Order:
        return self.ledger.get_order(order_id)

    def get_positions(self) -> List[Position]:
        return self.ledger.get_positions()

    # ----------------------------------------------------------
    # Execution
    # ----------------------------------------------------------

    def _schedule_execution(self, order_id: str) -> None:
        delay = self._delay_fn()
        task = asyncio.get_running_loop().create_task(self._execute_after(order_id, delay))
        self._execution_tasks[order_id] = task
        task.add_done_callback(lambda _: self._forget_task(order_id, task))

    def _forget_task(self, order_id: str, task: asyncio.Task) -> None:
        if self._execution_tasks.get(order_id) is task:
            del self._execution_tasks[order_id]

    async def _execute_after(self, order_id: str, delay: float) -> None:
        await asyncio.sleep(delay)

        async with self.ledger.lock:
            order = self.ledger.find_order(order_id)
            if not isinstance(order, PendingOrder):
                logger.debug(f"Order {order_id} no longer pending; skipping execution")
                return
            self._execute(order, self._execution_price(order))

    def _execution_price(self, order: PendingOrder) -> float:
        if order.limit_price is not None:
            return order.limit_price
        market_price = self.ledger.get_market_price(order.symbol)
        if market_price is None:
            return settings.default_market_price
        return market_price

    def _execute(self, order: PendingOrder, execution_price: float) -> Order:
        if order.side is OrderSide.BUY:
            return execute_buy(self.ledger, order, execution_price)
        return execute_sell(self.ledger, order, execution_price)
