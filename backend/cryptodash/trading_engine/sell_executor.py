"""
Sell order execution for the simulated engine

Credits the ledger balance and shrinks the symbol's position; the position
is removed once it is fully sold. No partial sells. Runs inside the ledger lock.
"""

import logging
from dataclasses import replace

from cryptodash.trading_engine.ledger import ExecutionLedger
from cryptodash.trading_engine.orders import Order, PendingOrder

logger = logging.getLogger(__name__)

INSUFFICIENT_POSITION = "Insufficient position"

# Float dust tolerated when comparing position sizes
POSITION_EPSILON = 1e-12


def execute_sell(ledger: ExecutionLedger, order: PendingOrder, execution_price: float) -> Order:
    """
    Fill a pending sell order, or reject it when the position is too small

    Returns:
        The terminal order (FilledOrder or RejectedOrder) now stored in the ledger
    """
    position = ledger.get_position(order.symbol)

    if position is None or position.amount < order.amount - POSITION_EPSILON:
        held = position.amount if position else 0.0
        rejected = order.reject(INSUFFICIENT_POSITION)
        ledger.transition_order(rejected)
        logger.warning(
            f"Sell {order.id} rejected: wants {order.amount} {order.symbol}, holding {held}"
        )
        return rejected

    total = order.amount * execution_price
    ledger.credit(total)
    filled = order.fill(execution_price)
    ledger.transition_order(filled)

    remaining = position.amount - order.amount
    if remaining <= POSITION_EPSILON:
        ledger.remove_position(order.symbol)
    else:
        ledger.set_position(replace(position, amount=remaining))
        mark_price = ledger.get_market_price(order.symbol)
        ledger.mark_to_market(order.symbol, execution_price if mark_price is None else mark_price)

    logger.info(
        f"Sell {order.id} filled: {order.amount} {order.symbol} @ {execution_price} "
        f"(total {total:.2f}, balance {ledger.get_balance():.2f})"
    )
    return filled
