"""
Buy order execution for the simulated engine

Debits the ledger balance and opens or grows the symbol's position at a
size-weighted average price. Runs inside the ledger lock.
"""

import logging
from dataclasses import replace

from cryptodash.trading_engine.ledger import ExecutionLedger
from cryptodash.trading_engine.orders import Order, PendingOrder, Position

logger = logging.getLogger(__name__)

INSUFFICIENT_BALANCE = "Insufficient balance"


def execute_buy(ledger: ExecutionLedger, order: PendingOrder, execution_price: float) -> Order:
    """
    Fill a pending buy order, or reject it when the balance cannot cover it

    Args:
        ledger: Ledger whose lock the caller holds
        order: Pending buy order
        execution_price: Price to fill at

    Returns:
        The terminal order (FilledOrder or RejectedOrder) now stored in the ledger
    """
    total = order.amount * execution_price
    balance = ledger.get_balance()

    if balance < total:
        rejected = order.reject(INSUFFICIENT_BALANCE)
        ledger.transition_order(rejected)
        logger.warning(
            f"Buy {order.id} rejected: {order.amount} {order.symbol} @ {execution_price} "
            f"needs {total:.2f}, balance {balance:.2f}"
        )
        return rejected

    ledger.debit(total)
    filled = order.fill(execution_price)
    ledger.transition_order(filled)

    existing = ledger.get_position(order.symbol)
    if existing is None:
        position = Position(
            symbol=order.symbol,
            amount=order.amount,
            average_price=execution_price,
        )
    else:
        new_amount = existing.amount + order.amount
        average_price = (existing.average_price * existing.amount + total) / new_amount
        position = replace(existing, amount=new_amount, average_price=average_price)
    ledger.set_position(position)

    mark_price = ledger.get_market_price(order.symbol)
    ledger.mark_to_market(order.symbol, execution_price if mark_price is None else mark_price)

    logger.info(
        f"Buy {order.id} filled: {order.amount} {order.symbol} @ {execution_price} "
        f"(total {total:.2f}, balance {ledger.get_balance():.2f})"
    )
    return filled
