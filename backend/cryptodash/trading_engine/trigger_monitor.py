"""
Limit / stop trigger evaluation

Decides which pending limit and stop orders a price tick has reached.
Only consulted when trigger evaluation is enabled on the OrderEngine;
by default limit and stop orders stay pending.
"""

from typing import Iterable, List

from cryptodash.trading_engine.orders import OrderSide, OrderType, PendingOrder


def is_triggered(order: PendingOrder, price: float) -> bool:
    """
    Whether ``price`` reaches the order's limit/stop level

    - buy limit: price <= limit      - sell limit: price >= limit
    - buy stop:  price >= stop       - sell stop:  price <= stop
    """
    if order.order_type is OrderType.MARKET or order.limit_price is None:
        return False

    level = order.limit_price
    if order.order_type is OrderType.LIMIT:
        return price <= level if order.side is OrderSide.BUY else price >= level
    return price >= level if order.side is OrderSide.BUY else price <= level


def find_triggered_orders(orders: Iterable[PendingOrder], price: float) -> List[PendingOrder]:
    """Pending orders reached by ``price``, in the order given"""
    return [order for order in orders if is_triggered(order, price)]
