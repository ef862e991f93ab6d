"""
Tests for backend/cryptodash/trading_engine/trigger_monitor.py
"""

from datetime import datetime

import pytest

from cryptodash.trading_engine.orders import OrderSide, OrderType, PendingOrder
from cryptodash.trading_engine.trigger_monitor import find_triggered_orders, is_triggered


def _order(side, order_type, level, order_id="o1"):
    return PendingOrder(
        id=order_id,
        symbol="BTC",
        side=side,
        order_type=order_type,
        amount=0.1,
        limit_price=level,
        created_at=datetime(2024, 1, 1),
    )


class TestIsTriggered:

    @pytest.mark.parametrize("side,order_type,price,expected", [
        (OrderSide.BUY, OrderType.LIMIT, 39000.0, True),
        (OrderSide.BUY, OrderType.LIMIT, 40000.0, True),
        (OrderSide.BUY, OrderType.LIMIT, 41000.0, False),
        (OrderSide.SELL, OrderType.LIMIT, 41000.0, True),
        (OrderSide.SELL, OrderType.LIMIT, 39000.0, False),
        (OrderSide.BUY, OrderType.STOP, 41000.0, True),
        (OrderSide.BUY, OrderType.STOP, 39000.0, False),
        (OrderSide.SELL, OrderType.STOP, 39000.0, True),
        (OrderSide.SELL, OrderType.STOP, 41000.0, False),
    ])
    def test_levels(self, side, order_type, price, expected):
        assert is_triggered(_order(side, order_type, 40000.0), price) is expected

    def test_market_order_never_triggers(self):
        assert is_triggered(_order(OrderSide.BUY, OrderType.MARKET, None), 1.0) is False


class TestFindTriggeredOrders:

    def test_preserves_input_order(self):
        orders = [
            _order(OrderSide.BUY, OrderType.LIMIT, 40000.0, "a"),
            _order(OrderSide.SELL, OrderType.LIMIT, 50000.0, "b"),
            _order(OrderSide.SELL, OrderType.STOP, 41000.0, "c"),
        ]
        assert [o.id for o in find_triggered_orders(orders, 39500.0)] == ["a", "c"]

    def test_empty(self):
        assert find_triggered_orders([], 100.0) == []
