"""
Tests for backend/cryptodash/trading_engine/sell_executor.py

Covers execute_sell:
- Full sell removes the position
- Partial sell keeps the average price and shrinks the amount
- Rejection when there is no position or it is too small
"""

from datetime import datetime

import pytest

from cryptodash.trading_engine.orders import (
    FilledOrder,
    OrderSide,
    OrderStatus,
    OrderType,
    PendingOrder,
    Position,
    RejectedOrder,
)
from cryptodash.trading_engine.sell_executor import INSUFFICIENT_POSITION, execute_sell


async def _record(ledger, order_id, amount, symbol="BTC"):
    order = PendingOrder(
        id=order_id,
        symbol=symbol,
        side=OrderSide.SELL,
        order_type=OrderType.MARKET,
        amount=amount,
        limit_price=None,
        created_at=datetime(2024, 1, 1),
    )
    async with ledger.lock:
        ledger.append_order(order)
    return order


async def _hold(ledger, amount, average_price, symbol="BTC"):
    async with ledger.lock:
        ledger.set_position(Position(symbol=symbol, amount=amount, average_price=average_price))


class TestExecuteSell:
    """Tests for execute_sell()."""

    @pytest.mark.asyncio
    async def test_full_sell_removes_position(self, ledger):
        await _hold(ledger, 0.1, 44250.0)
        order = await _record(ledger, "o1", 0.1)

        async with ledger.lock:
            result = execute_sell(ledger, order, 45000.0)

        assert isinstance(result, FilledOrder)
        assert ledger.get_balance() == pytest.approx(54500.0)
        assert ledger.get_position("BTC") is None

    @pytest.mark.asyncio
    async def test_sell_float_dust_treated_as_full(self, ledger):
        """Edge case: 0.1 + 0.2 held, 0.3 sold leaves no dust position."""
        await _hold(ledger, 0.1 + 0.2, 100.0)
        order = await _record(ledger, "o1", 0.3)

        async with ledger.lock:
            result = execute_sell(ledger, order, 100.0)

        assert isinstance(result, FilledOrder)
        assert ledger.get_positions() == []

    @pytest.mark.asyncio
    async def test_partial_sell_keeps_average(self, ledger):
        await _hold(ledger, 1.0, 40000.0)
        order = await _record(ledger, "o1", 0.25)

        async with ledger.lock:
            execute_sell(ledger, order, 42000.0)

        position = ledger.get_position("BTC")
        assert position.amount == pytest.approx(0.75)
        assert position.average_price == 40000.0
        assert position.unrealized_pnl == pytest.approx(1500.0)
        assert ledger.get_balance() == pytest.approx(50000.0 + 10500.0)

    @pytest.mark.asyncio
    async def test_sell_without_position_rejected(self, ledger):
        order = await _record(ledger, "o1", 0.1)

        async with ledger.lock:
            result = execute_sell(ledger, order, 45000.0)

        assert isinstance(result, RejectedOrder)
        assert result.error == INSUFFICIENT_POSITION
        assert ledger.get_order("o1").status is OrderStatus.REJECTED
        assert ledger.get_balance() == 50000.0

    @pytest.mark.asyncio
    async def test_sell_more_than_held_rejected(self, ledger):
        """Failure: no partial sells; the position is left as it was."""
        await _hold(ledger, 0.05, 44000.0)
        order = await _record(ledger, "o1", 0.1)

        async with ledger.lock:
            result = execute_sell(ledger, order, 45000.0)

        assert isinstance(result, RejectedOrder)
        assert ledger.get_position("BTC").amount == 0.05
        assert ledger.get_balance() == 50000.0
