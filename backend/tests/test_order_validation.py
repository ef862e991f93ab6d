"""Tests for cryptodash/order_validation.py"""

import pytest

from cryptodash.exceptions import ValidationError
from cryptodash.order_validation import ValidatedOrder, validate_order
from cryptodash.trading_engine.orders import OrderSide, OrderType


# ---------------------------------------------------------------------------
# validate_order
# ---------------------------------------------------------------------------

class TestValidateOrder:
    def test_valid_market_order(self):
        assert validate_order(" btc ", "buy", "market", "0.1") == ValidatedOrder(
            symbol="BTC",
            side=OrderSide.BUY,
            order_type=OrderType.MARKET,
            amount=0.1,
            limit_price=None,
        )

    def test_valid_limit_order(self):
        order = validate_order("ETH", OrderSide.SELL, OrderType.LIMIT, 2, price=2600)
        assert order.limit_price == 2600.0
        assert order.order_type is OrderType.LIMIT

    def test_stop_order_requires_price(self):
        with pytest.raises(ValidationError, match="Price is required"):
            validate_order("ETH", "sell", "stop", 1)

    def test_market_order_price_ignored(self):
        assert validate_order("BTC", "buy", "market", 1, price=123.0).limit_price is None

    @pytest.mark.parametrize("amount", [0, -0.5, float("nan"), float("inf"), "abc", None])
    def test_invalid_amount(self, amount):
        with pytest.raises(ValidationError):
            validate_order("BTC", "buy", "market", amount)

    @pytest.mark.parametrize("price", [0, -1, "x"])
    def test_invalid_limit_price(self, price):
        with pytest.raises(ValidationError):
            validate_order("BTC", "buy", "limit", 1, price=price)

    def test_unknown_side(self):
        with pytest.raises(ValidationError, match="side"):
            validate_order("BTC", "short", "market", 1)

    def test_unknown_type(self):
        with pytest.raises(ValidationError, match="type"):
            validate_order("BTC", "buy", "iceberg", 1)

    @pytest.mark.parametrize("symbol", ["", "   ", None])
    def test_missing_symbol(self, symbol):
        with pytest.raises(ValidationError, match="Symbol"):
            validate_order(symbol, "buy", "market", 1)

    def test_validation_error_status_code(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_order("BTC", "buy", "market", 0)
        assert exc_info.value.status_code == 400
