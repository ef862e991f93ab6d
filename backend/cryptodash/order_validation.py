"""
Order validation utilities

Checks order inputs before they reach the ledger. Anything rejected here
never enters the order list.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

from cryptodash.exceptions import ValidationError
from cryptodash.trading_engine.orders import OrderSide, OrderType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedOrder:
    symbol: str
    side: OrderSide
    order_type: OrderType
    amount: float
    limit_price: Optional[float]


def _positive_number(value, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}")

    if not math.isfinite(number) or number <= 0:
        raise ValidationError(f"{name} must be greater than 0")
    return number


def validate_order(
    symbol: str,
    side: Union[str, OrderSide],
    order_type: Union[str, OrderType],
    amount: float,
    price: Optional[float] = None,
) -> ValidatedOrder:
    """
    Validate and normalize order inputs

    Raises:
        ValidationError: unknown side/type, empty symbol, amount <= 0, or a
            missing / non-positive price on a limit or stop order
    """
    if not symbol or not str(symbol).strip():
        raise ValidationError("Symbol is required")

    try:
        side = OrderSide(side)
    except ValueError:
        raise ValidationError(f"Unknown order side: {side!r}")

    try:
        order_type = OrderType(order_type)
    except ValueError:
        raise ValidationError(f"Unknown order type: {order_type!r}")

    amount = _positive_number(amount, "Amount")

    limit_price = None
    if order_type is not OrderType.MARKET:
        if price is None:
            raise ValidationError(f"Price is required for {order_type.value} orders")
        limit_price = _positive_number(price, "Price")
    elif price is not None:
        logger.debug(f"Ignoring price {price} on market order for {symbol}")

    return ValidatedOrder(
        symbol=str(symbol).strip().upper(),
        side=side,
        order_type=order_type,
        amount=amount,
        limit_price=limit_price,
    )
