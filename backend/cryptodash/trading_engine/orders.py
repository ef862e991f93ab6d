"""
Order and position records for the simulated execution engine

An order is one of four variants, one per lifecycle status. Only
PendingOrder carries transition methods, and each returns a terminal
variant, so an order can leave ``pending`` exactly once and no terminal
order can change again. Fields that only make sense for one status
(execution price, rejection reason) exist only on that variant.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"


class OrderStatus(str, Enum):
    PENDING = "pending"
    FILLED = "filled"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class _OrderFields:
    id: str
    symbol: str
    side: OrderSide
    order_type: OrderType
    amount: float
    limit_price: Optional[float]  # Limit or stop price; None for market orders
    created_at: datetime

    status: ClassVar[OrderStatus]

    @property
    def filled(self) -> float:
        return 0.0

    def _base_fields(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(_OrderFields)}

    def to_dict(self) -> Dict[str, Any]:
        """UI-facing representation (camelCase keys)"""
        data = {
            "id": self.id,
            "symbol": self.symbol,
            "side": self.side.value,
            "type": self.order_type.value,
            "amount": self.amount,
            "status": self.status.value,
            "filled": self.filled,
            "createdAt": self.created_at.isoformat(),
        }
        if self.limit_price is not None:
            data["price"] = self.limit_price
        return data


@dataclass(frozen=True)
class PendingOrder(_OrderFields):
    status: ClassVar[OrderStatus] = OrderStatus.PENDING

    def fill(self, execution_price: float, filled_at: Optional[datetime] = None) -> "FilledOrder":
        return FilledOrder(
            **self._base_fields(),
            execution_price=execution_price,
            filled_amount=self.amount,
            filled_at=filled_at or datetime.utcnow(),
        )

    def reject(self, error: str) -> "RejectedOrder":
        return RejectedOrder(**self._base_fields(), error=error)

    def cancel(self, cancelled_at: Optional[datetime] = None) -> "CancelledOrder":
        return CancelledOrder(**self._base_fields(), cancelled_at=cancelled_at or datetime.utcnow())


@dataclass(frozen=True)
class FilledOrder(_OrderFields):
    execution_price: float
    filled_amount: float
    filled_at: datetime

    status: ClassVar[OrderStatus] = OrderStatus.FILLED

    def __post_init__(self):
        if not 0 < self.filled_amount <= self.amount:
            raise ValueError(f"filled amount {self.filled_amount} outside (0, {self.amount}]")

    @property
    def filled(self) -> float:
        return self.filled_amount

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["executionPrice"] = self.execution_price
        return data


@dataclass(frozen=True)
class RejectedOrder(_OrderFields):
    error: str

    status: ClassVar[OrderStatus] = OrderStatus.REJECTED

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["error"] = self.error
        return data


@dataclass(frozen=True)
class CancelledOrder(_OrderFields):
    cancelled_at: datetime

    status: ClassVar[OrderStatus] = OrderStatus.CANCELLED


Order = Union[PendingOrder, FilledOrder, RejectedOrder, CancelledOrder]


@dataclass(frozen=True)
class Position:
    """Open holding for one symbol; removed from the ledger when amount returns to 0"""
    symbol: str
    amount: float
    average_price: float  # Size-weighted cost basis
    unrealized_pnl: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "amount": self.amount,
            "averagePrice": self.average_price,
            "unrealizedPnL": self.unrealized_pnl,
        }


@dataclass(frozen=True)
class OrderResult:
    """Synchronous answer to an order placement"""
    success: bool
    order_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"success": self.success, "orderId": self.order_id, "error": self.error}
        return {k: v for k, v in data.items() if v is not None}
