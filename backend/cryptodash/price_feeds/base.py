"""
Market Data Records

Value types shared by the REST market-data source, the streaming feed and
the indicator library.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PricePoint:
    """Single OHLCV candle; sequences are ordered by timestamp ascending"""
    timestamp: int  # epoch milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class MarketSnapshot:
    """Current market state of one tracked symbol"""
    symbol: str
    name: str
    price: float
    change_24h: float
    change_percent: float
    volume: float
    market_cap: float

    def with_price(self, price: float) -> "MarketSnapshot":
        """Copy of this snapshot with a fresher price (from a streaming tick)"""
        return MarketSnapshot(
            symbol=self.symbol,
            name=self.name,
            price=price,
            change_24h=self.change_24h,
            change_percent=self.change_percent,
            volume=self.volume,
            market_cap=self.market_cap,
        )


@dataclass(frozen=True)
class MarketOverview:
    """Global market aggregates"""
    total_market_cap: float
    total_volume: float
    btc_dominance: float
    active_cryptocurrencies: int


@dataclass(frozen=True)
class NewsItem:
    id: str
    title: str
    summary: str
    source: str
    timestamp: str  # ISO-8601
    sentiment: str  # positive, negative, neutral
    impact: str  # high, medium, low
    url: str = "#"


@dataclass(frozen=True)
class OrderBookLevel:
    """Single level in an order book (price + amount)"""
    price: float
    amount: float

    @property
    def value(self) -> float:
        """Total value at this level"""
        return self.price * self.amount


@dataclass
class OrderBook:
    """Order book snapshot with bids and asks"""
    symbol: str
    bids: List[OrderBookLevel] = field(default_factory=list)  # Sorted highest to lowest
    asks: List[OrderBookLevel] = field(default_factory=list)  # Sorted lowest to highest

    @property
    def best_bid(self) -> Optional[float]:
        """Best (highest) bid price"""
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        """Best (lowest) ask price"""
        return self.asks[0].price if self.asks else None

    @property
    def spread(self) -> Optional[float]:
        """Absolute spread between best bid and ask"""
        if self.best_bid is not None and self.best_ask is not None:
            return self.best_ask - self.best_bid
        return None


@dataclass(frozen=True)
class Ticker:
    """Parsed real-time ticker frame"""
    symbol: str
    price: float
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)
