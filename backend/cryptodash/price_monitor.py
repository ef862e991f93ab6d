"""
Price Monitor

Streams ticker frames for a fixed symbol set, forwards every price to the
OrderEngine (last known price, mark-to-market, optional trigger fills) and
keeps a rolling close history per symbol for signal generation.
"""

import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Iterable, List, Optional, Sequence

from cryptodash.config import settings
from cryptodash.indicator_calculator import IndicatorCalculator, Signal
from cryptodash.price_feeds.base import PricePoint, Ticker
from cryptodash.price_feeds.binance_stream import build_stream_url, parse_ticker
from cryptodash.price_feeds.feed_client import ResilientFeedClient
from cryptodash.trading_engine.order_engine import OrderEngine

logger = logging.getLogger(__name__)


class PriceMonitor:
    """Feed -> engine wiring plus per-symbol price history"""

    def __init__(
        self,
        engine: OrderEngine,
        symbols: Optional[Iterable[str]] = None,
        history_size: Optional[int] = None,
        connector: Optional[Callable[[str], Awaitable[Any]]] = None,
    ):
        self.engine = engine
        self.history_size = history_size or settings.price_history_size
        self.calculator = IndicatorCalculator()
        self._connector = connector
        self.latest: Dict[str, Ticker] = {}
        self.ticks_processed = 0
        self._history: Dict[str, Deque[float]] = {}
        self.symbols: List[str] = []
        self.feed = self._build_feed(symbols or settings.default_symbols)

    def _build_feed(self, symbols: Iterable[str]) -> ResilientFeedClient:
        self.symbols = [symbol.upper() for symbol in symbols]
        for symbol in self.symbols:
            self._history.setdefault(symbol, deque(maxlen=self.history_size))
        return ResilientFeedClient(
            build_stream_url(self.symbols),
            on_message=self.handle_message,
            connector=self._connector,
        )

    def start(self):
        """Open the stream (no-op if already connecting/connected)"""
        self.feed.connect()
        logger.info(f"Price monitor started for {', '.join(self.symbols)}")

    async def stop(self):
        await self.feed.disconnect()
        logger.info("Price monitor stopped")

    async def set_symbols(self, symbols: Iterable[str]):
        """
        Track a different symbol set.

        Subscriptions are fixed per connection, so this closes the current
        stream and opens a new one.
        """
        await self.feed.disconnect()
        self.feed = self._build_feed(symbols)
        self.feed.connect()
        logger.info(f"Price monitor resubscribed to {', '.join(self.symbols)}")

    def seed_history(self, symbol: str, candles: Sequence[PricePoint]):
        """Preload a symbol's history from REST candles (oldest first)"""
        history = self._history.setdefault(symbol.upper(), deque(maxlen=self.history_size))
        history.extend(candle.close for candle in candles)

    async def handle_message(self, data: Dict[str, Any]):
        """Subscriber for decoded stream payloads"""
        ticker = parse_ticker(data)
        if ticker is None:
            logger.debug(f"Ignoring non-ticker payload: {list(data)[:5]}")
            return

        if ticker.symbol not in self.symbols:
            logger.debug(f"Ignoring ticker for untracked symbol {ticker.symbol}")
            return

        self._history[ticker.symbol].append(ticker.price)
        self.latest[ticker.symbol] = ticker
        self.ticks_processed += 1
        await self.engine.on_price_tick(ticker.symbol, ticker.price)

    def get_price_history(self, symbol: str) -> List[float]:
        return list(self._history.get(symbol.upper(), ()))

    def get_signals(self, symbol: str) -> List[Signal]:
        """Advisory signals for the symbol's current history (empty until enough ticks)"""
        return self.calculator.generate_signals(self.get_price_history(symbol))

    def get_status(self) -> dict:
        return {
            "symbols": list(self.symbols),
            "state": self.feed.state.value,
            "reconnect_count": self.feed.reconnect_count,
            "gave_up": self.feed.gave_up,
            "last_error": self.feed.last_error,
            "ticks_processed": self.ticks_processed,
        }
