"""
Price Feeds Module

Market data records and the real-time streaming client.

Components:
- PricePoint / MarketSnapshot / OrderBook / Ticker: market data records
- binance_stream: stream URL builder and frame decoding
- ResilientFeedClient: reconnecting WebSocket client with a bounded retry budget
"""

from cryptodash.price_feeds.base import (
    MarketOverview,
    MarketSnapshot,
    NewsItem,
    OrderBook,
    OrderBookLevel,
    PricePoint,
    Ticker,
)
from cryptodash.price_feeds.binance_stream import build_stream_url, parse_stream_frame, parse_ticker
from cryptodash.price_feeds.feed_client import (
    ConnectionState,
    ResilientFeedClient,
    WebSocketConnection,
    open_websocket,
)

__all__ = [
    "MarketOverview",
    "MarketSnapshot",
    "NewsItem",
    "OrderBook",
    "OrderBookLevel",
    "PricePoint",
    "Ticker",
    "build_stream_url",
    "parse_stream_frame",
    "parse_ticker",
    "ConnectionState",
    "ResilientFeedClient",
    "WebSocketConnection",
    "open_websocket",
]
