"""
Binance combined-stream codec

Builds the streaming URL for a fixed set of symbols and decodes the frames
it carries. Changing the symbol set means building a new URL and opening a
fresh connection; subscriptions are not renegotiated mid-connection.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional, Union

from cryptodash.config import settings
from cryptodash.constants import STREAM_QUOTE_ASSET
from cryptodash.price_feeds.base import Ticker

logger = logging.getLogger(__name__)


def build_stream_url(symbols: Iterable[str], base_url: Optional[str] = None) -> str:
    """
    Build the combined ticker stream URL for the given symbols.

    Example: ["BTC", "ETH"] -> wss://.../stream?streams=btcusdt@ticker/ethusdt@ticker
    """
    base = (base_url or settings.binance_ws_url).rstrip("/")
    streams = "/".join(
        f"{symbol.lower()}{STREAM_QUOTE_ASSET.lower()}@ticker" for symbol in symbols
    )
    return f"{base}/stream?streams={streams}"


def parse_stream_frame(raw: Union[str, bytes]) -> Optional[Dict[str, Any]]:
    """
    Decode one inbound frame.

    Combined-stream envelopes ({"stream": ..., "data": {...}}) are unwrapped
    to their payload. Returns None for frames that are not valid JSON objects.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.error(f"Error parsing stream frame: {e}")
        return None

    if not isinstance(data, dict):
        logger.error(f"Unexpected stream frame type: {type(data).__name__}")
        return None

    if "stream" in data and isinstance(data.get("data"), dict):
        return data["data"]
    return data


def parse_ticker(data: Dict[str, Any]) -> Optional[Ticker]:
    """Extract symbol and last price from a 24hr ticker payload ("s" / "c")."""
    raw_symbol = data.get("s")
    raw_price = data.get("c")
    if not raw_symbol or raw_price is None:
        return None

    try:
        price = float(raw_price)
    except (TypeError, ValueError):
        logger.warning(f"Ticker for {raw_symbol} has a non-numeric price: {raw_price!r}")
        return None

    symbol = str(raw_symbol).upper()
    if symbol.endswith(STREAM_QUOTE_ASSET):
        symbol = symbol[: -len(STREAM_QUOTE_ASSET)]
    return Ticker(symbol=symbol, price=price, raw=data)
