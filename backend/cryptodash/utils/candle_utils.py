"""
Candle Data Utilities

Utility functions for building and normalizing OHLCV candle series,
including the synthetic random-walk series used when no market data
source is reachable.
"""

import logging
import random
import time
from typing import Iterable, List, Optional, Sequence

from cryptodash.constants import (
    MOCK_CANDLE_MAX_VOLUME,
    MOCK_CANDLE_START_PRICE,
    MOCK_CANDLE_STEP,
    MOCK_CANDLE_WICK,
    ONE_DAY_MS,
)
from cryptodash.price_feeds.base import PricePoint

logger = logging.getLogger(__name__)


def generate_mock_candles(
    days: int = 30,
    start_price: float = MOCK_CANDLE_START_PRICE,
    now_ms: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[PricePoint]:
    """
    Generate a synthetic daily candle series by random walk.

    Produces ``days + 1`` candles ending at ``now_ms``, one day apart. Each
    candle opens at the running price, its high/low sit within
    MOCK_CANDLE_WICK of the open, and it closes somewhere between low and
    high; the next candle starts from that close.

    Args:
        days: Lookback window in days
        start_price: Price the walk starts from
        now_ms: Timestamp of the last candle (defaults to now)
        rng: Random source (pass a seeded Random for reproducible series)

    Returns:
        Candles sorted by timestamp ascending
    """
    rng = rng or random.Random()
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms

    candles = []
    price = start_price
    for i in range(days, -1, -1):
        timestamp = now_ms - i * ONE_DAY_MS
        price += (rng.random() - 0.5) * MOCK_CANDLE_STEP

        open_price = price
        high = price + rng.random() * MOCK_CANDLE_WICK
        low = price - rng.random() * MOCK_CANDLE_WICK
        close = low + rng.random() * (high - low)

        candles.append(PricePoint(
            timestamp=timestamp,
            open=open_price,
            high=high,
            low=low,
            close=close,
            volume=rng.random() * MOCK_CANDLE_MAX_VOLUME,
        ))
        price = close

    return candles


def parse_ohlc_rows(
    rows: Iterable[Sequence[float]],
    rng: Optional[random.Random] = None,
) -> List[PricePoint]:
    """
    Convert [timestamp, open, high, low, close] rows into candles.

    The OHLC endpoint carries no volume, so a random volume is attached
    for display. Rows that are too short or non-numeric are skipped.
    """
    rng = rng or random.Random()
    candles = []
    for row in rows:
        try:
            timestamp, open_price, high, low, close = row[:5]
            candles.append(PricePoint(
                timestamp=int(timestamp),
                open=float(open_price),
                high=float(high),
                low=float(low),
                close=float(close),
                volume=rng.random() * MOCK_CANDLE_MAX_VOLUME,
            ))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed OHLC row {row!r}: {e}")
    return normalize_candles(candles)


def normalize_candles(candles: Iterable[PricePoint]) -> List[PricePoint]:
    """Sort candles by timestamp ascending, keeping the last candle seen for each timestamp."""
    by_timestamp = {}
    for candle in candles:
        by_timestamp[candle.timestamp] = candle
    return [by_timestamp[ts] for ts in sorted(by_timestamp)]


def closing_prices(candles: Iterable[PricePoint]) -> List[float]:
    return [candle.close for candle in candles]
