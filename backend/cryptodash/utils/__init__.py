"""
Utilities Package

Common utility functions and helpers.
"""

from .candle_utils import (
    closing_prices,
    generate_mock_candles,
    normalize_candles,
    parse_ohlc_rows,
)

__all__ = [
    "closing_prices",
    "generate_mock_candles",
    "normalize_candles",
    "parse_ohlc_rows",
]
