"""
Application Constants

Centralized constants for tracked symbols and mock market data.
"""

from typing import Dict, List

# Symbols tracked by the dashboard tiles
DEFAULT_SYMBOLS = ["BTC", "ETH", "SOL", "ADA"]

# Quote asset appended to stream names and stripped from ticker symbols
STREAM_QUOTE_ASSET = "USDT"

# Mock snapshot used when the market data API is unavailable
MOCK_CRYPTO_DATA: List[Dict[str, object]] = [
    {
        "symbol": "BTC",
        "name": "Bitcoin",
        "price": 44250.00,
        "change_24h": 1125.50,
        "change_percent": 2.61,
        "volume": 28500000000,
        "market_cap": 865000000000,
    },
    {
        "symbol": "ETH",
        "name": "Ethereum",
        "price": 2485.75,
        "change_24h": -45.25,
        "change_percent": -1.79,
        "volume": 15200000000,
        "market_cap": 298000000000,
    },
    {
        "symbol": "SOL",
        "name": "Solana",
        "price": 126.84,
        "change_24h": 6.47,
        "change_percent": 5.37,
        "volume": 2800000000,
        "market_cap": 57000000000,
    },
    {
        "symbol": "ADA",
        "name": "Cardano",
        "price": 0.612,
        "change_24h": 0.019,
        "change_percent": 3.20,
        "volume": 890000000,
        "market_cap": 21500000000,
    },
]

MOCK_MARKET_OVERVIEW = {
    "total_market_cap": 2100000000000,
    "total_volume": 89200000000,
    "btc_dominance": 42.3,
    "active_cryptocurrencies": 13500,
}

# Synthetic candle generation (random walk)
MOCK_CANDLE_START_PRICE = 44000.0
MOCK_CANDLE_STEP = 1000.0  # Max swing between consecutive candles
MOCK_CANDLE_WICK = 500.0  # Max distance of high/low from the open
MOCK_CANDLE_MAX_VOLUME = 1000000.0
ONE_DAY_MS = 24 * 60 * 60 * 1000

# Simulated order book around the mock BTC price
ORDER_BOOK_BASE_PRICE = 44250.0
ORDER_BOOK_TICK = 5.0
ORDER_BOOK_DEPTH = 10
ORDER_BOOK_MAX_AMOUNT = 2.0

# Signal thresholds
RSI_OVERSOLD = 30
RSI_OVERBOUGHT = 70
MAX_RSI_SIGNAL_STRENGTH = 95
MACD_CROSSOVER_STRENGTH = 75
