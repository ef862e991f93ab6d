"""
Public (unauthenticated) CoinGecko market data API.

Market snapshots, OHLC history and global aggregates for the dashboard.
The UI must never block on network failure, so every public helper falls
back to mock or synthetic data when the API is unreachable.

Public endpoints used:
  GET /coins/markets
  GET /coins/{coin_id}
  GET /coins/{coin_id}/ohlc
  GET /global
"""

import asyncio
import logging
import random
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import httpx

from cryptodash.cache import api_cache
from cryptodash.config import settings
from cryptodash.constants import (
    MOCK_CRYPTO_DATA,
    MOCK_MARKET_OVERVIEW,
    ORDER_BOOK_BASE_PRICE,
    ORDER_BOOK_DEPTH,
    ORDER_BOOK_MAX_AMOUNT,
    ORDER_BOOK_TICK,
)
from cryptodash.exceptions import MarketDataUnavailableError
from cryptodash.price_feeds.base import (
    MarketOverview,
    MarketSnapshot,
    NewsItem,
    OrderBook,
    OrderBookLevel,
    PricePoint,
)
from cryptodash.utils.candle_utils import generate_mock_candles, parse_ohlc_rows

logger = logging.getLogger(__name__)

# Module-level rate limiting: 200ms minimum between requests
_rate_lock = asyncio.Lock()
_last_request_time: float = 0.0


async def _public_request(
    endpoint: str,
    params: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Make a rate-limited GET request to a public CoinGecko endpoint.

    Retries once on 429 (rate-limited) after a 1-second backoff and once on
    transport errors.

    Raises:
        MarketDataUnavailableError: the request could not be completed
    """
    global _last_request_time

    async with _rate_lock:
        now = time.monotonic()
        elapsed = now - _last_request_time
        if elapsed < 0.2:
            await asyncio.sleep(0.2 - elapsed)
        _last_request_time = time.monotonic()

    url = f"{settings.coingecko_base_url}{endpoint}"

    for attempt in range(2):
        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
                resp = await client.get(url, params=params)

            if resp.status_code == 429 and attempt == 0:
                logger.warning("Public API rate-limited (429), backing off 1s")
                await asyncio.sleep(1.0)
                continue

            resp.raise_for_status()
            return resp.json()

        except httpx.HTTPStatusError as exc:
            logger.error(
                "Public API HTTP %s for %s: %s",
                exc.response.status_code,
                endpoint,
                exc.response.text[:200],
            )
            raise MarketDataUnavailableError(
                f"HTTP {exc.response.status_code} from {endpoint}"
            ) from exc
        except httpx.HTTPError as exc:
            if attempt == 0:
                logger.warning("Public API request failed (%s), retrying: %s", endpoint, exc)
                await asyncio.sleep(0.5)
                continue
            raise MarketDataUnavailableError(f"Request to {endpoint} failed: {exc}") from exc

    raise MarketDataUnavailableError(f"Public API request failed after retries: {endpoint}")


# ---------------------------------------------------------------------------
# Market snapshots
# ---------------------------------------------------------------------------

def get_mock_crypto_data() -> List[MarketSnapshot]:
    return [MarketSnapshot(**row) for row in MOCK_CRYPTO_DATA]


async def _fetch_top_cryptos(limit: int) -> List[MarketSnapshot]:
    data = await _public_request(
        "/coins/markets",
        params={
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": limit,
            "page": 1,
            "sparkline": "false",
        },
    )
    return [
        MarketSnapshot(
            symbol=coin["symbol"].upper(),
            name=coin["name"],
            price=coin.get("current_price") or 0,
            change_24h=coin.get("price_change_24h") or 0,
            change_percent=coin.get("price_change_percentage_24h") or 0,
            volume=coin.get("total_volume") or 0,
            market_cap=coin.get("market_cap") or 0,
        )
        for coin in data
    ]


async def get_top_cryptos(limit: int = 10) -> List[MarketSnapshot]:
    """
    Top coins by market cap (cached).

    On failure serves the last fetched list if there is one, else the mock
    snapshot list.
    """
    key = f"top_cryptos_{limit}"
    try:
        return await api_cache.fetch(
            key,
            lambda: _fetch_top_cryptos(limit),
            max_age=settings.price_cache_ttl,
        )
    except Exception as e:
        last = api_cache.stale(key)
        if last is not None:
            logger.warning(f"Error fetching crypto prices, serving last snapshot: {e}")
            return last
        logger.warning(f"Error fetching crypto prices, using mock data: {e}")
        return get_mock_crypto_data()


async def get_crypto_price(coin_id: str) -> Optional[MarketSnapshot]:
    """Snapshot for a single coin id (e.g. "bitcoin"); None when unavailable."""
    try:
        data = await _public_request(
            f"/coins/{coin_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "false",
                "developer_data": "false",
                "sparkline": "false",
            },
        )
        market = data["market_data"]
        return MarketSnapshot(
            symbol=data["symbol"].upper(),
            name=data["name"],
            price=market["current_price"]["usd"],
            change_24h=market.get("price_change_24h") or 0,
            change_percent=market.get("price_change_percentage_24h") or 0,
            volume=market["total_volume"]["usd"],
            market_cap=market["market_cap"]["usd"],
        )
    except Exception as e:
        logger.error(f"Error fetching crypto price for {coin_id}: {e}")
        return None


# ---------------------------------------------------------------------------
# Price history
# ---------------------------------------------------------------------------

async def get_historical_data(coin_id: str, days: int = 30) -> List[PricePoint]:
    """
    OHLC candles for the lookback window, ascending by timestamp.

    Falls back to a synthetic random-walk series on failure, including a
    response that yields no usable candles (error bodies, malformed rows).
    """
    try:
        rows = await _public_request(
            f"/coins/{coin_id}/ohlc",
            params={"vs_currency": "usd", "days": days},
        )
        if not isinstance(rows, list):
            raise MarketDataUnavailableError(f"Unexpected OHLC response for {coin_id}: {rows!r:.200}")

        candles = parse_ohlc_rows(rows)
        if not candles:
            raise MarketDataUnavailableError(f"No usable OHLC rows for {coin_id}")
        return candles
    except Exception as e:
        logger.warning(f"Error fetching historical data for {coin_id}, using synthetic candles: {e}")
        return generate_mock_candles(days)


# ---------------------------------------------------------------------------
# Global market overview
# ---------------------------------------------------------------------------

async def get_market_overview() -> MarketOverview:
    try:
        data = (await _public_request("/global"))["data"]
        return MarketOverview(
            total_market_cap=data["total_market_cap"]["usd"],
            total_volume=data["total_volume"]["usd"],
            btc_dominance=data["market_cap_percentage"]["btc"],
            active_cryptocurrencies=data["active_cryptocurrencies"],
        )
    except Exception as e:
        logger.warning(f"Error fetching market overview, using mock data: {e}")
        return MarketOverview(**MOCK_MARKET_OVERVIEW)


# ---------------------------------------------------------------------------
# News (static until a news source is wired in)
# ---------------------------------------------------------------------------

async def get_crypto_news(limit: int = 10) -> List[NewsItem]:
    now = datetime.utcnow()
    items = [
        NewsItem(
            id="1",
            title="Bitcoin ETF Approval Drives Market Rally",
            summary="SEC approves multiple Bitcoin ETFs, leading to significant price increases "
                    "across major cryptocurrencies.",
            source="CoinDesk",
            timestamp=(now - timedelta(hours=2)).isoformat(),
            sentiment="positive",
            impact="high",
        ),
        NewsItem(
            id="2",
            title="Ethereum Network Upgrade Scheduled",
            summary="Major network upgrade expected to improve transaction speeds and reduce gas fees.",
            source="Ethereum Foundation",
            timestamp=(now - timedelta(hours=4)).isoformat(),
            sentiment="positive",
            impact="medium",
        ),
        NewsItem(
            id="3",
            title="Regulatory Concerns in Asian Markets",
            summary="New regulations proposed in several Asian countries may impact crypto trading volumes.",
            source="Reuters",
            timestamp=(now - timedelta(hours=6)).isoformat(),
            sentiment="negative",
            impact="medium",
        ),
    ]
    return items[:limit]


# ---------------------------------------------------------------------------
# Order book simulation
# ---------------------------------------------------------------------------

def generate_order_book(
    symbol: str,
    base_price: float = ORDER_BOOK_BASE_PRICE,
    depth: int = ORDER_BOOK_DEPTH,
    rng: Optional[random.Random] = None,
) -> OrderBook:
    """Simulated book: ``depth`` levels each side, one tick apart around base_price."""
    rng = rng or random.Random()
    bids = [
        OrderBookLevel(price=base_price - (i + 1) * ORDER_BOOK_TICK, amount=rng.random() * ORDER_BOOK_MAX_AMOUNT)
        for i in range(depth)
    ]
    asks = [
        OrderBookLevel(price=base_price + (i + 1) * ORDER_BOOK_TICK, amount=rng.random() * ORDER_BOOK_MAX_AMOUNT)
        for i in range(depth)
    ]
    return OrderBook(symbol=symbol, bids=bids, asks=asks)
