"""
Tests for backend/cryptodash/price_monitor.py

Covers:
- Ticker handling (history, latest price, engine forwarding)
- Untracked / non-ticker payloads
- Feed wiring (stream URL, start/stop, resubscribe)
- Signals and status
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from cryptodash.price_monitor import PriceMonitor


def _engine():
    engine = MagicMock()
    engine.on_price_tick = AsyncMock(return_value=[])
    return engine


class TestHandleMessage:

    @pytest.mark.asyncio
    async def test_ticker_forwarded_to_engine(self):
        engine = _engine()
        monitor = PriceMonitor(engine, symbols=["BTC", "ETH"])

        await monitor.handle_message({"s": "BTCUSDT", "c": "44300.5"})

        engine.on_price_tick.assert_awaited_once_with("BTC", 44300.5)
        assert monitor.latest["BTC"].price == 44300.5
        assert monitor.get_price_history("btc") == [44300.5]
        assert monitor.ticks_processed == 1

    @pytest.mark.asyncio
    async def test_untracked_symbol_ignored(self):
        engine = _engine()
        monitor = PriceMonitor(engine, symbols=["BTC"])

        await monitor.handle_message({"s": "DOGEUSDT", "c": "0.1"})

        engine.on_price_tick.assert_not_awaited()
        assert monitor.ticks_processed == 0

    @pytest.mark.asyncio
    async def test_non_ticker_payload_ignored(self):
        engine = _engine()
        monitor = PriceMonitor(engine, symbols=["BTC"])

        await monitor.handle_message({"result": None, "id": 1})

        engine.on_price_tick.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_history_bounded(self):
        monitor = PriceMonitor(_engine(), symbols=["BTC"], history_size=3)
        for price in (1, 2, 3, 4, 5):
            await monitor.handle_message({"s": "BTCUSDT", "c": str(price)})
        assert monitor.get_price_history("BTC") == [3.0, 4.0, 5.0]

    @pytest.mark.asyncio
    async def test_ticks_reach_real_engine(self, engine, ledger):
        monitor = PriceMonitor(engine, symbols=["BTC"])
        await monitor.handle_message({"s": "BTCUSDT", "c": "45000"})
        assert ledger.get_market_price("BTC") == 45000.0


class TestHistoryAndSignals:

    def test_seed_history(self, sample_candles):
        monitor = PriceMonitor(_engine(), symbols=["BTC"])
        monitor.seed_history("btc", sample_candles([1.0, 2.0, 3.0]))
        assert monitor.get_price_history("BTC") == [1.0, 2.0, 3.0]

    def test_signals_empty_without_history(self):
        monitor = PriceMonitor(_engine(), symbols=["BTC"])
        assert monitor.get_signals("BTC") == []
        assert monitor.get_price_history("XRP") == []

    def test_signals_from_history(self, sample_candles):
        monitor = PriceMonitor(_engine(), symbols=["BTC"])
        monitor.seed_history("BTC", sample_candles([100.0 + i for i in range(20)]))
        signals = monitor.get_signals("BTC")
        assert [(s.type, s.reason) for s in signals] == [("sell", "RSI overbought condition")]


class TestFeedWiring:

    def test_stream_url_covers_symbols(self):
        monitor = PriceMonitor(_engine(), symbols=["btc", "sol"])
        assert monitor.symbols == ["BTC", "SOL"]
        assert monitor.feed.url.endswith("/stream?streams=btcusdt@ticker/solusdt@ticker")

    def test_default_symbols(self):
        monitor = PriceMonitor(_engine())
        assert monitor.symbols == ["BTC", "ETH", "SOL", "ADA"]

    @pytest.mark.asyncio
    async def test_start_streams_into_engine(self, fake_connection, connector_for, wait_for):
        engine = _engine()
        conn = fake_connection([
            json.dumps({"stream": "ethusdt@ticker", "data": {"s": "ETHUSDT", "c": "2500"}}),
        ])
        monitor = PriceMonitor(engine, symbols=["ETH"], connector=connector_for(conn))

        monitor.start()
        await wait_for(lambda: monitor.ticks_processed == 1)
        engine.on_price_tick.assert_awaited_once_with("ETH", 2500.0)
        assert monitor.get_status()["state"] == "connected"

        await monitor.stop()
        assert monitor.get_status()["state"] == "disconnected"

    @pytest.mark.asyncio
    async def test_set_symbols_opens_new_stream(self, fake_connection, connector_for, wait_for):
        connector = connector_for(fake_connection(), fake_connection())
        monitor = PriceMonitor(_engine(), symbols=["BTC"], connector=connector)
        monitor.start()
        await wait_for(lambda: monitor.feed.is_connected)

        await monitor.set_symbols(["ETH", "ADA"])
        await wait_for(lambda: monitor.feed.is_connected)

        assert connector.calls[-1].endswith("streams=ethusdt@ticker/adausdt@ticker")
        assert monitor.symbols == ["ETH", "ADA"]
        await monitor.stop()

    def test_status_before_start(self):
        status = PriceMonitor(_engine(), symbols=["BTC"]).get_status()
        assert status == {
            "symbols": ["BTC"],
            "state": "disconnected",
            "reconnect_count": 0,
            "gave_up": False,
            "last_error": None,
            "ticks_processed": 0,
        }
