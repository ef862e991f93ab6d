"""
Shared test fixtures for the cryptodash test suite.

Provides reusable fixtures for:
- Ledger / order engine instances with deterministic execution delay
- Fake WebSocket transport for the feed client
- Candle factories
- Polling helper for background tasks
"""

import asyncio

import pytest

from cryptodash.price_feeds.base import PricePoint
from cryptodash.trading_engine.ledger import ExecutionLedger
from cryptodash.trading_engine.order_engine import OrderEngine


# ---------------------------------------------------------------------------
# Trading engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ledger():
    """Fresh ledger with the default 50,000 starting balance."""
    return ExecutionLedger(initial_balance=50000.0)


@pytest.fixture
async def engine(ledger):
    """Order engine that executes market orders on the next loop iteration."""
    engine = OrderEngine(ledger, delay_fn=lambda: 0.0, evaluate_triggers=False)
    yield engine
    await engine.aclose()


# ---------------------------------------------------------------------------
# Fake WebSocket transport
# ---------------------------------------------------------------------------


_CLOSE = object()


class FakeConnection:
    """Minimal stand-in for the feed client's WebSocket connection.

    Frames queued with ``push`` are yielded by ``async for``; ``end()``
    finishes iteration the way a clean server close does, and pushing an
    exception instance raises it from the iterator.
    """

    def __init__(self, frames=()):
        self._frames = asyncio.Queue()
        self.sent = []
        self.closed = False
        for frame in frames:
            self.push(frame)

    def push(self, frame):
        self._frames.put_nowait(frame)

    def end(self):
        self._frames.put_nowait(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._frames.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def send(self, data):
        self.sent.append(data)

    async def close(self):
        self.closed = True
        self.end()


@pytest.fixture
def fake_connection():
    """Factory for FakeConnection instances."""
    return FakeConnection


@pytest.fixture
def connector_for():
    """Build a connector coroutine that hands out the given connections in turn.

    Items that are exceptions are raised instead (a failed handshake).
    The returned connector records the URLs it was called with in ``.calls``.
    """
    def _make(*outcomes):
        remaining = list(outcomes)
        calls = []

        async def connector(url):
            calls.append(url)
            outcome = remaining.pop(0) if len(remaining) > 1 else remaining[0]
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

        connector.calls = calls
        return connector

    return _make


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def wait_for():
    """Poll a predicate until it holds, failing the test after ``timeout`` seconds."""
    async def _wait(predicate, timeout=2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)

    return _wait


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_candles():
    """Build daily PricePoint candles from a list of closes."""
    def _make_candles(prices, volume=100.0, start=1_700_000_000_000):
        return [
            PricePoint(
                timestamp=start + i * 86_400_000,
                open=p * 0.99,
                high=p * 1.01,
                low=p * 0.98,
                close=p,
                volume=volume,
            )
            for i, p in enumerate(prices)
        ]
    return _make_candles
