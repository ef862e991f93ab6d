"""
Resilient Feed Client

Manages one logical streaming connection to a price source:
- connect / disconnect with an explicit connection state
- JSON frame decoding and dispatch to a single subscriber
- bounded automatic reconnection on close (fixed interval, attempt budget)

Errors and closes are distinct events: a transport error is reported through
``on_error`` / ``last_error`` and the subsequent close drives reconnection.
Once the attempt budget is spent the client stays disconnected and exposes
that through ``gave_up`` rather than raising.
"""

import asyncio
import inspect
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import aiohttp

from cryptodash.config import settings
from cryptodash.price_feeds.binance_stream import parse_stream_frame

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]
FrameParser = Callable[[Union[str, bytes]], Optional[Dict[str, Any]]]


class WebSocketConnection:
    """
    Frame-level view of an aiohttp WebSocket and the session that owns it.

    Iterating yields raw text/binary frames and stops when the server
    closes; a protocol error is raised as ConnectionError.
    """

    def __init__(self, session: aiohttp.ClientSession, ws: aiohttp.ClientWebSocketResponse):
        self._session = session
        self._ws = ws

    def __aiter__(self):
        return self._frames()

    async def _frames(self):
        async for msg in self._ws:
            if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                yield msg.data
            elif msg.type == aiohttp.WSMsgType.ERROR:
                raise ConnectionError(f"WebSocket error: {self._ws.exception()}")

    async def send(self, data: str) -> None:
        await self._ws.send_str(data)

    async def close(self) -> None:
        try:
            await self._ws.close()
        finally:
            await self._session.close()


async def open_websocket(url: str) -> WebSocketConnection:
    """Default connector: open ``url`` on a dedicated aiohttp session."""
    session = aiohttp.ClientSession()
    try:
        ws = await session.ws_connect(url, heartbeat=30)
    except BaseException:
        await session.close()
        raise
    return WebSocketConnection(session, ws)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ResilientFeedClient:
    """
    Reconnecting WebSocket client for a single stream URL.

    Must be used from inside a running asyncio event loop. The reconnect
    timer and the receive task are owned by the client and are always
    cancelled by ``disconnect()`` (or leaving ``async with``).
    """

    def __init__(
        self,
        url: str,
        on_message: Optional[MessageHandler] = None,
        on_open: Optional[Callable[[], None]] = None,
        on_close: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        reconnect_attempts: Optional[int] = None,
        reconnect_interval: Optional[float] = None,
        connector: Optional[Callable[[str], Awaitable[Any]]] = None,
        parser: FrameParser = parse_stream_frame,
    ):
        """
        Args:
            url: Stream endpoint (the symbol set is encoded in the URL)
            on_message: Subscriber for decoded frames (sync or async callable)
            on_open / on_close / on_error: Lifecycle callbacks
            reconnect_attempts: Max consecutive reconnects (default from settings)
            reconnect_interval: Seconds between reconnects (default from settings)
            connector: Coroutine function opening the transport (defaults to open_websocket)
            parser: Frame decoder returning a payload dict or None for malformed frames
        """
        self.url = url
        self.reconnect_attempts = (
            settings.reconnect_attempts if reconnect_attempts is None else reconnect_attempts
        )
        self.reconnect_interval = (
            settings.reconnect_interval if reconnect_interval is None else reconnect_interval
        )
        self._on_message = on_message
        self._on_open = on_open
        self._on_close = on_close
        self._on_error = on_error
        self._connector = connector or open_websocket
        self._parser = parser

        self.state = ConnectionState.DISCONNECTED
        self.last_error: Optional[str] = None
        self._attempts = 0
        self._gave_up = False
        self._ws: Any = None
        self._task: Optional[asyncio.Task] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def reconnect_count(self) -> int:
        """Reconnects scheduled since the last successful open"""
        return self._attempts

    @property
    def gave_up(self) -> bool:
        """True once a close found the reconnect budget exhausted"""
        return self._gave_up

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    # ----------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------

    def connect(self) -> None:
        """Open the stream unless already connecting or connected."""
        if self.state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return

        # A manual connect supersedes any scheduled reconnect
        self._cancel_reconnect()
        loop = asyncio.get_running_loop()
        self.state = ConnectionState.CONNECTING
        logger.info(f"Connecting feed: {self.url}")
        self._task = loop.create_task(self._run())

    async def disconnect(self) -> None:
        """Cancel any pending reconnect, close the transport and reset the attempt budget."""
        self._cancel_reconnect()

        was_open = self.state is not ConnectionState.DISCONNECTED
        task, self._task = self._task, None
        ws, self._ws = self._ws, None

        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if ws is not None:
            await self._close_transport(ws)

        self.state = ConnectionState.DISCONNECTED
        self._attempts = 0
        self._gave_up = False

        if was_open:
            self._notify(self._on_close)
        logger.info(f"Feed disconnected: {self.url}")

    async def send_message(self, payload: Any) -> bool:
        """Send a JSON payload. Returns False (never raises) when not connected."""
        if self.state is not ConnectionState.CONNECTED or self._ws is None:
            logger.warning("Feed is not connected; message not sent")
            return False

        try:
            await self._ws.send(json.dumps(payload))
        except Exception as e:
            self._report_error(f"Failed to send feed message: {e}")
            return False
        return True

    async def __aenter__(self) -> "ResilientFeedClient":
        self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    # ----------------------------------------------------------
    # Internals (run in the event loop)
    # ----------------------------------------------------------

    async def _run(self) -> None:
        try:
            self._ws = await self._connector(self.url)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._report_error(f"Failed to open feed connection: {e}")
            self._handle_close()
            return

        self.state = ConnectionState.CONNECTED
        self._attempts = 0
        self._gave_up = False
        self.last_error = None
        logger.info(f"Feed connected: {self.url}")
        self._notify(self._on_open)

        try:
            async for frame in self._ws:
                await self._handle_frame(frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._report_error(f"Feed transport error: {e}")

        ws, self._ws = self._ws, None
        if ws is not None:
            await self._close_transport(ws)
        self._handle_close()

    async def _handle_frame(self, frame: Union[str, bytes]) -> None:
        data = self._parser(frame)
        if data is None:
            return  # Malformed frames are dropped (already logged by the parser)

        if self._on_message is None:
            return

        try:
            result = self._on_message(data)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Feed subscriber raised while handling a frame: {e}", exc_info=True)

    def _handle_close(self) -> None:
        self.state = ConnectionState.DISCONNECTED
        self._task = None
        self._notify(self._on_close)

        if self._attempts < self.reconnect_attempts:
            self._attempts += 1
            logger.warning(
                f"Feed closed, reconnecting in {self.reconnect_interval}s "
                f"(attempt {self._attempts}/{self.reconnect_attempts})"
            )
            self._cancel_reconnect()
            loop = asyncio.get_running_loop()
            self._reconnect_handle = loop.call_later(self.reconnect_interval, self._reconnect)
        else:
            self._gave_up = True
            logger.error(
                f"Feed closed and reconnect budget exhausted after {self._attempts} attempts: {self.url}"
            )

    async def _close_transport(self, ws: Any) -> None:
        try:
            await ws.close()
        except Exception as e:
            logger.warning(f"Error closing feed transport: {e}")

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        self.connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _report_error(self, message: str) -> None:
        self.last_error = message
        logger.error(message)
        if self._on_error is not None:
            try:
                self._on_error(message)
            except Exception as e:
                logger.error(f"Feed error callback raised: {e}")

    def _notify(self, callback: Optional[Callable[[], None]]) -> None:
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            logger.error(f"Feed lifecycle callback raised: {e}")
