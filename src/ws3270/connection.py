"""Host connection lifecycle — connect, pump indications, reconnect with backoff.

Runs a single async loop cycling through Connecting -> Open -> Closed:
  1. Connecting: grow the backoff (x1.5, clamped to 1..30s), then attempt.
  2. Open: reset the backoff, attach the presenter, enable key input, and
     hand every inbound message to the dispatcher in arrival order.
  3. Closed: detach the presenter (screen state is kept), disable input,
     wait ``backoff_seconds`` and go back to Connecting.

Transport failures are never fatal. An out-of-bounds screen update means the
screen is out of sync with the host; the connection is dropped so the host
sends a fresh initialize batch on reconnect.

Key classes: SessionConnection, WebSocketTransport.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from enum import Enum
from typing import Protocol

import aiohttp
import structlog

from .dispatcher import IndicationDispatcher
from .keymap import KeyEvent, KeyResult, translate_key
from .presenter import Presenter
from .protocol import Action, DecodeError, decode_indication, encode_run
from .screen_buffer import ScreenBoundsError
from .trace import TraceRecorder
from .utils import task_done_callback

logger = structlog.get_logger()

# Any of these ends the current connection and schedules a reconnect.
# TimeoutError is an OSError subclass.
_TransportError = (OSError, aiohttp.ClientError)

BACKOFF_MIN = 1.0
BACKOFF_MAX = 30.0
BACKOFF_FACTOR = 1.5


def next_backoff(previous: float) -> float:
    """Backoff for the next attempt: previous x1.5, clamped to [1, 30]."""
    return max(BACKOFF_MIN, min(previous * BACKOFF_FACTOR, BACKOFF_MAX))


class LinkState(Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Channel(Protocol):
    """An open duplex connection yielding whole text messages in order."""

    def __aiter__(self) -> AsyncIterator[str]: ...

    async def send_str(self, data: str) -> None: ...

    async def close(self) -> None: ...


class Transport(Protocol):
    async def connect(self) -> Channel: ...


class WebSocketChannel:
    """Channel over an aiohttp client websocket."""

    def __init__(
        self, session: aiohttp.ClientSession, ws: aiohttp.ClientWebSocketResponse
    ) -> None:
        self._session = session
        self._ws = ws

    def __aiter__(self) -> AsyncIterator[str]:
        return self._messages()

    async def _messages(self) -> AsyncIterator[str]:
        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                yield msg.data
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.warning("Websocket error: %s", self._ws.exception())
                break
            else:
                logger.debug("Ignoring websocket message of type %s", msg.type)

    async def send_str(self, data: str) -> None:
        await self._ws.send_str(data)

    async def close(self) -> None:
        try:
            await self._ws.close()
        finally:
            await self._session.close()


class WebSocketTransport:
    """Opens websocket channels to a fixed URL."""

    def __init__(self, url: str, heartbeat: float = 20.0) -> None:
        self.url = url
        self.heartbeat = heartbeat

    async def connect(self) -> WebSocketChannel:
        session = aiohttp.ClientSession()
        try:
            ws = await session.ws_connect(self.url, heartbeat=self.heartbeat)
        except BaseException:
            await session.close()
            raise
        return WebSocketChannel(session, ws)


class SessionConnection:
    """Owns the host connection and drives the reconnect state machine.

    The presenter is attached while the connection is open and detached
    otherwise. Screen and status state live in the dispatcher and survive
    reconnects.
    """

    def __init__(
        self,
        transport: Transport,
        dispatcher: IndicationDispatcher,
        presenter: Presenter,
        *,
        recorder: TraceRecorder | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._dispatcher = dispatcher
        self._presenter = presenter
        self._recorder = recorder
        self._sleep = sleep

        self.backoff_seconds = BACKOFF_MIN
        self.state = LinkState.CLOSED
        self.input_enabled = False
        self._channel: Channel | None = None
        self._running = False
        self._task: asyncio.Task[None] | None = None

    # ── State transitions ────────────────────────────────────────────────

    def _enter_connecting(self) -> None:
        self.backoff_seconds = next_backoff(self.backoff_seconds)
        self.state = LinkState.CONNECTING
        logger.info("Connecting (backoff %.2fs)", self.backoff_seconds)

    def _enter_open(self) -> None:
        self.backoff_seconds = BACKOFF_MIN
        self.state = LinkState.OPEN
        logger.info("Connection open")
        self._presenter.attach()
        self.input_enabled = True

    def _enter_closed(self) -> None:
        self.state = LinkState.CLOSED
        self.input_enabled = False
        self._presenter.detach()
        logger.info("Connection closed")

    # ── Main loop ────────────────────────────────────────────────────────

    async def connect_once(self) -> None:
        """Run one Connecting -> (Open ->) Closed cycle."""
        self._enter_connecting()
        try:
            channel = await self._transport.connect()
        except _TransportError as e:
            logger.warning("Connection attempt failed: %s", e)
            self._enter_closed()
            return

        self._channel = channel
        self._enter_open()
        try:
            async for text in channel:
                await self.handle_message(text)
        except _TransportError as e:
            logger.warning("Connection lost: %s", e)
        except ScreenBoundsError as e:
            logger.error("Screen out of sync with host, reconnecting to resync: %s", e)
        finally:
            self._channel = None
            with contextlib.suppress(*_TransportError):
                await channel.close()
            self._enter_closed()

    async def run(self) -> None:
        """Connect, and keep reconnecting until stop() is called."""
        self._running = True
        while self._running:
            await self.connect_once()
            if not self._running:
                break
            delay = self.backoff_seconds
            logger.info("Reconnecting in %.2fs", delay)
            await self._sleep(delay)
        logger.info("Session connection stopped")

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            logger.debug("Connection already running")
            return
        self._task = asyncio.create_task(self.run())
        self._task.add_done_callback(task_done_callback)

    def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None

    # ── Inbound / outbound ───────────────────────────────────────────────

    async def handle_message(self, text: str) -> None:
        """Record, decode and dispatch one inbound message.

        Undecodable messages are logged and dropped. ScreenBoundsError
        propagates so the caller can force a resync.
        """
        if self._recorder is not None:
            await self._recorder.record(text)
        try:
            indication = decode_indication(text)
        except DecodeError as e:
            logger.warning("Dropping undecodable message: %s", e)
            return
        self._dispatcher.dispatch(indication)

    async def send_actions(self, actions: Sequence[Action]) -> bool:
        """Send one batch of actions. Returns False when not connected."""
        channel = self._channel
        if self.state is not LinkState.OPEN or channel is None:
            logger.debug("Not connected, dropping actions %s", actions)
            return False
        try:
            await channel.send_str(encode_run(actions))
        except _TransportError as e:
            logger.warning("Failed to send actions: %s", e)
            return False
        return True

    async def handle_key(self, event: KeyEvent) -> KeyResult | None:
        """Translate a key press and send its action while input is enabled."""
        if not self.input_enabled:
            return None
        result = translate_key(event)
        if result is None:
            logger.debug("Unmapped key %s", event.key_name)
            return None
        await self.send_actions([result.action])
        return result
