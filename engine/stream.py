"""
Live Feed Ingest

Connects to a push-based WebSocket feed and keeps the single most
recent normalized reading (the live cell). The cell is read without
consumption: every tick in live mode sees whatever arrived last.

Malformed messages and transport failures are logged and dropped;
they never raise to callers and never disturb the other modes.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import aiohttp

from core.exceptions import TransportError
from core.reading import Reading, now_ms
from core.validators import parse_live_message

logger = logging.getLogger(__name__)


class StreamIngest:
    """
    WebSocket client feeding the live cell.

    Example:
        stream = StreamIngest()
        await stream.connect("ws://sensor-gateway:8765/aqi")
        ...
        reading = stream.latest   # None until the first message
        await stream.disconnect()
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            session: Shared aiohttp session (one is created lazily if None)
            clock: Fallback timestamp source for messages without one
        """
        self.clock = clock
        self._session = session
        self._owns_session = session is None
        self._latest: Optional[Reading] = None
        self._task: Optional[asyncio.Task] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self.url: Optional[str] = None
        self.messages_received = 0
        self.messages_dropped = 0

    @property
    def latest(self) -> Optional[Reading]:
        """Most recently received reading, or None if nothing arrived yet."""
        return self._latest

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    def handle_message(self, data: Any) -> Optional[Reading]:
        """
        Normalize one raw message into the live cell.

        Returns:
            The stored reading, or None if the message was dropped
        """
        try:
            reading = parse_live_message(data, self.clock())
        except TransportError as e:
            self.messages_dropped += 1
            logger.warning(f"Dropping live message: {e}")
            return None
        self._latest = reading
        self.messages_received += 1
        return reading

    async def connect(self, url: str) -> None:
        """
        Start receiving from ``url`` in the background.

        Returns immediately; connection errors are logged by the
        receive task. An existing connection is closed first.
        """
        await self.disconnect()
        self.url = url
        self._task = asyncio.create_task(self._receive(url))

    async def _receive(self, url: str) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        try:
            async with self._session.ws_connect(url) as ws:
                self._ws = ws
                logger.info(f"Live feed connected: {url}")
                async for msg in ws:
                    if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                        self.handle_message(msg.data)
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        logger.error(f"Live feed error: {ws.exception()}")
                        break
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Live feed connection failed ({url}): {e}")
        finally:
            self._ws = None
            logger.info(f"Live feed disconnected: {url}")

    async def disconnect(self) -> None:
        """Stop the receive task and release the session if owned."""
        if self._ws is not None:
            await self._ws.close()
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
            self._task = None
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
