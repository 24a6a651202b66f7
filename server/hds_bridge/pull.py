"""WebSocket pull receiver with auto-reconnection."""

import asyncio
import logging
from collections.abc import Sequence

from websockets.asyncio.client import ClientConnection, connect

from .exporter import Exporter, notify_exporters
from .parser import parse_update_frame

logger = logging.getLogger(__name__)


class PullReceiver:
    """Reads update frames from a remote WebSocket and fans them out.

    Reconnects forever: a clean close resets the delay to ``reconnect_min``,
    a failed session doubles it up to ``reconnect_max``.
    """

    def __init__(
        self,
        url: str,
        exporters: Sequence[Exporter],
        reconnect_min: float = 1.0,
        reconnect_max: float = 600.0,
    ):
        self.url = url
        self.exporters = list(exporters)
        self._reconnect_min = reconnect_min
        self._reconnect_max = reconnect_max
        self._reconnect_delay = reconnect_min
        self._connection: ClientConnection | None = None
        self._running = False

    async def _session(self) -> None:
        """Connect and process frames until the server closes the stream.

        Returns normally on a clean close; raises on any connection, read or
        decoding error.
        """
        logger.debug("Connecting to %s...", self.url)
        async with connect(self.url) as websocket:
            self._connection = websocket
            logger.info("WebSocket connected, now receiving messages...")
            try:
                async for raw in websocket:
                    record, key = parse_update_frame(raw)
                    logger.info("Received update: %s (heart rate %d)", key, record.heart_rate)
                    notify_exporters(self.exporters, record, key)
            finally:
                self._connection = None

    def _reset_backoff(self) -> None:
        self._reconnect_delay = self._reconnect_min

    def _increase_backoff(self) -> None:
        """Increase reconnection delay with exponential backoff."""
        self._reconnect_delay = min(self._reconnect_delay * 2, self._reconnect_max)

    async def run(self) -> None:
        """Run the receive loop with auto-reconnection."""
        self._running = True

        while self._running:
            try:
                await self._session()
            except Exception as e:
                if not self._running:
                    break
                logger.error("WebSocket connection failed: %s", e)
                logger.info("Reconnecting in %.1fs...", self._reconnect_delay)
                await asyncio.sleep(self._reconnect_delay)
                self._increase_backoff()
            else:
                if not self._running:
                    break
                self._reset_backoff()
                logger.info("WebSocket closed, reconnecting in %.1fs...", self._reconnect_delay)
                await asyncio.sleep(self._reconnect_delay)

    async def stop(self) -> None:
        """Stop the receiver."""
        logger.debug("Stopping pull receiver...")
        self._running = False
        if self._connection is not None:
            await self._connection.close()
