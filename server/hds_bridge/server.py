"""WebSocket server broadcasting health updates to live subscribers."""

import asyncio
import json
import logging
from http import HTTPStatus
from urllib.parse import urlsplit

from websockets.asyncio.server import ServerConnection, serve
from websockets.exceptions import ConnectionClosed, ConnectionClosedError
from websockets.http11 import Request, Response

from .health import ALL_KEYS, HealthRecord
from .parser import encode_update_frame

logger = logging.getLogger(__name__)

WS_PATH = "/ws"


class BroadcastServer:
    """Serves the latest record over HTTP and streams updates over WebSocket.

    ``GET /`` returns the current snapshot as JSON (404 before any data),
    ``GET /ws`` upgrades to a stream of ``{"data": ..., "updatedKey": ...}``
    frames.
    """

    def __init__(self, host: str = "0.0.0.0", port: int = 3477):
        self.host = host
        self.port = port
        self._record = HealthRecord()
        self._subscribers: set[asyncio.Queue[str]] = set()
        self._server = None

    def _client_info(self, websocket: ServerConnection) -> str:
        """Get client info string for logging."""
        addr = websocket.remote_address
        if addr:
            return f"{addr[0]}:{addr[1]}"
        return "unknown"

    def update(self, record: HealthRecord, key: str) -> None:
        """Store the record and offer it to every subscriber without blocking.

        A subscriber that still holds an undelivered frame misses this one.
        """
        self._record = record.snapshot()
        if not self._subscribers:
            return
        frame = encode_update_frame(self._record, key)
        for queue in self._subscribers:
            try:
                queue.put_nowait(frame)
            except asyncio.QueueFull:
                logger.debug("Subscriber busy, dropped '%s' update", key)

    def _process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        """Answer plain HTTP requests; let ``/ws`` continue to the handshake."""
        path = urlsplit(request.path).path
        if path == WS_PATH:
            return None
        if path != "/" or not self._record.has_data:
            return connection.respond(HTTPStatus.NOT_FOUND, "Not Found\n")

        response = connection.respond(HTTPStatus.OK, json.dumps(self._record.to_dict()))
        del response.headers["Content-Type"]
        response.headers["Content-Type"] = "application/json"
        return response

    async def _wait_disconnect(self, websocket: ServerConnection) -> None:
        """Drain inbound frames until the peer goes away."""
        try:
            async for _ in websocket:
                pass  # We don't expect messages from clients
        except ConnectionClosedError:
            pass  # Client disconnected abruptly, this is normal

    async def _handler(self, websocket: ServerConnection) -> None:
        """Stream updates to one subscriber until it disconnects."""
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=1)
        self._subscribers.add(queue)
        client = self._client_info(websocket)
        logger.info("Client connected: %s (%d total)", client, len(self._subscribers))

        reader = asyncio.create_task(self._wait_disconnect(websocket))
        getter: asyncio.Task[str] | None = None
        try:
            if self._record.has_data:
                await websocket.send(encode_update_frame(self._record, ALL_KEYS))

            while True:
                getter = asyncio.create_task(queue.get())
                done, _ = await asyncio.wait({getter, reader}, return_when=asyncio.FIRST_COMPLETED)
                if getter not in done:
                    break
                await websocket.send(getter.result())
        except ConnectionClosed:
            pass
        finally:
            reader.cancel()
            if getter is not None:
                getter.cancel()
            self._subscribers.discard(queue)
            logger.info("Client disconnected: %s (%d total)", client, len(self._subscribers))

    async def start(self) -> None:
        """Start the HTTP/WebSocket server."""
        self._server = await serve(
            self._handler,
            self.host,
            self.port,
            process_request=self._process_request,
        )
        logger.info("Broadcast server listening on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop the server."""
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            logger.debug("Broadcast server stopped")

    @property
    def subscriber_count(self) -> int:
        """Number of connected stream subscribers."""
        return len(self._subscribers)
