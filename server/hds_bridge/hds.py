"""HDS push receiver: accepts ``PUT /`` writes from the Health Data Server app."""

import asyncio
import logging
from collections.abc import Sequence

from aiohttp import web

from .exporter import Exporter, notify_exporters
from .health import HealthRecord
from .parser import parse_hds_payload, parse_legacy_payload

logger = logging.getLogger(__name__)


class HDSReceiver:
    """HTTP endpoint applying ``{"data": "key:value"}`` writes to the record.

    With ``legacy`` set only ``heartRate:<int>`` payloads are accepted.
    """

    def __init__(
        self,
        exporters: Sequence[Exporter],
        host: str = "0.0.0.0",
        port: int = 3476,
        legacy: bool = False,
    ):
        self.exporters = list(exporters)
        self.host = host
        self.port = port
        self.legacy = legacy
        self.record = HealthRecord()
        self._lock = asyncio.Lock()
        self._runner: web.AppRunner | None = None

    def _parse(self, text: str) -> tuple[str, float]:
        if self.legacy:
            return parse_legacy_payload(text)
        return parse_hds_payload(text)

    async def _handle_data(self, request: web.Request) -> web.StreamResponse:
        try:
            body = await request.json()
        except ValueError as e:
            logger.error("Error decoding request: %s", e)
            return web.Response(status=400, text=str(e))

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, str):
            logger.error("Missing data field: %r", body)
            return web.Response(status=400, text="Invalid data format")

        logger.info("Received HDS request: %s", data)
        try:
            key, value = self._parse(data)
        except ValueError as e:
            logger.error("Invalid data format: %s", e)
            return web.Response(status=400, text="Invalid data format")

        # One write at a time: apply, reply and fan out in receipt order
        async with self._lock:
            self.record.apply_update(key, value)
            snapshot = self.record.snapshot()

            # Reply before fanning out so exporters never delay the client
            response = web.Response(status=200)
            try:
                await response.prepare(request)
                await response.write_eof()
            except ConnectionError as e:
                logger.warning("Client went away before reply: %s", e)

            notify_exporters(self.exporters, snapshot, key)
        return response

    def make_app(self) -> web.Application:
        app = web.Application()
        app.add_routes([web.put("/", self._handle_data)])
        return app

    async def start(self) -> None:
        """Start listening for HDS writes."""
        self._runner = web.AppRunner(self.make_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("HDS receiver listening on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop the HTTP listener."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.debug("HDS receiver stopped")
