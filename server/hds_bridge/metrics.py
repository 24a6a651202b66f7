"""Prometheus metrics endpoint that only reports fresh data."""

import logging
import threading
from datetime import UTC, datetime, timedelta

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

from .health import HealthRecord

logger = logging.getLogger(__name__)


class MetricsExporter:
    """Exposes the latest record on ``/metrics`` while it is fresh.

    Gauges read the cached record at scrape time. Freshness is measured from
    when this exporter last received an update, not from the record's own
    timestamp, so a skewed upstream clock cannot hide live data. Once the
    last update is older than ``freshness`` seconds (or before any data),
    scrapes get an empty body.
    """

    def __init__(self, host: str = "0.0.0.0", port: int = 9090, freshness: float = 30.0):
        self.host = host
        self.port = port
        self._freshness = timedelta(seconds=freshness)
        self._record = HealthRecord()
        self._received: datetime | None = None
        self._lock = threading.Lock()
        self._runner: web.AppRunner | None = None

        # Custom registry without default process/platform collectors
        self.registry = CollectorRegistry()
        gauges = [
            ("heart_rate", "Current heart rate in beats per minute", lambda r: r.heart_rate),
            ("step_count", "Step count", lambda r: r.step_count),
            ("distance_traveled_meters", "Distance traveled in meters", lambda r: r.distance_traveled),
            ("speed_meters_per_second", "Current speed in meters per second", lambda r: r.speed),
            ("calories", "Calories burned", lambda r: r.calories),
        ]
        for name, documentation, getter in gauges:
            gauge = Gauge(name, documentation, registry=self.registry)
            gauge.set_function(self._reader(getter))

    def _reader(self, getter):
        def read() -> float:
            with self._lock:
                return float(getter(self._record))

        return read

    def update(self, record: HealthRecord, key: str) -> None:
        """Replace the cached record regardless of which key changed."""
        snapshot = record.snapshot()
        with self._lock:
            self._record = snapshot
            self._received = datetime.now(UTC)

    def is_fresh(self, now: datetime | None = None) -> bool:
        """Whether an update arrived within the freshness window."""
        with self._lock:
            received = self._received
        if received is None:
            return False
        now = now or datetime.now(UTC)
        return now - received <= self._freshness

    async def _handle_metrics(self, _request: web.Request) -> web.Response:
        if not self.is_fresh():
            return web.Response(body=b"", headers={"Content-Type": CONTENT_TYPE_LATEST})
        return web.Response(
            body=generate_latest(self.registry),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )

    def make_app(self) -> web.Application:
        app = web.Application()
        app.add_routes([web.get("/metrics", self._handle_metrics)])
        return app

    async def start(self) -> None:
        """Start the metrics HTTP server."""
        self._runner = web.AppRunner(self.make_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("Prometheus metrics server listening on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop the metrics HTTP server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.debug("Metrics server stopped")
