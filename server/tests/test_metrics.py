"""Tests for hds_bridge.metrics module."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiohttp import test_utils

from hds_bridge.metrics import MetricsExporter
from tests.helpers import make_record


class TestFreshness:
    """Tests for MetricsExporter.is_fresh."""

    def test_not_fresh_without_data(self):
        assert MetricsExporter().is_fresh() is False

    def test_fresh_after_update(self, record):
        exporter = MetricsExporter()
        exporter.update(record, "heartRate")
        assert exporter.is_fresh() is True

    def test_stale_after_window(self):
        """No update for longer than the window is stale."""
        exporter = MetricsExporter(freshness=30.0)
        exporter.update(make_record(80), "heartRate")
        assert exporter.is_fresh(datetime.now(UTC) + timedelta(seconds=31)) is False

    def test_explicit_now(self):
        exporter = MetricsExporter(freshness=30.0)
        exporter.update(make_record(80), "heartRate")
        received = exporter._received
        assert exporter.is_fresh(received + timedelta(seconds=30)) is True
        assert exporter.is_fresh(received + timedelta(seconds=31)) is False

    def test_measured_from_receipt_not_record_time(self):
        """A remote clock running behind does not hide a just-received update."""
        exporter = MetricsExporter(freshness=30.0)
        exporter.update(make_record(80, time=datetime.now(UTC) - timedelta(hours=1)), "heartRate")
        assert exporter.is_fresh() is True

    def test_remote_clock_ahead_does_not_extend_window(self):
        exporter = MetricsExporter(freshness=30.0)
        exporter.update(make_record(80, time=datetime.now(UTC) + timedelta(hours=1)), "heartRate")
        assert exporter.is_fresh(datetime.now(UTC) + timedelta(seconds=31)) is False


class TestGauges:
    """Tests for the read-through gauges."""

    def test_update_overwrites_record(self, record):
        """Every update replaces the cached record whatever the key."""
        exporter = MetricsExporter()
        exporter.update(record, "calories")
        assert exporter.registry.get_sample_value("heart_rate") == 80.0
        assert exporter.registry.get_sample_value("step_count") == 1200.0
        assert exporter.registry.get_sample_value("distance_traveled_meters") == 60.5
        assert exporter.registry.get_sample_value("speed_meters_per_second") == 0.86
        assert exporter.registry.get_sample_value("calories") == 7.0

    def test_gauges_read_latest(self):
        exporter = MetricsExporter()
        exporter.update(make_record(80), "heartRate")
        exporter.update(make_record(101), "heartRate")
        assert exporter.registry.get_sample_value("heart_rate") == 101.0

    def test_cached_record_is_copy(self, record):
        exporter = MetricsExporter()
        exporter.update(record, "heartRate")
        record.heart_rate = 200
        assert exporter.registry.get_sample_value("heart_rate") == 80.0


class TestScrape:
    """Tests for GET /metrics."""

    @pytest.mark.asyncio
    async def test_empty_without_data(self):
        """No data yet: success with an empty body."""
        exporter = MetricsExporter()
        async with test_utils.TestClient(test_utils.TestServer(exporter.make_app())) as client:
            resp = await client.get("/metrics")
            assert resp.status == 200
            assert await resp.text() == ""

    @pytest.mark.asyncio
    async def test_fresh_data_exposed(self, record):
        exporter = MetricsExporter()
        exporter.update(record, "heartRate")
        async with test_utils.TestClient(test_utils.TestServer(exporter.make_app())) as client:
            resp = await client.get("/metrics")
            assert resp.status == 200
            text = await resp.text()
            assert "heart_rate 80.0" in text
            assert "# HELP heart_rate" in text
            assert "step_count 1200.0" in text
            # Custom registry has no default collectors
            assert "process_" not in text
            assert "python_gc" not in text

    @pytest.mark.asyncio
    async def test_stale_data_hidden(self):
        """After the freshness window, scrapes get an empty body."""
        exporter = MetricsExporter(freshness=30.0)
        exporter.update(make_record(80), "heartRate")
        exporter._received = datetime.now(UTC) - timedelta(seconds=45)
        async with test_utils.TestClient(test_utils.TestServer(exporter.make_app())) as client:
            resp = await client.get("/metrics")
            assert resp.status == 200
            assert await resp.text() == ""


class TestLifecycle:
    """Tests for start/stop."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        with patch("hds_bridge.metrics.web.AppRunner") as MockRunner:
            with patch("hds_bridge.metrics.web.TCPSite") as MockSite:
                runner = MagicMock()
                runner.setup = AsyncMock()
                runner.cleanup = AsyncMock()
                MockRunner.return_value = runner
                MockSite.return_value.start = AsyncMock()

                exporter = MetricsExporter(host="127.0.0.1", port=9191)
                await exporter.start()
                MockSite.assert_called_once_with(runner, "127.0.0.1", 9191)

                await exporter.stop()
                runner.cleanup.assert_called_once()
                assert exporter._runner is None

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        await MetricsExporter().stop()
