"""Shared test fixtures for hds_bridge tests."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tests.helpers import RecordingExporter, make_record


@pytest.fixture
def record():
    """Record with heart rate 80 updated just now."""
    return make_record(80, step_count=1200, distance_traveled=60.5, speed=0.86, calories=7)


@pytest.fixture
def recording_exporter() -> RecordingExporter:
    return RecordingExporter()


@pytest.fixture
def failing_exporter() -> RecordingExporter:
    return RecordingExporter(fail=True)


# Mock fixtures for WebSocket
@pytest.fixture
def mock_websocket():
    """Create a mock WebSocket connection that disconnects immediately."""
    ws = AsyncMock()
    ws.send = AsyncMock()
    ws.close = AsyncMock()
    ws.remote_address = ("127.0.0.1", 50000)
    ws.__aiter__.return_value = []
    return ws


# Config fixtures
@pytest.fixture
def sample_config_dict() -> dict:
    """Sample config dict as would be parsed from TOML."""
    return {
        "server": {"log_level": "DEBUG"},
        "receiver": {
            "mode": "ws-pull",
            "host": "127.0.0.1",
            "hds_port": 4000,
            "pull_url": "ws://example.com:3477/ws",
            "legacy": True,
            "reconnect_min": 2.0,
            "reconnect_max": 60.0,
        },
        "broadcast": {"enabled": True, "host": "127.0.0.1", "port": 4001},
        "osc": {
            "enabled": False,
            "ip": "192.168.1.20",
            "port": 9001,
            "address": "/hr",
            "enabled_address": "/hr/enabled",
            "debounce": 2.5,
        },
        "metrics": {"enabled": True, "host": "127.0.0.1", "port": 4002, "freshness": 10.0},
    }


@pytest.fixture
def partial_config_dict() -> dict:
    """Partial config dict with some values missing."""
    return {
        "receiver": {"hds_port": 8080},
        "metrics": {"enabled": True},
    }
