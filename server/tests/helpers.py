"""Shared test helper functions for hds_bridge tests."""

from __future__ import annotations

from datetime import UTC, datetime

from hds_bridge.health import HealthRecord


def make_record(
    heart_rate: int = 80,
    *,
    step_count: int = 0,
    distance_traveled: float = 0.0,
    speed: float = 0.0,
    calories: int = 0,
    time: datetime | None = None,
) -> HealthRecord:
    """Build a populated HealthRecord.

    Args:
        heart_rate: Heart rate in BPM
        time: Update timestamp, defaults to now

    Returns:
        HealthRecord with ``time`` set
    """
    return HealthRecord(
        time=time or datetime.now(UTC),
        heart_rate=heart_rate,
        step_count=step_count,
        distance_traveled=distance_traveled,
        speed=speed,
        calories=calories,
    )


class RecordingExporter:
    """Exporter that remembers every update it receives."""

    def __init__(self, fail: bool = False):
        self.calls: list[tuple[HealthRecord, str]] = []
        self._fail = fail

    def update(self, record: HealthRecord, key: str) -> None:
        self.calls.append((record, key))
        if self._fail:
            raise RuntimeError("exporter failed")
