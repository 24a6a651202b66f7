"""In-memory record of the latest health telemetry."""

import dataclasses
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

HEART_RATE_KEY = "heartRate"
ALL_KEYS = "all"  # Updated key used when pushing a full snapshot

# Zero timestamp that upstream bridges send for "never updated"
_ZERO_TIME = datetime(1, 1, 1, tzinfo=UTC)
# RFC 3339 allows nanoseconds, datetime stops at microseconds
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


@dataclass
class HealthRecord:
    """Most recent value of every tracked metric.

    Example HDS values:
        heartRate:80
        stepCount:80
        distanceTraveled:60.89095629064832
        speed:0.8606014661155669
        calories:7
    """

    time: datetime | None = None  # None until the first update
    heart_rate: int = 0  # bpm
    step_count: int = 0
    distance_traveled: float = 0.0  # meters
    speed: float = 0.0  # m/s
    calories: int = 0

    @property
    def has_data(self) -> bool:
        return self.time is not None

    def apply_update(self, key: str, value: float) -> None:
        """Write one field and bump the record timestamp.

        Integer fields truncate the incoming float. Unknown keys are logged
        and leave every field untouched.
        """
        self.time = datetime.now(UTC)
        if key == HEART_RATE_KEY:
            self.heart_rate = int(value)
        elif key == "stepCount":
            self.step_count = int(value)
        elif key == "distanceTraveled":
            self.distance_traveled = float(value)
        elif key == "speed":
            self.speed = float(value)
        elif key == "calories":
            self.calories = int(value)
        else:
            logger.warning("Unknown key: %s", key)

    def snapshot(self) -> "HealthRecord":
        """Return an independent copy of this record."""
        return dataclasses.replace(self)

    def to_dict(self) -> dict:
        """Serialize using the camelCase wire keys."""
        return {
            "time": _format_time(self.time),
            "heartRate": self.heart_rate,
            "stepCount": self.step_count,
            "distanceTraveled": self.distance_traveled,
            "speed": self.speed,
            "calories": self.calories,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HealthRecord":
        """Build a record from its wire form, defaulting missing fields.

        Raises:
            ValueError: If a field has the wrong type
        """
        try:
            return cls(
                time=_parse_time(data.get("time")),
                heart_rate=int(data.get("heartRate", 0)),
                step_count=int(data.get("stepCount", 0)),
                distance_traveled=float(data.get("distanceTraveled", 0.0)),
                speed=float(data.get("speed", 0.0)),
                calories=int(data.get("calories", 0)),
            )
        except TypeError as e:
            raise ValueError(f"Invalid health record: {e}") from e


def _format_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_time(raw: object) -> datetime | None:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise ValueError(f"Invalid time value: {raw!r}")
    parsed = datetime.fromisoformat(_EXTRA_FRACTION.sub(r"\1", raw))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    if parsed <= _ZERO_TIME:
        return None
    return parsed
