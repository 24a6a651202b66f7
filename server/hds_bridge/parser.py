"""Parsers for HDS push payloads and pull update frames.

HDS (Health Data Server) posts one metric per request as ``key:value`` text,
e.g. ``heartRate:80`` or ``distanceTraveled:60.89``.
"""

import json
import math
import re

from .health import HEART_RATE_KEY, HealthRecord

LEGACY_PREFIX = f"{HEART_RATE_KEY}:"

# Plain decimal literals only: no whitespace, underscores, nan or inf
_NUMBER = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INTEGER = re.compile(r"[+-]?\d+")


def parse_hds_payload(text: str) -> tuple[str, float]:
    """Parse a multi-key HDS payload.

    Args:
        text: Payload of the form ``key:value``

    Returns:
        (key, value) tuple

    Raises:
        ValueError: If the separator count is wrong or the value is not numeric
    """
    parts = text.split(":")
    if len(parts) != 2 or not parts[0]:
        raise ValueError(f"Invalid data format: {text!r}")

    key, value_str = parts
    value = float(value_str) if _NUMBER.fullmatch(value_str) else math.nan
    if not math.isfinite(value):  # Also catches overflow such as 1e999
        raise ValueError(f"Invalid value format: {value_str!r}")
    return key, value


def parse_legacy_payload(text: str) -> tuple[str, int]:
    """Parse the single-metric ``heartRate:<int>`` payload.

    Raises:
        ValueError: If the prefix is missing or the rate is not an integer
    """
    if not text.startswith(LEGACY_PREFIX):
        raise ValueError(f"Invalid data format: {text!r}")
    rate = text.removeprefix(LEGACY_PREFIX)
    if not _INTEGER.fullmatch(rate):
        raise ValueError(f"Invalid heart rate: {rate!r}")
    return HEART_RATE_KEY, int(rate)


def parse_update_frame(raw: str | bytes) -> tuple[HealthRecord, str]:
    """Decode a ``{"data": {...}, "updatedKey": "..."}`` frame.

    Raises:
        ValueError: If the frame is not valid JSON or has the wrong shape
    """
    msg = json.loads(raw)  # JSONDecodeError is a ValueError
    if not isinstance(msg, dict):
        raise ValueError("Update frame must be a JSON object")

    data = msg.get("data")
    key = msg.get("updatedKey")
    if not isinstance(data, dict):
        raise ValueError("Update frame is missing 'data' object")
    if not isinstance(key, str):
        raise ValueError("Update frame is missing 'updatedKey'")

    return HealthRecord.from_dict(data), key


def encode_update_frame(record: HealthRecord, key: str) -> str:
    """Encode a record and its updated key as a JSON frame."""
    return json.dumps({"data": record.to_dict(), "updatedKey": key})
