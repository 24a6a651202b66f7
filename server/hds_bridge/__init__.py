"""Bridge health telemetry from HDS to WebSocket, OSC and Prometheus."""

from importlib.metadata import PackageNotFoundError, version

from .config import Config, load_config
from .exporter import Exporter, notify_exporters
from .hds import HDSReceiver
from .health import HealthRecord
from .log import setup_logging
from .metrics import MetricsExporter
from .osc import SignalSender
from .parser import parse_hds_payload, parse_legacy_payload, parse_update_frame
from .pull import PullReceiver
from .server import BroadcastServer

try:
    __version__ = version("hds-bridge")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "HealthRecord",
    "parse_hds_payload",
    "parse_legacy_payload",
    "parse_update_frame",
    "Exporter",
    "notify_exporters",
    "BroadcastServer",
    "SignalSender",
    "MetricsExporter",
    "HDSReceiver",
    "PullReceiver",
    "Config",
    "load_config",
    "setup_logging",
]
