"""Configuration file loading and defaults."""

import dataclasses
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

MODE_HDS = "hds"
MODE_WS_PULL = "ws-pull"
MODES = (MODE_HDS, MODE_WS_PULL)


@dataclass(frozen=True)
class ServerConfig:
    log_level: str = "INFO"


@dataclass(frozen=True)
class ReceiverConfig:
    mode: str = MODE_HDS
    host: str = "0.0.0.0"
    hds_port: int = 3476
    pull_url: str = ""
    legacy: bool = False
    reconnect_min: float = 1.0
    reconnect_max: float = 600.0


@dataclass(frozen=True)
class BroadcastConfig:
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 3477


@dataclass(frozen=True)
class OSCConfig:
    enabled: bool = True
    ip: str = "127.0.0.1"
    port: int = 9000
    address: str = "/avatar/parameters/HeartRate"
    enabled_address: str = ""
    debounce: float = 5.0


@dataclass(frozen=True)
class MetricsConfig:
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 9090
    freshness: float = 30.0


@dataclass(frozen=True)
class Config:
    server: ServerConfig = field(default_factory=ServerConfig)
    receiver: ReceiverConfig = field(default_factory=ReceiverConfig)
    broadcast: BroadcastConfig = field(default_factory=BroadcastConfig)
    osc: OSCConfig = field(default_factory=OSCConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)


def config_paths() -> list[Path]:
    """Candidate config files, highest priority first."""
    return [
        Path("config.toml"),
        Path.home() / ".config" / "hds-bridge" / "config.toml",
    ]


def load_config() -> Config:
    """Load the first config file found, or defaults if there is none.

    A file that is not valid TOML is reported and replaced by defaults.
    Unknown keys inside a known section raise ``TypeError``.
    """
    path = next((p for p in config_paths() if p.is_file()), None)
    if path is None:
        return Config()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        logger.warning("Failed to parse config '%s': %s. Using defaults.", path, e)
        return Config()

    logger.debug("Loaded config from %s", path)
    return _parse_config(data)


def _parse_config(data: dict) -> Config:
    # Each [table] maps onto the Config field of the same name
    sections = {
        f.name: f.default_factory(**data.get(f.name, {}))
        for f in dataclasses.fields(Config)
    }
    return Config(**sections)
