"""Entry point for hds-bridge."""

import argparse
import asyncio
import dataclasses
import logging
import signal

from . import __version__
from .config import MODE_WS_PULL, MODES, Config, load_config
from .exporter import Exporter
from .hds import HDSReceiver
from .log import setup_logging
from .metrics import MetricsExporter
from .osc import SignalSender
from .pull import PullReceiver
from .server import BroadcastServer

logger = logging.getLogger(__name__)

# Shutdown event for graceful termination
_shutdown_event: asyncio.Event | None = None


def _signal_handler() -> None:
    """Handle shutdown signals."""
    if _shutdown_event:
        logger.info("Shutdown requested...")
        _shutdown_event.set()


async def run(config: Config) -> None:
    """Run the configured receiver and exporters until shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    logger.info("hds-bridge %s starting in %s mode", __version__, config.receiver.mode)

    exporters: list[Exporter] = []
    broadcast = None
    metrics = None
    sender = None
    receiver = None
    try:
        # Start exporters first so clients can connect before data arrives
        if config.broadcast.enabled:
            broadcast = BroadcastServer(host=config.broadcast.host, port=config.broadcast.port)
            await broadcast.start()
            exporters.append(broadcast)
        if config.osc.enabled:
            sender = SignalSender(
                ip=config.osc.ip,
                port=config.osc.port,
                address=config.osc.address,
                enabled_address=config.osc.enabled_address,
                debounce=config.osc.debounce,
            )
            exporters.append(sender)
        if config.metrics.enabled:
            metrics = MetricsExporter(
                host=config.metrics.host,
                port=config.metrics.port,
                freshness=config.metrics.freshness,
            )
            await metrics.start()
            exporters.append(metrics)

        if not exporters:
            logger.warning("No exporters enabled, updates will only be logged")

        if config.receiver.mode == MODE_WS_PULL:
            receiver = PullReceiver(
                url=config.receiver.pull_url,
                exporters=exporters,
                reconnect_min=config.receiver.reconnect_min,
                reconnect_max=config.receiver.reconnect_max,
            )
            receiver_task = asyncio.create_task(receiver.run())
            shutdown_task = asyncio.create_task(_shutdown_event.wait())

            # Wait for either shutdown signal or receiver to exit
            done, pending = await asyncio.wait(
                [receiver_task, shutdown_task],
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        else:
            receiver = HDSReceiver(
                exporters=exporters,
                host=config.receiver.host,
                port=config.receiver.hds_port,
                legacy=config.receiver.legacy,
            )
            await receiver.start()
            await _shutdown_event.wait()
    finally:
        if receiver:
            await receiver.stop()
        if sender:
            sender.close()
        if metrics:
            await metrics.stop()
        if broadcast:
            await broadcast.stop()
        logger.info("Shutdown complete")


def build_parser(config: Config) -> argparse.ArgumentParser:
    """Build the CLI parser with defaults taken from the config file."""
    parser = argparse.ArgumentParser(description="Bridge HDS health data to WebSocket, OSC and Prometheus")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    receiver = parser.add_argument_group("receiver")
    receiver.add_argument("-m", "--mode", choices=MODES, default=config.receiver.mode, help="Ingestion mode")
    receiver.add_argument("--hds-port", type=int, default=config.receiver.hds_port, help="HDS receiver port")
    receiver.add_argument(
        "--pull-url",
        default=config.receiver.pull_url or None,
        help="WebSocket URL to pull updates from (ws-pull mode)",
    )
    receiver.add_argument(
        "--legacy",
        action=argparse.BooleanOptionalAction,
        default=config.receiver.legacy,
        help="Only accept 'heartRate:<int>' HDS payloads",
    )

    broadcast = parser.add_argument_group("websocket broadcast")
    broadcast.add_argument(
        "--broadcast",
        action=argparse.BooleanOptionalAction,
        default=config.broadcast.enabled,
        help="Enable the HTTP/WebSocket broadcast server",
    )
    broadcast.add_argument("-p", "--port", type=int, default=config.broadcast.port, help="Broadcast server port")

    osc = parser.add_argument_group("osc")
    osc.add_argument(
        "--osc",
        action=argparse.BooleanOptionalAction,
        default=config.osc.enabled,
        help="Enable the OSC sender",
    )
    osc.add_argument("--osc-ip", default=config.osc.ip, help="IP address to send OSC data to")
    osc.add_argument("--osc-port", type=int, default=config.osc.port, help="Port to send OSC data to")
    osc.add_argument("--osc-addr", default=config.osc.address, help="OSC address for heart rate")
    osc.add_argument(
        "--osc-enabled-addr",
        default=config.osc.enabled_address or None,
        help="OSC address for the heart rate enabled flag",
    )
    osc.add_argument(
        "--osc-debounce",
        type=float,
        default=config.osc.debounce,
        help="Seconds without heart rate before sending enabled=false",
    )

    metrics = parser.add_argument_group("prometheus")
    metrics.add_argument(
        "--metrics",
        action=argparse.BooleanOptionalAction,
        default=config.metrics.enabled,
        help="Enable the Prometheus metrics endpoint",
    )
    metrics.add_argument("--metrics-port", type=int, default=config.metrics.port, help="Metrics server port")
    return parser


def apply_args(config: Config, args: argparse.Namespace) -> Config:
    """Return a new config with CLI overrides applied."""
    return dataclasses.replace(
        config,
        receiver=dataclasses.replace(
            config.receiver,
            mode=args.mode,
            hds_port=args.hds_port,
            pull_url=args.pull_url or "",
            legacy=args.legacy,
        ),
        broadcast=dataclasses.replace(config.broadcast, enabled=args.broadcast, port=args.port),
        osc=dataclasses.replace(
            config.osc,
            enabled=args.osc,
            ip=args.osc_ip,
            port=args.osc_port,
            address=args.osc_addr,
            enabled_address=args.osc_enabled_addr or "",
            debounce=args.osc_debounce,
        ),
        metrics=dataclasses.replace(config.metrics, enabled=args.metrics, port=args.metrics_port),
    )


def main() -> None:
    """CLI entry point."""
    config = load_config()

    parser = build_parser(config)
    args = parser.parse_args()
    # Defaults from the config file bypass argparse choices
    if args.mode not in MODES:
        parser.error(f"unknown mode '{args.mode}'")
    if args.mode == MODE_WS_PULL and not args.pull_url:
        parser.error("--pull-url is required in ws-pull mode")
    config = apply_args(config, args)

    # Setup logging before anything else
    log_level = "DEBUG" if args.verbose else config.server.log_level
    setup_logging(log_level)

    asyncio.run(run(config))


if __name__ == "__main__":
    main()
