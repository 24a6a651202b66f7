"""OSC forwarding of heart rate."""

import asyncio
import logging

from pythonosc.udp_client import SimpleUDPClient

from .health import ALL_KEYS, HEART_RATE_KEY, HealthRecord

logger = logging.getLogger(__name__)

HEART_RATE_MAX = 256.0


class SignalSender:
    """Sends normalized heart rate (bpm / 256) as an OSC float.

    With ``enabled_address`` set, also sends ``True`` on every heart rate
    update and ``False`` once no update arrived for ``debounce`` seconds.
    """

    def __init__(
        self,
        ip: str = "127.0.0.1",
        port: int = 9000,
        address: str = "/avatar/parameters/HeartRate",
        enabled_address: str | None = None,
        debounce: float = 5.0,
        heart_rate_max: float = HEART_RATE_MAX,
    ):
        self.address = address
        self.enabled_address = enabled_address or None
        self._debounce = debounce
        self._heart_rate_max = heart_rate_max
        self._client = SimpleUDPClient(ip, port)
        self._disable_timer: asyncio.TimerHandle | None = None
        logger.info("OSC config: addr=%s target=%s:%d", address, ip, port)

    def update(self, record: HealthRecord, key: str) -> None:
        """Forward heart rate updates; other keys are ignored."""
        if key not in (HEART_RATE_KEY, ALL_KEYS):
            return

        self._client.send_message(self.address, record.heart_rate / self._heart_rate_max)
        if self.enabled_address:
            self._client.send_message(self.enabled_address, True)
            self._arm_disable_timer()

    def _arm_disable_timer(self) -> None:
        """(Re)start the one-shot timer that reports heart rate as inactive."""
        if self._disable_timer:
            self._disable_timer.cancel()
        loop = asyncio.get_running_loop()
        self._disable_timer = loop.call_later(self._debounce, self._send_disabled)

    def _send_disabled(self) -> None:
        self._disable_timer = None
        logger.debug("No heart rate for %.1fs, sending disabled", self._debounce)
        try:
            self._client.send_message(self.enabled_address, False)
        except OSError as e:
            logger.error("Sending OSC disabled signal failed: %s", e)

    def close(self) -> None:
        """Cancel a pending disabled signal."""
        if self._disable_timer:
            self._disable_timer.cancel()
            self._disable_timer = None
