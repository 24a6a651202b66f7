"""Exporter interface and update fan-out."""

import logging
from collections.abc import Iterable
from typing import Protocol

from .health import HealthRecord

logger = logging.getLogger(__name__)


class Exporter(Protocol):
    """Sink that forwards health updates to an external system.

    ``update`` runs on the ingestion path and must not block.
    """

    def update(self, record: HealthRecord, key: str) -> None: ...


def notify_exporters(exporters: Iterable[Exporter], record: HealthRecord, key: str) -> None:
    """Send an update to every exporter in order.

    A failing exporter is logged and skipped so the rest still get the update.
    """
    for exporter in exporters:
        try:
            exporter.update(record, key)
        except Exception as e:
            logger.error("Sending data to %s failed: %s", type(exporter).__name__, e)
