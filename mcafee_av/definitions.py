"""Virus definition freshness bookkeeping (the UPDATED marker)."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from mcafee_av.config import Settings
from mcafee_av.engine import EngineInvoker
from mcafee_av.log import scan_fields

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y%m%d"


def read_updated_date(marker: Path, build_time: str) -> str:
    """Date of the last definitions refresh, ``YYYYMMDD``.

    Falls back to *build_time* when the marker was never written.
    """
    try:
        return marker.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.debug("no UPDATED marker at %s, using build time", marker, extra=scan_fields())
        return build_time


def update_definitions(
    invoker: EngineInvoker,
    settings: Settings,
    today: date | None = None,
) -> str:
    """Refresh the engine's virus definitions and rewrite the UPDATED marker.

    Returns:
        The update tool's output.

    Raises:
        EngineTimeoutError: If the daemon start or the update exceeds the timeout.
        EngineProcessError: If the update tool fails.
    """
    invoker.start_daemon(settings.timeout)
    output = invoker.run_update(settings.timeout)

    stamp = (today or date.today()).strftime(DATE_FORMAT)
    settings.updated_file.parent.mkdir(parents=True, exist_ok=True)
    settings.updated_file.write_text(stamp, encoding="utf-8")
    logger.info("virus definitions updated", extra=scan_fields(updated=stamp))
    return output
