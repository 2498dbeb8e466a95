"""Checks whether the engine license still allows definition updates."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from mcafee_av.exceptions import LicenseNotFoundError
from mcafee_av.log import scan_fields

logger = logging.getLogger(__name__)

EXPIRY_FIELD = "UpdateValidThru"
RENEWAL_URL = "https://www.mcafee.com/linux-server-antivirus"


class LicenseChecker:
    """Read ``UpdateValidThru=<unix seconds>`` from the license file.

    An expired license is advisory: scans keep running with stale definitions.
    """

    def __init__(self, license_file: Path) -> None:
        self._license_file = license_file

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the definition update entitlement has lapsed.

        A license without a readable expiry is treated as not expired.

        Raises:
            LicenseNotFoundError: If the license file does not exist.
        """
        try:
            text = self._license_file.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError as exc:
            raise LicenseNotFoundError(
                f"could not find mcafee license file {self._license_file}"
            ) from exc

        expires = self._expiry(text)
        if expires is None:
            return False

        now = now or datetime.now(timezone.utc)
        expired = expires < now
        logger.debug(
            "McAfee License Expires: %s", expires, extra=scan_fields(expired=expired)
        )
        return expired

    def _expiry(self, text: str) -> datetime | None:
        for line in text.splitlines():
            key, sep, value = line.partition("=")
            if not sep or key.strip() != EXPIRY_FIELD:
                continue
            try:
                return datetime.fromtimestamp(int(value.strip()), tz=timezone.utc)
            except (ValueError, OverflowError, OSError):
                logger.error(
                    "invalid %s value %r in license file", EXPIRY_FIELD, value.strip(),
                    extra=scan_fields(),
                )
                return None

        logger.error("could not find expiration date in license file", extra=scan_fields())
        return None
