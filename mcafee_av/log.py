"""Logging setup with structured ``key=value`` fields."""

from __future__ import annotations

import logging

from mcafee_av.exceptions import PLUGIN_CATEGORY, PLUGIN_NAME

# Attributes every LogRecord has; anything else came in through ``extra=``.
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

PLUGIN_FIELDS = {"plugin": PLUGIN_NAME, "category": PLUGIN_CATEGORY}


class FieldsFormatter(logging.Formatter):
    """Append fields passed via ``extra=`` to the message as ``key=value``."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED and not key.startswith("_")
        }
        if not extras:
            return base
        fields = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{base} {fields}"


def configure_logging(verbose: bool = False) -> None:
    """Route ``mcafee_av`` logs to stderr; DEBUG when *verbose*."""
    handler = logging.StreamHandler()
    handler.setFormatter(FieldsFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    logger = logging.getLogger("mcafee_av")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def scan_fields(path: object = "", **extra: object) -> dict:
    """Standard ``extra=`` payload for a log line about one scan."""
    fields: dict = dict(PLUGIN_FIELDS)
    if path:
        fields["path"] = str(path)
    fields.update(extra)
    return fields
