"""Helpers for building stand-in engine commands."""

from __future__ import annotations

import sys

PY = sys.executable


def script(code: str) -> list[str]:
    """A command that runs *code* with the test interpreter.

    The scanned path arrives as ``sys.argv[1]``.
    """
    return [PY, "-c", code]
