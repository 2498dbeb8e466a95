"""Exception hierarchy for the McAfee scan plugin."""

from __future__ import annotations

from pathlib import Path
from typing import Union

PLUGIN_NAME = "mcafee"
PLUGIN_CATEGORY = "av"


class McAfeeError(Exception):
    """Base exception for all scan plugin errors.

    Args:
        message: Human-readable description of the fault.
        path: The file being scanned when the fault occurred, if any.
    """

    component = "plugin"
    category = "error"

    def __init__(self, message: str, path: Union[str, Path, None] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else ""

    def fields(self) -> dict:
        """Structured logging fields describing this fault."""
        return {
            "plugin": PLUGIN_NAME,
            "category": PLUGIN_CATEGORY,
            "component": self.component,
            "fault": self.category,
            "path": self.path,
        }


class ConfigurationError(McAfeeError):
    """Raised when the plugin environment is unusable (missing files, bad input)."""

    component = "config"
    category = "configuration"


class LicenseNotFoundError(ConfigurationError):
    """Raised when the McAfee license file does not exist."""

    component = "license"


class ScanTargetNotFoundError(ConfigurationError):
    """Raised when the file to scan does not exist."""


class EngineProcessError(McAfeeError):
    """Raised when the scan engine exits abnormally or cannot be spawned.

    Exit code 1 is the engine's "threat found" signal and never produces
    this error.
    """

    component = "engine"
    category = "process"

    def __init__(
        self,
        message: str,
        path: Union[str, Path, None] = None,
        returncode: int | None = None,
    ) -> None:
        super().__init__(message, path)
        self.returncode = returncode


class EngineTimeoutError(McAfeeError, TimeoutError):
    """Raised when the daemon start or scan step exceeds its deadline.

    The child process has already been killed and reaped when this is raised.
    """

    component = "engine"
    category = "timeout"


class MalformedOutputError(McAfeeError):
    """Raised when scanner output cannot be turned into a verdict."""

    component = "parser"
    category = "parse"


class RenderError(McAfeeError):
    """Raised when a verdict cannot be rendered."""

    component = "render"
    category = "render"


class StoreError(McAfeeError):
    """Raised when results cannot be written to the document store."""

    component = "store"
    category = "store"


class CallbackError(McAfeeError):
    """Raised when the results webhook cannot be reached or rejects the POST."""

    component = "webhook"
    category = "callback"
