"""McAfee antivirus scan plugin: normalized verdicts over CLI and HTTP."""

from mcafee_av.config import Settings, get_settings
from mcafee_av.engine import EngineInvoker
from mcafee_av.exceptions import (
    CallbackError,
    ConfigurationError,
    EngineProcessError,
    EngineTimeoutError,
    LicenseNotFoundError,
    MalformedOutputError,
    McAfeeError,
    RenderError,
    ScanTargetNotFoundError,
    StoreError,
)
from mcafee_av.license import LicenseChecker
from mcafee_av.models import (
    EngineMetadata,
    InvocationResult,
    InvocationStatus,
    ScanRequest,
    Verdict,
)
from mcafee_av.parser import OutputParser
from mcafee_av.render import to_json, to_table
from mcafee_av.scanner import Scanner

__all__ = [
    "Scanner",
    "EngineInvoker",
    "OutputParser",
    "LicenseChecker",
    "Settings",
    "get_settings",
    "to_json",
    "to_table",
    "create_app",
    "Verdict",
    "ScanRequest",
    "EngineMetadata",
    "InvocationResult",
    "InvocationStatus",
    "McAfeeError",
    "ConfigurationError",
    "LicenseNotFoundError",
    "ScanTargetNotFoundError",
    "EngineProcessError",
    "EngineTimeoutError",
    "MalformedOutputError",
    "RenderError",
    "StoreError",
    "CallbackError",
]


def __getattr__(name: str) -> object:
    """Lazy-import the web app so ``fastapi`` is optional at import time."""
    if name == "create_app":
        from mcafee_av.web import create_app

        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
