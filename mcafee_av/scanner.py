"""Scan orchestration: daemon start, scan, parse, one retry."""

from __future__ import annotations

import enum
import logging
import time
from pathlib import Path
from typing import Union

from mcafee_av.config import Settings
from mcafee_av.engine import EngineInvoker
from mcafee_av.exceptions import EngineProcessError, MalformedOutputError
from mcafee_av.log import scan_fields
from mcafee_av.models import InvocationResult, InvocationStatus, ScanRequest, Verdict
from mcafee_av.parser import OutputParser, engine_metadata

logger = logging.getLogger(__name__)


class ScanState(enum.Enum):
    IDLE = "idle"
    DAEMON_STARTING = "daemon_starting"
    SCANNING = "scanning"
    PARSE_OK = "parse_ok"
    PARSE_FAILED = "parse_failed"
    DONE = "done"


class Scanner:
    """Produce a :class:`Verdict` for one file.

    The scan step is retried exactly once when its output cannot be parsed.
    Process faults and timeouts are never retried. The daemon start is not
    repeated on retry.

    Both scan attempts and the ``-v``/``-V`` metadata queries share one
    deadline that starts after the daemon step, so a full run is bounded by
    roughly twice the timeout.

    Args:
        invoker: Runs the engine processes.
        parser: Converts engine output into verdicts.

    Example::

        scanner = Scanner.from_settings(get_settings())
        verdict = scanner.scan("/malware/sample.exe", timeout=120)
    """

    def __init__(self, invoker: EngineInvoker, parser: OutputParser) -> None:
        self._invoker = invoker
        self._parser = parser

    @classmethod
    def from_settings(cls, settings: Settings) -> Scanner:
        invoker = EngineInvoker(settings)
        return cls(invoker, OutputParser(engine_metadata(invoker, settings)))

    def scan(self, path: Union[str, Path], timeout: float) -> Verdict:
        """Scan *path*, allowing *timeout* seconds per step.

        Raises:
            EngineTimeoutError: If the daemon start or the scan runs out of time.
            EngineProcessError: If the engine fails outright.
            MalformedOutputError: If both attempts produced unparseable output.
        """
        return self.scan_request(ScanRequest(path=Path(path), timeout=timeout))

    def scan_request(self, request: ScanRequest) -> Verdict:
        self._transition(request, ScanState.IDLE, ScanState.DAEMON_STARTING)
        self._invoker.start_daemon(request.timeout)

        deadline = time.monotonic() + request.timeout
        self._transition(request, ScanState.DAEMON_STARTING, ScanState.SCANNING)
        try:
            verdict = self._attempt(request, deadline)
        except MalformedOutputError as exc:
            self._transition(request, ScanState.SCANNING, ScanState.PARSE_FAILED)
            logger.warning(
                "could not parse scan output, retrying once: %s",
                exc,
                extra=scan_fields(request.path),
            )
            self._transition(request, ScanState.PARSE_FAILED, ScanState.SCANNING)
            verdict = self._attempt(request, deadline)

        self._transition(request, ScanState.SCANNING, ScanState.PARSE_OK)
        self._transition(request, ScanState.PARSE_OK, ScanState.DONE)
        return verdict

    def _attempt(self, request: ScanRequest, deadline: float) -> Verdict:
        remaining = max(deadline - time.monotonic(), 0)
        result = self._invoker.scan(request.path, remaining)
        _check_process(result, request)
        return self._parser.parse(result.text, str(request.path), deadline=deadline)

    @staticmethod
    def _transition(request: ScanRequest, old: ScanState, new: ScanState) -> None:
        logger.debug(
            "scan %s -> %s", old.value, new.value, extra=scan_fields(request.path)
        )


def _check_process(result: InvocationResult, request: ScanRequest) -> None:
    if result.status is InvocationStatus.PROCESS_ERROR:
        raise EngineProcessError(
            f"mcafee scan exited with status {result.returncode}: {result.stderr.strip()}",
            path=request.path,
            returncode=result.returncode,
        )
