"""Runs the McAfee command-line engine as bounded-time subprocesses."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

from mcafee_av.config import Settings
from mcafee_av.exceptions import EngineProcessError, EngineTimeoutError, McAfeeError
from mcafee_av.log import scan_fields
from mcafee_av.models import InvocationResult, InvocationStatus

logger = logging.getLogger(__name__)


class EngineInvoker:
    """Thin wrapper around the engine's command-line tools.

    Every call spawns a fresh process; nothing is shared between scans.

    Args:
        settings: Supplies the daemon, scan, version and update commands.

    Example::

        invoker = EngineInvoker(get_settings())
        invoker.start_daemon(timeout=10)
        result = invoker.scan("/malware/sample.exe", timeout=60)
        print(result.status, result.text)
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def start_daemon(self, timeout: float) -> None:
        """Ask the init script to start the scan daemon.

        A failing start command is only logged since the daemon is usually
        already running.

        Raises:
            EngineTimeoutError: If the start command exceeds *timeout*.
        """
        cmd = self._settings.daemon_start_cmd
        try:
            result = run_command(cmd, timeout)
        except EngineProcessError as exc:
            logger.warning("could not start mcafee daemon: %s", exc, extra=scan_fields())
            return
        if result.status is InvocationStatus.PROCESS_ERROR:
            logger.warning(
                "mcafee daemon start exited with status %d",
                result.returncode,
                extra=scan_fields(stderr=result.stderr.strip()),
            )

    def scan(self, path: Union[str, Path], timeout: float) -> InvocationResult:
        """Scan one file.

        Args:
            path: File to scan.
            timeout: Seconds before the scan process is killed.

        Returns:
            The tagged process outcome; exit 1 is ``THREAT_SIGNALED``.

        Raises:
            EngineTimeoutError: If the scan exceeds *timeout*.
            EngineProcessError: If the engine cannot be spawned.
        """
        cmd = [*self._settings.scan_cmd, str(path)]
        try:
            result = run_command(cmd, timeout)
        except McAfeeError as exc:
            exc.path = str(path)
            raise
        logger.debug("McAfee Output: %s", result.text, extra=scan_fields(path))
        return result

    def version(self, timeout: Optional[float] = None) -> str:
        """Engine version as reported by ``scan -v``.

        *timeout* can only shorten ``metadata_timeout``, never extend it.
        """
        out = self._query("-v", timeout)
        logger.debug("McAfee Version: %s", out)
        return out

    def definitions_version(self, timeout: Optional[float] = None) -> str:
        """Virus definitions version as reported by ``scan -V``."""
        out = self._query("-V", timeout)
        logger.debug("McAfee Database: %s", out)
        return out

    def run_update(self, timeout: float) -> str:
        """Run the vendor definitions update and return its output."""
        result = run_command(self._settings.update_cmd, timeout)
        _raise_on_process_error(result, "definitions update")
        return result.text

    def _query(self, flag: str, timeout: Optional[float]) -> str:
        limit = self._settings.metadata_timeout
        if timeout is not None:
            limit = min(limit, timeout)
        result = run_command([self._settings.engine_binary, flag], limit)
        _raise_on_process_error(result, f"version query {flag}")
        return result.text.strip()


def run_command(cmd: Sequence[str], timeout: float) -> InvocationResult:
    """Run *cmd* and wait at most *timeout* seconds.

    On timeout the child is killed and reaped before
    :class:`EngineTimeoutError` is raised.
    """
    timeout = max(timeout, 0)
    try:
        proc = subprocess.run(
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise EngineTimeoutError(f"{cmd[0]} timed out after {timeout:g} seconds") from exc
    except OSError as exc:
        raise EngineProcessError(f"could not run {cmd[0]}: {exc}") from exc

    return InvocationResult(
        status=InvocationStatus.from_returncode(proc.returncode),
        text=proc.stdout,
        returncode=proc.returncode,
        stderr=proc.stderr,
    )


def _raise_on_process_error(result: InvocationResult, what: str) -> None:
    if result.status is InvocationStatus.PROCESS_ERROR:
        raise EngineProcessError(
            f"mcafee {what} failed with exit status {result.returncode}: {result.stderr.strip()}",
            returncode=result.returncode,
        )
