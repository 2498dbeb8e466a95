"""Data models for scan requests, engine runs and verdicts."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ScanRequest:
    """A single file scan, owned by one orchestration.

    Attributes:
        path: Absolute path of the file to scan.
        timeout: Per-attempt deadline in seconds.
    """

    path: Path
    timeout: float


class InvocationStatus(enum.Enum):
    """How a finished engine process ended."""

    SUCCESS = "success"
    THREAT_SIGNALED = "threat_signaled"
    PROCESS_ERROR = "process_error"

    @classmethod
    def from_returncode(cls, returncode: int) -> InvocationStatus:
        if returncode == 0:
            return cls.SUCCESS
        if returncode == 1:
            return cls.THREAT_SIGNALED
        return cls.PROCESS_ERROR


@dataclass(frozen=True, slots=True)
class InvocationResult:
    """Outcome of one engine process run.

    Attributes:
        status: ``SUCCESS`` (exit 0), ``THREAT_SIGNALED`` (exit 1) or
            ``PROCESS_ERROR`` (anything else).
        text: Captured standard output.
        returncode: Raw process exit code.
        stderr: Captured standard error.
    """

    status: InvocationStatus
    text: str
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.status is not InvocationStatus.PROCESS_ERROR


@dataclass(frozen=True, slots=True)
class EngineMetadata:
    """Engine and virus definition versions stamped onto every verdict."""

    engine_version: str
    definition_version: str
    definition_date: str


@dataclass(frozen=True, slots=True)
class Verdict:
    """Normalized result of scanning one file.

    Attributes:
        infected: ``True`` when the engine reported a detection.
        threat_name: Detection label; empty when clean.
        engine_version: Output of the engine version query.
        definition_version: Output of the definitions version query.
        definition_date: Last definitions refresh, ``YYYYMMDD``.
        rendered_table: Markdown table attached by the renderer; never
            serialized to JSON.
    """

    infected: bool
    threat_name: str
    engine_version: str
    definition_version: str
    definition_date: str
    rendered_table: str = ""

    def __post_init__(self) -> None:
        if self.infected and not self.threat_name:
            raise ValueError("an infected verdict requires a threat name")
        if not self.infected and self.threat_name:
            raise ValueError("a clean verdict cannot carry a threat name")

    @classmethod
    def clean(cls, metadata: EngineMetadata) -> Verdict:
        return cls(False, "", *_metadata_fields(metadata))

    @classmethod
    def detected(cls, threat_name: str, metadata: EngineMetadata) -> Verdict:
        return cls(True, threat_name, *_metadata_fields(metadata))

    def with_table(self, table: str) -> Verdict:
        return replace(self, rendered_table=table)

    def without_table(self) -> Verdict:
        return replace(self, rendered_table="")


def _metadata_fields(metadata: EngineMetadata) -> tuple[str, str, str]:
    return metadata.engine_version, metadata.definition_version, metadata.definition_date
