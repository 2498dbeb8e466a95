"""Turns raw ``scan`` output into a :class:`~mcafee_av.models.Verdict`."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from mcafee_av.config import Settings
from mcafee_av.definitions import read_updated_date
from mcafee_av.engine import EngineInvoker
from mcafee_av.exceptions import MalformedOutputError
from mcafee_av.log import scan_fields
from mcafee_av.models import EngineMetadata, Verdict

logger = logging.getLogger(__name__)

CLEAN_MARKER = "[OK]"

MetadataSource = Callable[[Optional[float]], EngineMetadata]


class OutputParser:
    """Parse ``scan -abfu`` output.

    The engine prints ``<file>\\t<result>``; a result of ``[OK]`` means clean,
    anything else is the detection name.

    Args:
        metadata_source: Returns the engine/definition versions stamped on
            every verdict. Called once per successful parse with the
            deadline passed to :meth:`parse`.
    """

    def __init__(self, metadata_source: MetadataSource) -> None:
        self._metadata_source = metadata_source

    def parse(self, raw_text: str, path: str = "", deadline: Optional[float] = None) -> Verdict:
        """Build a verdict from one scan's output.

        *deadline* is a :func:`time.monotonic` instant that bounds the
        metadata queries; ``None`` leaves them at ``metadata_timeout``.

        Raises:
            MalformedOutputError: If no detection field follows the tab.
        """
        if CLEAN_MARKER in raw_text:
            return Verdict.clean(self._metadata_source(deadline))

        fields = raw_text.split("\t")
        threat = fields[1].strip() if len(fields) > 1 else ""
        if not threat:
            logger.debug("unparseable scan output %r", raw_text, extra=scan_fields(path))
            raise MalformedOutputError(
                "scan output has no [OK] marker and no detection field", path=path
            )
        return Verdict.detected(threat, self._metadata_source(deadline))


def engine_metadata(invoker: EngineInvoker, settings: Settings) -> MetadataSource:
    """Metadata source that queries the installed engine."""

    def remaining(deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return max(deadline - time.monotonic(), 0)

    def fetch(deadline: Optional[float] = None) -> EngineMetadata:
        return EngineMetadata(
            engine_version=invoker.version(remaining(deadline)),
            definition_version=invoker.definitions_version(remaining(deadline)),
            definition_date=read_updated_date(settings.updated_file, settings.build_time),
        )

    return fetch
