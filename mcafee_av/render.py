"""JSON and Markdown table encodings of a verdict."""

from __future__ import annotations

import json

from jinja2 import Environment, StrictUndefined, TemplateError

from mcafee_av.exceptions import PLUGIN_NAME, RenderError
from mcafee_av.models import Verdict

TABLE_TEMPLATE = """\
#### McAfee
| Infected | Result | Engine | Definitions | Updated |
|:--------:|:------:|:------:|:-----------:|:-------:|
| {{ infected }} | {{ result | cell }} | {{ engine | cell }} | {{ database | cell }} | {{ updated | cell }} |
"""

_env = Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=True)
_env.filters["cell"] = lambda value: value.replace("|", "\\|").replace("\n", " ") or "-"


def results(verdict: Verdict) -> dict:
    """The engine-level result fields, without the table."""
    return {
        "infected": verdict.infected,
        "result": verdict.threat_name,
        "engine": verdict.engine_version,
        "database": verdict.definition_version,
        "updated": verdict.definition_date,
    }


def to_json(verdict: Verdict) -> bytes:
    """Machine-readable encoding: ``{"mcafee": {...}}``."""
    return json.dumps({PLUGIN_NAME: results(verdict)}).encode("utf-8")


def to_table(verdict: Verdict, template: str = TABLE_TEMPLATE) -> str:
    """Human-readable single-row Markdown table.

    Raises:
        RenderError: If the template cannot be rendered.
    """
    try:
        return _env.from_string(template).render(
            infected="**Yes**" if verdict.infected else "No",
            result=verdict.threat_name if verdict.infected else "Clean",
            engine=verdict.engine_version,
            database=verdict.definition_version,
            updated=verdict.definition_date,
        )
    except TemplateError as exc:
        raise RenderError(f"could not render results table: {exc}") from exc


def to_document(verdict: Verdict) -> dict:
    """Payload stored in the results database, table included when attached."""
    doc = results(verdict)
    if verdict.rendered_table:
        doc["markdown"] = verdict.rendered_table
    return doc
