"""Command line entry point: ``mcafee``."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from mcafee_av.config import get_settings
from mcafee_av.definitions import update_definitions
from mcafee_av.engine import EngineInvoker
from mcafee_av.exceptions import McAfeeError, ScanTargetNotFoundError
from mcafee_av.license import RENEWAL_URL, LicenseChecker
from mcafee_av.log import configure_logging, scan_fields
from mcafee_av.render import to_json, to_table
from mcafee_av.scanner import Scanner
from mcafee_av.store import ElasticsearchStore
from mcafee_av.version import __version__
from mcafee_av.webhook import post_results

logger = logging.getLogger(__name__)


class ScanByDefaultGroup(click.Group):
    """Group that runs ``scan`` when the first argument names no command.

    ``mcafee FILE`` is the same as ``mcafee scan FILE``; scan options such as
    ``--table`` may come before the path.
    """

    default_command = "scan"

    def __init__(self, *args, **kwargs):
        context_settings = dict(kwargs.get("context_settings") or {})
        context_settings.setdefault("ignore_unknown_options", True)
        kwargs["context_settings"] = context_settings
        super().__init__(*args, **kwargs)

    def resolve_command(self, ctx: click.Context, args: list[str]):
        if args and self.get_command(ctx, args[0]) is None:
            args = [self.default_command, *args]
        return super().resolve_command(ctx, args)


@click.group(cls=ScanByDefaultGroup)
@click.version_option(version=__version__)
@click.option("--verbose", "-V", is_flag=True, help="Verbose output")
@click.option(
    "--elasticsearch",
    envvar="MALICE_ELASTICSEARCH_URL",
    default="",
    help="Elasticsearch url for Malice to store results",
)
@click.option(
    "--timeout",
    envvar="MALICE_TIMEOUT",
    type=int,
    default=120,
    show_default=True,
    help="Malice plugin timeout (in seconds)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, elasticsearch: str, timeout: int):
    """Malice McAfee AntiVirus Plugin."""
    configure_logging(verbose)
    ctx.obj = get_settings().model_copy(
        update={"elasticsearch_url": elasticsearch, "timeout": timeout}
    )


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--table", "-t", is_flag=True, help="Output as Markdown table")
@click.option("--callback", "-c", is_flag=True, help="POST results back to Malice webhook")
@click.option("--proxy", "-x", is_flag=True, help="Proxy settings for Malice webhook endpoint")
@click.pass_context
def scan(ctx: click.Context, path: Path, table: bool, callback: bool, proxy: bool):
    """Scan a file and print the results."""
    settings = ctx.obj
    path = path.resolve()
    try:
        if not path.is_file():
            raise ScanTargetNotFoundError(f"no such file to scan: {path}", path=path)

        if LicenseChecker(settings.license_file).is_expired():
            logger.error("mcafee license has expired", extra=scan_fields(path))
            logger.error("please get a new one here: %s", RENEWAL_URL, extra=scan_fields(path))

        verdict = Scanner.from_settings(settings).scan(path, timeout=settings.timeout)
        verdict = verdict.with_table(to_table(verdict))

        if settings.elasticsearch_url:
            store = ElasticsearchStore(settings.elasticsearch_url)
            store.init()
            store.store_results(settings.scan_id_for(path), verdict)

        if table:
            click.echo(verdict.rendered_table, nl=False)
            return

        body = to_json(verdict.without_table())
        if callback:
            resp = post_results(
                settings.endpoint,
                body,
                settings.scan_id_for(path),
                proxy=settings.proxy if proxy else "",
            )
            click.echo(resp.text)
            return
        click.echo(body.decode("utf-8"))
    except McAfeeError as exc:
        _fail(ctx, exc)


@cli.command()
@click.pass_context
def update(ctx: click.Context):
    """Update virus definitions."""
    settings = ctx.obj
    click.echo("Updating McAfee...")
    try:
        click.echo(update_definitions(EngineInvoker(settings), settings))
    except McAfeeError as exc:
        _fail(ctx, exc)


@cli.command()
@click.pass_context
def web(ctx: click.Context):
    """Create a McAfee scan web service."""
    from mcafee_av.web import serve

    serve(ctx.obj)


cli.add_command(update, name="u")


def _fail(ctx: click.Context, exc: McAfeeError) -> None:
    logger.error(exc.message, extra=exc.fields())
    ctx.exit(1)


if __name__ == "__main__":
    cli()
