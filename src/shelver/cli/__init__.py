# ABOUTME: CLI package for Shelver, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.logging import RichHandler

from shelver.cli.commands import (
    confirm_cmd,
    edit_cmd,
    ingest_cmd,
    init_cmd,
    lookup_cmd,
    pending_cmd,
)
from shelver.cli.options import CliState
from shelver.config import Settings


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )


@click.group()
@click.version_option(package_name="shelver")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output.")
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Show raw upstream error details instead of generic messages.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """Shelver - turn book mentions into a confirmed, deduplicated library."""
    _configure_logging(verbose)
    settings = Settings()
    ctx.obj = CliState(settings=settings, debug=debug or settings.debug)


cli.add_command(init_cmd.init_catalog)
cli.add_command(ingest_cmd.ingest)
cli.add_command(pending_cmd.pending)
cli.add_command(edit_cmd.edit)
cli.add_command(edit_cmd.discard)
cli.add_command(confirm_cmd.confirm)
cli.add_command(lookup_cmd.lookup)
