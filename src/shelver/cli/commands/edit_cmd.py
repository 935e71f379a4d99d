# ABOUTME: The `shelver edit` and `shelver discard` commands for pending rows.
# ABOUTME: Edits may merge the row into an older duplicate; discard retires it.

from contextlib import closing
from pathlib import Path

import click
from rich.console import Console

from shelver.cli import factory
from shelver.cli.options import CliState, db_option, user_option
from shelver.core.queue import EDITABLE_FIELDS, ConfirmationQueue
from shelver.db.connection import open_store
from shelver.errors import ShelverError

console = Console()


@click.command()
@click.argument("row_id", type=int)
@click.argument("field_name", metavar="FIELD", type=click.Choice(EDITABLE_FIELDS))
@click.argument("value")
@click.option(
    "--enrich/--no-enrich",
    default=False,
    help="Refresh ISBN and year after a title or author edit (default: --no-enrich).",
)
@user_option
@db_option
@click.pass_obj
def edit(
    state: CliState,
    row_id: int,
    field_name: str,
    value: str,
    enrich: bool,
    user_id: int,
    db_path: Path | None,
) -> None:
    """Correct the title, author, year, or ISBN of a pending row."""
    with closing(open_store(state.db_path(db_path))) as conn:
        try:
            resolver = factory.create_resolver(state.settings, conn) if enrich else None
            queue = ConfirmationQueue(
                conn, matcher=factory.create_matcher(state.settings, conn), resolver=resolver
            )
            result = queue.update_field(user_id, row_id, field_name, value)
        except ShelverError as exc:
            console.print(f"[red]Error:[/red] {exc.user_message(state.debug)}")
            raise SystemExit(1) from exc

    row = result.row
    if result.merged_into is not None:
        console.print(f"Row {row_id} merged into existing row {result.merged_into}.")
    elif result.removed_id is not None:
        console.print(f"Removed duplicate row {result.removed_id}.")
    year = f" ({row.year})" if row.year else ""
    console.print(
        f"[green]Updated[/green] {row.id}: [bold]{row.title}[/bold] by {row.author}{year}"
    )


@click.command()
@click.argument("row_id", type=int)
@user_option
@db_option
@click.pass_obj
def discard(state: CliState, row_id: int, user_id: int, db_path: Path | None) -> None:
    """Discard a pending row."""
    with closing(open_store(state.db_path(db_path))) as conn:
        try:
            queue = ConfirmationQueue(conn, matcher=factory.create_matcher(state.settings, conn))
            row = queue.discard(user_id, row_id)
        except ShelverError as exc:
            console.print(f"[red]Error:[/red] {exc.user_message(state.debug)}")
            raise SystemExit(1) from exc

    console.print(f"Discarded [bold]{row.title}[/bold] by {row.author}.")
