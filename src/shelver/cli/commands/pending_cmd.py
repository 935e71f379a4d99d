# ABOUTME: The `shelver pending` command listing a user's confirmation queue.
# ABOUTME: Flags rows the user already owns so they can be discarded.

from contextlib import closing
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelver.cli import factory
from shelver.cli.options import CliState, db_option, user_option
from shelver.core.queue import ConfirmationQueue
from shelver.db.connection import open_store
from shelver.errors import ShelverError

console = Console()


@click.command()
@click.option("--limit", type=click.IntRange(min=1), default=200, help="Maximum rows to show.")
@user_option
@db_option
@click.pass_obj
def pending(state: CliState, limit: int, user_id: int, db_path: Path | None) -> None:
    """List candidates waiting for confirmation, newest first."""
    with closing(open_store(state.db_path(db_path))) as conn:
        try:
            queue = ConfirmationQueue(conn, matcher=factory.create_matcher(state.settings, conn))
            views = queue.list_pending(user_id, limit=limit)
        except ShelverError as exc:
            console.print(f"[red]Error:[/red] {exc.user_message(state.debug)}")
            raise SystemExit(1) from exc

    if not views:
        console.print("[yellow]Nothing pending.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Year", justify="right")
    table.add_column("ISBN")
    table.add_column("Match", style="dim")
    table.add_column("In shelf")

    for view in views:
        row = view.row
        table.add_row(
            str(row.id),
            row.title,
            row.author,
            str(row.year) if row.year else "",
            row.external_isbn or "",
            row.match_method or "",
            "[yellow]yes[/yellow]" if view.in_shelf else "",
        )

    console.print(table)
    console.print(f"[dim]{len(views)} pending[/dim]")
