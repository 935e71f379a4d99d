# ABOUTME: The `shelver confirm` command adding pending rows to the user's library.
# ABOUTME: Confirms the given row IDs, or every pending row with --all.

from contextlib import closing
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from shelver.cli import factory
from shelver.cli.options import CliState, db_option, user_option
from shelver.core.committer import ConfirmationCommitter, ConfirmResult
from shelver.db.connection import open_store
from shelver.db.queue import STATUS_PENDING, PendingStore
from shelver.errors import ShelverError

console = Console()


def _print_result(result: ConfirmResult) -> None:
    table = Table()
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Book", justify="right")
    table.add_column("Result")
    for detail in result.details:
        if detail.ok:
            outcome = "[green]added[/green]" if detail.created else f"[cyan]{detail.method}[/cyan]"
            table.add_row(detail.title, detail.author, str(detail.book_id), outcome)
        else:
            table.add_row(detail.title, detail.author, "", f"[red]{detail.error}[/red]")
    console.print(table)
    summary = f"Confirmed {result.confirmed}"
    if result.errors:
        summary += f", [red]{result.errors} failed[/red]"
    console.print(summary + ".")


@click.command()
@click.argument("row_ids", nargs=-1, type=int)
@click.option(
    "--all", "confirm_all", is_flag=True, default=False, help="Confirm every pending row."
)
@user_option
@db_option
@click.pass_obj
def confirm(
    state: CliState,
    row_ids: tuple[int, ...],
    confirm_all: bool,
    user_id: int,
    db_path: Path | None,
) -> None:
    """Add pending rows to the user's library."""
    if bool(row_ids) == confirm_all:
        raise click.UsageError("Give ROW_IDS or --all, not both or neither.")

    with closing(open_store(state.db_path(db_path))) as conn:
        matcher = factory.create_matcher(state.settings, conn)
        committer = ConfirmationCommitter(conn, matcher=matcher)
        try:
            if confirm_all:
                result = committer.confirm_all(user_id)
            else:
                store = PendingStore(conn)
                items: list[dict[str, Any]] = []
                for row_id in row_ids:
                    row = store.get(row_id)
                    if row is None or row.user_id != user_id or row.status != STATUS_PENDING:
                        console.print(f"[yellow]Skipping row {row_id}: not pending.[/yellow]")
                        continue
                    items.append(
                        {
                            "title": row.title,
                            "author": row.author,
                            "year": row.year,
                            "isbn": row.external_isbn,
                        }
                    )
                result = committer.confirm(user_id, items)
        except ShelverError as exc:
            console.print(f"[red]Error:[/red] {exc.user_message(state.debug)}")
            raise SystemExit(1) from exc

    if not result.details:
        console.print("[yellow]Nothing to confirm.[/yellow]")
        return
    _print_result(result)
    if result.errors:
        raise SystemExit(1)
