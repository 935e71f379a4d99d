# ABOUTME: The `shelver lookup` command querying external providers for one book.
# ABOUTME: Shows the best match above the configured floor, or only its year with --year.

from contextlib import closing
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelver.cli import factory
from shelver.cli.options import CliState, db_option
from shelver.db.connection import open_store

console = Console()


@click.command()
@click.argument("title")
@click.argument("author")
@click.option("--year", "year_only", is_flag=True, default=False, help="Only look up the year.")
@db_option
@click.pass_obj
def lookup(
    state: CliState, title: str, author: str, year_only: bool, db_path: Path | None
) -> None:
    """Find a book in the external bibliographic providers."""
    with closing(open_store(state.db_path(db_path))) as conn:
        resolver = factory.create_resolver(state.settings, conn)
        if year_only:
            year = resolver.lookup_year(title, author)
            if year is None:
                console.print("[yellow]No year found.[/yellow]")
                raise SystemExit(1)
            console.print(str(year))
            return
        best = resolver.search_best_match(title, author)

    if best is None:
        console.print("[yellow]No confident match found.[/yellow]")
        raise SystemExit(1)

    table = Table(show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Title", best.title)
    table.add_row("Author", best.author or "[dim]unknown[/dim]")
    table.add_row("Year", str(best.year) if best.year else "[dim]unknown[/dim]")
    table.add_row("ISBN", best.isbn or "[dim]none[/dim]")
    table.add_row("Source", best.source)
    table.add_row("Score", f"{best.score:.1f}")
    console.print(table)
