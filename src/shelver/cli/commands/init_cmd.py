# ABOUTME: The `shelver init-catalog` command that installs the catalog tables.
# ABOUTME: Stands in for the collaborator that normally owns books and user_books.

from contextlib import closing
from pathlib import Path

import click
from rich.console import Console

from shelver.cli.options import CliState, db_option
from shelver.db.connection import install_catalog_schema, open_store

console = Console()


@click.command("init-catalog")
@db_option
@click.pass_obj
def init_catalog(state: CliState, db_path: Path | None) -> None:
    """Create the books and user_books tables if they are missing."""
    path = state.db_path(db_path)
    with closing(open_store(path)) as conn:
        install_catalog_schema(conn)
    console.print(f"Catalog ready at [bold]{path}[/bold].")
