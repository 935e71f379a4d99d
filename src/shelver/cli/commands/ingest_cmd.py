# ABOUTME: The `shelver ingest` command: extract books from text, audio, or a photo and queue them.
# ABOUTME: Prints what was queued and what the user already owns.

from contextlib import closing
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelver.cli import factory
from shelver.cli.options import CliState, db_option, user_option
from shelver.core.ingest import IngestResult, Ingestor
from shelver.core.queue import ConfirmationQueue
from shelver.db.connection import open_store
from shelver.errors import ShelverError

console = Console()


def _print_result(result: IngestResult) -> None:
    if result.items:
        table = Table()
        table.add_column("Title", style="bold")
        table.add_column("Author")
        table.add_column("Year", justify="right")
        table.add_column("Status")
        for item in result.items:
            status = "[yellow]in shelf[/yellow]" if item["in_shelf"] else "[green]queued[/green]"
            year = str(item["year"]) if item["year"] else "[dim]-[/dim]"
            table.add_row(item["title"], item["author"], year, status)
        console.print(table)
    console.print(f"Queued {result.queued}, skipped {result.skipped}.")


@click.command()
@click.argument("text", required=False)
@click.option(
    "--audio",
    "audio_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Audio recording to transcribe.",
)
@click.option(
    "--image",
    "image_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Photo of book spines or covers.",
)
@click.option(
    "--enrich/--no-enrich",
    default=False,
    help="Look up ISBN and year for new candidates (default: --no-enrich).",
)
@user_option
@db_option
@click.pass_obj
def ingest(
    state: CliState,
    text: str | None,
    audio_path: Path | None,
    image_path: Path | None,
    enrich: bool,
    user_id: int,
    db_path: Path | None,
) -> None:
    """Extract book mentions and add new ones to the confirmation queue."""
    sources = [s for s in (text, audio_path, image_path) if s is not None]
    if len(sources) != 1:
        raise click.UsageError("Provide exactly one of TEXT, --audio, or --image.")

    with closing(open_store(state.db_path(db_path))) as conn:
        try:
            resolver = factory.create_resolver(state.settings, conn) if enrich else None
            queue = ConfirmationQueue(
                conn, matcher=factory.create_matcher(state.settings, conn), resolver=resolver
            )
            ingestor = Ingestor(queue, factory.create_extractor(state.settings))
            if audio_path is not None:
                result = ingestor.ingest_audio(user_id, audio_path)
            elif image_path is not None:
                result = ingestor.ingest_image(user_id, image_path)
            else:
                result = ingestor.ingest_text(user_id, text or "")
        except ShelverError as exc:
            console.print(f"[red]Error:[/red] {exc.user_message(state.debug)}")
            raise SystemExit(1) from exc

    _print_result(result)
