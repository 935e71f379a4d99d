# ABOUTME: Shared Click options and helpers for Shelver CLI commands.
# ABOUTME: Provides reusable decorators for --db and --user plus the per-invocation state.

from dataclasses import dataclass
from pathlib import Path

import click

from shelver.config import Settings
from shelver.db.connection import DEFAULT_DB_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to the Shelver database (default: {DEFAULT_DB_PATH})",
)

user_option = click.option(
    "--user",
    "user_id",
    type=click.IntRange(min=1),
    required=True,
    help="ID of the user whose queue and shelf are used.",
)


@dataclass
class CliState:
    """Settings and flags shared by every subcommand."""

    settings: Settings
    debug: bool = False

    def db_path(self, override: Path | None) -> Path:
        return override or self.settings.db_path
