"""Shared Typer app object, shared option types, and store utility."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.logging import RichHandler

from ..core.store import StoreContext
from ..io.document_store import JsonDocumentStore, get_default_data_dir

DEFAULT_OWNER = "local"

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Data directory (default: ~/.gym-tracker)"),
]

# Shared --owner option type used across all commands
OwnerOption = Annotated[
    str,
    typer.Option("--owner", "-o", help="Owner id the data belongs to"),
]

app = typer.Typer(
    name="gym-tracker",
    help="Gym workout tracker: templates, sessions with carry-forward, progressive overload.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log store writes and lifecycle events"),
    ] = False,
) -> None:
    """
    Track gym workouts from the terminal.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(rich_tracebacks=True)],
        )


def get_context(data_dir: Path | None, owner: str = DEFAULT_OWNER) -> StoreContext:
    """Store context for the given data directory, or the default location."""
    if data_dir is None:
        data_dir = get_default_data_dir()
    return StoreContext(owner_id=owner, store=JsonDocumentStore(data_dir))
