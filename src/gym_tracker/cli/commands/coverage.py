"""Coverage command: week."""

from typing import Annotated

import typer

from ...core.coverage import CoverageService
from .. import views
from ..app import DataDirOption, OwnerOption, app, get_context


@app.command()
def week(
    offset: Annotated[
        int,
        typer.Option("--offset", help="Weeks back from the current week (e.g. -1 for last week)"),
    ] = 0,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Show the muscles trained in a week (Monday to Sunday).

    Future weeks are never shown; a positive offset means this week.
    """
    ctx = get_context(data_dir, owner)
    views.print_week(CoverageService(ctx).week(offset))
