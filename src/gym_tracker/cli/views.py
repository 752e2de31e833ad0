"""
Rich console output for the gym-tracker CLI.

Tables for exercises, templates, sessions, plans and weekly coverage,
plus the shared message helpers.
"""

from datetime import datetime, timedelta

from rich.console import Console
from rich.table import Table

from ..core.coverage import CoverageWeek
from ..core.exercises import CatalogExercise, build_tags
from ..core.exercises.registry import nice_label, subtitle, to_ref
from ..core.models import Plan, Session, Template
from ..core.muscles import SLUG_TO_GROUP
from ..core.store import from_millis
from ..core.tracker import elapsed_seconds, format_elapsed

console = Console()

STATUS_STYLES = {
    "in-progress": "yellow",
    "unfinished": "magenta",
    "finished": "green",
}


def _fmt_kg(kg: float | None) -> str:
    if kg is None:
        return "-"
    return f"{kg:g}"


def _fmt_reps(reps: int | None) -> str:
    return "-" if reps is None else str(reps)


def _fmt_ms(ms: int) -> str:
    return from_millis(ms).strftime("%Y-%m-%d %H:%M") if ms else "-"


def _fmt_status(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def print_exercises(exercises: list[CatalogExercise]) -> None:
    """Print catalog entries."""
    if not exercises:
        console.print("[yellow]No exercises match.[/yellow]")
        return

    table = Table(title="Exercises")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Region • Equipment")
    table.add_column("Tags", style="magenta")

    for ex in exercises:
        table.add_row(ex.exercise_id, ex.name, subtitle(to_ref(ex)), ", ".join(build_tags(ex)))

    console.print(table)


def print_templates(templates: list[Template]) -> None:
    """Print saved templates, newest first."""
    if not templates:
        console.print("[yellow]No templates saved yet.[/yellow]")
        return

    table = Table(title="Templates")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Created", style="cyan")
    table.add_column("Exercises")
    table.add_column("Muscles", style="green")

    for t in templates:
        exercises = ", ".join(f"{ex.ref.name} ({len(ex.sets)})" for ex in t.exercises)
        table.add_row(t.id, t.name, _fmt_ms(t.created_at), exercises, ", ".join(t.muscles_worked))

    console.print(table)


def print_session(
    session: Session,
    now_ms: int,
    previous: dict[str, tuple[int | None, float | None]] | None = None,
) -> None:
    """
    Print one session with its sets.

    Args:
        session: Session to display
        now_ms: Current time, for the elapsed clock of a running session
        previous: Session set id -> (reps, kg) done last time
    """
    previous = previous or {}
    elapsed = format_elapsed(elapsed_seconds(session, now_ms))

    console.print()
    console.print(
        f"[bold]{session.name}[/bold]  {_fmt_status(session.status)}  "
        f"[dim]started {_fmt_ms(session.started_at)} • {elapsed}[/dim]"
    )
    if session.muscles_worked:
        console.print(f"[dim]Muscles: {', '.join(session.muscles_worked)}[/dim]")

    for ex_no, ex in enumerate(session.exercises, 1):
        mark = "[green]✓[/green]" if ex.done else " "
        table = Table(
            title=f"{mark} {ex_no}. {ex.ref.name or ex.ref.exercise_id}",
            title_justify="left",
            show_header=True,
            header_style="dim",
        )
        table.add_column("Set", justify="right", width=3)
        table.add_column("Previous", style="dim")
        table.add_column("kg", justify="right")
        table.add_column("Reps", justify="right")
        table.add_column("Done", justify="center")

        for set_no, s in enumerate(ex.sets, 1):
            prev = previous.get(s.id)
            prev_str = f"{_fmt_kg(prev[1])} kg x {_fmt_reps(prev[0])}" if prev else "-"
            table.add_row(
                str(set_no),
                prev_str,
                _fmt_kg(s.target_kg),
                _fmt_reps(s.target_reps),
                "[green]✓[/green]" if s.done else "·",
            )
        console.print(table)


def print_history(sessions: list[Session], now_ms: int) -> None:
    """Print recent sessions, newest first."""
    if not sessions:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return

    table = Table(title="Workout History")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Started", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Sets done", justify="right")
    table.add_column("ID", style="dim")

    for i, s in enumerate(sessions, 1):
        total = sum(len(ex.sets) for ex in s.exercises)
        done = sum(1 for ex in s.exercises for st in ex.sets if st.done)
        table.add_row(
            str(i),
            _fmt_ms(s.started_at),
            s.name,
            _fmt_status(s.status),
            format_elapsed(elapsed_seconds(s, now_ms)),
            f"{done}/{total}",
            s.id,
        )

    console.print(table)


def print_week(week: CoverageWeek) -> None:
    """Print muscle coverage for one week window."""
    last_day: datetime = week.end - timedelta(days=1)
    console.print()
    console.print(
        f"[bold]Week of {week.start.strftime('%a %d %b %Y')}[/bold] – {last_day.strftime('%a %d %b')}"
        f"  [dim]({len(week.sessions)} sessions)[/dim]"
    )
    if not week.slugs:
        console.print("[yellow]No muscles trained this week.[/yellow]")
        return

    table = Table(show_header=True, header_style="dim")
    table.add_column("Group", style="bold")
    table.add_column("Muscles", style="green")

    for group in sorted(week.groups):
        members = sorted(s for s in week.slugs if SLUG_TO_GROUP.get(s, "other") == group)
        table.add_row(nice_label(group), ", ".join(members))

    console.print(table)


def print_plan(plan: Plan) -> None:
    """Print a plan's workouts and their current prescriptions."""
    console.print()
    console.print(f"[bold]{plan.title}[/bold] [dim]({plan.id})[/dim]")

    for w in plan.workouts:
        table = Table(title=f"{w.name} [dim]({w.id})[/dim]", title_justify="left", header_style="dim")
        table.add_column("Exercise", style="bold")
        table.add_column("Sets", justify="right")
        table.add_column("Reps", justify="right")
        table.add_column("Weight", justify="right", style="cyan")
        table.add_column("Step", justify="right", style="dim")
        table.add_column("Rest", justify="right", style="dim")

        for it in w.items:
            table.add_row(
                it.name or it.exercise_id,
                str(it.sets),
                f"{it.rep_min}-{it.rep_max}",
                f"{it.current_weight_kg:g} kg",
                f"+{it.step_kg:g}",
                f"{it.rest_sec}s",
            )
        console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
