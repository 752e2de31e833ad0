"""Session commands: start, show, toggle, edit, add-set, finish, history."""

from typing import Annotated, Optional

import typer

from ...core.errors import GymTrackerError
from ...core.exercises import get_catalog
from ...core.models import Session, SessionExercise, SessionSet
from ...core.session_factory import SessionFactory
from ...core.sessions import SessionRepository, is_unfinished
from ...core.store import StoreContext
from ...core.templates import TemplateStore
from ...core.tracker import add_set as add_session_set
from ...core.tracker import edit_set, finish as finish_session, previous_set_values, toggle_set
from .. import views
from ..app import DataDirOption, OwnerOption, app, get_context

SessionIdArg = Annotated[str, typer.Argument(help="Session id (see 'history')")]
ExerciseNoArg = Annotated[int, typer.Argument(help="Exercise number as shown by 'show' (1-based)")]
SetNoArg = Annotated[int, typer.Argument(help="Set number as shown by 'show' (1-based)")]


def _load(repo: SessionRepository, session_id: str) -> Session:
    session = repo.get(session_id)
    if session is None:
        views.print_error(f"Session not found: {session_id}")
        raise typer.Exit(1)
    return session


def _exercise_at(session: Session, exercise_no: int) -> SessionExercise:
    if exercise_no < 1 or exercise_no > len(session.exercises):
        views.print_error(f"Exercise number must be between 1 and {len(session.exercises)}")
        raise typer.Exit(1)
    return session.exercises[exercise_no - 1]


def _set_at(ex: SessionExercise, set_no: int) -> SessionSet:
    if set_no < 1 or set_no > len(ex.sets):
        views.print_error(f"Set number must be between 1 and {len(ex.sets)}")
        raise typer.Exit(1)
    return ex.sets[set_no - 1]


def _show(ctx: StoreContext, repo: SessionRepository, session: Session) -> None:
    previous = None
    if session.template_id:
        previous = repo.previous_for_template(session.template_id, exclude_session_id=session.id)
    views.print_session(session, ctx.now_ms(), previous_set_values(previous, session))


@app.command()
def start(
    template: Annotated[
        Optional[str],
        typer.Option("--template", "-t", help="Template id to start from"),
    ] = None,
    exercise: Annotated[
        Optional[list[str]],
        typer.Option("--exercise", "-x", help="Catalog exercise id for an ad-hoc session (repeatable)"),
    ] = None,
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Name of an ad-hoc session"),
    ] = "Workout",
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Start a workout session.

    From a template, each exercise carries forward the sets you did last
    time. Without a template, each exercise gets three sets of 8 reps.
    """
    ctx = get_context(data_dir, owner)
    repo = SessionRepository(ctx)
    factory = SessionFactory(ctx, repo)

    if bool(template) == bool(exercise):
        views.print_error("Give either --template or at least one --exercise")
        raise typer.Exit(1)

    try:
        if template:
            tpl = TemplateStore(ctx).get(template)
            if tpl is None:
                views.print_error(f"Template not found: {template}")
                raise typer.Exit(1)
            session = factory.start_from_template(tpl)
        else:
            catalog = get_catalog()
            session = factory.start_from_exercises([catalog.ref(x) for x in exercise or []], name)
    except (ValueError, GymTrackerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Started '{session.name}' ({session.id})")
    _show(ctx, repo, session)


@app.command()
def show(
    session_id: SessionIdArg,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Show a session with the values done last time.
    """
    ctx = get_context(data_dir, owner)
    repo = SessionRepository(ctx)
    _show(ctx, repo, _load(repo, session_id))


@app.command()
def toggle(
    session_id: SessionIdArg,
    exercise_no: ExerciseNoArg,
    set_no: SetNoArg,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Mark a set done, or not done if it already was.
    """
    ctx = get_context(data_dir, owner)
    repo = SessionRepository(ctx)
    session = _load(repo, session_id)
    ex = _exercise_at(session, exercise_no)
    s = _set_at(ex, set_no)

    try:
        updated = toggle_set(session, ex.id, s.id)
    except GymTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    repo.save(updated)
    _show(ctx, repo, updated)


@app.command()
def edit(
    session_id: SessionIdArg,
    exercise_no: ExerciseNoArg,
    set_no: SetNoArg,
    reps: Annotated[
        Optional[str],
        typer.Option("--reps", "-r", help="Reps (empty string clears the value)"),
    ] = None,
    kg: Annotated[
        Optional[str],
        typer.Option("--kg", "-k", help="Weight in kg (empty string clears the value)"),
    ] = None,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Change the reps or weight of a set.

    Malformed numbers are ignored and the previous value is kept.
    """
    if reps is None and kg is None:
        views.print_error("Give --reps and/or --kg")
        raise typer.Exit(1)

    ctx = get_context(data_dir, owner)
    repo = SessionRepository(ctx)
    session = _load(repo, session_id)
    ex = _exercise_at(session, exercise_no)
    s = _set_at(ex, set_no)

    try:
        if reps is not None:
            session = edit_set(session, ex.id, s.id, "target_reps", reps)
        if kg is not None:
            session = edit_set(session, ex.id, s.id, "target_kg", kg)
    except GymTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    repo.save(session)
    _show(ctx, repo, session)


@app.command("add-set")
def add_set(
    session_id: SessionIdArg,
    exercise_no: ExerciseNoArg,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Add a set to an exercise, copying the last set's values.
    """
    ctx = get_context(data_dir, owner)
    repo = SessionRepository(ctx)
    session = _load(repo, session_id)
    ex = _exercise_at(session, exercise_no)

    try:
        updated = add_session_set(session, ex.id, ctx.new_id())
    except GymTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    repo.save(updated)
    _show(ctx, repo, updated)


@app.command()
def finish(
    session_id: SessionIdArg,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Finish even if some sets are not done"),
    ] = False,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Finish a session.

    With sets left undone the session is saved as 'unfinished' after
    confirmation.
    """
    ctx = get_context(data_dir, owner)
    repo = SessionRepository(ctx)
    session = _load(repo, session_id)

    confirm = yes
    if not confirm and not session.is_locked and is_unfinished(session):
        confirm = views.confirm_action("Some sets are not done. Finish anyway?")

    try:
        updated = finish_session(session, confirm, ctx.now_ms())
    except GymTrackerError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if updated == session:
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    repo.save(updated)
    if updated.status == "finished":
        views.print_success(f"Finished '{updated.name}'")
    else:
        views.print_warning(f"'{updated.name}' saved as unfinished")


@app.command()
def history(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Number of recent sessions"),
    ] = 10,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Show recent sessions, newest first.
    """
    ctx = get_context(data_dir, owner)
    views.print_history(SessionRepository(ctx).recent(limit), ctx.now_ms())
