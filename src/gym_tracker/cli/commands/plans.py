"""Plan commands: plan-create, plan-show, plan-log."""

from typing import Annotated, Optional

import typer

from ...core.errors import GymTrackerError
from ...core.exercises import get_catalog
from ...core.models import PerformedExercise, PerformedSet, Plan, Workout
from ...core.overload import PlanStore, performed_from_session, plan_item_from_ref
from ...core.sessions import SessionRepository
from ...io.serializers import ValidationError, parse_sets_string
from .. import views
from ..app import DataDirOption, OwnerOption, app, get_context


def _split_pair(raw: str, what: str) -> tuple[str, str]:
    """'Name=rest' → ('Name', 'rest')."""
    name, sep, rest = raw.partition("=")
    if not sep or not name.strip() or not rest.strip():
        raise ValidationError(f"Invalid {what}: '{raw}'. Use NAME=VALUE.")
    return name.strip(), rest.strip()


def _find_workout(plan: Plan, key: str) -> Workout | None:
    """Workout by id, else by case-insensitive name."""
    found = plan.find_workout(key)
    if found is not None:
        return found
    for w in plan.workouts:
        if w.name.lower() == key.lower():
            return w
    return None


@app.command("plan-create")
def plan_create(
    title: Annotated[str, typer.Argument(help="Plan title")],
    workout: Annotated[
        list[str],
        typer.Option(
            "--workout",
            "-w",
            help="Workout as NAME=EXERCISE_ID,EXERCISE_ID,... (repeatable)",
        ),
    ],
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Create a plan of workouts.

    Each exercise starts at 3 sets of 6-10 reps, 0 kg, +2.5 kg per step.

    Example:
        gym-tracker plan-create "5 day split" -w "Push=Barbell_Bench_Press_-_Medium_Grip,Triceps_Pushdown"
    """
    ctx = get_context(data_dir, owner)

    try:
        catalog = get_catalog()
        workouts: list[Workout] = []
        for raw in workout:
            name, ids = _split_pair(raw, "workout")
            items = [plan_item_from_ref(catalog.ref(x.strip())) for x in ids.split(",") if x.strip()]
            workouts.append(Workout(id=ctx.new_id(), name=name, items=items))
        plan_id = PlanStore(ctx).create(title, workouts)
    except (ValueError, ValidationError, GymTrackerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Created plan '{title.strip()}' ({plan_id})")


@app.command("plan-show")
def plan_show(
    plan_id: Annotated[
        Optional[str],
        typer.Argument(help="Plan id; omit to show every plan"),
    ] = None,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Show plans with their current working weights.
    """
    store = PlanStore(get_context(data_dir, owner))

    if plan_id is None:
        plans = store.list()
        if not plans:
            views.print_info("No plans yet. Create one with 'plan-create'.")
            return
        for plan in plans:
            views.print_plan(plan)
        return

    plan = store.get(plan_id)
    if plan is None:
        views.print_error(f"Plan not found: {plan_id}")
        raise typer.Exit(1)
    views.print_plan(plan)


@app.command("plan-log")
def plan_log(
    plan_id: Annotated[str, typer.Argument(help="Plan id")],
    workout_key: Annotated[str, typer.Argument(metavar="WORKOUT", help="Workout id or name")],
    performed: Annotated[
        Optional[list[str]],
        typer.Option(
            "--performed",
            "-p",
            help="Performed sets as EXERCISE_ID=8@50,8@50,7@50 (repeatable)",
        ),
    ] = None,
    session_id: Annotated[
        Optional[str],
        typer.Option("--session", "-s", help="Take performed sets from the done sets of a session"),
    ] = None,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Log a performed plan workout and apply progressive overload.

    An exercise's weight goes up by its step only when every prescribed
    set reached the minimum reps.
    """
    ctx = get_context(data_dir, owner)
    store = PlanStore(ctx)

    plan = store.get(plan_id)
    if plan is None:
        views.print_error(f"Plan not found: {plan_id}")
        raise typer.Exit(1)
    workout = _find_workout(plan, workout_key)
    if workout is None:
        views.print_error(f"Workout not found in plan: {workout_key}")
        raise typer.Exit(1)

    try:
        if session_id:
            session = SessionRepository(ctx).get(session_id)
            if session is None:
                views.print_error(f"Session not found: {session_id}")
                raise typer.Exit(1)
            done = performed_from_session(session)
        else:
            done = []
            for raw in performed or []:
                exercise_id, sets_str = _split_pair(raw, "performed sets")
                sets = [PerformedSet(reps=r, weight_kg=kg) for r, kg in parse_sets_string(sets_str)]
                done.append(PerformedExercise(exercise_id=exercise_id, sets=sets))
        updated = store.log_workout(plan.id, workout.id, done)
    except (ValidationError, GymTrackerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    before = {it.exercise_id: it.current_weight_kg for it in workout.items}
    after = updated.find_workout(workout.id)
    for it in after.items if after else []:
        old = before.get(it.exercise_id, it.current_weight_kg)
        if it.current_weight_kg > old:
            views.print_success(f"{it.name or it.exercise_id}: {old:g} kg → {it.current_weight_kg:g} kg")
        else:
            views.print_info(f"{it.name or it.exercise_id}: stays at {it.current_weight_kg:g} kg")
