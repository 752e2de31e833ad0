"""Template commands: exercises, template-create, templates, template-delete."""

from typing import Annotated, Optional

import typer

from ...core.errors import GymTrackerError
from ...core.exercises import get_catalog
from ...core.models import TemplateExercise, TemplateSet
from ...core.templates import TemplateStore, template_exercises_from_refs
from ...io.serializers import ValidationError, parse_sets_string
from .. import views
from ..app import DataDirOption, OwnerOption, app, get_context


@app.command()
def exercises(
    search: Annotated[
        str,
        typer.Option("--search", "-s", help="Substring of the exercise name"),
    ] = "",
    tag: Annotated[
        Optional[list[str]],
        typer.Option("--tag", "-t", help="Required tag (repeatable), e.g. Dumbbell, Arms"),
    ] = None,
) -> None:
    """
    List catalog exercises.
    """
    try:
        catalog = get_catalog()
    except RuntimeError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_exercises(catalog.search(search, tag or []))


@app.command("template-create")
def template_create(
    name: Annotated[str, typer.Argument(help="Template name")],
    exercise: Annotated[
        list[str],
        typer.Option("--exercise", "-x", help="Catalog exercise id (repeatable, in order)"),
    ],
    sets: Annotated[
        Optional[list[str]],
        typer.Option(
            "--sets",
            help="Sets for the exercise at the same position, e.g. 3x8@60 or 12@20,10@25,8@30 "
            "(default: 12/10/8 reps at 0 kg)",
        ),
    ] = None,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Save a new workout template.

    Example:
        gym-tracker template-create "Push" -x Barbell_Bench_Press_-_Medium_Grip --sets 3x8@60
    """
    ctx = get_context(data_dir, owner)
    sets = sets or []

    try:
        catalog = get_catalog()
        refs = [catalog.ref(exercise_id) for exercise_id in exercise]
        slots = template_exercises_from_refs(ctx, refs)

        prescribed: list[TemplateExercise] = []
        for i, slot in enumerate(slots):
            if i < len(sets):
                slot = TemplateExercise(
                    id=slot.id,
                    ref=slot.ref,
                    sets=[
                        TemplateSet(id=ctx.new_id(), target_reps=reps, target_kg=kg)
                        for reps, kg in parse_sets_string(sets[i])
                    ],
                )
            prescribed.append(slot)

        template_id = TemplateStore(ctx).create(name, prescribed)
    except (ValueError, ValidationError, GymTrackerError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Saved template '{name.strip()}' ({template_id})")


@app.command()
def templates(
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    List saved templates, newest first.
    """
    ctx = get_context(data_dir, owner)
    try:
        items = TemplateStore(ctx).list()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_templates(items)


@app.command("template-delete")
def template_delete(
    template_id: Annotated[str, typer.Argument(help="Template id (see 'templates')")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
    data_dir: DataDirOption = None,
    owner: OwnerOption = "local",
) -> None:
    """
    Delete a template. Sessions started from it are kept.
    """
    store = TemplateStore(get_context(data_dir, owner))

    template = store.get(template_id)
    if template is None:
        views.print_error(f"Template not found: {template_id}")
        raise typer.Exit(1)

    if not force and not views.confirm_action(f"Delete template '{template.name}'?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    store.delete(template_id)
    views.print_success(f"Deleted template '{template.name}'")
