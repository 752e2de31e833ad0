"""
Workout templates: validation, draft editing and persistence.

A template is a reusable prescription: ordered exercises, each with a
fixed list of target sets. Template and set ids stay stable for the life
of the template because carry-forward joins on them.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable

from ..io.serializers import as_float, as_int, parse_template, template_to_doc
from .config import DEFAULT_KG, DEFAULT_REPS, TEMPLATES_COLLECTION, TEMPLATE_DEFAULT_REPS
from .errors import TemplateValidationError, require
from .models import ExerciseRef, Template, TemplateExercise, TemplateSet
from .muscles import muscles_to_slugs
from .store import Query, StoreContext, Unsubscribe

logger = logging.getLogger(__name__)


def template_muscles(exercises: list[TemplateExercise]) -> list[str]:
    """Sorted union of the mapped muscles of every exercise."""
    slugs: set[str] = set()
    for ex in exercises:
        slugs |= muscles_to_slugs(ex.ref.primary_muscles, ex.ref.secondary_muscles)
    return sorted(slugs)


def validate_template(name: str, exercises: list[TemplateExercise]) -> None:
    """
    Check that a template may be saved.

    Raises:
        TemplateValidationError: If the name is blank, there are no exercises,
            or any exercise has no prescribed set
    """
    if not name or not name.strip():
        raise TemplateValidationError("Template name cannot be empty")
    if not exercises:
        raise TemplateValidationError("Template needs at least one exercise")
    for ex in exercises:
        if not ex.sets:
            label = ex.ref.name or ex.ref.exercise_id or ex.id
            raise TemplateValidationError(f"Exercise '{label}' needs at least one set")


# =============================================================================
# Draft editing (used while composing a template)
# =============================================================================


def default_template_sets(ctx: StoreContext) -> list[TemplateSet]:
    """Starting prescription for a newly added exercise: 12/10/8 reps at 0 kg."""
    return [TemplateSet(id=ctx.new_id(), target_reps=r, target_kg=DEFAULT_KG) for r in TEMPLATE_DEFAULT_REPS]


def template_exercises_from_refs(ctx: StoreContext, refs: list[ExerciseRef]) -> list[TemplateExercise]:
    """Wrap picked exercises as template slots with default sets."""
    return [TemplateExercise(id=ctx.new_id(), ref=ref, sets=default_template_sets(ctx)) for ref in refs]


def _edit(exercises: list[TemplateExercise], template_exercise_id: str, fn) -> list[TemplateExercise]:
    out = copy.deepcopy(exercises)
    for ex in out:
        if ex.id == template_exercise_id:
            fn(ex)
    return out


def add_template_set(
    ctx: StoreContext,
    exercises: list[TemplateExercise],
    template_exercise_id: str,
) -> list[TemplateExercise]:
    """Append a set copying the last set's values (8 reps at 0 kg when empty)."""

    def add(ex: TemplateExercise) -> None:
        last = ex.sets[-1] if ex.sets else None
        ex.sets.append(
            TemplateSet(
                id=ctx.new_id(),
                target_reps=last.target_reps if last else DEFAULT_REPS,
                target_kg=last.target_kg if last else DEFAULT_KG,
            )
        )

    return _edit(exercises, template_exercise_id, add)


def remove_template_set(
    exercises: list[TemplateExercise],
    template_exercise_id: str,
    template_set_id: str,
) -> list[TemplateExercise]:
    """Drop one set from a template exercise."""

    def remove(ex: TemplateExercise) -> None:
        ex.sets = [s for s in ex.sets if s.id != template_set_id]

    return _edit(exercises, template_exercise_id, remove)


def update_template_set(
    exercises: list[TemplateExercise],
    template_exercise_id: str,
    template_set_id: str,
    field: str,
    raw: str,
) -> list[TemplateExercise]:
    """
    Set ``target_reps`` or ``target_kg`` from user text.

    Blank input sets the field to 0; malformed or negative input keeps the
    previous value.
    """
    if field not in ("target_reps", "target_kg"):
        raise ValueError(f"Unknown template set field: {field!r}")

    def update(ex: TemplateExercise) -> None:
        for s in ex.sets:
            if s.id != template_set_id:
                continue
            previous = getattr(s, field)
            if field == "target_reps":
                value = 0 if not raw.strip() else as_int(raw, previous)
            else:
                value = 0.0 if not raw.strip() else as_float(raw.replace(",", "."), previous)
            if value >= 0:
                setattr(s, field, value)

    return _edit(exercises, template_exercise_id, update)


def remove_template_exercise(exercises: list[TemplateExercise], template_exercise_id: str) -> list[TemplateExercise]:
    """Drop an exercise slot."""
    return [copy.deepcopy(ex) for ex in exercises if ex.id != template_exercise_id]


# =============================================================================
# Persistence
# =============================================================================


class TemplateStore:
    """
    Saves and lists templates for one owner.

    Documents live in ``gymTemplates/{id}``.
    """

    def __init__(self, ctx: StoreContext):
        self.ctx = ctx

    def create(self, name: str, exercises: list[TemplateExercise]) -> str:
        """
        Validate and save a new template.

        Args:
            name: Display name (trimmed)
            exercises: Ordered exercise slots, each with at least one set

        Returns:
            The new template id

        Raises:
            TemplateValidationError: If the template is not valid
        """
        require(self.ctx.owner_id, "owner_id")
        validate_template(name, exercises)

        template = Template(
            id="",
            name=name.strip(),
            created_at=self.ctx.now_ms(),
            muscles_worked=template_muscles(exercises),
            exercises=copy.deepcopy(exercises),
        )
        template_id = self.ctx.store.create(self.ctx.owner_id, TEMPLATES_COLLECTION, template_to_doc(template))
        logger.info("Created template %s (%s, %d exercises)", template_id, template.name, len(exercises))
        return template_id

    def get(self, template_id: str) -> Template | None:
        """Return the template, or None if it does not exist."""
        require(self.ctx.owner_id, "owner_id")
        require(template_id, "template_id")
        doc = self.ctx.store.get(self.ctx.owner_id, TEMPLATES_COLLECTION, template_id)
        if doc is None:
            return None
        return parse_template(doc, template_id)

    def list(self) -> list[Template]:
        """All templates, newest first."""
        require(self.ctx.owner_id, "owner_id")
        rows = self.ctx.store.query(
            self.ctx.owner_id, TEMPLATES_COLLECTION, Query(order_by="createdAt", descending=True)
        )
        return [parse_template(doc, doc_id) for doc_id, doc in rows]

    def delete(self, template_id: str) -> None:
        """Delete a template. Sessions started from it keep their copy."""
        require(self.ctx.owner_id, "owner_id")
        require(template_id, "template_id")
        self.ctx.store.delete(self.ctx.owner_id, TEMPLATES_COLLECTION, template_id)
        logger.info("Deleted template %s", template_id)

    def subscribe(self, callback: Callable[[list[Template]], None]) -> Unsubscribe:
        """Deliver the template list now and after every change; returns unsubscribe."""
        require(self.ctx.owner_id, "owner_id")
        return self.ctx.store.subscribe(
            self.ctx.owner_id,
            TEMPLATES_COLLECTION,
            Query(order_by="createdAt", descending=True),
            lambda rows: callback([parse_template(doc, doc_id) for doc_id, doc in rows]),
        )
