"""
Progressive overload for plan workouts, and plan persistence.

The rule is increase-only: an exercise's working weight goes up by its
step once every prescribed set reached the minimum rep count. Anything
short of that leaves the weight where it is. There is no deload path.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from ..io.serializers import as_float, as_int, parse_plan, performed_to_doc, plan_to_doc, workouts_to_doc
from .config import (
    PLAN_DEFAULT_REP_MAX,
    PLAN_DEFAULT_REP_MIN,
    PLAN_DEFAULT_REST_SEC,
    PLAN_DEFAULT_SETS,
    PLAN_DEFAULT_STEP_KG,
    PLAN_LOGS_COLLECTION,
    PLANS_COLLECTION,
)
from .errors import PreconditionError, require
from .models import ExerciseRef, PerformedExercise, PerformedSet, Plan, PlanExercise, Session, Workout
from .store import Query, StoreContext

logger = logging.getLogger(__name__)


def meets_threshold(item: PlanExercise, sets: list[PerformedSet]) -> bool:
    """
    True if the performed sets earn a weight increase.

    Only the first ``item.sets`` performed sets count; extra sets are
    ignored. Fewer sets than prescribed, or any counted set below
    ``rep_min``, fails the threshold.
    """
    if item.sets <= 0:
        return False
    used = sets[: item.sets]
    if len(used) < item.sets:
        return False
    return all(s.reps >= item.rep_min for s in used)


def apply_progressive_overload(plan: Plan, workout_id: str, performed: list[PerformedExercise]) -> Plan:
    """
    Return a copy of ``plan`` with weights raised where earned.

    Each prescribed exercise of the workout is judged on its own: one
    exercise missing its threshold never blocks another's increase.

    Args:
        plan: Plan to progress
        workout_id: Workout that was performed
        performed: What the user did, per exercise

    Returns:
        Updated plan (unchanged copy if the workout is not in the plan)
    """
    out = copy.deepcopy(plan)
    workout = out.find_workout(workout_id)
    if workout is None:
        logger.warning("Workout %s not found in plan %s; nothing to progress", workout_id, plan.id)
        return out

    by_exercise = {p.exercise_id: p.sets for p in performed}
    for item in workout.items:
        if item.step_kg <= 0:
            continue
        if meets_threshold(item, by_exercise.get(item.exercise_id, [])):
            before = item.current_weight_kg
            item.current_weight_kg = before + item.step_kg
            logger.info(
                "Overload %s: %.2f kg -> %.2f kg", item.exercise_id, before, item.current_weight_kg
            )
    return out


def performed_from_inputs(workout: Workout, inputs: dict[str, list[dict[str, Any]]]) -> list[PerformedExercise]:
    """
    Convert raw per-set text inputs to performed exercises.

    Args:
        workout: Workout whose items define the exercise order
        inputs: exercise id -> list of {"reps": str, "weightKg": str}

    Returns:
        One PerformedExercise per workout item; unparseable values become 0
    """
    out: list[PerformedExercise] = []
    for item in workout.items:
        sets = [
            PerformedSet(
                reps=max(as_int(row.get("reps")), 0),
                weight_kg=max(as_float(str(row.get("weightKg", "")).replace(",", ".")), 0.0),
            )
            for row in inputs.get(item.exercise_id, [])
        ]
        out.append(PerformedExercise(exercise_id=item.exercise_id, sets=sets))
    return out


def performed_from_session(session: Session) -> list[PerformedExercise]:
    """Performed sets of a tracked session: its done sets, cleared values as 0."""
    out: list[PerformedExercise] = []
    for ex in session.exercises:
        sets = [
            PerformedSet(reps=s.target_reps or 0, weight_kg=s.target_kg or 0.0)
            for s in ex.sets
            if s.done
        ]
        out.append(PerformedExercise(exercise_id=ex.ref.exercise_id, sets=sets))
    return out


def plan_item_from_ref(ref: ExerciseRef) -> PlanExercise:
    """Prescription for an exercise newly added to a plan workout."""
    return PlanExercise(
        exercise_id=ref.exercise_id,
        name=ref.name,
        image_url=ref.image,
        primary_muscles=list(ref.primary_muscles),
        secondary_muscles=list(ref.secondary_muscles),
        sets=PLAN_DEFAULT_SETS,
        rep_min=PLAN_DEFAULT_REP_MIN,
        rep_max=PLAN_DEFAULT_REP_MAX,
        rest_sec=PLAN_DEFAULT_REST_SEC,
        current_weight_kg=0.0,
        step_kg=PLAN_DEFAULT_STEP_KG,
        require_all_sets=True,
    )


class PlanStore:
    """Plans and workout logs for one owner."""

    def __init__(self, ctx: StoreContext):
        self.ctx = ctx

    def _owner(self) -> str:
        return require(self.ctx.owner_id, "owner_id")

    def get(self, plan_id: str) -> Plan | None:
        """Return the plan, or None if it does not exist."""
        owner = self._owner()
        require(plan_id, "plan_id")
        doc = self.ctx.store.get(owner, PLANS_COLLECTION, plan_id)
        return parse_plan(doc, plan_id) if doc is not None else None

    def list(self) -> list[Plan]:
        """All plans ordered by title."""
        rows = self.ctx.store.query(self._owner(), PLANS_COLLECTION, Query(order_by="title", descending=False))
        return [parse_plan(doc, doc_id) for doc_id, doc in rows]

    def create(self, title: str, workouts: list[Workout]) -> str:
        """Save a new plan and return its id."""
        owner = self._owner()
        if not title or not title.strip():
            raise PreconditionError("Plan title cannot be empty")
        plan = Plan(id="", title=title.strip(), workouts=copy.deepcopy(workouts))
        plan_id = self.ctx.store.create(owner, PLANS_COLLECTION, plan_to_doc(plan))
        logger.info("Created plan %s (%s)", plan_id, plan.title)
        return plan_id

    def delete(self, plan_id: str) -> None:
        """Delete a plan. Its workout logs are kept."""
        owner = self._owner()
        require(plan_id, "plan_id")
        self.ctx.store.delete(owner, PLANS_COLLECTION, plan_id)

    def log_workout(self, plan_id: str, workout_id: str, performed: list[PerformedExercise]) -> Plan:
        """
        Record a performed plan workout and progress the plan.

        Writes a log entry to ``gymPlanLogs``, applies progressive overload
        and saves the updated workouts.

        Returns:
            The updated plan

        Raises:
            PreconditionError: If the plan or the workout does not exist
        """
        owner = self._owner()
        require(workout_id, "workout_id")
        plan = self.get(plan_id)
        if plan is None:
            raise PreconditionError(f"Unknown plan '{plan_id}'")
        if plan.find_workout(workout_id) is None:
            raise PreconditionError(f"Unknown workout '{workout_id}' in plan {plan_id}")

        now = self.ctx.now_ms()
        log_id = self.ctx.store.create(
            owner,
            PLAN_LOGS_COLLECTION,
            {
                "planId": plan_id,
                "workoutId": workout_id,
                "startedAt": now,
                "finishedAt": now,
                "performed": performed_to_doc(performed),
                "overloadApplied": False,
            },
        )

        updated = apply_progressive_overload(plan, workout_id, performed)
        self.ctx.store.update(owner, PLANS_COLLECTION, plan_id, {"workouts": workouts_to_doc(updated.workouts)})
        self.ctx.store.update(owner, PLAN_LOGS_COLLECTION, log_id, {"overloadApplied": True})
        logger.debug("Logged workout %s of plan %s as %s", workout_id, plan_id, log_id)
        return updated
