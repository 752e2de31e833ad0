"""
Document serialization for gym-tracker models.

Every read from the store passes through a ``parse_*`` function. These are
total: any input, including partially shaped documents written by older
versions of the app, yields a fully populated model and nothing is raised.
Parsing the output of ``*_to_doc`` gives back an equal model, so a parse
→ write → parse cycle is stable.

Legacy shapes are resolved here, once, into the current model:
  - templates whose ``exercises`` are bare exercise refs (no per-set
    prescription) get three default sets of 8 reps at 0 kg;
  - sessions without ``status`` get one derived from ``finishedAt`` and
    the completion of their sets.
"""

import math
import re
from typing import Any

from ..core.config import (
    DEFAULT_REPS,
    DEFAULT_SESSION_NAME,
    DEFAULT_TEMPLATE_NAME,
    LEGACY_TEMPLATE_SET_COUNT,
)
from ..core.models import (
    SESSION_STATUSES,
    ExerciseRef,
    PerformedExercise,
    PerformedSet,
    Plan,
    PlanExercise,
    Session,
    SessionExercise,
    SessionSet,
    SessionStatus,
    Template,
    TemplateExercise,
    TemplateSet,
    Workout,
)


class ValidationError(Exception):
    """Raised when user-entered text cannot be parsed."""

    pass


# =============================================================================
# Coercion helpers
# =============================================================================


def _as_dict(raw: Any) -> dict[str, Any]:
    return raw if isinstance(raw, dict) else {}


def _as_list(raw: Any) -> list[Any]:
    return raw if isinstance(raw, list) else []


def as_str(raw: Any, default: str = "") -> str:
    """Coerce to a string; None and empty values give ``default``."""
    if raw is None or raw == "":
        return default
    if isinstance(raw, (dict, list)):
        return default
    return str(raw)


def as_optional_str(raw: Any) -> str | None:
    """Coerce to a non-empty string, else None."""
    value = as_str(raw)
    return value or None


def as_float(raw: Any, default: float = 0.0) -> float:
    """Coerce to a finite float; anything unusable gives ``default``."""
    if isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return default
    else:
        return default
    return value if math.isfinite(value) else default


def as_int(raw: Any, default: int = 0) -> int:
    """Coerce to an int (truncating decimals); anything unusable gives ``default``."""
    value = as_float(raw, float("nan"))
    if math.isnan(value):
        return default
    return int(value)


def as_bool(raw: Any) -> bool:
    """Coerce to a bool; only true-ish strings count as True."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "1", "yes")
    return False


def as_str_list(raw: Any) -> list[str]:
    """Coerce to a list of strings, dropping None entries."""
    return [str(v) for v in _as_list(raw) if v is not None]


def _non_negative(value: float) -> float:
    return value if value >= 0 else 0.0


def _optional_number(data: dict[str, Any], key: str, as_type) -> Any:
    # Absent → 0, explicit null → cleared (None)
    if key not in data:
        return as_type(0)
    if data[key] is None:
        return None
    return as_type(_non_negative(as_type(data[key])))


# =============================================================================
# Exercise refs
# =============================================================================


def parse_exercise_ref(raw: Any) -> ExerciseRef:
    """Safe-parse an exercise reference."""
    data = _as_dict(raw)
    return ExerciseRef(
        exercise_id=as_str(data.get("exerciseId")),
        name=as_str(data.get("name")),
        image=as_str(data.get("image")),
        primary_muscles=tuple(as_str_list(data.get("primaryMuscles"))),
        secondary_muscles=tuple(as_str_list(data.get("secondaryMuscles"))),
        equipment=tuple(as_str_list(data.get("equipment"))),
        tags=tuple(as_str_list(data.get("tags"))),
    )


def exercise_ref_to_doc(ref: ExerciseRef) -> dict[str, Any]:
    """Convert ExerciseRef to a document dict."""
    return {
        "exerciseId": ref.exercise_id,
        "name": ref.name,
        "image": ref.image,
        "primaryMuscles": list(ref.primary_muscles),
        "secondaryMuscles": list(ref.secondary_muscles),
        "equipment": list(ref.equipment),
        "tags": list(ref.tags),
    }


# =============================================================================
# Templates
# =============================================================================


def parse_template_set(raw: Any) -> TemplateSet:
    """Safe-parse a template set."""
    data = _as_dict(raw)
    return TemplateSet(
        id=as_str(data.get("id")),
        target_reps=int(_non_negative(as_int(data.get("targetReps")))),
        target_kg=_non_negative(as_float(data.get("targetKg"))),
    )


def parse_template_exercise(raw: Any) -> TemplateExercise:
    """Safe-parse a template exercise; a missing ``sets`` list becomes empty."""
    data = _as_dict(raw)
    return TemplateExercise(
        id=as_str(data.get("id")),
        ref=parse_exercise_ref(data.get("ref")),
        sets=[parse_template_set(s) for s in _as_list(data.get("sets"))],
    )


def _legacy_template_exercise(raw: Any) -> TemplateExercise:
    # Old templates stored bare exercise refs without prescriptions
    data = _as_dict(raw)
    return TemplateExercise(
        id=as_str(data.get("id")),
        ref=parse_exercise_ref(data),
        sets=[
            TemplateSet(id=f"s{i}", target_reps=DEFAULT_REPS, target_kg=0.0)
            for i in range(1, LEGACY_TEMPLATE_SET_COUNT + 1)
        ],
    )


def is_legacy_template_exercises(raw_exercises: list[Any]) -> bool:
    """True when the first exercise is a bare ref (has exerciseId, no ref)."""
    if not raw_exercises:
        return False
    first = raw_exercises[0]
    return isinstance(first, dict) and bool(first.get("exerciseId")) and not first.get("ref")


def parse_template(raw: Any, doc_id: str) -> Template:
    """Safe-parse a template document, converting the legacy shape."""
    data = _as_dict(raw)
    raw_exercises = _as_list(data.get("exercises"))

    if is_legacy_template_exercises(raw_exercises):
        exercises = [_legacy_template_exercise(r) for r in raw_exercises]
    else:
        exercises = [parse_template_exercise(r) for r in raw_exercises]

    return Template(
        id=doc_id,
        name=as_str(data.get("name"), DEFAULT_TEMPLATE_NAME),
        created_at=as_int(data.get("createdAt")),
        muscles_worked=as_str_list(data.get("musclesWorked")),
        exercises=exercises,
    )


def template_to_doc(template: Template) -> dict[str, Any]:
    """Convert Template to a document dict (the id is the document key)."""
    return {
        "name": template.name,
        "createdAt": template.created_at,
        "musclesWorked": list(template.muscles_worked),
        "exercises": [
            {
                "id": ex.id,
                "ref": exercise_ref_to_doc(ex.ref),
                "sets": [
                    {"id": s.id, "targetReps": s.target_reps, "targetKg": s.target_kg}
                    for s in ex.sets
                ],
            }
            for ex in template.exercises
        ],
    }


# =============================================================================
# Sessions
# =============================================================================


def parse_session_set(raw: Any) -> SessionSet:
    """Safe-parse a session set."""
    data = _as_dict(raw)
    return SessionSet(
        id=as_str(data.get("id")),
        target_reps=_optional_number(data, "targetReps", as_int),
        target_kg=_optional_number(data, "targetKg", as_float),
        done=as_bool(data.get("done")),
        template_set_id=as_optional_str(data.get("templateSetId")),
    )


def parse_session_exercise(raw: Any) -> SessionExercise:
    """Safe-parse a session exercise; ``done`` is re-derived from its sets."""
    data = _as_dict(raw)
    exercise = SessionExercise(
        id=as_str(data.get("id")),
        ref=parse_exercise_ref(data.get("ref")),
        sets=[parse_session_set(s) for s in _as_list(data.get("sets"))],
        done=as_bool(data.get("done")),
        template_exercise_id=as_optional_str(data.get("templateExerciseId")),
    )
    exercise.recompute_done()
    return exercise


def has_unset_work(exercises: list[SessionExercise]) -> bool:
    """
    True if any set is not done.

    An exercise without sets counts through its own ``done`` flag.
    """
    for ex in exercises:
        if ex.sets:
            if any(not s.done for s in ex.sets):
                return True
        elif not ex.done:
            return True
    return False


def _derive_status(raw_status: Any, finished_at: int | None, exercises: list[SessionExercise]) -> SessionStatus:
    if raw_status in SESSION_STATUSES:
        return raw_status
    if finished_at is None:
        return "in-progress"
    return "unfinished" if has_unset_work(exercises) else "finished"


def parse_session(raw: Any, doc_id: str) -> Session:
    """Safe-parse a session document."""
    data = _as_dict(raw)
    exercises = [parse_session_exercise(e) for e in _as_list(data.get("exercises"))]
    finished_at = as_int(data.get("finishedAt")) or None
    duration = as_int(data.get("durationSec")) or None

    return Session(
        id=doc_id,
        name=as_str(data.get("name"), DEFAULT_SESSION_NAME),
        started_at=as_int(data.get("startedAt")),
        status=_derive_status(data.get("status"), finished_at, exercises),
        exercises=exercises,
        muscles_worked=as_str_list(data.get("musclesWorked")),
        finished_at=finished_at,
        duration_sec=duration,
        template_id=as_optional_str(data.get("templateId")),
    )


def session_set_to_doc(s: SessionSet) -> dict[str, Any]:
    """Convert SessionSet to a document dict; ``templateSetId`` only when linked."""
    d: dict[str, Any] = {
        "id": s.id,
        "targetReps": s.target_reps,
        "targetKg": s.target_kg,
        "done": s.done,
    }
    if s.template_set_id:
        d["templateSetId"] = s.template_set_id
    return d


def session_exercise_to_doc(ex: SessionExercise) -> dict[str, Any]:
    """Convert SessionExercise to a document dict."""
    d: dict[str, Any] = {
        "id": ex.id,
        "ref": exercise_ref_to_doc(ex.ref),
        "sets": [session_set_to_doc(s) for s in ex.sets],
        "done": ex.done,
    }
    if ex.template_exercise_id:
        d["templateExerciseId"] = ex.template_exercise_id
    return d


def session_to_doc(session: Session) -> dict[str, Any]:
    """Convert Session to a document dict; optional fields are omitted when unset."""
    d: dict[str, Any] = {
        "name": session.name,
        "startedAt": session.started_at,
        "status": session.status,
        "musclesWorked": list(session.muscles_worked),
        "exercises": [session_exercise_to_doc(ex) for ex in session.exercises],
    }
    if session.finished_at is not None:
        d["finishedAt"] = session.finished_at
    if session.duration_sec is not None:
        d["durationSec"] = session.duration_sec
    if session.template_id:
        d["templateId"] = session.template_id
    return d


# =============================================================================
# Plans
# =============================================================================


def parse_plan_exercise(raw: Any) -> PlanExercise:
    """Safe-parse a prescribed plan exercise."""
    data = _as_dict(raw)
    return PlanExercise(
        exercise_id=as_str(data.get("exerciseId")),
        name=as_str(data.get("name")),
        image_url=as_str(data.get("imageUrl")),
        primary_muscles=as_str_list(data.get("primaryMuscles")),
        secondary_muscles=as_str_list(data.get("secondaryMuscles")),
        sets=as_int(data.get("sets")),
        rep_min=as_int(data.get("repMin")),
        rep_max=as_int(data.get("repMax")),
        rest_sec=as_int(data.get("restSec")),
        current_weight_kg=as_float(data.get("currentWeightKg")),
        step_kg=as_float(data.get("stepKg")),
        require_all_sets=as_bool(data.get("requireAllSets", True)),
    )


def parse_workout(raw: Any) -> Workout:
    """Safe-parse a plan workout."""
    data = _as_dict(raw)
    return Workout(
        id=as_str(data.get("id")),
        name=as_str(data.get("name")),
        items=[parse_plan_exercise(i) for i in _as_list(data.get("items"))],
    )


def parse_plan(raw: Any, doc_id: str) -> Plan:
    """Safe-parse a plan document."""
    data = _as_dict(raw)
    return Plan(
        id=doc_id,
        title=as_str(data.get("title")),
        workouts=[parse_workout(w) for w in _as_list(data.get("workouts"))],
    )


def plan_exercise_to_doc(item: PlanExercise) -> dict[str, Any]:
    """Convert PlanExercise to a document dict."""
    return {
        "exerciseId": item.exercise_id,
        "name": item.name,
        "imageUrl": item.image_url,
        "primaryMuscles": list(item.primary_muscles),
        "secondaryMuscles": list(item.secondary_muscles),
        "sets": item.sets,
        "repMin": item.rep_min,
        "repMax": item.rep_max,
        "restSec": item.rest_sec,
        "currentWeightKg": item.current_weight_kg,
        "stepKg": item.step_kg,
        "requireAllSets": item.require_all_sets,
    }


def workouts_to_doc(workouts: list[Workout]) -> list[dict[str, Any]]:
    """Convert plan workouts to document dicts."""
    return [
        {"id": w.id, "name": w.name, "items": [plan_exercise_to_doc(i) for i in w.items]}
        for w in workouts
    ]


def plan_to_doc(plan: Plan) -> dict[str, Any]:
    """Convert Plan to a document dict."""
    return {"title": plan.title, "workouts": workouts_to_doc(plan.workouts)}


def parse_performed_exercise(raw: Any) -> PerformedExercise:
    """Safe-parse a performed exercise log entry."""
    data = _as_dict(raw)
    return PerformedExercise(
        exercise_id=as_str(data.get("exerciseId")),
        sets=[
            PerformedSet(
                reps=as_int(_as_dict(s).get("reps")),
                weight_kg=as_float(_as_dict(s).get("weightKg")),
            )
            for s in _as_list(data.get("sets"))
        ],
    )


def performed_to_doc(performed: list[PerformedExercise]) -> list[dict[str, Any]]:
    """Convert performed exercises to document dicts."""
    return [
        {
            "exerciseId": p.exercise_id,
            "sets": [{"reps": s.reps, "weightKg": s.weight_kg} for s in p.sets],
        }
        for p in performed
    ]


# =============================================================================
# Text input
# =============================================================================

_SET_GROUP = re.compile(
    r"^(?:(\d+)\s*[xX×]\s*)?(\d+)(?:\s*@\s*\+?(\d+(?:[.,]\d+)?)\s*(?:kg)?)?$",
    re.IGNORECASE,
)
_WHOLE_WEIGHT_END = re.compile(r"@\s*\+?\d+$")
_DECIMAL_TAIL = re.compile(r"^\d+(?:\s*kg)?$", re.IGNORECASE)


def _split_groups(sets_str: str) -> list[str]:
    """
    Split on commas, except a comma that is the decimal mark of a weight.

    "8@62,5" is one set at 62.5 kg; "8@62, 5" is two sets.
    """
    groups: list[str] = []
    for raw in sets_str.split(","):
        if groups and _WHOLE_WEIGHT_END.search(groups[-1]) and _DECIMAL_TAIL.match(raw):
            groups[-1] = f"{groups[-1]},{raw}"
        else:
            groups.append(raw)
    return [g.strip() for g in groups]


def parse_sets_string(sets_str: str) -> list[tuple[int, float]]:
    """
    Parse a prescription string into (reps, kg) pairs.

    Comma-separated groups, each one of:
        NxR@W   N sets of R reps at W kg   e.g. "3x8@60"
        R@W     one set of R reps at W kg  e.g. "8@62.5"
        NxR     N sets of R reps at 0 kg   e.g. "3x10"
        R       one set of R reps at 0 kg  e.g. "12"

    A comma directly between digits of a weight is a decimal mark
    ("8@62,5"); write ", " before a group of bare reps.

    Args:
        sets_str: Sets string to parse

    Returns:
        List of (reps, kg) tuples

    Raises:
        ValidationError: If format is invalid
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    sets: list[tuple[int, float]] = []
    for part in _split_groups(sets_str):
        if not part:
            continue
        m = _SET_GROUP.match(part)
        if not m:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                f"Use: sets x reps @ kg (e.g. 3x8@60), reps@kg (e.g. 8@62.5) or reps (e.g. 12)."
            )
        count = int(m.group(1)) if m.group(1) else 1
        reps = int(m.group(2))
        kg = float(m.group(3).replace(",", ".")) if m.group(3) else 0.0
        if count < 1:
            raise ValidationError(f"Set count must be positive: '{part}'")
        sets.extend([(reps, kg)] * count)

    if not sets:
        raise ValidationError("No valid sets found in sets string")
    return sets
