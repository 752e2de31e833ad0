"""
In-session tracking: toggling sets, editing values, finishing.

Every operation takes a Session and returns a new Session; the input is
never mutated, so callers can keep the confirmed copy around while
showing the edited one. A finished session is locked.
"""

import copy
import logging
import re

from .config import DEFAULT_KG, DEFAULT_REPS
from .errors import PreconditionError, SessionLockedError, require
from .models import Session, SessionExercise, SessionSet
from .session_factory import index_by_template_set_id, index_exercises
from .sessions import is_unfinished

logger = logging.getLogger(__name__)

SET_FIELDS = ("target_reps", "target_kg")

# Plain digits only; no sign, exponent or "_" grouping
_REPS_TEXT = re.compile(r"\d+")
_KG_TEXT = re.compile(r"\d+(?:[.,]\d+)?")


def _editable_copy(session: Session) -> Session:
    if session.is_locked:
        raise SessionLockedError(f"Session {session.id or '(new)'} is finished and cannot be changed")
    return copy.deepcopy(session)


def _exercise(session: Session, exercise_id: str) -> SessionExercise:
    require(exercise_id, "exercise_id")
    ex = session.find_exercise(exercise_id)
    if ex is None:
        raise PreconditionError(f"Unknown exercise '{exercise_id}' in session {session.id}")
    return ex


def _set(ex: SessionExercise, set_id: str) -> SessionSet:
    require(set_id, "set_id")
    for s in ex.sets:
        if s.id == set_id:
            return s
    raise PreconditionError(f"Unknown set '{set_id}' in exercise {ex.id}")


def toggle_set(session: Session, exercise_id: str, set_id: str) -> Session:
    """
    Flip one set's ``done`` flag and re-derive the exercise's ``done``.

    Two toggles of the same set cancel out.

    Raises:
        SessionLockedError: If the session is finished
        PreconditionError: If the exercise or set does not exist
    """
    out = _editable_copy(session)
    ex = _exercise(out, exercise_id)
    s = _set(ex, set_id)
    s.done = not s.done
    ex.recompute_done()
    return out


def parse_set_value(field: str, raw: str, previous: int | float | None) -> int | float | None:
    """
    Parse user text for a set field.

    Reps are whole numbers and kg are decimals (a comma is accepted as the
    decimal separator). Blank text clears the field to None. Malformed or
    negative input keeps ``previous``.
    """
    if field not in SET_FIELDS:
        raise PreconditionError(f"Unknown set field: {field!r}")
    text = (raw or "").strip()
    if not text:
        return None
    if field == "target_reps":
        if not _REPS_TEXT.fullmatch(text):
            logger.warning("Ignoring malformed %s value %r", field, raw)
            return previous
        return int(text)
    if not _KG_TEXT.fullmatch(text):
        logger.warning("Ignoring malformed %s value %r", field, raw)
        return previous
    return float(text.replace(",", "."))


def edit_set(session: Session, exercise_id: str, set_id: str, field: str, raw: str) -> Session:
    """
    Set ``target_reps`` or ``target_kg`` of one set from user text.

    Never raises on malformed text; see ``parse_set_value``.

    Raises:
        SessionLockedError: If the session is finished
        PreconditionError: If the exercise, set or field does not exist
    """
    if field not in SET_FIELDS:
        raise PreconditionError(f"Unknown set field: {field!r}")
    out = _editable_copy(session)
    s = _set(_exercise(out, exercise_id), set_id)
    setattr(s, field, parse_set_value(field, raw, getattr(s, field)))
    return out


def add_set(session: Session, exercise_id: str, set_id: str) -> Session:
    """
    Append a set copying the last set's targets (8 reps at 0 kg when empty).

    ``set_id`` is the id of the new set. The new set is not done, so the
    exercise is no longer done either.
    """
    require(set_id, "set_id")
    out = _editable_copy(session)
    ex = _exercise(out, exercise_id)
    last = ex.sets[-1] if ex.sets else None
    ex.sets.append(
        SessionSet(
            id=set_id,
            target_reps=last.target_reps if last else DEFAULT_REPS,
            target_kg=last.target_kg if last else DEFAULT_KG,
            done=False,
        )
    )
    ex.recompute_done()
    return out


def remove_set(session: Session, exercise_id: str, set_id: str) -> Session:
    """Drop one set and re-derive the exercise's ``done``."""
    out = _editable_copy(session)
    ex = _exercise(out, exercise_id)
    target = _set(ex, set_id)
    ex.sets = [s for s in ex.sets if s is not target]
    ex.recompute_done()
    return out


def finish(session: Session, confirm_incomplete: bool, now_ms: int) -> Session:
    """
    End a session.

    With every set done the session becomes "finished". With unset sets it
    becomes "unfinished", but only when ``confirm_incomplete`` is True;
    otherwise it is returned unchanged. ``finished_at`` and ``duration_sec``
    are stamped on the transition; ``started_at`` is never touched.

    Raises:
        SessionLockedError: If the session is already finished
    """
    out = _editable_copy(session)
    if is_unfinished(out):
        if not confirm_incomplete:
            logger.debug("Finish of session %s needs confirmation", out.id)
            return out
        out.status = "unfinished"
    else:
        out.status = "finished"
    out.finished_at = now_ms
    out.duration_sec = elapsed_seconds(out, now_ms)
    logger.info("Session %s is now %s", out.id, out.status)
    return out


def elapsed_seconds(session: Session, now_ms: int) -> int:
    """Whole seconds from start to finish (or to ``now_ms`` while running)."""
    end = session.finished_at if session.finished_at is not None else now_ms
    return max(0, (end - session.started_at) // 1000)


def format_elapsed(seconds: int) -> str:
    """'1:02:03' or '12:34'."""
    h, rest = divmod(max(seconds, 0), 3600)
    m, s = divmod(rest, 60)
    return f"{h}:{m:02d}:{s:02d}" if h else f"{m}:{s:02d}"


def previous_set_values(previous: Session | None, session: Session) -> dict[str, tuple[int | None, float | None]]:
    """
    What was done last time, for each set of ``session``.

    Sets are matched through ``templateSetId`` first, then by position
    within the matching prior exercise.

    Returns:
        Mapping of session set id to prior (reps, kg); sets with no
        counterpart are absent
    """
    if previous is None:
        return {}
    by_template_set_id = index_by_template_set_id(previous)
    by_template_exercise, by_exercise = index_exercises(previous)

    out: dict[str, tuple[int | None, float | None]] = {}
    for ex in session.exercises:
        prior = None
        if ex.template_exercise_id:
            prior = by_template_exercise.get(ex.template_exercise_id)
        prior = prior or by_exercise.get(ex.ref.exercise_id)
        for i, s in enumerate(ex.sets):
            if s.template_set_id and s.template_set_id in by_template_set_id:
                out[s.id] = by_template_set_id[s.template_set_id]
            elif prior is not None and i < len(prior.sets):
                out[s.id] = (prior.sets[i].target_reps, prior.sets[i].target_kg)
    return out
