"""
Session creation, including carry-forward from the previous session.

A session started from a template remembers what the user actually did
last time: the set count of each matched exercise and the reps/kg of each
set. The template only seeds exercises that have no history yet.
"""

import logging
from collections import Counter
from collections.abc import Callable

from .config import DEFAULT_KG, DEFAULT_REPS, DEFAULT_SESSION_NAME, SCRATCH_SET_COUNT
from .errors import PreconditionError, require
from .models import ExerciseRef, Session, SessionExercise, SessionSet, Template, TemplateExercise, TemplateSet
from .muscles import muscles_to_slugs
from .sessions import SessionRepository
from .store import StoreContext

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def resolve_template_set_id(tex: TemplateExercise, tset: TemplateSet | None, index: int) -> str:
    """Template set id at a position; exercises without sets get a synthetic id."""
    if tset is not None and tset.id:
        return tset.id
    return f"legacy-{tex.id}-{index}"


def index_by_template_set_id(previous: Session) -> dict[str, tuple[int, float]]:
    """
    Map ``templateSetId`` → (reps, kg) across every set of ``previous``.

    Only sets with both values recorded are indexed. An id carried by more
    than one set is ambiguous and left out, so lookups for it fall through
    to the set's own values.
    """
    counts = Counter(s.template_set_id for ex in previous.exercises for s in ex.sets if s.template_set_id)
    index: dict[str, tuple[int, float]] = {}
    for ex in previous.exercises:
        for s in ex.sets:
            if not s.template_set_id or counts[s.template_set_id] > 1:
                continue
            if s.target_reps is None or s.target_kg is None:
                continue
            index[s.template_set_id] = (s.target_reps, s.target_kg)
    return index


def index_exercises(previous: Session) -> tuple[dict[str, SessionExercise], dict[str, SessionExercise]]:
    """Prior exercises keyed by templateExerciseId and by catalog exerciseId."""
    by_template_exercise: dict[str, SessionExercise] = {}
    by_exercise: dict[str, SessionExercise] = {}
    for ex in previous.exercises:
        if ex.template_exercise_id:
            by_template_exercise[ex.template_exercise_id] = ex
        if ex.ref.exercise_id:
            by_exercise[ex.ref.exercise_id] = ex
    return by_template_exercise, by_exercise


def _first_present(*values):
    for v in values:
        if v is not None:
            return v
    return None


def _sets_from_template(tex: TemplateExercise, new_id: IdFactory) -> list[SessionSet]:
    return [
        SessionSet(id=new_id(), target_reps=t.target_reps, target_kg=t.target_kg, done=False, template_set_id=t.id)
        for t in tex.sets
    ]


def _sets_from_history(
    tex: TemplateExercise,
    prior: SessionExercise,
    by_template_set_id: dict[str, tuple[int, float]],
    new_id: IdFactory,
) -> list[SessionSet]:
    sets: list[SessionSet] = []
    for i, prior_set in enumerate(prior.sets):
        if i < len(tex.sets):
            tset = tex.sets[i]
        else:
            tset = tex.sets[-1] if tex.sets else None
        template_set_id = resolve_template_set_id(tex, tset, i)

        reps, kg = by_template_set_id.get(prior_set.template_set_id or template_set_id, (None, None))
        sets.append(
            SessionSet(
                id=new_id(),
                target_reps=_first_present(reps, prior_set.target_reps, tset.target_reps if tset else None, DEFAULT_REPS),
                target_kg=_first_present(kg, prior_set.target_kg, tset.target_kg if tset else None, DEFAULT_KG),
                done=False,
                template_set_id=template_set_id,
            )
        )
    return sets


def session_muscles(exercises: list[SessionExercise]) -> list[str]:
    """Sorted union of the mapped muscles of every exercise."""
    slugs: set[str] = set()
    for ex in exercises:
        slugs |= muscles_to_slugs(ex.ref.primary_muscles, ex.ref.secondary_muscles)
    return sorted(slugs)


def build_session_from_template(
    template: Template,
    previous: Session | None,
    now_ms: int,
    new_id: IdFactory,
) -> Session:
    """
    Materialize a new in-progress session from a template.

    For each template exercise the prior session is searched for a match
    (templateExerciseId first, then catalog exerciseId; the prior exercise
    must have sets). Without a match the template sets are copied verbatim.
    With a match the new exercise gets one set per prior set, and each set
    takes its values from, in order: the prior set linked to the same
    template set, the prior set itself, the template set at that position
    (or the template's last set), then 8 reps at 0 kg.

    Args:
        template: Template to start
        previous: Prior session for the same template, or None
        now_ms: ``startedAt`` of the new session
        new_id: Factory for set and exercise ids

    Returns:
        The new session (its ``id`` is empty until persisted)
    """
    by_template_set_id: dict[str, tuple[int, float]] = {}
    by_template_exercise: dict[str, SessionExercise] = {}
    by_exercise: dict[str, SessionExercise] = {}
    if previous is not None:
        by_template_set_id = index_by_template_set_id(previous)
        by_template_exercise, by_exercise = index_exercises(previous)

    exercises: list[SessionExercise] = []
    for tex in template.exercises:
        prior = by_template_exercise.get(tex.id) or by_exercise.get(tex.ref.exercise_id)
        if prior is not None and prior.sets:
            sets = _sets_from_history(tex, prior, by_template_set_id, new_id)
        else:
            sets = _sets_from_template(tex, new_id)
        exercises.append(
            SessionExercise(id=new_id(), ref=tex.ref, sets=sets, done=False, template_exercise_id=tex.id)
        )

    return Session(
        id="",
        name=template.name or DEFAULT_SESSION_NAME,
        started_at=now_ms,
        status="in-progress",
        exercises=exercises,
        muscles_worked=session_muscles(exercises),
        template_id=template.id or None,
    )


def build_session_from_exercises(
    refs: list[ExerciseRef],
    name: str,
    now_ms: int,
    new_id: IdFactory,
) -> Session:
    """New session from picked exercises, each with three sets of 8 reps at 0 kg."""
    exercises = [
        SessionExercise(
            id=new_id(),
            ref=ref,
            sets=[
                SessionSet(id=new_id(), target_reps=DEFAULT_REPS, target_kg=DEFAULT_KG)
                for _ in range(SCRATCH_SET_COUNT)
            ],
        )
        for ref in refs
    ]
    return Session(
        id="",
        name=name.strip() or DEFAULT_SESSION_NAME,
        started_at=now_ms,
        status="in-progress",
        exercises=exercises,
        muscles_worked=session_muscles(exercises),
    )


class SessionFactory:
    """Starts sessions for one owner and persists them."""

    def __init__(self, ctx: StoreContext, sessions: SessionRepository | None = None):
        self.ctx = ctx
        self.sessions = sessions or SessionRepository(ctx)

    def _persist(self, session: Session) -> Session:
        session.id = self.sessions.create(session)
        logger.info(
            "Started session %s (%s, %d exercises, template=%s)",
            session.id,
            session.name,
            len(session.exercises),
            session.template_id,
        )
        return session

    def start_from_template(self, template: Template, previous: Session | None = None) -> Session:
        """
        Start and persist a session from a template.

        When ``previous`` is not given the most recent finished session for
        the template is used, else the most recent of any status.
        """
        require(self.ctx.owner_id, "owner_id")
        require(template.id, "template_id")
        if previous is None:
            previous = self.sessions.latest_for_template(template.id)
        if previous is not None:
            logger.debug("Carrying forward from session %s", previous.id)
        session = build_session_from_template(template, previous, self.ctx.now_ms(), self.ctx.new_id)
        return self._persist(session)

    def start_from_exercises(self, refs: list[ExerciseRef], name: str = DEFAULT_SESSION_NAME) -> Session:
        """Start and persist an ad-hoc session."""
        require(self.ctx.owner_id, "owner_id")
        if not refs:
            raise PreconditionError("Pick at least one exercise")
        session = build_session_from_exercises(refs, name, self.ctx.now_ms(), self.ctx.new_id)
        return self._persist(session)
