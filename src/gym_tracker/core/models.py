"""
Data models for gym-tracker.

All core dataclasses representing templates, sessions, and the older
plan/workout shape. Timestamps are epoch milliseconds, matching the
documents persisted by the store.
"""

from dataclasses import dataclass, field
from typing import Literal

SessionStatus = Literal["in-progress", "unfinished", "finished"]
SESSION_STATUSES: tuple[str, ...] = ("in-progress", "unfinished", "finished")

# Detailed body-region slug, e.g. "upper-back"
Slug = str


@dataclass(frozen=True)
class ExerciseRef:
    """
    Denormalized copy of a catalog exercise.

    Copied into templates and sessions at selection time so historical
    records stay stable when the catalog changes.
    """

    exercise_id: str
    name: str
    image: str = ""
    primary_muscles: tuple[str, ...] = ()
    secondary_muscles: tuple[str, ...] = ()
    equipment: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()


@dataclass
class TemplateSet:
    """One prescribed set. ``id`` is the join key used by carry-forward."""

    id: str
    target_reps: int
    target_kg: float

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.target_reps < 0:
            raise ValueError("target_reps must be non-negative")
        if self.target_kg < 0:
            raise ValueError("target_kg must be non-negative")


@dataclass
class TemplateExercise:
    """An exercise slot within a template."""

    id: str
    ref: ExerciseRef
    sets: list[TemplateSet] = field(default_factory=list)


@dataclass
class Template:
    """A reusable prescription of exercises."""

    id: str
    name: str
    created_at: int
    muscles_worked: list[Slug] = field(default_factory=list)
    exercises: list[TemplateExercise] = field(default_factory=list)


@dataclass
class SessionSet:
    """
    A single set within a session.

    ``target_reps``/``target_kg`` are None when the user cleared the field.
    ``template_set_id`` is only present for sets materialized from a template.
    """

    id: str
    target_reps: int | None
    target_kg: float | None
    done: bool = False
    template_set_id: str | None = None


@dataclass
class SessionExercise:
    """
    An exercise performed within a session.

    ``done`` is the AND of every set's ``done``. With no sets it is an
    independent flag kept from older documents.
    """

    id: str
    ref: ExerciseRef
    sets: list[SessionSet] = field(default_factory=list)
    done: bool = False
    template_exercise_id: str | None = None

    def recompute_done(self) -> None:
        """Re-derive ``done`` from the sets; leaves the legacy flag alone when empty."""
        if self.sets:
            self.done = all(s.done for s in self.sets)


@dataclass
class Session:
    """
    One concrete, timestamped attempt at a workout.

    Mutable until ``status`` becomes "finished".
    """

    id: str
    name: str
    started_at: int
    status: SessionStatus = "in-progress"
    exercises: list[SessionExercise] = field(default_factory=list)
    muscles_worked: list[Slug] = field(default_factory=list)
    finished_at: int | None = None
    duration_sec: int | None = None
    template_id: str | None = None

    def __post_init__(self) -> None:
        """Validate session data."""
        if self.status not in SESSION_STATUSES:
            raise ValueError(f"Invalid status: {self.status}")

    @property
    def is_locked(self) -> bool:
        """True once the session has been finished."""
        return self.status == "finished"

    def find_exercise(self, exercise_id: str) -> SessionExercise | None:
        """Return the exercise with the given id, or None."""
        for ex in self.exercises:
            if ex.id == exercise_id:
                return ex
        return None


# =============================================================================
# Plan / workout (older shape, still read and progressed)
# =============================================================================


@dataclass
class PlanExercise:
    """
    A prescribed exercise inside a plan workout.

    ``current_weight_kg`` only ever increases, by ``step_kg``.
    """

    exercise_id: str
    name: str = ""
    image_url: str = ""
    primary_muscles: list[str] = field(default_factory=list)
    secondary_muscles: list[str] = field(default_factory=list)
    sets: int = 0
    rep_min: int = 0
    rep_max: int = 0
    rest_sec: int = 0
    current_weight_kg: float = 0.0
    step_kg: float = 0.0
    require_all_sets: bool = True


@dataclass
class Workout:
    """A named workout within a plan."""

    id: str
    name: str
    items: list[PlanExercise] = field(default_factory=list)


@dataclass
class Plan:
    """A training plan made of workouts."""

    id: str
    title: str
    workouts: list[Workout] = field(default_factory=list)

    def find_workout(self, workout_id: str) -> Workout | None:
        """Return the workout with the given id, or None."""
        for w in self.workouts:
            if w.id == workout_id:
                return w
        return None


@dataclass
class PerformedSet:
    """What the user actually did for one set."""

    reps: int
    weight_kg: float


@dataclass
class PerformedExercise:
    """Performed sets for one exercise of a finished plan workout."""

    exercise_id: str
    sets: list[PerformedSet] = field(default_factory=list)
