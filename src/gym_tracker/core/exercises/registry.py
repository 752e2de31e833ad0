"""
Exercise catalog.

Read-only reference data: exercise id → name, muscles, equipment, images.
Entries are loaded from per-exercise YAML files in the bundled
``src/gym_tracker/exercises/`` directory. If nothing can be loaded a
RuntimeError is raised: templates and sessions cannot be built without
reference data.

User overrides: place matching files in ``~/.gym-tracker/exercises/``.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from ..config import EXERCISE_IMAGE_BASE_URL, MAX_EXERCISE_TAGS
from ..models import ExerciseRef
from .base import CatalogExercise

_WHITESPACE = re.compile(r"\s+")
_SEPARATORS = re.compile(r"[-_]")


def normalize_tag(s: str | None) -> str:
    """Trim, lower-case and collapse whitespace."""
    return _WHITESPACE.sub(" ", str(s or "").strip().lower())


def nice_label(s: str | None) -> str:
    """'lower_back' → 'Lower Back'."""
    return _SEPARATORS.sub(" ", s or "").title()


def image_url(relative: str | None) -> str:
    """Absolute image URL for a catalog image path; empty input gives ''."""
    if not relative:
        return ""
    if relative.startswith(("http://", "https://")):
        return relative
    return f"{EXERCISE_IMAGE_BASE_URL}{relative}"


def build_tags(ex: CatalogExercise) -> list[str]:
    """
    Derive up to two display tags for an exercise.

    First a modality tag (Cardio, or the equipment type), then a body
    region tag (Core, Back or Arms).
    """
    out: list[str] = []

    def add(tag: str) -> None:
        if tag in out or len(out) >= MAX_EXERCISE_TAGS:
            return
        out.append(tag)

    equipment = normalize_tag(ex.equipment)
    category = normalize_tag(ex.category)
    muscles = {normalize_tag(m) for m in (*ex.primary_muscles, *ex.secondary_muscles)}

    if category == "cardio":
        add("Cardio")

    if len(out) < MAX_EXERCISE_TAGS:
        equipment_tags = {
            "body only": "Bodyweight",
            "dumbbell": "Dumbbell",
            "cable": "Cable",
            "machine": "Machine",
        }
        if equipment in equipment_tags:
            add(equipment_tags[equipment])

    if muscles & {"abdominals", "abductors", "adductors"}:
        add("Core")
    elif muscles & {"lats", "lower back", "middle back", "traps"}:
        add("Back")
    elif muscles & {"biceps", "triceps", "forearms"}:
        add("Arms")

    return out


def to_ref(ex: CatalogExercise) -> ExerciseRef:
    """Denormalized copy of a catalog entry for templates and sessions."""
    return ExerciseRef(
        exercise_id=ex.exercise_id,
        name=ex.name,
        image=image_url(ex.images[0]) if ex.images else "",
        primary_muscles=tuple(ex.primary_muscles),
        secondary_muscles=tuple(ex.secondary_muscles),
        equipment=(ex.equipment,) if ex.equipment else (),
        tags=tuple(build_tags(ex)),
    )


def muscle_category(primary_muscles: tuple[str, ...] | list[str]) -> str:
    """Coarse region label from the first primary muscle."""
    raw = primary_muscles[0] if primary_muscles else ""
    m = raw.lower()

    if any(k in m for k in ("ab", "core", "rectus", "oblique")):
        return "Core"
    if any(k in m for k in ("back", "lat", "trap", "rhombo")):
        return "Back"
    if "chest" in m or "pec" in m:
        return "Chest"
    if "shoulder" in m or "delt" in m:
        return "Shoulder"
    if any(k in m for k in ("bicep", "tricep", "forearm")):
        return "Arms"
    if any(k in m for k in ("quad", "ham", "glute", "calf", "calves", "leg")):
        return "Legs"
    if "cardio" in m:
        return "Cardio"
    return nice_label(raw) if raw else "Other"


def equipment_type(equipment: tuple[str, ...] | list[str]) -> str:
    """Display label for the first equipment entry."""
    raw = equipment[0] if equipment else ""
    e = raw.lower()
    if not raw:
        return ""
    for key, label in (
        ("body", "Bodyweight"),
        ("dumbbell", "Dumbbell"),
        ("barbell", "Barbell"),
        ("kettlebell", "Kettlebell"),
        ("machine", "Machine"),
        ("cable", "Cable"),
        ("band", "Band"),
        ("smith", "Machine"),
    ):
        if key in e:
            return label
    return nice_label(raw)


def subtitle(ref: ExerciseRef) -> str:
    """'Legs • Barbell' style label for an exercise row."""
    region = muscle_category(ref.primary_muscles)
    kind = equipment_type(ref.equipment)
    return f"{region} • {kind}" if kind else region


class ExerciseCatalog:
    """Lookup and search over catalog entries."""

    def __init__(self, exercises: dict[str, CatalogExercise]):
        self._exercises = dict(exercises)

    @classmethod
    def from_yaml(
        cls,
        bundled_dir: Path | None = None,
        user_dir: Path | None = None,
    ) -> "ExerciseCatalog":
        """
        Load the catalog from YAML files.

        Raises:
            RuntimeError: If no exercise could be loaded
        """
        from .loader import load_exercises_from_yaml

        loaded = load_exercises_from_yaml(bundled_dir, user_dir)
        if not loaded:
            raise RuntimeError(
                "gym-tracker: no exercise definitions could be loaded from YAML. "
                "Check that src/gym_tracker/exercises/*.yaml files are present and valid."
            )
        return cls(loaded)

    def __len__(self) -> int:
        return len(self._exercises)

    def __contains__(self, exercise_id: object) -> bool:
        return exercise_id in self._exercises

    def all(self) -> list[CatalogExercise]:
        """Every entry, sorted by name."""
        return sorted(self._exercises.values(), key=lambda ex: normalize_tag(ex.name))

    def get(self, exercise_id: str) -> CatalogExercise:
        """
        Return the entry for the given exercise_id.

        Raises:
            ValueError: If exercise_id is not in the catalog
        """
        if exercise_id not in self._exercises:
            valid = ", ".join(sorted(self._exercises))
            raise ValueError(f"Unknown exercise '{exercise_id}'. Valid IDs: {valid}")
        return self._exercises[exercise_id]

    def ref(self, exercise_id: str) -> ExerciseRef:
        """Shortcut for ``to_ref(get(exercise_id))``."""
        return to_ref(self.get(exercise_id))

    def search(self, query: str = "", tag_filters: list[str] | None = None) -> list[CatalogExercise]:
        """
        Name search with optional tag filters.

        Args:
            query: Case-insensitive substring of the exercise name
            tag_filters: Tags that must all be present (e.g. ["Dumbbell", "Arms"])

        Returns:
            Matching entries sorted by name
        """
        q = normalize_tag(query)
        filters = [f for f in (normalize_tag(t) for t in tag_filters or []) if f]

        out: list[CatalogExercise] = []
        for ex in self.all():
            if q and q not in normalize_tag(ex.name):
                continue
            if filters:
                tags = {normalize_tag(t) for t in build_tags(ex)}
                if not all(f in tags for f in filters):
                    continue
            out.append(ex)
        return out


@lru_cache(maxsize=1)
def get_catalog() -> ExerciseCatalog:
    """Default catalog loaded from bundled YAML (plus user overrides), cached."""
    return ExerciseCatalog.from_yaml()
