"""
Base type for exercise catalog entries.

CatalogExercise mirrors one record of the free-exercise-db: a read-only
reference copied (as an ExerciseRef) into templates and sessions.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CatalogExercise:
    """One exercise of the reference catalog."""

    # Identity
    exercise_id: str          # e.g. "Barbell_Squat"
    name: str                 # e.g. "Barbell Squat"

    # Muscles (free text, mapped to slugs by core.muscles)
    primary_muscles: tuple[str, ...] = ()
    secondary_muscles: tuple[str, ...] = ()

    # Classification
    equipment: str | None = None  # "barbell" | "body only" | ... | None
    category: str = ""            # "strength" | "cardio" | "stretching" | ...
    level: str = ""               # "beginner" | "intermediate" | "expert"
    mechanic: str | None = None   # "compound" | "isolation" | None

    # Instructions and images (relative paths under the image base URL)
    instructions: tuple[str, ...] = ()
    images: tuple[str, ...] = field(default_factory=tuple)
