"""
Muscle name → body-region slug mapping.

Free-text muscle names from the exercise catalog ("Latissimus Dorsi",
"quads", "middle_back") are normalized and looked up in a fixed table.
Names without a mapping are dropped, never raised on.

Detailed slugs can be further grouped into general buckets (core, arms,
legs, ...) for coarse coverage summaries.
"""

import re
from collections.abc import Iterable
from typing import Final, Literal

MuscleGroupSlug = Literal[
    "core", "arms", "chest", "shoulders", "back", "legs", "neck", "head", "cardio", "other"
]

DIRECT: Final[dict[str, str]] = {
    # core
    "abs": "abs",
    "abdominals": "abs",
    "obliques": "obliques",
    # chest / arms
    "chest": "chest",
    "biceps": "biceps",
    "triceps": "triceps",
    "forearms": "forearm",
    "forearm": "forearm",
    "shoulders": "deltoids",
    "deltoids": "deltoids",
    "trapezius": "trapezius",
    "traps": "trapezius",
    # back
    "upper back": "upper-back",
    "middle back": "upper-back",
    "lower back": "lower-back",
    "lats": "upper-back",
    "latissimus dorsi": "upper-back",
    # legs
    "quadriceps": "quadriceps",
    "quads": "quadriceps",
    "adductors": "adductors",
    "calves": "calves",
    "glutes": "gluteal",
    "glute": "gluteal",
    "gluteal": "gluteal",
    "hamstrings": "hamstring",
    "hamstring": "hamstring",
    # head / neck
    "neck": "neck",
    "head": "head",
}

SLUG_TO_GROUP: Final[dict[str, MuscleGroupSlug]] = {
    "abs": "core",
    "obliques": "core",
    "biceps": "arms",
    "triceps": "arms",
    "forearm": "arms",
    "chest": "chest",
    "deltoids": "shoulders",
    "trapezius": "back",
    "upper-back": "back",
    "lower-back": "back",
    "quadriceps": "legs",
    "adductors": "legs",
    "calves": "legs",
    "gluteal": "legs",
    "hamstring": "legs",
    "neck": "neck",
    "head": "head",
}

_SEPARATORS = re.compile(r"[_-]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_muscle_name(name: str | None) -> str:
    """Lower-case, trim, turn ``_``/``-`` into spaces and collapse whitespace."""
    text = str(name or "").strip().lower()
    text = _SEPARATORS.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def to_slug(muscle_name: str | None) -> str | None:
    """
    Map a free-text muscle name to its body-region slug.

    Args:
        muscle_name: e.g. "Latissimus Dorsi", "quads", "lower_back"

    Returns:
        Slug such as "upper-back", or None when the name has no mapping
    """
    return DIRECT.get(normalize_muscle_name(muscle_name))


def muscles_to_slugs(
    primary: Iterable[str] | None = None,
    secondary: Iterable[str] | None = None,
) -> set[str]:
    """Union of the slugs of both muscle lists; unknown names are dropped."""
    out: set[str] = set()
    for name in [*(primary or ()), *(secondary or ())]:
        slug = to_slug(name)
        if slug:
            out.add(slug)
    return out


def to_group_slug(muscle_name: str | None) -> MuscleGroupSlug | None:
    """Map a muscle name to its general group, "other" for unmapped slugs."""
    detailed = to_slug(muscle_name)
    if not detailed:
        return None
    return SLUG_TO_GROUP.get(detailed, "other")


def slugs_to_groups(slugs: Iterable[str]) -> set[MuscleGroupSlug]:
    """Group detailed slugs into general buckets."""
    return {SLUG_TO_GROUP.get(s, "other") for s in slugs}


def muscles_to_group_slugs(
    primary: Iterable[str] | None = None,
    secondary: Iterable[str] | None = None,
) -> set[MuscleGroupSlug]:
    """Union of the general groups of both muscle lists."""
    return slugs_to_groups(muscles_to_slugs(primary, secondary))


def muscles_to_detailed_and_groups(
    primary: Iterable[str] | None = None,
    secondary: Iterable[str] | None = None,
) -> tuple[set[str], set[MuscleGroupSlug]]:
    """Return (detailed slugs, groups) in one pass."""
    detailed = muscles_to_slugs(primary, secondary)
    return detailed, slugs_to_groups(detailed)
