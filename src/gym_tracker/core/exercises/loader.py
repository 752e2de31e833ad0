"""
YAML → CatalogExercise loader.

Loads catalog entries from individual YAML files in the bundled
``src/gym_tracker/exercises/`` directory. Each file (e.g. Barbell_Squat.yaml)
holds one flat record in free-exercise-db field names.

User overrides: place matching files in ``~/.gym-tracker/exercises/``.
A user file is deep-merged over the bundled entry, so only changed keys
need to be listed. A user file whose stem matches no bundled file is
treated as a new exercise and added to the catalog.

Usage (internal, called by registry.py):
    from .loader import load_exercises_from_yaml
    exercises = load_exercises_from_yaml()   # dict or None on failure
"""

from __future__ import annotations

import logging
import os
import warnings
from pathlib import Path

import yaml

from ..config import DATA_DIR_NAME
from .base import CatalogExercise

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS: frozenset[str] = frozenset({"id", "name"})


def _str_tuple(value: object) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(v) for v in value if v is not None)


def exercise_from_dict(d: dict) -> CatalogExercise:
    """Convert a raw dict (from YAML) to a CatalogExercise.

    Raises ValueError if any required field is absent.
    """
    missing = _REQUIRED_FIELDS - {k for k, v in d.items() if v}
    if missing:
        raise ValueError(f"CatalogExercise missing fields: {sorted(missing)}")

    equipment = d.get("equipment")
    mechanic = d.get("mechanic")
    return CatalogExercise(
        exercise_id=str(d["id"]),
        name=str(d["name"]),
        primary_muscles=_str_tuple(d.get("primaryMuscles")),
        secondary_muscles=_str_tuple(d.get("secondaryMuscles")),
        equipment=str(equipment) if equipment else None,
        category=str(d.get("category") or ""),
        level=str(d.get("level") or ""),
        mechanic=str(mechanic) if mechanic else None,
        instructions=_str_tuple(d.get("instructions")),
        images=_str_tuple(d.get("images")),
    )


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; return {} and warn on parse errors."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"gym-tracker: cannot read '{path.name}': {exc}", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def get_bundled_exercises_dir() -> Path | None:
    """Return path to the bundled exercises/ data directory, or None if not found."""
    # loader.py lives at src/gym_tracker/core/exercises/loader.py
    # three levels up → src/gym_tracker/
    candidate = Path(__file__).parent.parent.parent / "exercises"
    return candidate if candidate.is_dir() else None


def get_user_exercises_dir() -> Path | None:
    """Return ~/.gym-tracker/exercises/ if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / DATA_DIR_NAME / "exercises"
    return p if p.is_dir() else None


def load_exercises_from_yaml(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> dict[str, CatalogExercise] | None:
    """Return {exercise_id: CatalogExercise} loaded from per-exercise YAML files.

    Loads each ``<stem>.yaml`` from the bundled directory. If a matching file
    exists in the user directory it is deep-merged over the bundled entry.
    User-only files (no bundled counterpart) are loaded as new exercises.

    Args:
        bundled_dir: Override for the bundled directory (defaults to package data)
        user_dir: Override for the user directory (defaults to ~/.gym-tracker/exercises)

    Returns:
        Loaded entries, or None when nothing could be loaded
    """
    if bundled_dir is None:
        bundled_dir = get_bundled_exercises_dir()
    if user_dir is None:
        user_dir = get_user_exercises_dir()

    if bundled_dir is None and user_dir is None:
        return None

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    result: dict[str, CatalogExercise] = {}

    for stem, bundled_path in stems.items():
        raw = _load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                user_raw = _load_yaml_file(user_path)
                if user_raw:
                    raw = _deep_merge(raw, user_raw)
        try:
            ex = exercise_from_dict(raw)
        except ValueError as exc:
            warnings.warn(f"gym-tracker: skipping exercise '{stem}': {exc}", stacklevel=2)
            continue
        result[ex.exercise_id] = ex

    for p in user_only:
        raw = _load_yaml_file(p)
        if not raw:
            continue
        try:
            ex = exercise_from_dict(raw)
        except ValueError as exc:
            warnings.warn(f"gym-tracker: skipping user exercise '{p.stem}': {exc}", stacklevel=2)
            continue
        result[ex.exercise_id] = ex

    logger.debug("Loaded %d catalog exercises", len(result))
    return result if result else None
