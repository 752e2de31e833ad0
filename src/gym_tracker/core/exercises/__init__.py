"""
Exercise catalog for gym-tracker.

Reference data consumed by templates, sessions and the muscle mapper.
"""

from .base import CatalogExercise
from .registry import ExerciseCatalog, build_tags, get_catalog, image_url, subtitle, to_ref

__all__ = [
    "CatalogExercise",
    "ExerciseCatalog",
    "build_tags",
    "get_catalog",
    "image_url",
    "subtitle",
    "to_ref",
]
