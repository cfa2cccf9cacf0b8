"""
Exercise catalog for lift-signals.

Each exercise is described by an ExerciseDefinition loaded from the bundled
YAML files.
"""

from .base import ExerciseDefinition
from .registry import EXERCISE_REGISTRY, exercises_for_muscle_group, find_exercise, get_exercise

__all__ = [
    "ExerciseDefinition",
    "EXERCISE_REGISTRY",
    "exercises_for_muscle_group",
    "find_exercise",
    "get_exercise",
]
