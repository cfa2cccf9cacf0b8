"""
Exercise registry.

The catalog is loaded from the bundled per-muscle-group YAML files at
import time.  If no exercise can be loaded a RuntimeError is raised: the
analyzers cannot search replacement candidates without a catalog.
"""

from .base import ExerciseDefinition


def _build_registry() -> dict[str, ExerciseDefinition]:
    from .loader import load_exercises_from_yaml

    loaded = load_exercises_from_yaml()
    if not loaded:
        raise RuntimeError(
            "lift-signals: no exercise definitions could be loaded from YAML. "
            "Check that src/lift_signals/exercises/*.yaml files are present and valid."
        )
    return loaded


EXERCISE_REGISTRY: dict[str, ExerciseDefinition] = _build_registry()


def get_exercise(exercise_id: str) -> ExerciseDefinition:
    """
    Return the ExerciseDefinition for the given exercise_id.

    Raises:
        ValueError: If exercise_id is not in the registry
    """
    if exercise_id not in EXERCISE_REGISTRY:
        raise ValueError(f"Unknown exercise '{exercise_id}'")
    return EXERCISE_REGISTRY[exercise_id]


def find_exercise(exercise_id: str) -> ExerciseDefinition | None:
    """Return the ExerciseDefinition for exercise_id, or None if unknown."""
    return EXERCISE_REGISTRY.get(exercise_id)


def exercises_for_muscle_group(
    muscle_group: str,
    exclude_exercise_id: str | None = None,
) -> list[ExerciseDefinition]:
    """
    Catalog entries whose primary muscle group matches, ordered by name.

    Args:
        muscle_group: Primary muscle group to match
        exclude_exercise_id: Exercise to leave out (usually the one being replaced)
    """
    matches = [
        ex for ex in EXERCISE_REGISTRY.values()
        if ex.primary_muscle_group == muscle_group and ex.exercise_id != exclude_exercise_id
    ]
    return sorted(matches, key=lambda ex: ex.name)
