"""
YAML → ExerciseDefinition loader.

Loads the exercise catalog from per-muscle-group YAML files in the bundled
``src/lift_signals/exercises/`` directory.  Each file (e.g. chest.yaml)
holds a list of exercise entries under ``exercises:``; a file-level
``muscle_group`` key is used as the default primary muscle group.

User additions: place files of the same shape in
``$LIFT_SIGNALS_HOME/exercises/``.  An entry whose exercise_id matches a
bundled exercise is deep-merged over it, so only changed keys need to be
listed; any other entry is added to the catalog.

Usage (internal, called by registry.py):
    from .loader import load_exercises_from_yaml
    exercises = load_exercises_from_yaml()   # dict, possibly empty
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from ..engine.config_loader import deep_merge, get_home_dir
from .base import ExerciseDefinition

logger = logging.getLogger(__name__)

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {
        "exercise_id",
        "name",
        "primary_muscle_group",
        "equipment_type",
        "movement_pattern",
    }
)


def exercise_from_dict(d: dict) -> ExerciseDefinition:
    """Convert a raw dict (from YAML) to an ExerciseDefinition.

    Raises ValueError if any required field is absent or invalid.
    """
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"ExerciseDefinition missing fields: {sorted(missing)}")

    return ExerciseDefinition(
        exercise_id=str(d["exercise_id"]),
        name=str(d["name"]),
        primary_muscle_group=str(d["primary_muscle_group"]),
        equipment_type=str(d["equipment_type"]),
        movement_pattern=str(d["movement_pattern"]),
        secondary_muscles=tuple(str(m) for m in d.get("secondary_muscles") or ()),
        difficulty=str(d.get("difficulty", "intermediate")),
    )


def _load_entries(path: Path) -> list[dict]:
    """Return the raw exercise entries of one catalog file ([] with a warning on errors)."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Skipping unreadable exercise file %s: %s", path, e)
        return []
    if not isinstance(data, dict):
        return []

    default_group = data.get("muscle_group")
    entries: list[dict] = []
    for raw in data.get("exercises") or []:
        if not isinstance(raw, dict):
            continue
        entry = dict(raw)
        if default_group is not None:
            entry.setdefault("primary_muscle_group", default_group)
        entries.append(entry)
    return entries


def _get_bundled_exercises_dir() -> Path | None:
    """Return path to the bundled exercises/ data directory, or None if not found."""
    # loader.py lives at src/lift_signals/core/exercises/loader.py
    # three levels up → src/lift_signals/
    candidate = Path(__file__).parent.parent.parent / "exercises"
    return candidate if candidate.is_dir() else None


def _get_user_exercises_dir() -> Path | None:
    """Return $LIFT_SIGNALS_HOME/exercises/ if it exists, else None."""
    p = get_home_dir() / "exercises"
    return p if p.is_dir() else None


def _collect(directory: Path | None) -> dict[str, dict]:
    raw: dict[str, dict] = {}
    if directory is None:
        return raw
    for path in sorted(directory.glob("*.yaml")):
        for entry in _load_entries(path):
            ex_id = entry.get("exercise_id")
            if ex_id:
                raw[str(ex_id)] = entry
    return raw


def load_exercises_from_yaml() -> dict[str, ExerciseDefinition]:
    """Return {exercise_id: ExerciseDefinition} from bundled and user YAML files.

    Invalid entries are skipped with a warning; the result may be empty.
    """
    merged = _collect(_get_bundled_exercises_dir())
    for ex_id, user_raw in _collect(_get_user_exercises_dir()).items():
        merged[ex_id] = deep_merge(merged.get(ex_id, {}), user_raw)

    result: dict[str, ExerciseDefinition] = {}
    for ex_id, raw in merged.items():
        try:
            result[ex_id] = exercise_from_dict(raw)
        except ValueError as exc:
            logger.warning("Skipping exercise %r: %s", ex_id, exc)
    return result
