"""
File-based training store.

Layout of a data directory:

    sessions.jsonl      one session per line
    sets.jsonl          one logged set per line
    rotation.json       list of rotation records, rewritten atomically
    achievements.jsonl  append-only badge awards

Exercise metadata is not stored with the sets; it is joined from the
exercise catalog on read.
"""

import json
import logging
import os
import tempfile
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.engine.config_loader import get_home_dir
from ..core.exercises.registry import exercises_for_muscle_group, find_exercise
from ..core.models import (
    AchievementRecord,
    ExerciseRef,
    RotationState,
    SessionSummary,
    WorkingSet,
)
from ..core.store import DuplicateAchievementError, RotationConflictError, StoreError
from .serializers import (
    ValidationError,
    achievement_to_dict,
    dict_to_achievement,
    dict_to_rotation_state,
    dict_to_session_summary,
    dict_to_working_set,
    rotation_state_to_dict,
    session_summary_to_dict,
    working_set_to_dict,
)

logger = logging.getLogger(__name__)


def get_default_data_dir() -> Path:
    """Default data directory: ``<lift-signals home>/data``."""
    return get_home_dir() / "data"


class HistoryStore:
    """
    Manages one data directory of training history.

    Every query takes the user id explicitly; one directory may hold the
    history of several users.  Read and write failures surface as
    StoreError.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the history store.

        Args:
            data_dir: Directory holding the data files
        """
        self.data_dir = Path(data_dir)
        self.sessions_path = self.data_dir / "sessions.jsonl"
        self.sets_path = self.data_dir / "sets.jsonl"
        self.rotation_path = self.data_dir / "rotation.json"
        self.achievements_path = self.data_dir / "achievements.jsonl"

    def exists(self) -> bool:
        """Check if the data directory has been initialized."""
        return self.sessions_path.exists()

    def init(self) -> None:
        """
        Create the data directory and empty data files if missing.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.sessions_path, self.sets_path, self.achievements_path):
            if not path.exists():
                path.touch()
        if not self.rotation_path.exists():
            self._write_rotation_records([])

    # ------------------------------------------------------------------
    # Low-level file access
    # ------------------------------------------------------------------

    def _read_jsonl(self, path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            return []
        records = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        records.append(json.loads(line))
                    except json.JSONDecodeError as e:
                        raise ValidationError(
                            f"Error parsing line {line_num} in {path}: {e}"
                        ) from e
        except OSError as e:
            raise StoreError(f"Cannot read {path}: {e}") from e
        return records

    def _append_jsonl(self, path: Path, records: list[dict[str, Any]]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                for record in records:
                    f.write(json.dumps(record, separators=(",", ":")) + "\n")
        except OSError as e:
            raise StoreError(f"Cannot write {path}: {e}") from e

    def _load_rotation_records(self) -> list[dict[str, Any]]:
        if not self.rotation_path.exists():
            return []
        try:
            with open(self.rotation_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {self.rotation_path}: {e}") from e
        except OSError as e:
            raise StoreError(f"Cannot read {self.rotation_path}: {e}") from e
        if not isinstance(data, list):
            raise ValidationError(f"{self.rotation_path} must contain a list of records")
        return data

    def _write_rotation_records(self, records: list[dict[str, Any]]) -> None:
        """Replace rotation.json atomically."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.data_dir,
                prefix=".rotation-",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                json.dump(records, tmp, indent=2)
                tmp_path = tmp.name
            os.replace(tmp_path, self.rotation_path)
        except OSError as e:
            raise StoreError(f"Cannot write {self.rotation_path}: {e}") from e

    # ------------------------------------------------------------------
    # Sessions and sets
    # ------------------------------------------------------------------

    def load_sessions(self, user_id: str) -> list[SessionSummary]:
        """
        All sessions of a user.

        Returns:
            List of SessionSummary, sorted by started_at (oldest first)
        """
        sessions = [
            dict_to_session_summary(d)
            for d in self._read_jsonl(self.sessions_path)
            if d.get("user_id") == user_id
        ]
        sessions.sort(key=lambda s: s.started_at)
        return sessions

    def _load_sets(self, session_ids: set[str] | None = None) -> list[WorkingSet]:
        sets = []
        refs: dict[str, ExerciseRef | None] = {}
        for d in self._read_jsonl(self.sets_path):
            if session_ids is not None and d.get("session_id") not in session_ids:
                continue
            exercise_id = str(d.get("exercise_id", ""))
            if exercise_id not in refs:
                refs[exercise_id] = self.fetch_exercise(exercise_id)
                if refs[exercise_id] is None:
                    logger.debug("Exercise %r not in catalog; sets left without metadata", exercise_id)
            sets.append(dict_to_working_set(d, refs[exercise_id]))
        sets.sort(key=lambda s: s.logged_at)
        return sets

    def append_session(self, session: SessionSummary, sets: list[WorkingSet]) -> None:
        """
        Append a session and its sets.

        Raises:
            ValidationError: If the session id is already used, or a set
                belongs to another session
        """
        existing = {d.get("id") for d in self._read_jsonl(self.sessions_path)}
        if session.session_id in existing:
            raise ValidationError(f"Session {session.session_id!r} already exists")
        for s in sets:
            if s.session_id != session.session_id:
                raise ValidationError(
                    f"Set {s.set_id!r} belongs to session {s.session_id!r}, not {session.session_id!r}"
                )
        self._append_jsonl(self.sessions_path, [session_summary_to_dict(session)])
        self._append_jsonl(self.sets_path, [working_set_to_dict(s) for s in sets])
        logger.debug("Stored session %s with %d sets", session.session_id, len(sets))

    def fetch_recent_completed_sessions(self, user_id: str, limit: int) -> list[SessionSummary]:
        completed = [s for s in self.load_sessions(user_id) if s.is_completed]
        completed.sort(key=lambda s: s.started_at, reverse=True)
        return completed[:limit]

    def fetch_completed_sessions_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[SessionSummary]:
        return [
            s for s in self.load_sessions(user_id)
            if s.is_completed and start <= s.started_at < end
        ]

    def fetch_working_sets(self, session_ids: list[str]) -> list[WorkingSet]:
        return [s for s in self.fetch_sets(session_ids) if s.kind == "working"]

    def fetch_sets(self, session_ids: list[str]) -> list[WorkingSet]:
        if not session_ids:
            return []
        return self._load_sets(set(session_ids))

    def fetch_user_sets(self, user_id: str) -> list[WorkingSet]:
        """Every set logged by a user, oldest first."""
        ids = {s.session_id for s in self.load_sessions(user_id)}
        if not ids:
            return []
        return self._load_sets(ids)

    def fetch_sets_logged_since(self, user_id: str, since: datetime) -> list[WorkingSet]:
        return [s for s in self.fetch_user_sets(user_id) if s.logged_at >= since]

    def any_set_with_min_reps(self, user_id: str, min_reps: int) -> bool:
        return any(s.reps >= min_reps for s in self.fetch_user_sets(user_id))

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    def fetch_rotation_states(
        self, user_id: str, muscle_group: str | None = None
    ) -> list[RotationState]:
        states = [
            dict_to_rotation_state(d)
            for d in self._load_rotation_records()
            if d.get("user_id") == user_id
        ]
        if muscle_group is not None:
            states = [s for s in states if s.muscle_group == muscle_group]
        return states

    def fetch_rotation_state(self, user_id: str, exercise_id: str) -> RotationState | None:
        for state in self.fetch_rotation_states(user_id):
            if state.exercise_id == exercise_id:
                return state
        return None

    def upsert_rotation_state(self, state: RotationState) -> RotationState:
        """
        Write a rotation record if nobody changed it since it was read.

        Raises:
            RotationConflictError: If the stored version differs from
                state.version (or a record exists when version is 0)
        """
        records = self._load_rotation_records()
        index = None
        actual = None
        for i, d in enumerate(records):
            if d.get("user_id") == state.user_id and d.get("exercise_id") == state.exercise_id:
                index = i
                actual = int(d.get("version", 1))
                break

        if (actual or 0) != state.version:
            raise RotationConflictError(state.user_id, state.exercise_id, state.version, actual)

        stored = replace(state, version=state.version + 1)
        if index is None:
            records.append(rotation_state_to_dict(stored))
        else:
            records[index] = rotation_state_to_dict(stored)
        self._write_rotation_records(records)
        return stored

    # ------------------------------------------------------------------
    # Exercise catalog
    # ------------------------------------------------------------------

    def fetch_exercise(self, exercise_id: str) -> ExerciseRef | None:
        definition = find_exercise(exercise_id)
        return definition.to_ref() if definition else None

    def fetch_exercise_candidates(
        self, muscle_group: str, exclude_exercise_id: str
    ) -> list[ExerciseRef]:
        return [ex.to_ref() for ex in exercises_for_muscle_group(muscle_group, exclude_exercise_id)]

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------

    def fetch_achievements(self, user_id: str) -> list[AchievementRecord]:
        """Awards of a user in the order they were earned."""
        return [
            dict_to_achievement(d)
            for d in self._read_jsonl(self.achievements_path)
            if d.get("user_id") == user_id
        ]

    def fetch_earned_badge_types(self, user_id: str) -> set[str]:
        return {r.badge_type for r in self.fetch_achievements(user_id)}

    def insert_achievement_record(self, record: AchievementRecord) -> None:
        """
        Append an award.

        Raises:
            DuplicateAchievementError: If the user already holds the badge
        """
        if any(r.badge_type == record.badge_type for r in self.fetch_achievements(record.user_id)):
            raise DuplicateAchievementError(record.user_id, record.badge_type)
        self._append_jsonl(self.achievements_path, [achievement_to_dict(record)])
