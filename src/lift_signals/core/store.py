"""
Storage contract consumed by the analyzers.

The analyzers never talk to files or databases directly; they call a
TrainingStore.  Every call takes the user id explicitly.  Implementations
raise StoreError (or a subclass) for any storage failure.
"""

from datetime import datetime
from typing import Protocol

from .models import (
    AchievementRecord,
    ExerciseRef,
    RotationState,
    SessionSummary,
    WorkingSet,
)


class StoreError(Exception):
    """Raised when the history store cannot be read or written."""

    pass


class DuplicateAchievementError(StoreError):
    """Raised when a badge is awarded twice to the same user."""

    def __init__(self, user_id: str, badge_type: str):
        super().__init__(f"Badge {badge_type!r} already earned by user {user_id!r}")
        self.user_id = user_id
        self.badge_type = badge_type


class RotationConflictError(StoreError):
    """Raised when a rotation state was modified since it was read."""

    def __init__(self, user_id: str, exercise_id: str, expected: int, actual: int | None):
        super().__init__(
            f"Rotation state for {exercise_id!r} (user {user_id!r}) changed concurrently: "
            f"expected version {expected}, found {actual}"
        )
        self.user_id = user_id
        self.exercise_id = exercise_id
        self.expected = expected
        self.actual = actual


class InvalidTransitionError(ValueError):
    """Raised when a rotation decision does not apply to the record's status."""

    pass


class TrainingStore(Protocol):
    """Read/write contract over a user's training history."""

    def fetch_recent_completed_sessions(self, user_id: str, limit: int) -> list[SessionSummary]:
        """Most recent completed sessions, newest first."""
        ...

    def fetch_completed_sessions_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[SessionSummary]:
        """Completed sessions with start <= started_at < end, oldest first."""
        ...

    def fetch_working_sets(self, session_ids: list[str]) -> list[WorkingSet]:
        """Working-kind sets of the given sessions, exercise metadata joined."""
        ...

    def fetch_sets(self, session_ids: list[str]) -> list[WorkingSet]:
        """Sets of every kind for the given sessions, exercise metadata joined."""
        ...

    def fetch_sets_logged_since(self, user_id: str, since: datetime) -> list[WorkingSet]:
        ...

    def any_set_with_min_reps(self, user_id: str, min_reps: int) -> bool:
        ...

    def fetch_rotation_states(
        self, user_id: str, muscle_group: str | None = None
    ) -> list[RotationState]:
        ...

    def fetch_rotation_state(self, user_id: str, exercise_id: str) -> RotationState | None:
        ...

    def upsert_rotation_state(self, state: RotationState) -> RotationState:
        """Write state if its version matches the stored one; return it with version + 1."""
        ...

    def fetch_exercise(self, exercise_id: str) -> ExerciseRef | None:
        ...

    def fetch_exercise_candidates(
        self, muscle_group: str, exclude_exercise_id: str
    ) -> list[ExerciseRef]:
        """Exercises of a muscle group, excluding one, ordered by name."""
        ...

    def fetch_earned_badge_types(self, user_id: str) -> set[str]:
        ...

    def fetch_achievements(self, user_id: str) -> list[AchievementRecord]:
        ...

    def insert_achievement_record(self, record: AchievementRecord) -> None:
        """Append a record; raise DuplicateAchievementError if already earned."""
        ...
