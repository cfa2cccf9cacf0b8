"""
Exercise rotation: staleness scan, replacement search and the rotation
state machine.

States and transitions
----------------------
  (first use)                         → active         freshness 1.0
  active        + scan, stale, found  → suggested_swap  replacement stored
  suggested_swap + accept             → resting         replacement → active
  suggested_swap + dismiss            → active          freshness 1.0
  resting       + performed           → active          freshness 1.0

Replacement candidates share the stale exercise's muscle group and are
ranked by an additive score (see ``score_candidate``).  Ties keep the
candidate order returned by the store (alphabetical by name).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime

from .config import (
    LONG_ROTATION_DAYS,
    SCORE_CURRENTLY_ACTIVE,
    SCORE_DIFFERENT_EQUIPMENT,
    SCORE_DIFFERENT_PATTERN,
    SCORE_NEVER_USED,
    SCORE_RESTING_NOT_RECOVERED,
    SCORE_RESTING_RECOVERED,
)
from .freshness import (
    days_elapsed,
    freshness,
    freshness_status,
    has_recovered_from_rest,
    needs_swap,
    reference_instant,
)
from .models import ExerciseRef, FreshnessEntry, RotationState, RotationSuggestion
from .store import InvalidTransitionError, RotationConflictError, StoreError, TrainingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredCandidate:
    """A replacement candidate with its ranking score."""

    exercise: ExerciseRef
    score: int


def score_candidate(
    candidate: ExerciseRef,
    current: ExerciseRef | None,
    state: RotationState | None,
    now: datetime | None = None,
) -> int:
    """
    Heuristic score of a replacement candidate.

      different equipment            +3
      different movement pattern     +2
      resting and recovered (≥28 d)  +5
      resting, not yet recovered     +1
      never used (no rotation row)   +4
      currently active               −2

    Args:
        candidate: Exercise being considered
        current: Exercise being replaced (None if its metadata is unknown)
        state: Candidate's own rotation state, or None if never used
        now: Evaluation instant
    """
    score = 0
    if current is not None:
        if candidate.equipment != current.equipment:
            score += SCORE_DIFFERENT_EQUIPMENT
        if candidate.movement_pattern != current.movement_pattern:
            score += SCORE_DIFFERENT_PATTERN

    if state is None:
        score += SCORE_NEVER_USED
    elif state.status == "resting":
        if has_recovered_from_rest(state.last_performed_at, now):
            score += SCORE_RESTING_RECOVERED
        else:
            score += SCORE_RESTING_NOT_RECOVERED
    elif state.status == "active":
        score += SCORE_CURRENTLY_ACTIVE
    return score


def rank_candidates(
    candidates: list[ExerciseRef],
    current: ExerciseRef | None,
    states: dict[str, RotationState],
    now: datetime | None = None,
) -> list[ScoredCandidate]:
    """Candidates sorted by score, highest first; equal scores keep input order."""
    scored = [
        ScoredCandidate(c, score_candidate(c, current, states.get(c.exercise_id), now))
        for c in candidates
    ]
    return sorted(scored, key=lambda sc: sc.score, reverse=True)


def swap_reason(days: int, score: float) -> str:
    """User-facing explanation attached to a stale exercise."""
    if days >= LONG_ROTATION_DAYS:
        return (
            f"This exercise has been in rotation for {days} days without meaningful variation. "
            "Swapping helps prevent accommodation and keeps stimulus novel."
        )
    return (
        f"Freshness score is low ({score * 100:.0f}%). "
        "Consider rotating for continued progress."
    )


class RotationCoordinator:
    """
    Drives rotation state for one store.

    Store reads that fail are treated as "no data"; failed writes during a
    scan skip the affected record, while explicit decisions propagate them.
    """

    def __init__(self, store: TrainingStore):
        self.store = store

    # ------------------------------------------------------------------
    # Candidate search
    # ------------------------------------------------------------------

    def find_replacement(
        self,
        user_id: str,
        exercise_id: str,
        muscle_group: str | None = None,
        now: datetime | None = None,
    ) -> ExerciseRef | None:
        """
        Best replacement for an exercise, or None.

        Args:
            user_id: Owner of the rotation states
            exercise_id: Exercise to replace
            muscle_group: Muscle group to search (defaults to the exercise's own)
            now: Evaluation instant
        """
        try:
            current = self.store.fetch_exercise(exercise_id)
            target = muscle_group or (current.muscle_group if current else None)
            if target is None:
                return None
            candidates = self.store.fetch_exercise_candidates(target, exercise_id)
            if not candidates:
                return None
            states = {s.exercise_id: s for s in self.store.fetch_rotation_states(user_id)}
        except StoreError as e:
            logger.warning("Replacement search for %s failed: %s", exercise_id, e)
            return None

        ranked = rank_candidates(candidates, current, states, now)
        return ranked[0].exercise if ranked else None

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    def scan(self, user_id: str, now: datetime | None = None) -> list[RotationSuggestion]:
        """
        Flag stale active exercises and propose replacements.

        Each stale record with a replacement moves to suggested_swap.  Stale
        records without candidates stay active but are still reported.
        """
        now = now or datetime.now()
        try:
            states = self.store.fetch_rotation_states(user_id)
        except StoreError as e:
            logger.warning("Rotation scan for %s could not read states: %s", user_id, e)
            return []

        suggestions: list[RotationSuggestion] = []
        for state in states:
            if state.status != "active":
                continue
            score = freshness(state.introduced_at, state.last_performed_at, now)
            if not needs_swap(score):
                continue

            days = days_elapsed(reference_instant(state.introduced_at, state.last_performed_at), now)
            replacement = self.find_replacement(user_id, state.exercise_id, state.muscle_group, now)
            current = self._exercise_or_none(state.exercise_id)

            stored = replace(state, freshness_score=score)
            if replacement is not None:
                try:
                    stored = self.store.upsert_rotation_state(
                        replace(
                            state,
                            status="suggested_swap",
                            freshness_score=score,
                            swap_suggested_at=now,
                            suggested_replacement=replacement.exercise_id,
                        )
                    )
                except RotationConflictError as e:
                    logger.info("Skipping swap suggestion: %s", e)
                    continue
                except StoreError as e:
                    logger.warning("Could not store swap suggestion for %s: %s", state.exercise_id, e)
                    continue

            suggestions.append(
                RotationSuggestion(
                    rotation=stored,
                    exercise=current,
                    replacement=replacement,
                    freshness=score,
                    days_elapsed=days,
                    reason=swap_reason(days, score),
                )
            )
        return suggestions

    def freshness_report(self, user_id: str, now: datetime | None = None) -> list[FreshnessEntry]:
        """Current freshness of every rotation record, stalest first."""
        now = now or datetime.now()
        try:
            states = self.store.fetch_rotation_states(user_id)
        except StoreError as e:
            logger.warning("Freshness report for %s could not read states: %s", user_id, e)
            return []

        entries = []
        for state in states:
            score = freshness(state.introduced_at, state.last_performed_at, now)
            entries.append(
                FreshnessEntry(
                    rotation=state,
                    exercise=self._exercise_or_none(state.exercise_id),
                    freshness=score,
                    label=freshness_status(score),
                    days_elapsed=days_elapsed(
                        reference_instant(state.introduced_at, state.last_performed_at), now
                    ),
                )
            )
        entries.sort(key=lambda e: e.freshness)
        return entries

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def record_performed(
        self,
        user_id: str,
        exercise_id: str,
        muscle_group: str,
        now: datetime | None = None,
    ) -> RotationState:
        """
        Register that an exercise was performed.

        Creates the record on first use; otherwise resets freshness and
        last_performed_at.  Resting exercises become active again; a pending
        swap suggestion stays pending.
        """
        now = now or datetime.now()
        state = self.store.fetch_rotation_state(user_id, exercise_id)
        if state is None:
            new = RotationState(
                user_id=user_id,
                exercise_id=exercise_id,
                muscle_group=muscle_group,
                introduced_at=now,
                last_performed_at=now,
            )
            logger.debug("Introducing %s into rotation for %s", exercise_id, user_id)
            return self.store.upsert_rotation_state(new)

        status = "active" if state.status == "resting" else state.status
        return self.store.upsert_rotation_state(
            replace(state, status=status, freshness_score=1.0, last_performed_at=now)
        )

    def accept_swap(
        self,
        user_id: str,
        exercise_id: str,
        now: datetime | None = None,
    ) -> tuple[RotationState, RotationState]:
        """
        Accept the pending swap for an exercise.

        The exercise moves to resting; its replacement is created or
        reactivated as active with freshness 1.0.  A reactivated replacement
        keeps its original introduced_at.

        Returns:
            (resting outgoing state, active replacement state)

        Raises:
            InvalidTransitionError: If no swap is pending for the exercise
            RotationConflictError: If either record changed concurrently; the
                outgoing exercise is left with its swap still pending
        """
        now = now or datetime.now()
        state = self._pending_swap(user_id, exercise_id)
        replacement_id: str = state.suggested_replacement  # type: ignore[assignment]

        existing = self.store.fetch_rotation_state(user_id, replacement_id)
        if existing is not None:
            incoming = replace(
                existing,
                status="active",
                freshness_score=1.0,
                last_performed_at=now,
                swap_suggested_at=None,
                suggested_replacement=None,
            )
        else:
            incoming = RotationState(
                user_id=user_id,
                exercise_id=replacement_id,
                muscle_group=state.muscle_group,
                introduced_at=now,
                last_performed_at=now,
            )

        resting = self.store.upsert_rotation_state(
            replace(state, status="resting", swap_suggested_at=None, suggested_replacement=None)
        )
        try:
            activated = self.store.upsert_rotation_state(incoming)
        except StoreError:
            self._restore_pending_swap(resting, state)
            raise
        logger.info("Swapped %s → %s for %s", exercise_id, replacement_id, user_id)
        return resting, activated

    def dismiss_swap(
        self,
        user_id: str,
        exercise_id: str,
        now: datetime | None = None,
    ) -> RotationState:
        """
        Dismiss the pending swap; the exercise stays active with a fresh timer.

        Raises:
            InvalidTransitionError: If no swap is pending for the exercise
        """
        now = now or datetime.now()
        state = self._pending_swap(user_id, exercise_id)
        return self.store.upsert_rotation_state(
            replace(
                state,
                status="active",
                freshness_score=1.0,
                last_performed_at=now,
                swap_suggested_at=None,
                suggested_replacement=None,
            )
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _pending_swap(self, user_id: str, exercise_id: str) -> RotationState:
        state = self.store.fetch_rotation_state(user_id, exercise_id)
        if state is None:
            raise InvalidTransitionError(f"No rotation state for {exercise_id!r}")
        if state.status != "suggested_swap" or not state.suggested_replacement:
            raise InvalidTransitionError(
                f"{exercise_id!r} has no pending swap (status: {state.status})"
            )
        return state

    def _restore_pending_swap(self, resting: RotationState, pending: RotationState) -> None:
        """Put a rested exercise back into suggested_swap after a failed accept."""
        try:
            self.store.upsert_rotation_state(
                replace(
                    resting,
                    status=pending.status,
                    swap_suggested_at=pending.swap_suggested_at,
                    suggested_replacement=pending.suggested_replacement,
                )
            )
        except StoreError as e:
            logger.error("Could not restore pending swap for %s: %s", pending.exercise_id, e)

    def _exercise_or_none(self, exercise_id: str) -> ExerciseRef | None:
        try:
            return self.store.fetch_exercise(exercise_id)
        except StoreError as e:
            logger.warning("Could not load exercise %s: %s", exercise_id, e)
            return None
