"""
Plateau and regression detection.

For every exercise that appears in at least two of the user's three most
recent completed sessions, the best working set (highest weight × reps) of
each session is compared, most recent first (S0, S1, …):

  plateau:     S0 repeated: the prefix of sessions whose best set equals S0
               on both weight and reps has length ≥ 2
  regression:  otherwise, the prefix where every step back in time was at
               least as good on both weight and reps, and strictly better on
               one, has length ≥ 2

Plateau is checked first and wins when both patterns hold.  A hit carries
five interventions in fixed order: deload, rep range, exercise swap,
technique, volume.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from .config import PLATEAU_MIN_APPEARANCES, PLATEAU_MIN_PREFIX, PLATEAU_SESSION_WINDOW
from .metrics import session_bests
from .models import (
    ExerciseRef,
    Intervention,
    PlateauResult,
    PlateauType,
    SessionBest,
    VolumeLandmark,
)
from .rotation import RotationCoordinator
from .store import StoreError, TrainingStore
from .volume import get_landmark

logger = logging.getLogger(__name__)


def identical_prefix_length(bests: Sequence[SessionBest]) -> int:
    """Number of leading sessions whose best set equals the most recent one."""
    if not bests:
        return 0
    first = bests[0]
    count = 1
    for b in bests[1:]:
        if b.weight == first.weight and b.reps == first.reps:
            count += 1
        else:
            break
    return count


def declining_prefix_length(bests: Sequence[SessionBest]) -> int:
    """
    Length of the leading run over which performance fell, newest first.

    Each older session must be ≥ the newer one on weight and reps and
    strictly greater on at least one of them.
    """
    if not bests:
        return 0
    count = 1
    for newer, older in zip(bests, bests[1:]):
        not_worse = older.weight >= newer.weight and older.reps >= newer.reps
        strictly_better = older.weight > newer.weight or older.reps > newer.reps
        if not_worse and strictly_better:
            count += 1
        else:
            break
    return count


def detect_pattern(bests: Sequence[SessionBest]) -> PlateauType | None:
    """
    Classify a most-recent-first sequence of session bests.

    Returns:
        "plateau", "regression" or None
    """
    if len(bests) < PLATEAU_MIN_APPEARANCES:
        return None
    if identical_prefix_length(bests) >= PLATEAU_MIN_PREFIX:
        return "plateau"
    if declining_prefix_length(bests) >= PLATEAU_MIN_PREFIX:
        return "regression"
    return None


def volume_intervention(muscle_group: str | None, landmark: VolumeLandmark | None) -> Intervention:
    """Volume check, with landmark numbers when the muscle group is known."""
    if muscle_group and landmark is not None:
        return Intervention(
            type="volume",
            title="Adjust weekly volume",
            description=(
                f"Check your weekly sets for {muscle_group}. "
                f"Science-based targets: MEV is {landmark.minimum_effective} sets, "
                f"optimal range (MAV) is {landmark.optimal_min}-{landmark.optimal_max} sets, "
                f"and MRV is {landmark.maximum_recoverable} sets. "
                "If you're below MEV, increase volume. If approaching MRV, consider a deload."
            ),
        )
    return Intervention(
        type="volume",
        title="Check weekly volume",
        description=(
            "Review your weekly set count for this muscle group. You may need to increase "
            "volume to drive adaptation, or decrease it if you're exceeding your recovery capacity."
        ),
    )


def build_interventions(
    plateau_type: PlateauType,
    replacement: ExerciseRef | None,
    muscle_group: str | None,
    landmark: VolumeLandmark | None,
) -> list[Intervention]:
    """The five remediation suggestions for a detected plateau or regression."""
    if plateau_type == "regression":
        deload = (
            "Your performance is declining -- reduce volume by 50% for 1 week to allow full "
            "recovery. This is the most evidence-based approach for regression."
        )
    else:
        deload = (
            "Reduce volume by 50% for 1 week. Strategic deloads allow accumulated fatigue to "
            "dissipate while maintaining adaptations."
        )

    if replacement is not None:
        swap = (
            f"Try switching to {replacement.name}. A new movement variation provides a novel "
            "stimulus while still targeting the same muscle group."
        )
    else:
        swap = (
            "Try a different variation of this exercise. Changing equipment type or grip can "
            "provide a new stimulus."
        )

    return [
        Intervention(type="deload", title="Take a deload week", description=deload),
        Intervention(
            type="rep_range",
            title="Switch rep range",
            description=(
                "Switch from 8-10 reps to 12-15 reps for 2 weeks. Changing the rep range alters "
                "the stimulus and can break through stagnation by targeting different muscle "
                "fiber recruitment patterns."
            ),
        ),
        Intervention(
            type="exercise_swap",
            title="Swap exercise variation",
            description=swap,
            replacement=replacement,
        ),
        Intervention(
            type="technique",
            title="Modify technique",
            description=(
                "Try a different grip width, stance, or slow down the eccentric to 3 seconds. "
                "Tempo manipulation and grip changes can create new mechanical tension without "
                "changing the exercise."
            ),
        ),
        volume_intervention(muscle_group, landmark),
    ]


class PlateauDetector:
    """Builds plateau/regression alerts from recent history."""

    def __init__(
        self,
        store: TrainingStore,
        rotation: RotationCoordinator | None = None,
        landmarks: dict[str, VolumeLandmark] | None = None,
    ):
        self.store = store
        self.rotation = rotation or RotationCoordinator(store)
        self.landmarks = landmarks

    def detect(self, user_id: str, now: datetime | None = None) -> list[PlateauResult]:
        """
        Plateau and regression alerts for the user's recent exercises.

        Returns an empty list when there is not enough history or the store
        cannot be read.
        """
        try:
            sessions = self.store.fetch_recent_completed_sessions(user_id, PLATEAU_SESSION_WINDOW)
            if len(sessions) < PLATEAU_MIN_APPEARANCES:
                return []
            sets = self.store.fetch_working_sets([s.session_id for s in sessions])
        except StoreError as e:
            logger.warning("Plateau detection for %s could not read history: %s", user_id, e)
            return []

        meta: dict[str, ExerciseRef] = {}
        usable = []
        for s in sets:
            if s.kind != "working" or s.exercise is None:
                continue
            meta.setdefault(s.exercise_id, s.exercise)
            usable.append(s)

        results: list[PlateauResult] = []
        for exercise_id, per_session in session_bests(usable, sessions).items():
            if len(per_session) < PLATEAU_MIN_APPEARANCES:
                continue
            bests = sorted(per_session.values(), key=lambda b: b.started_at, reverse=True)
            plateau_type = detect_pattern(bests)
            if plateau_type is None:
                continue

            exercise = meta[exercise_id]
            replacement = self.rotation.find_replacement(
                user_id, exercise_id, exercise.muscle_group, now
            )
            landmark = get_landmark(exercise.muscle_group, self.landmarks)
            results.append(
                PlateauResult(
                    exercise_id=exercise_id,
                    exercise_name=exercise.name,
                    muscle_group=exercise.muscle_group,
                    plateau_type=plateau_type,
                    session_count=len(bests),
                    last_weight=bests[0].weight,
                    last_reps=bests[0].reps,
                    interventions=build_interventions(
                        plateau_type, replacement, exercise.muscle_group, landmark
                    ),
                )
            )
            logger.debug("%s: %s over %d sessions", exercise.name, plateau_type, len(bests))
        return results
