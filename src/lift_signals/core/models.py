"""
Data models for lift-signals.

All core dataclasses representing logged training data, rotation state,
achievements and the analyzer results built from them.
Timestamps are naive local datetimes; the io layer converts them to and
from ISO strings.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

MuscleGroup = Literal[
    "chest", "back", "shoulders", "biceps", "triceps", "quads",
    "hamstrings", "glutes", "calves", "core", "forearms",
]
EquipmentType = Literal["barbell", "dumbbell", "cable", "machine", "bodyweight", "band", "other"]
MovementPattern = Literal["push", "pull", "hinge", "squat", "lunge", "carry", "isolation"]
SetKind = Literal["working", "warmup", "other"]
RotationStatus = Literal["active", "suggested_swap", "resting"]
PlateauType = Literal["plateau", "regression"]
InterventionType = Literal["deload", "rep_range", "exercise_swap", "technique", "volume"]

MUSCLE_GROUPS: tuple[str, ...] = (
    "chest", "back", "shoulders", "biceps", "triceps", "quads",
    "hamstrings", "glutes", "calves", "core", "forearms",
)
EQUIPMENT_TYPES: tuple[str, ...] = (
    "barbell", "dumbbell", "cable", "machine", "bodyweight", "band", "other",
)
MOVEMENT_PATTERNS: tuple[str, ...] = (
    "push", "pull", "hinge", "squat", "lunge", "carry", "isolation",
)
SET_KINDS: tuple[str, ...] = ("working", "warmup", "other")
ROTATION_STATUSES: tuple[str, ...] = ("active", "suggested_swap", "resting")


@dataclass(frozen=True)
class ExerciseRef:
    """
    Minimal exercise metadata joined onto logged sets.

    The storage boundary always produces exactly this shape, whatever the
    raw join looked like.
    """

    exercise_id: str
    name: str
    muscle_group: str
    equipment: str = "other"
    movement_pattern: str = "isolation"


@dataclass
class WorkingSet:
    """
    One logged set.

    Only ``kind == "working"`` sets feed the plateau and volume analyzers.
    """

    set_id: str
    session_id: str
    exercise_id: str
    weight: float
    reps: int
    kind: SetKind
    logged_at: datetime
    is_pr: bool = False
    exercise: ExerciseRef | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.kind not in SET_KINDS:
            raise ValueError(f"Invalid set kind: {self.kind}")

    @property
    def volume(self) -> float:
        """weight × reps for this set."""
        return self.weight * self.reps


@dataclass
class SessionSummary:
    """
    A training session.

    A session is completed once it has an end timestamp; only completed
    sessions count toward streaks, volume and plateau analysis.
    """

    session_id: str
    user_id: str
    started_at: datetime
    ended_at: datetime | None = None
    split: str | None = None

    def __post_init__(self) -> None:
        if self.ended_at is not None and self.ended_at < self.started_at:
            raise ValueError("ended_at must not precede started_at")

    @property
    def is_completed(self) -> bool:
        return self.ended_at is not None


@dataclass
class RotationState:
    """
    Rotation lifecycle of one exercise for one user.

    ``version`` is the optimistic-concurrency token: 0 means the record has
    never been stored, and every successful write increments it.
    """

    user_id: str
    exercise_id: str
    muscle_group: str
    introduced_at: datetime
    last_performed_at: datetime | None
    status: RotationStatus = "active"
    freshness_score: float = 1.0
    swap_suggested_at: datetime | None = None
    suggested_replacement: str | None = None
    version: int = 0

    def __post_init__(self) -> None:
        """Validate rotation state."""
        if self.status not in ROTATION_STATUSES:
            raise ValueError(f"Invalid rotation status: {self.status}")
        if not 0.0 <= self.freshness_score <= 1.0:
            raise ValueError("freshness_score must be within [0, 1]")
        if self.version < 0:
            raise ValueError("version must be non-negative")


@dataclass(frozen=True)
class AchievementRecord:
    """An earned badge. Append-only; at most one per (user, badge_type)."""

    user_id: str
    badge_type: str
    earned_at: datetime
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class VolumeLandmark:
    """
    Weekly working-set reference counts for one muscle group.

    MV / MEV / MAV range / MRV, after Israetel.
    """

    muscle_group: str
    maintenance: int         # MV
    minimum_effective: int   # MEV
    optimal_min: int         # MAV lower bound
    optimal_max: int         # MAV upper bound
    maximum_recoverable: int  # MRV

    def __post_init__(self) -> None:
        values = (
            self.maintenance,
            self.minimum_effective,
            self.optimal_min,
            self.optimal_max,
            self.maximum_recoverable,
        )
        if any(v < 0 for v in values):
            raise ValueError(f"Volume landmarks for {self.muscle_group} must be non-negative")
        if list(values) != sorted(values):
            raise ValueError(
                f"Volume landmarks for {self.muscle_group} must be non-decreasing (MV ≤ MEV ≤ MAV ≤ MRV)"
            )


@dataclass(frozen=True)
class VolumeStatus:
    """Classification of a weekly set count against the landmarks."""

    status: Literal["below_mev", "mev", "mav", "approaching_mrv", "over_mrv"]
    message: str


@dataclass(frozen=True)
class SessionBest:
    """Best working set of one exercise within one session."""

    session_id: str
    started_at: datetime
    weight: float
    reps: int


@dataclass
class Intervention:
    """A single remediation suggestion attached to a plateau result."""

    type: InterventionType
    title: str
    description: str
    replacement: ExerciseRef | None = None


@dataclass
class PlateauResult:
    """A plateau or regression alert for one exercise."""

    exercise_id: str
    exercise_name: str
    muscle_group: str
    plateau_type: PlateauType
    session_count: int
    last_weight: float
    last_reps: int
    interventions: list[Intervention] = field(default_factory=list)


@dataclass
class RotationSuggestion:
    """
    A stale exercise flagged during a rotation scan.

    ``replacement`` is None when the muscle group has no candidates; the
    exercise is still reported as stale.
    """

    rotation: RotationState
    exercise: ExerciseRef | None
    replacement: ExerciseRef | None
    freshness: float
    days_elapsed: int
    reason: str


@dataclass
class FreshnessEntry:
    """One row of the freshness report."""

    rotation: RotationState
    exercise: ExerciseRef | None
    freshness: float
    label: str
    days_elapsed: int
