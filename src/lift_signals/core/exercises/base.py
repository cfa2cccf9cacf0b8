"""
Base types for the exercise catalog.

ExerciseDefinition is the full catalog entry; analyzers only ever see the
ExerciseRef projection returned by ``to_ref()``.
"""

from dataclasses import dataclass, field

from ..models import EQUIPMENT_TYPES, MOVEMENT_PATTERNS, MUSCLE_GROUPS, ExerciseRef


@dataclass(frozen=True)
class ExerciseDefinition:
    """
    One exercise in the catalog.

    Candidate search for rotation uses ``primary_muscle_group``; the
    equipment type and movement pattern drive the variation score.
    """

    # Identity
    exercise_id: str          # e.g. "barbell_bench_press"
    name: str                 # e.g. "Barbell Bench Press"

    # Classification
    primary_muscle_group: str
    equipment_type: str
    movement_pattern: str
    secondary_muscles: tuple[str, ...] = field(default_factory=tuple)
    difficulty: str = "intermediate"  # "beginner" | "intermediate" | "advanced"

    def __post_init__(self) -> None:
        if self.primary_muscle_group not in MUSCLE_GROUPS:
            raise ValueError(
                f"{self.exercise_id}: unknown muscle group {self.primary_muscle_group!r}"
            )
        if self.equipment_type not in EQUIPMENT_TYPES:
            raise ValueError(
                f"{self.exercise_id}: unknown equipment type {self.equipment_type!r}"
            )
        if self.movement_pattern not in MOVEMENT_PATTERNS:
            raise ValueError(
                f"{self.exercise_id}: unknown movement pattern {self.movement_pattern!r}"
            )
        for m in self.secondary_muscles:
            if m not in MUSCLE_GROUPS:
                raise ValueError(f"{self.exercise_id}: unknown secondary muscle {m!r}")

    def to_ref(self) -> ExerciseRef:
        """Project onto the minimal metadata shape the analyzers consume."""
        return ExerciseRef(
            exercise_id=self.exercise_id,
            name=self.name,
            muscle_group=self.primary_muscle_group,
            equipment=self.equipment_type,
            movement_pattern=self.movement_pattern,
        )
