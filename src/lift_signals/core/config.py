"""
Configuration constants for the training-signal analyzers.

All adjustable parameters are centralized here for easy tuning.
The volume-landmark table can be overridden per user through
``config.yaml`` (see core/engine/config_loader.py).
"""

from typing import Final

# =============================================================================
# FRESHNESS MODEL
# =============================================================================

FRESHNESS_DECAY_DAYS: Final[int] = 56  # Linear decay reaches 0 here
SWAP_FRESHNESS_THRESHOLD: Final[float] = 0.25  # Below this: suggest a swap
LONG_ROTATION_DAYS: Final[int] = 42  # "Long time in rotation" wording
REST_RECOVERY_DAYS: Final[int] = 28  # Resting exercise counts as recovered

# Display bands, checked top to bottom (score >= bound)
FRESHNESS_BANDS: Final[list[tuple[float, str]]] = [
    (0.75, "Fresh"),
    (0.50, "Good"),
    (0.25, "Getting stale"),
]
FRESHNESS_FLOOR_LABEL: Final[str] = "Needs rotation"

# =============================================================================
# REPLACEMENT CANDIDATE SCORING
# =============================================================================

SCORE_DIFFERENT_EQUIPMENT: Final[int] = 3
SCORE_DIFFERENT_PATTERN: Final[int] = 2
SCORE_RESTING_RECOVERED: Final[int] = 5
SCORE_RESTING_NOT_RECOVERED: Final[int] = 1
SCORE_NEVER_USED: Final[int] = 4
SCORE_CURRENTLY_ACTIVE: Final[int] = -2

# =============================================================================
# PLATEAU / REGRESSION DETECTION
# =============================================================================

PLATEAU_SESSION_WINDOW: Final[int] = 3  # Most recent completed sessions examined
PLATEAU_MIN_APPEARANCES: Final[int] = 2  # Exercise must appear in this many
PLATEAU_MIN_PREFIX: Final[int] = 2  # Matching prefix length that raises an alert

# =============================================================================
# ACHIEVEMENTS
# =============================================================================

STREAK_BADGES: Final[list[tuple[int, str]]] = [
    (3, "iron_streak_3"),
    (7, "iron_streak_7"),
    (14, "iron_streak_14"),
    (30, "iron_streak_30"),
]
STREAK_MILESTONES: Final[frozenset[int]] = frozenset({7, 14, 30, 60, 90})
STREAK_LOOKBACK_DAYS: Final[int] = 90

CENTURY_REPS: Final[int] = 100
VOLUME_LOOKBACK_WEEKS: Final[int] = 52
CONSISTENCY_WEEKS: Final[int] = 4  # Current week + 3 preceding
CONSISTENCY_DAYS_PER_WEEK: Final[int] = 4

# =============================================================================
# VOLUME LANDMARKS (weekly working sets)
# =============================================================================

# muscle_group: (MV, MEV, MAV min, MAV max, MRV)
VOLUME_LANDMARKS: Final[dict[str, tuple[int, int, int, int, int]]] = {
    "chest":      (6, 8, 12, 20, 22),
    "back":       (6, 8, 14, 22, 25),
    "shoulders":  (4, 6, 12, 20, 22),
    "biceps":     (4, 6, 10, 16, 20),
    "triceps":    (4, 6, 10, 16, 18),
    "quads":      (6, 8, 12, 18, 20),
    "hamstrings": (4, 6, 10, 16, 18),
    "glutes":     (4, 6, 10, 16, 18),
    "calves":     (6, 8, 12, 16, 20),
    "core":       (0, 0, 6, 12, 16),
    "forearms":   (2, 4, 6, 10, 14),
}

# =============================================================================
# STORAGE
# =============================================================================

DEFAULT_USER_ID: Final[str] = "local"
HOME_ENV_VAR: Final[str] = "LIFT_SIGNALS_HOME"
DEFAULT_HOME_DIRNAME: Final[str] = ".lift-signals"
