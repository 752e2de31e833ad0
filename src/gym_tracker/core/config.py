"""
Configuration constants for the gym tracker.

All adjustable parameters are centralized here for easy tuning.
"""

from typing import Final

# =============================================================================
# SET DEFAULTS
# =============================================================================

DEFAULT_REPS: Final[int] = 8  # Used when neither history nor template has a value
DEFAULT_KG: Final[float] = 0.0

# Sets given to each exercise of a session started without a template
SCRATCH_SET_COUNT: Final[int] = 3

# Prefilled sets for a newly added template exercise (reps at 0 kg)
TEMPLATE_DEFAULT_REPS: Final[tuple[int, ...]] = (12, 10, 8)

# Templates stored before per-set prescriptions existed get this many sets
LEGACY_TEMPLATE_SET_COUNT: Final[int] = 3

# =============================================================================
# DOCUMENT DEFAULTS
# =============================================================================

DEFAULT_SESSION_NAME: Final[str] = "Workout"
DEFAULT_TEMPLATE_NAME: Final[str] = "Template"

# =============================================================================
# COLLECTIONS
# =============================================================================

TEMPLATES_COLLECTION: Final[str] = "gymTemplates"
SESSIONS_COLLECTION: Final[str] = "gymSessions"
PLANS_COLLECTION: Final[str] = "gymPlans"
PLAN_LOGS_COLLECTION: Final[str] = "gymPlanLogs"

# Sessions fetched when looking for the previous session of a template
PREVIOUS_SESSION_LOOKBACK: Final[int] = 20

# =============================================================================
# COVERAGE WINDOW
# =============================================================================

WEEK_DAYS: Final[int] = 7

# =============================================================================
# EXERCISE CATALOG
# =============================================================================

EXERCISE_IMAGE_BASE_URL: Final[str] = (
    "https://raw.githubusercontent.com/yuhonas/free-exercise-db/main/exercises/"
)
MAX_EXERCISE_TAGS: Final[int] = 2

# Per-user data lives under ~/<DATA_DIR_NAME>/
DATA_DIR_NAME: Final[str] = ".gym-tracker"

# =============================================================================
# PLAN DEFAULTS (prescription for an exercise added to a plan workout)
# =============================================================================

PLAN_DEFAULT_SETS: Final[int] = 3
PLAN_DEFAULT_REP_MIN: Final[int] = 6
PLAN_DEFAULT_REP_MAX: Final[int] = 10
PLAN_DEFAULT_REST_SEC: Final[int] = 90
PLAN_DEFAULT_STEP_KG: Final[float] = 2.5
