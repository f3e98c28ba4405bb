"""Analysis of archived workouts: focus classification and calendar views."""

from .focus import (
    DEFAULT_CARDIO_KEYWORDS,
    DEFAULT_LOWER_KEYWORDS,
    DEFAULT_UPPER_KEYWORDS,
    FocusBreakdown,
    FocusClassifierConfig,
    classify,
    focus_breakdown,
)
from .calendar import (
    WeeklyAdherence,
    build_focus_calendar,
    focus_distribution,
    weekly_adherence,
)

__all__ = [
    "DEFAULT_CARDIO_KEYWORDS",
    "DEFAULT_LOWER_KEYWORDS",
    "DEFAULT_UPPER_KEYWORDS",
    "FocusBreakdown",
    "FocusClassifierConfig",
    "classify",
    "focus_breakdown",
    "WeeklyAdherence",
    "build_focus_calendar",
    "focus_distribution",
    "weekly_adherence",
]
