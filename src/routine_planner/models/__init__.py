"""Data models for schedules, exercises, sessions and profiles."""

from .schedule import (
    DEFAULT_SESSION_TIME,
    DEFAULT_SESSION_TYPES,
    REST_LABEL,
    Schedule,
    ScheduledSession,
    SessionTypeVocabulary,
    Weekday,
    default_schedule,
    validate_clock_time,
)
from .exercises import (
    DisplayQuantity,
    Equipment,
    ExerciseEntry,
    ExerciseFields,
    FavoriteExercise,
    video_search_url,
)
from .sessions import (
    CompletedWorkoutRecord,
    FocusLabel,
    InProgressSession,
    SessionState,
    SessionType,
)
from .profile import UserProfile

__all__ = [
    # Schedule
    "DEFAULT_SESSION_TIME",
    "DEFAULT_SESSION_TYPES",
    "REST_LABEL",
    "Schedule",
    "ScheduledSession",
    "SessionTypeVocabulary",
    "Weekday",
    "default_schedule",
    "validate_clock_time",
    # Exercises
    "DisplayQuantity",
    "Equipment",
    "ExerciseEntry",
    "ExerciseFields",
    "FavoriteExercise",
    "video_search_url",
    # Sessions
    "CompletedWorkoutRecord",
    "FocusLabel",
    "InProgressSession",
    "SessionState",
    "SessionType",
    # Profile
    "UserProfile",
]
