"""Weekly workout planner with AI and manual routines, session tracking and history."""

from .models import (
    CompletedWorkoutRecord,
    ExerciseEntry,
    FavoriteExercise,
    FocusLabel,
    InProgressSession,
    Schedule,
    ScheduledSession,
    SessionType,
    UserProfile,
    Weekday,
)
from .db import InMemoryDocumentStore, SQLiteDocumentStore
from .analysis import classify
from .services import (
    AIRoutineStrategy,
    HistoryService,
    ManualRoutineStrategy,
    ScheduleService,
    SessionLifecycleManager,
    resolve_day,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Models
    "CompletedWorkoutRecord",
    "ExerciseEntry",
    "FavoriteExercise",
    "FocusLabel",
    "InProgressSession",
    "Schedule",
    "ScheduledSession",
    "SessionType",
    "UserProfile",
    "Weekday",
    # Storage
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    # Analysis
    "classify",
    # Services
    "AIRoutineStrategy",
    "HistoryService",
    "ManualRoutineStrategy",
    "ScheduleService",
    "SessionLifecycleManager",
    "resolve_day",
]
