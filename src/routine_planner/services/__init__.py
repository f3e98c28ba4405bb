"""Service layer for the routine planner.

Services coordinate repositories, the routine oracle and the session
lifecycle. They are the entry points a UI layer calls.
"""

from .schedule_service import (
    DayPlan,
    ScheduleEditor,
    ScheduleService,
    resolve_day,
    week_overview,
    weekday_for,
)
from .history_service import HistoryService
from .session_manager import SessionLifecycleManager
from .acquisition import AIRoutineStrategy, ManualRoutineStrategy, prepare_context
from .favorites_service import FavoritesService
from .calorie_service import CalorieService

__all__ = [
    # Schedule
    "DayPlan",
    "ScheduleEditor",
    "ScheduleService",
    "resolve_day",
    "week_overview",
    "weekday_for",
    # Sessions and history
    "HistoryService",
    "SessionLifecycleManager",
    # Acquisition
    "AIRoutineStrategy",
    "ManualRoutineStrategy",
    "prepare_context",
    # Profile
    "FavoritesService",
    "CalorieService",
]
