"""Repository pattern implementations over the document store.

Each repository binds one user's document paths:
- profile: schedule, favorites, session types, training context
- inProgressWorkout/current: the single in-progress session slot
- completedWorkouts: append-only history of finished sessions
"""

from .base import UserScopedRepository
from .profile_repository import ProfileRepository
from .in_progress_repository import InProgressRepository
from .history_repository import HistoryRepository

__all__ = [
    "UserScopedRepository",
    "ProfileRepository",
    "InProgressRepository",
    "HistoryRepository",
]
