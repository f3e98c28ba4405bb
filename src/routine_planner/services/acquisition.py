"""
Routine acquisition strategies.

Two ways to get the exercise list of a new session:

- AIRoutineStrategy: ask the routine oracle, with bounded retries, and
  validate what comes back.
- ManualRoutineStrategy: pick entries from the user's favorites.

Both hand a validated list to ``SessionLifecycleManager.start``; neither
writes to the in-progress slot itself.
"""

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from ..config import get_settings
from ..db.repositories import ProfileRepository
from ..llm.context_builder import RoutineContext, build_routine_context
from ..llm.oracle import RoutineOracle, parse_routine_payload
from ..models.exercises import ExerciseEntry, FavoriteExercise
from ..models.sessions import InProgressSession, SessionType
from ..utils.retry import RetryConfig, retry_async
from ..utils.text import normalize_text
from .history_service import HistoryService
from .schedule_service import ScheduleService, weekday_for
from .session_manager import SessionLifecycleManager

logger = logging.getLogger(__name__)


async def prepare_context(
    profiles: ProfileRepository,
    schedule: ScheduleService,
    history: HistoryService,
    today: Optional[date] = None,
    fatigue_level: int = 5,
    user_notes: str = "",
    history_size: Optional[int] = None,
) -> RoutineContext:
    """
    Gather profile, today's plan and recent history into a RoutineContext.

    ``history_size`` defaults to the ``history_context_size`` setting.
    """
    today = today or date.today()
    if history_size is None:
        history_size = get_settings().history_context_size
    profile = await profiles.get()
    plan = await schedule.plan_for(today)
    summary = await history.summarize_recent(history_size)
    return build_routine_context(
        profile,
        today_label=plan.label,
        weekday=weekday_for(today),
        recent_history_summary=summary,
        fatigue_level=fatigue_level,
        user_notes=user_notes,
    )


class AIRoutineStrategy:
    """Generates a routine with the oracle."""

    def __init__(
        self,
        oracle: RoutineOracle,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._oracle = oracle
        self._retry_config = retry_config or RetryConfig.from_settings(get_settings())
        self._sleep = sleep

    async def acquire(self, context: RoutineContext) -> List[ExerciseEntry]:
        """
        Ask the oracle for a routine and validate it.

        Transient oracle failures are retried with exponential backoff.

        Returns:
            Entries ready for a new session, all with ``completed=False``

        Raises:
            TransientIOError: If the oracle stays unavailable after all attempts
            RoutineValidationError: If the payload is empty or malformed
        """
        logger.info(
            f"Requesting routine (scheduled: {context.today_scheduled_label}, "
            f"notes override: {context.notes_take_precedence})"
        )
        payload = await retry_async(
            lambda: self._oracle.generate_routine(context),
            self._retry_config,
            operation_name="generate_routine",
            sleep=self._sleep,
        )
        entries = parse_routine_payload(payload)
        logger.info(f"Oracle returned {len(entries)} exercises")
        return entries

    async def start(
        self,
        manager: SessionLifecycleManager,
        context: RoutineContext,
    ) -> InProgressSession:
        """Acquire a routine and start an ``ai`` session with it."""
        entries = await self.acquire(context)
        return await manager.start(SessionType.AI, entries)


class ManualRoutineStrategy:
    """Builds a routine from favorites selected by the user."""

    @staticmethod
    def assemble(
        selected_names: Iterable[str],
        favorites: Sequence[FavoriteExercise],
    ) -> List[ExerciseEntry]:
        """
        Entries for the selected favorites, in favorites order.

        Names are matched ignoring case and accents, like favorites
        themselves. Names that match no favorite are ignored, so the result
        may be empty.
        """
        selected = {normalize_text(name) for name in selected_names}
        return [f.to_entry() for f in favorites if f.name_key in selected]

    @staticmethod
    def favorites_by_muscle_group(
        favorites: Sequence[FavoriteExercise],
        group: Optional[str] = None,
    ) -> Dict[str, List[FavoriteExercise]]:
        """
        Favorites grouped by muscle group, optionally limited to one group.

        Favorites without a group are listed under "Otros".
        """
        wanted = normalize_text(group) if group else None
        grouped: Dict[str, List[FavoriteExercise]] = {}
        for favorite in favorites:
            key = favorite.muscle_group or "Otros"
            if wanted is not None and normalize_text(key) != wanted:
                continue
            grouped.setdefault(key, []).append(favorite)
        return grouped

    async def start(
        self,
        manager: SessionLifecycleManager,
        selected_names: Iterable[str],
        favorites: Sequence[FavoriteExercise],
    ) -> InProgressSession:
        """Start a ``manual`` session with the selected favorites."""
        entries = self.assemble(selected_names, favorites)
        logger.info(f"Assembled manual routine with {len(entries)} exercises")
        return await manager.start(SessionType.MANUAL, entries)
