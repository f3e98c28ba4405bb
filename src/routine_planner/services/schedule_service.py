"""
Schedule service: day resolution and staged schedule edits.

Edits never touch the confirmed schedule in place. They are applied to a
staged deep copy and written as a whole on ``save()``. A failed save rolls
the staged copy back to the last confirmed schedule.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional, Union

from ..db.repositories import ProfileRepository
from ..exceptions import PersistenceError, ScheduleValidationError
from ..models.schedule import (
    DEFAULT_SESSION_TIME,
    Schedule,
    ScheduledSession,
    SessionTypeVocabulary,
    Weekday,
    validate_clock_time,
)

logger = logging.getLogger(__name__)

DayLike = Union[date, datetime, str, Weekday]


@dataclass
class DayPlan:
    """Sessions planned for one weekday. An empty list is a rest day."""

    weekday: Weekday
    sessions: List[ScheduledSession] = field(default_factory=list)

    @property
    def is_rest(self) -> bool:
        return not self.sessions

    @property
    def label(self) -> str:
        """Session names joined for display and for the oracle context."""
        if self.is_rest:
            return "Descanso"
        return " + ".join(s.name for s in self.sessions)


def weekday_for(day: DayLike) -> Weekday:
    """
    Weekday key for a date or a weekday name in any supported spelling.

    Raises:
        ScheduleValidationError: If ``day`` is a string that names no weekday
    """
    if isinstance(day, Weekday):
        return day
    if isinstance(day, (date, datetime)):
        return Weekday.from_index(day.weekday())
    try:
        return Weekday.from_name(day)
    except ValueError as e:
        raise ScheduleValidationError(str(e), field="weekday") from e


def resolve_day(schedule: Optional[Schedule], day: DayLike) -> DayPlan:
    """
    Planned sessions for a calendar date or weekday.

    Missing keys and empty lists both resolve to a rest day. The returned
    sessions are copies, so callers cannot mutate the schedule through them.
    """
    weekday = weekday_for(day)
    if schedule is None:
        return DayPlan(weekday=weekday)
    return DayPlan(weekday=weekday, sessions=schedule.sessions_for(weekday))


def week_overview(schedule: Schedule) -> List[DayPlan]:
    """All seven days in canonical Monday-first order."""
    return [resolve_day(schedule, weekday) for weekday in Weekday.ordered()]


class ScheduleEditor:
    """
    Stages schedule edits until an explicit save.

    ``confirmed`` is the last schedule known to be persisted; ``staged`` is
    the working copy the UI edits.
    """

    def __init__(
        self,
        repository: ProfileRepository,
        confirmed: Schedule,
        vocabulary: Optional[SessionTypeVocabulary] = None,
    ) -> None:
        self._repository = repository
        self._confirmed = confirmed.model_copy(deep=True)
        self._staged = confirmed.model_copy(deep=True)
        self._vocabulary = vocabulary or SessionTypeVocabulary()

    @property
    def confirmed(self) -> Schedule:
        return self._confirmed.model_copy(deep=True)

    @property
    def staged(self) -> Schedule:
        return self._staged.model_copy(deep=True)

    @property
    def is_dirty(self) -> bool:
        return self._staged != self._confirmed

    def _sessions(self, day: DayLike) -> List[ScheduledSession]:
        return self._staged.days[weekday_for(day)]

    def _check_index(self, sessions: List[ScheduledSession], index: int) -> None:
        if not 0 <= index < len(sessions):
            raise ScheduleValidationError(
                f"No session at position {index}",
                field="index",
                details={"sessions": len(sessions)},
            )

    def add_session(
        self,
        day: DayLike,
        time: Optional[str] = None,
        name: Optional[str] = None,
    ) -> ScheduledSession:
        """Append a session to a day, defaulting to the first vocabulary label."""
        label = name or (self._vocabulary.labels[0] if self._vocabulary.labels else "Full Body")
        try:
            session = ScheduledSession(time=time or DEFAULT_SESSION_TIME, name=label)
        except ValueError as e:
            raise ScheduleValidationError(f"Invalid session: {e}") from e
        self._sessions(day).append(session)
        return session.model_copy()

    def update_session(self, day: DayLike, index: int, field_name: str, value: Any) -> ScheduledSession:
        """Replace the ``time`` or ``name`` of one session."""
        sessions = self._sessions(day)
        self._check_index(sessions, index)
        if field_name not in ("time", "name"):
            raise ScheduleValidationError(f"Unknown session field: {field_name!r}", field=field_name)
        try:
            if field_name == "time":
                value = validate_clock_time(value)
            updated = ScheduledSession(**{**sessions[index].model_dump(), field_name: value})
        except ValueError as e:
            raise ScheduleValidationError(str(e), field=field_name) from e
        sessions[index] = updated
        return updated.model_copy()

    def remove_session(self, day: DayLike, index: int) -> ScheduledSession:
        sessions = self._sessions(day)
        self._check_index(sessions, index)
        return sessions.pop(index)

    def discard(self) -> None:
        """Drop staged edits."""
        self._staged = self._confirmed.model_copy(deep=True)

    async def save(self) -> Schedule:
        """
        Persist the staged schedule.

        Returns:
            The newly confirmed schedule

        Raises:
            PersistenceError: If the write fails; staged edits are rolled back
        """
        candidate = self._staged.model_copy(deep=True)
        try:
            await self._repository.save_schedule(candidate)
        except PersistenceError:
            logger.error(f"Schedule save failed for user {self._repository.user_id}; rolling back")
            self.discard()
            raise
        except Exception as e:
            logger.error(f"Schedule save failed for user {self._repository.user_id}: {e}")
            self.discard()
            raise PersistenceError(f"Schedule save failed: {e}") from e

        self._confirmed = candidate
        logger.info(f"Saved schedule for user {self._repository.user_id}")
        return self.confirmed


class ScheduleService:
    """Loads the schedule, resolves days and manages the session type vocabulary."""

    def __init__(self, repository: ProfileRepository) -> None:
        self._repository = repository

    async def get_schedule(self) -> Schedule:
        profile = await self._repository.get()
        return profile.schedule

    async def plan_for(self, day: Optional[DayLike] = None) -> DayPlan:
        """Plan for a day, today by default."""
        schedule = await self.get_schedule()
        return resolve_day(schedule, day if day is not None else date.today())

    async def editor(self) -> ScheduleEditor:
        """Editor staged on the currently persisted schedule."""
        profile = await self._repository.get()
        return ScheduleEditor(self._repository, profile.schedule, profile.session_types)

    async def session_types(self) -> List[str]:
        profile = await self._repository.get()
        return list(profile.session_types.labels)

    async def add_session_type(self, label: str) -> bool:
        """
        Grow the vocabulary with a new label.

        Returns:
            True if the label was added, False if blank or already present
        """
        profile = await self._repository.get()
        if not profile.session_types.add(label):
            return False
        await self._repository.save_session_types(profile.session_types)
        logger.info(f"Added session type '{label.strip()}' for user {self._repository.user_id}")
        return True
