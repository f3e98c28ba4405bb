"""
Session lifecycle manager.

Owns the single in-progress workout slot of a user:

    EMPTY --start--> ACTIVE --finish--> ARCHIVED (record appended, slot cleared)
                            --abandon-> ABANDONED (slot cleared, nothing archived)

Every edit re-persists the whole exercise list, so a reload never loses
more than the most recent edit. Persistence failures are surfaced without
automatic retry or rollback of the live session: a failed finish leaves the
session ACTIVE and a second ``finish()`` archives under the same record id.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Iterable, List, Optional, Union

from ..db.repositories import InProgressRepository
from ..db.store import Unsubscribe, new_document_id
from ..exceptions import (
    NoActiveSessionError,
    PersistenceError,
    SessionAlreadyActiveError,
    SessionBusyError,
    ValidationError,
)
from ..models.exercises import ExerciseEntry
from ..models.sessions import (
    CompletedWorkoutRecord,
    InProgressSession,
    SessionState,
    SessionType,
    utc_now,
)
from .history_service import HistoryService

logger = logging.getLogger(__name__)

Mutator = Callable[[List[ExerciseEntry]], Optional[List[ExerciseEntry]]]


class SessionLifecycleManager:
    """State machine around the in-progress slot. The only writer of that slot."""

    def __init__(self, repository: InProgressRepository, history: HistoryService) -> None:
        self._repository = repository
        self._history = history
        self._session: Optional[InProgressSession] = None
        self._pending: Optional[str] = None
        self._last_outcome: Optional[SessionState] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current(self) -> Optional[InProgressSession]:
        """A copy of the active session, or None."""
        return self._session.model_copy(deep=True) if self._session else None

    @property
    def state(self) -> SessionState:
        return SessionState.ACTIVE if self._session else SessionState.EMPTY

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def is_busy(self) -> bool:
        """True while a lifecycle operation is outstanding; the UI disables its triggers."""
        return self._pending is not None

    @property
    def last_outcome(self) -> Optional[SessionState]:
        """ARCHIVED or ABANDONED after the most recent terminal transition."""
        return self._last_outcome

    async def load(self) -> Optional[InProgressSession]:
        """Read the slot, e.g. after a reload, and resume whatever is there."""
        self._session = await self._repository.get()
        if self._session:
            logger.info(
                f"Resumed {self._session.type.value} session for user "
                f"{self._repository.user_id} ({len(self._session.exercises)} exercises)"
            )
        return self.current

    @asynccontextmanager
    async def _operation(self, name: str):
        if self._pending is not None:
            raise SessionBusyError(name, self._pending)
        self._pending = name
        try:
            yield
        finally:
            self._pending = None

    def _require_active(self, operation: str) -> InProgressSession:
        if self._session is None:
            raise NoActiveSessionError(operation)
        return self._session

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start(
        self,
        session_type: Union[SessionType, str],
        exercises: Iterable[ExerciseEntry],
    ) -> InProgressSession:
        """
        Create the in-progress session.

        The slot is read first: an existing session (possibly started on
        another device) is canonical and is never overwritten.

        Raises:
            SessionAlreadyActiveError: With the existing session attached
            PersistenceError: If the slot could not be written
        """
        async with self._operation("start"):
            existing = await self._repository.get()
            if existing is not None:
                self._session = existing
                logger.warning(
                    f"Start rejected for user {self._repository.user_id}: "
                    f"a {existing.type.value} session is already active"
                )
                raise SessionAlreadyActiveError(existing.model_copy(deep=True))

            session = InProgressSession(
                type=SessionType(session_type),
                exercises=[
                    e.model_copy(update={"completed": False}, deep=True) for e in exercises
                ],
            )
            await self._repository.put(session)
            self._session = session
            self._last_outcome = None
            logger.info(
                f"Started {session.type.value} session for user {self._repository.user_id} "
                f"with {len(session.exercises)} exercises"
            )
            return self.current

    async def finish(self) -> CompletedWorkoutRecord:
        """
        Archive the active session and clear the slot.

        Raises:
            NoActiveSessionError: If there is no active session
            PersistenceError: If any write fails; the session stays active
        """
        async with self._operation("finish"):
            session = self._require_active("finish")

            if session.pending_record_id is None:
                session = session.model_copy(
                    update={"pending_record_id": new_document_id(), "pending_finished_at": utc_now()},
                    deep=True,
                )
                await self._repository.put(session)
                self._session = session

            try:
                record = await self._history.archive(
                    session.exercises,
                    record_id=session.pending_record_id,
                    finished_at=session.pending_finished_at,
                )
                await self._repository.clear()
            except PersistenceError as e:
                logger.error(
                    f"Finish failed for user {self._repository.user_id} "
                    f"(record {session.pending_record_id}): {e.message}"
                )
                raise

            self._session = None
            self._last_outcome = SessionState.ARCHIVED
            logger.info(f"Finished session for user {self._repository.user_id} as record {record.id}")
            return record

    async def abandon(self) -> bool:
        """
        Clear the slot without archiving.

        Idempotent: abandoning an empty slot is a no-op.

        Abandoning after a failed ``finish()`` does not remove anything from
        history: if the record was already written under the pending id it
        stays there, and only the slot is cleared.

        Returns:
            True if a session was cleared
        """
        async with self._operation("abandon"):
            if self._session is None:
                self._session = await self._repository.get()
            if self._session is None:
                logger.info(f"Abandon ignored for user {self._repository.user_id}: slot is empty")
                return False

            if self._session.pending_record_id:
                logger.warning(
                    f"Abandoning a session whose finish was interrupted for user "
                    f"{self._repository.user_id}; record {self._session.pending_record_id} "
                    f"may already be archived and is kept"
                )

            await self._repository.clear()
            self._session = None
            self._last_outcome = SessionState.ABANDONED
            logger.info(f"Abandoned session for user {self._repository.user_id}")
            return True

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    async def update(self, mutator: Mutator) -> InProgressSession:
        """
        Apply an edit to the exercise list and persist the whole list.

        The mutator receives a copy of the list and may edit it in place or
        return a new list. The live session only changes once the write
        succeeded.

        Raises:
            NoActiveSessionError: If there is no active session
            PersistenceError: If the write fails
        """
        async with self._operation("update"):
            session = self._require_active("update")
            exercises = [e.model_copy(deep=True) for e in session.exercises]
            result = mutator(exercises)
            if result is not None:
                exercises = list(result)
            for exercise in exercises:
                if not isinstance(exercise, ExerciseEntry):
                    raise ValidationError(
                        f"Session exercises must be ExerciseEntry, got {type(exercise).__name__}"
                    )

            updated = session.model_copy(update={"exercises": exercises}, deep=True)
            await self._repository.put(updated)
            self._session = updated
            return self.current

    def _check_index(self, index: int) -> None:
        session = self._require_active("edit exercise")
        if not 0 <= index < len(session.exercises):
            raise ValidationError(
                f"No exercise at position {index}",
                field="index",
                details={"exercises": len(session.exercises)},
            )

    async def update_exercise(self, index: int, field: str, value: Any) -> InProgressSession:
        """Replace one field of one exercise."""
        self._check_index(index)
        replacement = self._session.exercises[index].with_field(field, value)

        def _replace(exercises: List[ExerciseEntry]) -> None:
            exercises[index] = replacement

        return await self.update(_replace)

    async def toggle_complete(self, index: int) -> InProgressSession:
        self._check_index(index)

        def _toggle(exercises: List[ExerciseEntry]) -> None:
            exercises[index] = exercises[index].model_copy(
                update={"completed": not exercises[index].completed}
            )

        return await self.update(_toggle)

    async def delete_exercise(self, index: int) -> InProgressSession:
        self._check_index(index)

        def _delete(exercises: List[ExerciseEntry]) -> None:
            del exercises[index]

        return await self.update(_delete)

    async def add_exercise(self, exercise: ExerciseEntry) -> InProgressSession:
        entry = exercise.model_copy(update={"completed": False}, deep=True)

        def _append(exercises: List[ExerciseEntry]) -> None:
            exercises.append(entry)

        return await self.update(_append)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def watch(self, callback: Optional[Callable[[Optional[InProgressSession]], None]] = None) -> Unsubscribe:
        """
        Follow slot changes made elsewhere (last write wins).

        The local session is replaced by whatever the store reports.
        """

        def _on_change(doc) -> None:
            self._session = self._repository.parse_document(doc)
            if callback is not None:
                callback(self.current)

        return self._repository.subscribe(_on_change)
