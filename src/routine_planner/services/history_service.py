"""
History service: archival of finished sessions and edits of past records.

Records are immutable snapshots except through ``update_record``, the
explicit correction path. Reads are reverse-chronological.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from ..analysis.focus import classify
from ..db.repositories import HistoryRepository
from ..db.store import Unsubscribe, new_document_id
from ..exceptions import RecordNotFoundError
from ..models.exercises import ExerciseEntry
from ..models.sessions import CompletedWorkoutRecord, utc_now

logger = logging.getLogger(__name__)


class HistoryService:
    """Append-only log of completed workouts for one user."""

    def __init__(self, repository: HistoryRepository) -> None:
        self._repository = repository

    async def archive(
        self,
        exercises: Sequence[ExerciseEntry],
        record_id: Optional[str] = None,
        finished_at: Optional[datetime] = None,
    ) -> CompletedWorkoutRecord:
        """
        Snapshot a finished session into the log.

        Args:
            exercises: The session's exercises at finish time (deep-copied)
            record_id: Id to archive under; generated when omitted
            finished_at: Finish timestamp; now (UTC) when omitted

        Returns:
            The archived record
        """
        record = CompletedWorkoutRecord(
            id=record_id or new_document_id(),
            date=finished_at or utc_now(),
            exercises=[e.model_copy(deep=True) for e in exercises],
        )
        await self._repository.add(record)
        logger.info(
            f"Archived workout {record.id} for user {self._repository.user_id}: "
            f"{len(record.exercises)} exercises, {record.completed_count} completed"
        )
        return record

    async def list_records(self, limit: Optional[int] = None) -> List[CompletedWorkoutRecord]:
        """Records newest first."""
        records = await self._repository.list_all()
        records.sort(key=lambda r: r.date, reverse=True)
        return records[:limit] if limit is not None else records

    async def recent(self, count: int = 5) -> List[CompletedWorkoutRecord]:
        return await self.list_records(limit=count)

    async def get(self, record_id: str) -> CompletedWorkoutRecord:
        record = await self._repository.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    async def update_record(
        self,
        record_id: str,
        date: Optional[datetime] = None,
        exercises: Optional[Sequence[ExerciseEntry]] = None,
    ) -> CompletedWorkoutRecord:
        """
        Overwrite the date and/or exercises of an existing record.

        Fields not given are kept; given fields are replaced as a whole.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        record = await self.get(record_id)
        updated = CompletedWorkoutRecord(
            id=record.id,
            date=date if date is not None else record.date,
            exercises=(
                [e.model_copy(deep=True) for e in exercises]
                if exercises is not None
                else record.exercises
            ),
        )
        await self._repository.replace(updated)
        logger.info(f"Updated workout record {record_id} for user {self._repository.user_id}")
        return updated

    async def summarize_recent(self, count: int = 5) -> str:
        """One line per recent workout, for the routine generation context."""
        records = await self.recent(count)
        if not records:
            return "Sin entrenamientos registrados."
        lines = []
        for record in records:
            names = ", ".join(e.name for e in record.exercises[:6])
            if len(record.exercises) > 6:
                names += ", ..."
            lines.append(
                f"- {record.date.date().isoformat()} ({classify(record.exercises).value}): {names}"
            )
        return "\n".join(lines)

    def watch(self, callback: Callable[[List[CompletedWorkoutRecord]], None]) -> Unsubscribe:
        """Receive the full history, newest first, whenever it changes."""

        def _on_change(snapshot) -> None:
            records = [
                self._repository.parse_document(rid, doc)
                for rid, doc in (snapshot or {}).items()
            ]
            records.sort(key=lambda r: r.date, reverse=True)
            callback(records)

        return self._repository.subscribe(_on_change)
