"""Repository for the append-only log of completed workouts."""

from typing import List, Optional

from .base import UserScopedRepository
from ...models.sessions import CompletedWorkoutRecord


class HistoryRepository(UserScopedRepository):
    """Completed workouts stored as a collection keyed by record id."""

    relative_path = "completedWorkouts"

    async def add(self, record: CompletedWorkoutRecord) -> str:
        """
        Append a record under its own id.

        Writing the same id twice overwrites, so retrying an archive never
        produces a duplicate.
        """
        return await self._store.append_to_collection(
            self.path, record.to_document(), doc_id=record.id
        )

    async def get(self, record_id: str) -> Optional[CompletedWorkoutRecord]:
        doc = await self._store.get(f"{self.path}/{record_id}")
        if doc is None:
            return None
        return self.parse_document(record_id, doc)

    async def replace(self, record: CompletedWorkoutRecord) -> None:
        await self._store.put(f"{self.path}/{record.id}", record.to_document())

    async def list_all(self) -> List[CompletedWorkoutRecord]:
        """All records, unordered."""
        docs = await self._store.list_collection(self.path)
        return [self.parse_document(rid, doc) for rid, doc in docs.items()]

    def parse_document(self, record_id: str, doc) -> CompletedWorkoutRecord:
        return self._parse(
            CompletedWorkoutRecord.from_document, record_id, doc, path=f"{self.path}/{record_id}"
        )
