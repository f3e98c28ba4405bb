"""Repository for the single in-progress session slot."""

from typing import Optional

from .base import UserScopedRepository
from ...models.sessions import InProgressSession


class InProgressRepository(UserScopedRepository):
    """
    The slot is one keyed document, so at most one session exists per user.

    Only the session lifecycle manager should hold this repository.
    """

    relative_path = "inProgressWorkout/current"

    async def get(self) -> Optional[InProgressSession]:
        doc = await self._store.get(self.path)
        return self.parse_document(doc)

    def parse_document(self, doc) -> Optional[InProgressSession]:
        """Session stored in a slot document, None for an empty slot."""
        if not doc:
            return None
        return self._parse(InProgressSession.from_document, doc)

    async def put(self, session: InProgressSession) -> None:
        """Overwrite the slot with the whole session."""
        await self._store.put(self.path, session.to_document())

    async def clear(self) -> None:
        await self._store.delete(self.path)
