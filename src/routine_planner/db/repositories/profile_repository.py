"""Profile document repository."""

import logging
from typing import List

from .base import UserScopedRepository
from ...models.exercises import FavoriteExercise
from ...models.profile import UserProfile
from ...models.schedule import Schedule, SessionTypeVocabulary

logger = logging.getLogger(__name__)


class ProfileRepository(UserScopedRepository):
    """Reads and writes the user's profile aggregate."""

    relative_path = "profile"

    async def get(self) -> UserProfile:
        """
        Load the profile, creating it with the default week when missing.

        Returns:
            The user's profile
        """
        doc = await self._store.get(self.path)
        if doc is None:
            profile = UserProfile()
            await self._store.put(self.path, profile.to_document())
            logger.info(f"Created default profile for user {self.user_id}")
            return profile
        return self._parse(UserProfile.from_document, doc)

    async def save(self, profile: UserProfile) -> None:
        await self._store.put(self.path, profile.to_document())

    async def save_schedule(self, schedule: Schedule) -> None:
        """Write the whole schedule in a single merge."""
        await self._store.merge(self.path, {"workoutSchedule": schedule.to_document()})

    async def save_favorites(self, favorites: List[FavoriteExercise]) -> None:
        await self._store.merge(
            self.path,
            {"favoriteExercises": [f.to_document() for f in favorites]},
        )

    async def save_session_types(self, vocabulary: SessionTypeVocabulary) -> None:
        await self._store.merge(self.path, {"sessionTypes": list(vocabulary.labels)})
