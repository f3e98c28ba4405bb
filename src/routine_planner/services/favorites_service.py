"""Favorites: exercises pinned for reuse, unique by name."""

import logging
from typing import List

from ..db.repositories import ProfileRepository
from ..models.exercises import ExerciseFields, FavoriteExercise

logger = logging.getLogger(__name__)


class FavoritesService:
    """Reads and toggles the favorites stored in the user's profile."""

    def __init__(self, repository: ProfileRepository) -> None:
        self._repository = repository

    async def list(self) -> List[FavoriteExercise]:
        profile = await self._repository.get()
        return [f.model_copy(deep=True) for f in profile.favorites]

    async def is_favorite(self, name: str) -> bool:
        profile = await self._repository.get()
        return profile.favorite_named(name) is not None

    async def toggle(self, entry: ExerciseFields) -> bool:
        """
        Pin or unpin an exercise by name.

        An existing favorite with the same name (ignoring case and accents)
        is removed. Otherwise the entry is added with its current field values.

        Returns:
            True if the exercise is a favorite afterwards
        """
        profile = await self._repository.get()
        remaining = [f for f in profile.favorites if f.name_key != entry.name_key]

        if len(remaining) < len(profile.favorites):
            await self._repository.save_favorites(remaining)
            logger.info(f"Removed favorite '{entry.name}' for user {self._repository.user_id}")
            return False

        remaining.append(FavoriteExercise.from_entry(entry))
        await self._repository.save_favorites(remaining)
        logger.info(f"Added favorite '{entry.name}' for user {self._repository.user_id}")
        return True
