"""User profile aggregate: schedule, favorites, session types and training context."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..utils.text import normalize_text
from .exercises import FavoriteExercise
from .schedule import DEFAULT_SESSION_TYPES, Schedule, SessionTypeVocabulary, default_schedule

logger = logging.getLogger(__name__)


DEFAULT_OBJECTIVE = "Ganar masa muscular, mejorar la potencia y mantenerme saludable."
DEFAULT_EQUIPMENT = "Mancuernas de 3 kg y 6 kg, una barra sin discos y peso corporal. Sin banco."


class UserProfile(BaseModel):
    """Profile document owned by a single user."""

    schedule: Schedule = Field(default_factory=default_schedule)
    favorites: List[FavoriteExercise] = Field(default_factory=list)
    session_types: SessionTypeVocabulary = Field(default_factory=SessionTypeVocabulary)
    objective: str = DEFAULT_OBJECTIVE
    available_equipment: str = DEFAULT_EQUIPMENT

    def favorite_named(self, name: str) -> Optional[FavoriteExercise]:
        """The favorite with this name, ignoring case and accents."""
        key = normalize_text(name)
        for favorite in self.favorites:
            if favorite.name_key == key:
                return favorite
        return None

    def to_document(self) -> Dict[str, Any]:
        return {
            "workoutSchedule": self.schedule.to_document(),
            "favoriteExercises": [f.to_document() for f in self.favorites],
            "sessionTypes": list(self.session_types.labels),
            "objective": self.objective,
            "availableEquipment": self.available_equipment,
        }

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> "UserProfile":
        data = data or {}
        favorites: List[FavoriteExercise] = []
        seen = set()
        for raw in data.get("favoriteExercises") or []:
            try:
                favorite = FavoriteExercise.model_validate(raw)
            except PydanticValidationError as e:
                # One bad favorite must not make the whole profile unreadable
                logger.warning(f"Skipping unreadable favorite {raw!r}: {e.errors()[0]['msg']}")
                continue
            if favorite.name_key not in seen:
                seen.add(favorite.name_key)
                favorites.append(favorite)
        return cls(
            schedule=(
                Schedule.from_document(data["workoutSchedule"])
                if data.get("workoutSchedule") is not None
                else default_schedule()
            ),
            favorites=favorites,
            session_types=SessionTypeVocabulary(
                labels=list(data.get("sessionTypes") or DEFAULT_SESSION_TYPES)
            ),
            objective=data.get("objective") or DEFAULT_OBJECTIVE,
            available_equipment=data.get("availableEquipment") or DEFAULT_EQUIPMENT,
        )
