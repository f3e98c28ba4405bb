"""Workout session models: the in-progress slot and archived records."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .exercises import ExerciseEntry


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionType(str, Enum):
    """How the exercises of a session were obtained."""

    AI = "ai"
    MANUAL = "manual"


class SessionState(str, Enum):
    """Lifecycle states of the in-progress slot."""

    EMPTY = "empty"
    ACTIVE = "active"
    ARCHIVED = "archived"
    ABANDONED = "abandoned"


class FocusLabel(str, Enum):
    """Training focus taxonomy used by calendar and analytics views."""

    UPPER = "Tren Superior"
    LOWER = "Tren Inferior"
    CARDIO = "Cardio"
    FULL_BODY = "Full Body"
    GENERAL = "General"
    REST = "Descanso"


def _parse_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InProgressSession(BaseModel):
    """
    The single unsaved workout a user is executing.

    ``pending_record_id`` and ``pending_finished_at`` are set when a finish
    has begun, so a retried finish archives under the same id.
    """

    type: SessionType
    exercises: List[ExerciseEntry] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utc_now)
    pending_record_id: Optional[str] = None
    pending_finished_at: Optional[datetime] = None

    @field_validator("started_at", "pending_finished_at", mode="before")
    @classmethod
    def _parse_dates(cls, v: Any) -> Any:
        return _parse_timestamp(v)

    @property
    def completed_count(self) -> int:
        return sum(1 for e in self.exercises if e.completed)

    @property
    def all_completed(self) -> bool:
        return bool(self.exercises) and all(e.completed for e in self.exercises)

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "type": self.type.value,
            "exercises": [e.to_document() for e in self.exercises],
            "startedAt": self.started_at.isoformat(),
        }
        if self.pending_record_id:
            doc["pendingRecordId"] = self.pending_record_id
        if self.pending_finished_at:
            doc["pendingFinishedAt"] = self.pending_finished_at.isoformat()
        return doc

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "InProgressSession":
        return cls(
            type=SessionType(data.get("type", SessionType.MANUAL.value)),
            exercises=[ExerciseEntry.model_validate(e) for e in data.get("exercises") or []],
            started_at=data.get("startedAt") or utc_now(),
            pending_record_id=data.get("pendingRecordId"),
            pending_finished_at=data.get("pendingFinishedAt"),
        )


class CompletedWorkoutRecord(BaseModel):
    """An archived workout: finish timestamp plus a snapshot of its exercises."""

    id: str
    date: datetime
    exercises: List[ExerciseEntry] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Any:
        return _parse_timestamp(v)

    @property
    def completed_count(self) -> int:
        return sum(1 for e in self.exercises if e.completed)

    @property
    def estimated_calories(self) -> float:
        """Sum of the parsed calorie estimates; ranges count as their midpoint."""
        return sum(e.calories_burned.value or 0.0 for e in self.exercises)

    def to_document(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "exercises": [e.to_document() for e in self.exercises],
        }

    @classmethod
    def from_document(cls, record_id: str, data: Dict[str, Any]) -> "CompletedWorkoutRecord":
        return cls(
            id=record_id,
            date=data["date"],
            exercises=[ExerciseEntry.model_validate(e) for e in data.get("exercises") or []],
        )
