"""Exercise entry models.

Sets, reps, weight and calories stay human-readable strings because both the
oracle and manual entry produce approximations ("peso corporal", "60-80").
``DisplayQuantity`` keeps the raw text and exposes a best-effort number.
"""

import re
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError
from ..utils.text import normalize_text


_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)?")
_RANGE_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:-|–|a|to)\s*(\d+(?:[.,]\d+)?)")

YOUTUBE_SEARCH_URL = "https://www.youtube.com/results?search_query="


def _to_float(text: str) -> float:
    return float(text.replace(",", "."))


class DisplayQuantity(BaseModel):
    """A free-text quantity with a best-effort numeric reading."""

    model_config = ConfigDict(frozen=True)

    raw: str = ""

    @property
    def range(self) -> Optional[Tuple[float, float]]:
        """``(low, high)`` for ranges like "8-12", a degenerate range for single numbers."""
        match = _RANGE_RE.search(self.raw)
        if match:
            low, high = _to_float(match.group(1)), _to_float(match.group(2))
            return (min(low, high), max(low, high))
        number = _NUMBER_RE.search(self.raw)
        if number:
            value = _to_float(number.group(0))
            return (value, value)
        return None

    @property
    def value(self) -> Optional[float]:
        """Midpoint of the parsed range, ``None`` for non-numeric text."""
        parsed = self.range
        if parsed is None:
            return None
        return (parsed[0] + parsed[1]) / 2

    @property
    def is_numeric(self) -> bool:
        return self.range is not None

    def __str__(self) -> str:
        return self.raw

    @classmethod
    def coerce(cls, value: Any) -> "DisplayQuantity":
        """Accept strings, numbers, None or an existing quantity."""
        if isinstance(value, DisplayQuantity):
            return value
        if isinstance(value, dict) and "raw" in value:
            return cls(raw=str(value["raw"] or ""))
        if value is None:
            return cls(raw="")
        if isinstance(value, bool):
            raise ValueError("Quantities cannot be booleans")
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return cls(raw=str(value).strip())


class Equipment(str, Enum):
    """Equipment an exercise is performed with."""

    DUMBBELL = "Mancuernas"
    BARBELL = "Barra"
    BODYWEIGHT = "Peso corporal"
    MACHINE = "Máquina"

    @classmethod
    def parse(cls, value: Any) -> Optional["Equipment"]:
        """Lenient lookup by Spanish or English name; ``None`` when unknown."""
        if isinstance(value, Equipment):
            return value
        key = normalize_text(value)
        if not key:
            return None
        for equipment, aliases in _EQUIPMENT_ALIASES.items():
            if key in aliases:
                return equipment
        for equipment, aliases in _EQUIPMENT_ALIASES.items():
            if any(alias in key for alias in aliases if len(alias) > 3):
                return equipment
        return None


_EQUIPMENT_ALIASES = {
    Equipment.DUMBBELL: ("mancuernas", "mancuerna", "dumbbell", "dumbbells"),
    Equipment.BARBELL: ("barra", "barbell", "barra olimpica"),
    Equipment.BODYWEIGHT: (
        "peso corporal", "bodyweight", "body weight", "ninguno", "none", "sin equipo",
    ),
    Equipment.MACHINE: ("maquina", "machine", "polea", "cable"),
}


class ExerciseFields(BaseModel):
    """Fields shared by session entries and pinned favorites."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    name: str = Field(..., min_length=1)
    sets: DisplayQuantity = Field(default_factory=DisplayQuantity)
    reps: DisplayQuantity = Field(default_factory=DisplayQuantity)
    weight: DisplayQuantity = Field(default_factory=DisplayQuantity)
    equipment: Equipment = Equipment.BODYWEIGHT
    video_search_query: str = Field(default="", alias="videoSearchQuery")
    estimated_duration: str = Field(default="", alias="estimatedDuration")
    difficulty_level: str = Field(default="", alias="difficultyLevel")
    calories_burned: DisplayQuantity = Field(default_factory=DisplayQuantity, alias="caloriesBurned")
    muscle_group: str = Field(default="", alias="muscleGroup")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Exercise name cannot be blank")
        return v

    @field_validator("sets", "reps", "weight", "calories_burned", mode="before")
    @classmethod
    def _coerce_quantity(cls, v: Any) -> DisplayQuantity:
        return DisplayQuantity.coerce(v)

    @field_validator("equipment", mode="before")
    @classmethod
    def _coerce_equipment(cls, v: Any) -> Equipment:
        if v is None or (isinstance(v, str) and not v.strip()):
            return Equipment.BODYWEIGHT
        equipment = Equipment.parse(v)
        if equipment is None:
            raise ValueError(f"Unknown equipment: {v!r}")
        return equipment

    @field_validator(
        "video_search_query", "estimated_duration", "difficulty_level", "muscle_group",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_serializer("sets", "reps", "weight", "calories_burned")
    def _serialize_quantity(self, v: DisplayQuantity) -> str:
        return v.raw

    @field_serializer("equipment")
    def _serialize_equipment(self, v: Equipment) -> str:
        return v.value

    @property
    def name_key(self) -> str:
        """Name used for identity: case and accents are ignored."""
        return normalize_text(self.name)

    def to_document(self) -> Dict[str, Any]:
        """Serialize with the stored (camelCase) field names."""
        return self.model_dump(by_alias=True)

    @classmethod
    def resolve_field_name(cls, field: str) -> str:
        """Map a Python or stored field name to the Python attribute name."""
        for name, info in cls.model_fields.items():
            if field == name or field == info.alias:
                return name
        raise ValidationError(f"Unknown exercise field: {field!r}", field=field)

    def with_field(self, field: str, value: Any):
        """
        Return a copy with one field replaced.

        Numbers given for quantity fields are kept as display strings.

        Raises:
            ValidationError: If the field is unknown or the value is invalid
        """
        name = self.resolve_field_name(field)
        data = self.model_dump()
        data[name] = value
        try:
            return type(self).model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid value for {name}: {e.errors()[0]['msg']}",
                field=name,
            ) from e


_TRUE_WORDS = frozenset({"true", "1", "si", "yes", "y"})
_FALSE_WORDS = frozenset({"false", "0", "no", "n", ""})


class ExerciseEntry(ExerciseFields):
    """The mutable unit inside a workout session."""

    completed: bool = False

    @field_validator("completed", mode="before")
    @classmethod
    def _coerce_completed(cls, v: Any) -> Any:
        if v is None:
            return False
        if isinstance(v, str):
            key = normalize_text(v)
            if key in _TRUE_WORDS:
                return True
            if key in _FALSE_WORDS:
                return False
            raise ValueError(f"Not a yes/no value: {v!r}")
        return v


class FavoriteExercise(ExerciseFields):
    """An exercise pinned for reuse. Unique by name within a profile."""

    @classmethod
    def from_entry(cls, entry: ExerciseFields) -> "FavoriteExercise":
        data = entry.model_dump(exclude={"completed"})
        return cls.model_validate(data)

    def to_entry(self) -> ExerciseEntry:
        """A fresh, not yet completed session entry with the pinned values."""
        return ExerciseEntry.model_validate({**self.model_dump(), "completed": False})


def video_search_url(exercise: ExerciseFields) -> str:
    """YouTube search URL for an exercise tutorial."""
    query = exercise.video_search_query or exercise.name
    return YOUTUBE_SEARCH_URL + quote_plus(query)
