"""Weekly schedule models: weekdays, scheduled sessions and the vocabulary of session types."""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..utils.text import normalize_text


REST_LABEL = "Descanso"
DEFAULT_SESSION_TIME = "18:00"

DEFAULT_SESSION_TYPES: List[str] = [
    "Natación",
    "Pesas - Tren Superior",
    "Pesas - Tren Inferior",
    "Fútbol",
    "Cardio Ligero",
    "Full Body",
]

_CLOCK_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


class Weekday(str, Enum):
    """Weekday keys, lowercase and without diacritics."""

    LUNES = "lunes"
    MARTES = "martes"
    MIERCOLES = "miercoles"
    JUEVES = "jueves"
    VIERNES = "viernes"
    SABADO = "sabado"
    DOMINGO = "domingo"

    @classmethod
    def ordered(cls) -> List["Weekday"]:
        """Canonical Monday-first order."""
        return list(cls)

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        """Map ``date.weekday()`` (Monday=0) to a key."""
        return cls.ordered()[index % 7]

    @classmethod
    def from_name(cls, name: str) -> "Weekday":
        """
        Resolve a weekday name in any supported spelling.

        Accepts accented or cased Spanish names ("Miércoles"), their
        abbreviations ("mié") and English names ("Wednesday").

        Raises:
            ValueError: If the name is not a weekday
        """
        if isinstance(name, Weekday):
            return name
        key = normalize_text(name).rstrip(".")
        weekday = _WEEKDAY_ALIASES.get(key)
        if weekday is None:
            raise ValueError(f"Unknown weekday name: {name!r}")
        return weekday

    @property
    def display_name(self) -> str:
        """Spanish name with its accents, for display."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Weekday.LUNES: "Lunes",
    Weekday.MARTES: "Martes",
    Weekday.MIERCOLES: "Miércoles",
    Weekday.JUEVES: "Jueves",
    Weekday.VIERNES: "Viernes",
    Weekday.SABADO: "Sábado",
    Weekday.DOMINGO: "Domingo",
}

_WEEKDAY_ALIASES: Dict[str, Weekday] = {}
for _weekday, _aliases in {
    Weekday.LUNES: ("lunes", "lun", "lu", "monday", "mon"),
    Weekday.MARTES: ("martes", "mar", "ma", "tuesday", "tue", "tues"),
    Weekday.MIERCOLES: ("miercoles", "mie", "mi", "wednesday", "wed"),
    Weekday.JUEVES: ("jueves", "jue", "ju", "thursday", "thu", "thurs"),
    Weekday.VIERNES: ("viernes", "vie", "vi", "friday", "fri"),
    Weekday.SABADO: ("sabado", "sab", "sa", "saturday", "sat"),
    Weekday.DOMINGO: ("domingo", "dom", "do", "sunday", "sun"),
}.items():
    for _alias in _aliases:
        _WEEKDAY_ALIASES[_alias] = _weekday


def validate_clock_time(value: Any) -> str:
    """Normalize an ``H:MM``/``HH:MM`` string to ``HH:MM``."""
    text = str(value or "").strip()
    match = _CLOCK_TIME_RE.match(text)
    if not match:
        raise ValueError(f"Time must be in HH:MM format, got {value!r}")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


class ScheduledSession(BaseModel):
    """A planned session on a weekday: a clock time and a session type label."""

    time: str = DEFAULT_SESSION_TIME
    name: str = Field(..., min_length=1)

    @field_validator("time", mode="before")
    @classmethod
    def _validate_time(cls, v: Any) -> str:
        return validate_clock_time(v)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Session name cannot be blank")
        return v


def _coerce_day_value(value: Any) -> List[Any]:
    """Upgrade legacy single-label days (``"Natación"``/``"Descanso"``) to session lists."""
    if value is None:
        return []
    if isinstance(value, str):
        label = value.strip()
        if not label or normalize_text(label) == normalize_text(REST_LABEL):
            return []
        return [{"time": DEFAULT_SESSION_TIME, "name": label}]
    if isinstance(value, dict):
        return [value]
    return list(value)


class Schedule(BaseModel):
    """
    Recurring weekly plan.

    Every weekday key is always present; an empty list means rest.
    Session order within a day is display order only.
    """

    days: Dict[Weekday, List[ScheduledSession]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_mapping(cls, data: Any) -> Any:
        # Stored documents are a flat {weekday: [...]} mapping
        if isinstance(data, dict) and "days" not in data:
            data = {"days": data}
        if isinstance(data, dict):
            raw_days = data.get("days") or {}
            days: Dict[Weekday, List[Any]] = {}
            for key, value in raw_days.items():
                weekday = Weekday.from_name(key)
                days.setdefault(weekday, []).extend(_coerce_day_value(value))
            data = {**data, "days": days}
        return data

    @model_validator(mode="after")
    def _fill_missing_days(self) -> "Schedule":
        for weekday in Weekday.ordered():
            self.days.setdefault(weekday, [])
        self.days = {weekday: self.days[weekday] for weekday in Weekday.ordered()}
        return self

    def sessions_for(self, weekday: Weekday) -> List[ScheduledSession]:
        """Sessions planned for a weekday (copies)."""
        return [s.model_copy() for s in self.days.get(weekday, [])]

    def to_document(self) -> Dict[str, List[Dict[str, str]]]:
        """Serialize to the stored flat mapping."""
        return {
            weekday.value: [s.model_dump() for s in self.days[weekday]]
            for weekday in Weekday.ordered()
        }

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> "Schedule":
        """Build from a stored mapping, tolerating legacy single-label days."""
        return cls.model_validate(data or {})


def default_schedule() -> Schedule:
    """Starting week created for a new profile."""
    return Schedule.from_document({
        "lunes": "Natación",
        "martes": "Pesas - Tren Superior",
        "miercoles": "Pesas - Tren Inferior",
        "jueves": "Fútbol",
        "viernes": "Natación",
        "sabado": REST_LABEL,
        "domingo": REST_LABEL,
    })


class SessionTypeVocabulary(BaseModel):
    """User-extensible list of session type labels."""

    labels: List[str] = Field(default_factory=lambda: list(DEFAULT_SESSION_TYPES))

    def contains(self, label: str) -> bool:
        key = normalize_text(label)
        return any(normalize_text(existing) == key for existing in self.labels)

    def add(self, label: str) -> bool:
        """
        Append a label unless it is blank or already present.

        Returns:
            True if the vocabulary grew
        """
        label = (label or "").strip()
        if not label or self.contains(label):
            return False
        if normalize_text(label) == normalize_text(REST_LABEL):
            # Rest is the empty day, never a labelled session
            return False
        self.labels.append(label)
        return True
