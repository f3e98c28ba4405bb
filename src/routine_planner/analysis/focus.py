"""Training focus classification of archived workouts.

Buckets a session's exercises into upper body, lower body, cardio or other,
then labels the session. Checks run in a fixed order:

1. no exercises                      -> Descanso
2. cardio share >= cardio threshold  -> Cardio
3. upper share > dominance threshold -> Tren Superior
4. lower share > dominance threshold -> Tren Inferior
5. both upper and lower present      -> Full Body
6. only upper / only lower           -> Tren Superior / Tren Inferior
7. otherwise                         -> General

Cardio is checked first so mixed cardio and strength sessions read as
Cardio for planning. Balanced upper/lower sessions resolve to Full Body.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from ..models.exercises import ExerciseFields
from ..models.sessions import FocusLabel
from ..utils.text import normalize_text


DEFAULT_UPPER_KEYWORDS = frozenset({
    "pecho", "espalda", "hombro", "hombros", "biceps", "triceps", "brazo", "brazos",
    "trapecio", "antebrazo", "antebrazos", "dorsal", "dorsales", "deltoides", "pectoral",
    "superior", "chest", "back", "shoulder", "shoulders", "arms", "lats", "upper",
})

DEFAULT_LOWER_KEYWORDS = frozenset({
    "pierna", "piernas", "cuadriceps", "isquiotibiales", "isquios", "gluteo", "gluteos",
    "gemelo", "gemelos", "pantorrilla", "pantorrillas", "femoral", "femorales",
    "aductores", "abductores", "inferior", "legs", "glutes", "hamstrings", "quads", "calves", "lower",
})

DEFAULT_CARDIO_KEYWORDS = frozenset({
    "cardio", "correr", "carrera", "trote", "natacion", "nadar", "bicicleta", "ciclismo",
    "saltar la cuerda", "saltar cuerda", "salto de cuerda", "saltos de cuerda", "comba",
    "burpee", "burpees", "hiit", "eliptica", "jumping jack",
    "jumping jacks", "sprint", "running", "cycling", "swimming", "rowing", "aerobico",
})


class FocusClassifierConfig(BaseModel):
    """Keyword lists and thresholds for the focus heuristic."""

    upper_keywords: FrozenSet[str] = Field(default=DEFAULT_UPPER_KEYWORDS)
    lower_keywords: FrozenSet[str] = Field(default=DEFAULT_LOWER_KEYWORDS)
    cardio_keywords: FrozenSet[str] = Field(default=DEFAULT_CARDIO_KEYWORDS)
    cardio_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    dominance_threshold: float = Field(default=0.7, ge=0.0, le=1.0)

    @field_validator("upper_keywords", "lower_keywords", "cardio_keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, v: Iterable[str]) -> FrozenSet[str]:
        return frozenset(normalize_text(k) for k in v if normalize_text(k))


DEFAULT_CONFIG = FocusClassifierConfig()


@dataclass(frozen=True)
class FocusBreakdown:
    """Per-bucket exercise counts of a session."""

    upper: int = 0
    lower: int = 0
    cardio: int = 0
    other: int = 0

    @property
    def total(self) -> int:
        return self.upper + self.lower + self.cardio + self.other

    def fraction(self, count: int) -> float:
        return count / self.total if self.total else 0.0


def _matches(text: str, keywords: FrozenSet[str]) -> bool:
    if not text:
        return False
    words = set(text.replace("/", " ").replace(",", " ").split())
    return any(k in words or (" " in k and k in text) for k in keywords)


def _bucket(exercise: ExerciseFields, config: FocusClassifierConfig) -> str:
    group = normalize_text(exercise.muscle_group)
    name = normalize_text(exercise.name)
    if _matches(group, config.cardio_keywords) or _matches(name, config.cardio_keywords):
        return "cardio"
    if _matches(group, config.upper_keywords):
        return "upper"
    if _matches(group, config.lower_keywords):
        return "lower"
    return "other"


def focus_breakdown(
    exercises: Sequence[ExerciseFields],
    config: Optional[FocusClassifierConfig] = None,
) -> FocusBreakdown:
    """Count exercises per bucket."""
    config = config or DEFAULT_CONFIG
    counts = {"upper": 0, "lower": 0, "cardio": 0, "other": 0}
    for exercise in exercises:
        counts[_bucket(exercise, config)] += 1
    return FocusBreakdown(**counts)


def classify(
    exercises: Sequence[ExerciseFields],
    config: Optional[FocusClassifierConfig] = None,
) -> FocusLabel:
    """
    Label a session's training focus.

    Args:
        exercises: The session's exercise list
        config: Keyword lists and thresholds (defaults to Spanish/English lists)

    Returns:
        The focus label; never raises
    """
    config = config or DEFAULT_CONFIG
    if not exercises:
        return FocusLabel.REST

    breakdown = focus_breakdown(exercises, config)

    if breakdown.fraction(breakdown.cardio) >= config.cardio_threshold:
        return FocusLabel.CARDIO
    if breakdown.fraction(breakdown.upper) > config.dominance_threshold:
        return FocusLabel.UPPER
    if breakdown.fraction(breakdown.lower) > config.dominance_threshold:
        return FocusLabel.LOWER
    if breakdown.upper > 0 and breakdown.lower > 0:
        return FocusLabel.FULL_BODY
    if breakdown.upper > 0:
        return FocusLabel.UPPER
    if breakdown.lower > 0:
        return FocusLabel.LOWER
    return FocusLabel.GENERAL
