"""Build the context bundle sent to the routine oracle."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.exercises import FavoriteExercise
from ..models.profile import UserProfile
from ..models.schedule import Weekday


class RoutineContext(BaseModel):
    """
    Everything the oracle needs to design today's session.

    When ``user_notes`` is non-empty it takes precedence over
    ``today_scheduled_label``. The rule is sent to the oracle as an
    instruction; the response is not checked against it.
    """

    objective: str = ""
    fatigue_level: int = Field(default=5, ge=1, le=10)
    user_notes: str = ""
    today_scheduled_label: str = "Descanso"
    weekday: Optional[Weekday] = None
    recent_history_summary: str = ""
    favorite_exercises: List[FavoriteExercise] = Field(default_factory=list)
    available_equipment: str = ""

    @field_validator("user_notes", "objective", "available_equipment", mode="before")
    @classmethod
    def _strip(cls, v) -> str:
        return (v or "").strip()

    @property
    def notes_take_precedence(self) -> bool:
        return bool(self.user_notes)

    @property
    def focus_request(self) -> str:
        """What the session should train: the notes when given, else the schedule."""
        return self.user_notes if self.notes_take_precedence else self.today_scheduled_label


def build_routine_context(
    profile: UserProfile,
    today_label: str,
    weekday: Optional[Weekday] = None,
    recent_history_summary: str = "",
    fatigue_level: int = 5,
    user_notes: str = "",
) -> RoutineContext:
    """Assemble the bundle from the profile, today's plan and recent history."""
    return RoutineContext(
        objective=profile.objective,
        fatigue_level=fatigue_level,
        user_notes=user_notes,
        today_scheduled_label=today_label,
        weekday=weekday,
        recent_history_summary=recent_history_summary,
        favorite_exercises=[f.model_copy(deep=True) for f in profile.favorites],
        available_equipment=profile.available_equipment,
    )


def format_routine_context(context: RoutineContext) -> str:
    """
    Render the bundle as prompt text.

    Returns:
        Formatted context string
    """
    parts = []

    parts.append("OBJETIVO:")
    parts.append(f"  {context.objective or 'No especificado'}")
    parts.append("")

    parts.append("HOY:")
    if context.weekday is not None:
        parts.append(f"  Día: {context.weekday.display_name}")
    parts.append(f"  Sesión programada: {context.today_scheduled_label}")
    parts.append(f"  Nivel de fatiga: {context.fatigue_level}/10")
    parts.append("")

    if context.notes_take_precedence:
        parts.append("NOTAS DEL CLIENTE (tienen prioridad sobre la sesión programada):")
        parts.append(f"  {context.user_notes}")
        parts.append("")

    parts.append(f"ENFOQUE SOLICITADO: {context.focus_request}")
    parts.append("")

    if context.available_equipment:
        parts.append("EQUIPO DISPONIBLE:")
        parts.append(f"  {context.available_equipment}")
        parts.append("")

    parts.append("ENTRENAMIENTOS RECIENTES:")
    parts.append(context.recent_history_summary or "Sin entrenamientos registrados.")
    parts.append("")

    if context.favorite_exercises:
        parts.append("EJERCICIOS FAVORITOS:")
        for favorite in context.favorite_exercises[:15]:
            group = f" ({favorite.muscle_group})" if favorite.muscle_group else ""
            parts.append(f"  - {favorite.name}{group}: {favorite.sets} x {favorite.reps}, {favorite.weight}")
        parts.append("")

    return "\n".join(parts).strip()
