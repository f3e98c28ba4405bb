"""
Routine oracle: the external generative service behind routine generation.

The oracle is opaque and non-deterministic. Everything it returns is
validated here before it becomes an ``ExerciseEntry``.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from .context_builder import RoutineContext, format_routine_context
from .prompts import (
    CALORIE_ESTIMATE_SYSTEM,
    CALORIE_ESTIMATE_USER,
    ROUTINE_GENERATION_SYSTEM,
    ROUTINE_GENERATION_USER,
)
from .providers import LLMClient
from ..exceptions import LLMResponseInvalidError, RoutineValidationError
from ..models.exercises import DisplayQuantity, Equipment, ExerciseEntry, ExerciseFields

logger = logging.getLogger(__name__)

_ROUTINE_KEYS = ("routine", "exercises", "rutina", "ejercicios")


@runtime_checkable
class RoutineOracle(Protocol):
    """Protocol for the external routine generator."""

    async def generate_routine(self, context: RoutineContext) -> Dict[str, Any]:
        """Return a payload with a list of exercises under ``routine`` or ``exercises``."""
        ...

    async def recalculate_calories(self, entry: ExerciseFields) -> str:
        """Return a calorie estimate such as ``"60-80"``."""
        ...


def _infer_equipment(raw: Dict[str, Any]) -> Equipment:
    equipment = Equipment.parse(raw.get("equipment"))
    if equipment is not None:
        return equipment
    weight = DisplayQuantity.coerce(raw.get("weight"))
    return Equipment.DUMBBELL if weight.is_numeric else Equipment.BODYWEIGHT


def parse_routine_payload(payload: Any) -> List[ExerciseEntry]:
    """
    Validate an oracle payload and build fresh session entries.

    Entries without a usable name are dropped. Missing optional fields get
    defaults, unknown equipment is inferred from the weight, and every entry
    starts with ``completed=False``.

    Raises:
        RoutineValidationError: If the payload is malformed or yields no entries
    """
    if not isinstance(payload, dict):
        raise RoutineValidationError(
            "Routine payload must be a JSON object",
            details={"payload_type": type(payload).__name__},
        )

    items = None
    for key in _ROUTINE_KEYS:
        if key in payload:
            items = payload[key]
            break
    if not isinstance(items, list):
        raise RoutineValidationError(
            "Routine payload has no exercise list",
            details={"keys": sorted(payload.keys())},
        )

    entries: List[ExerciseEntry] = []
    for position, raw in enumerate(items):
        if not isinstance(raw, dict):
            logger.warning(f"Dropping routine item {position}: not an object")
            continue
        data = {**raw, "equipment": _infer_equipment(raw), "completed": False}
        try:
            entries.append(ExerciseEntry.model_validate(data))
        except PydanticValidationError as e:
            logger.warning(f"Dropping routine item {position}: {e.errors()[0]['msg']}")

    if not entries:
        raise RoutineValidationError(details={"items": len(items)})
    return entries


class OpenAIRoutineOracle:
    """RoutineOracle backed by an OpenAI chat model in JSON mode."""

    def __init__(self, llm_client: Optional[LLMClient] = None) -> None:
        self._llm = llm_client or LLMClient()

    async def generate_routine(self, context: RoutineContext) -> Dict[str, Any]:
        user = ROUTINE_GENERATION_USER.format(routine_context=format_routine_context(context))
        return await self._llm.completion_json(ROUTINE_GENERATION_SYSTEM, user)

    async def recalculate_calories(self, entry: ExerciseFields) -> str:
        user = CALORIE_ESTIMATE_USER.format(
            name=entry.name,
            sets=str(entry.sets) or "-",
            reps=str(entry.reps) or "-",
            weight=str(entry.weight) or "-",
            equipment=entry.equipment.value,
            muscle_group=entry.muscle_group or "-",
        )
        payload = await self._llm.completion_json(CALORIE_ESTIMATE_SYSTEM, user)
        value = payload.get("caloriesBurned", payload.get("calories"))
        if value is None or not str(value).strip():
            raise LLMResponseInvalidError(
                message="Calorie estimate missing from response",
                details={"keys": sorted(payload.keys())},
            )
        return str(value).strip()
