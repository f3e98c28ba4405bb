"""On-demand calorie re-estimates for exercises of the active session."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import get_settings
from ..exceptions import NoActiveSessionError, ValidationError
from ..llm.oracle import RoutineOracle
from ..models.sessions import InProgressSession
from ..utils.retry import RetryConfig, retry_async
from .session_manager import SessionLifecycleManager

logger = logging.getLogger(__name__)


class CalorieService:
    """
    Asks the oracle for a fresh calorie estimate after the user edits an entry.

    Only an explicit ``recalculate`` call reaches the oracle; editing
    sets, reps or weight never triggers it.
    """

    def __init__(
        self,
        manager: SessionLifecycleManager,
        oracle: RoutineOracle,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._manager = manager
        self._oracle = oracle
        self._retry_config = retry_config or RetryConfig.from_settings(get_settings())
        self._sleep = sleep

    async def recalculate(self, index: int) -> InProgressSession:
        """
        Re-estimate the calories of one exercise and store the answer.

        Raises:
            NoActiveSessionError: If no session is active
            ValidationError: If the index is out of range
            TransientIOError: If the oracle stays unavailable
        """
        session = self._manager.current
        if session is None:
            raise NoActiveSessionError("recalculate calories")
        if not 0 <= index < len(session.exercises):
            raise ValidationError(
                f"No exercise at position {index}",
                field="index",
                details={"exercises": len(session.exercises)},
            )

        entry = session.exercises[index]
        estimate = await retry_async(
            lambda: self._oracle.recalculate_calories(entry),
            self._retry_config,
            operation_name="recalculate_calories",
            sleep=self._sleep,
        )
        estimate = str(estimate or "").strip()
        if not estimate:
            raise ValidationError("Empty calorie estimate", field="calories_burned")

        logger.info(f"Calories for '{entry.name}': {entry.calories_burned} -> {estimate}")
        return await self._manager.update_exercise(index, "calories_burned", estimate)
