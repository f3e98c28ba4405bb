"""LLM integration: OpenAI client, prompts and the routine oracle."""

from .providers import LLMClient, LLMMetrics
from .context_builder import RoutineContext, build_routine_context, format_routine_context
from .oracle import OpenAIRoutineOracle, RoutineOracle, parse_routine_payload

__all__ = [
    "LLMClient",
    "LLMMetrics",
    "RoutineContext",
    "build_routine_context",
    "format_routine_context",
    "OpenAIRoutineOracle",
    "RoutineOracle",
    "parse_routine_payload",
]
