"""Utility helpers for the routine planner."""

from .text import normalize_text, strip_diacritics
from .retry import RetryConfig, retry_async

__all__ = [
    "normalize_text",
    "strip_diacritics",
    "RetryConfig",
    "retry_async",
]
