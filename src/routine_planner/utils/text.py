"""Text normalization shared by weekday lookups and keyword matching."""

import unicodedata


def strip_diacritics(text: str) -> str:
    """Remove combining accents, e.g. ``"miércoles"`` -> ``"miercoles"``."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def normalize_text(text: str) -> str:
    """Lowercase, strip accents and collapse surrounding whitespace."""
    return strip_diacritics(str(text or "")).strip().lower()
