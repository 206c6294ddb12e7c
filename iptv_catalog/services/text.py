"""
Text normalization shared by classification, storage and search.
"""
import re
import unicodedata

WHITESPACE_PATTERN = re.compile(r"\s+")


def strip_diacritics(text: str) -> str:
    """Remove combining marks after canonical decomposition ("é" -> "e")."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def normalize_text(text: str) -> str:
    """Lowercase, diacritic-free, single-spaced form used for matching."""
    return collapse_whitespace(strip_diacritics(text).lower())
