"""Diacritic-insensitive text normalization for header matching."""

from __future__ import annotations

import unicodedata


def normalize_text(value: object) -> str:
    """Lower-case, strip combining marks, and trim *value*.

    ``"Hjärtfrekvens"`` and ``"HJARTFREKVENS "`` both normalize to
    ``"hjartfrekvens"``.  ``None`` and empty values yield ``""``.
    """
    if value is None:
        return ""
    text = str(value)
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.strip()
