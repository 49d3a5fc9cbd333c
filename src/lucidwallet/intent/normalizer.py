"""
Text normalization applied before template matching.

Case is left to the compiled patterns, which match case-insensitively.
"""

from __future__ import annotations

import re

# Full-width comma and enumeration comma used as list separators.
_LIST_SEPARATORS = re.compile(r"[，、]")
_TRAILING_PUNCT = re.compile(r"[。！？!?]+$")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(raw: str) -> str:
    text = (raw or "").strip()
    text = _LIST_SEPARATORS.sub(" ", text)
    text = _TRAILING_PUNCT.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()
