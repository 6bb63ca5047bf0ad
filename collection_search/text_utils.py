from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List, Optional

_WORD_SEP = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]+")
_TAG_SEP = re.compile(r"[,?]")


def _ascii_fold(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(char for char in normalized if not unicodedata.combining(char))


def fold(raw: Optional[str]) -> str:
    """Lowercase and strip accents; ``None`` becomes an empty string."""
    if raw is None:
        return ""
    return _ascii_fold(str(raw).lower())


def split_words(raw: str) -> List[str]:
    working = _NON_ALNUM.sub(" ", fold(raw))
    return [token for token in _WORD_SEP.split(working) if token]


def collapse(raw: str) -> str:
    return "".join(split_words(raw))


def split_tags(raw: object) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        pieces: Iterable[object] = _TAG_SEP.split(raw)
    else:
        pieces = raw
    tags: List[str] = []
    for piece in pieces:
        if piece is None:
            continue
        tag = str(piece).strip()
        if tag:
            tags.append(tag)
    return tags


def contains(haystack: Optional[str], needle: str) -> bool:
    if not haystack:
        return False
    return needle in haystack.lower()
