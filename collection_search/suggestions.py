from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .config import DEFAULT_SUGGESTION_PRIORITY, SUGGESTION_TYPES
from .items import is_adult
from .text_utils import contains

BRACED_TYPES = {"tag", "category", "age", "scale"}

_FIELD_BY_TYPE = {
    "category": "category",
    "age": "age_rating",
    "scale": "scale",
    "name": "name",
}


@dataclass(frozen=True)
class Suggestion:
    type: str
    text: str
    item_id: str

    @property
    def search_term(self) -> str:
        if self.type in BRACED_TYPES:
            return "{" + self.text + "}"
        return self.text

    def as_dict(self) -> Dict[str, str]:
        return {"type": self.type, "text": self.text, "item_id": self.item_id, "search_term": self.search_term}


def _matched_text(item: Mapping[str, Any], kind: str, query: str) -> Optional[str]:
    if kind == "tag":
        # first matching tag only, like the other fields
        for tag in item.get("tags") or []:
            if contains(str(tag), query):
                return str(tag)
        return None
    value = item.get(_FIELD_BY_TYPE[kind])
    if value and contains(str(value), query):
        return str(value)
    return None


def suggest(
    query: str,
    items: Iterable[Mapping[str, Any]],
    limit: int = 10,
    priority: Sequence[str] = DEFAULT_SUGGESTION_PRIORITY,
    allow_adult: bool = True,
) -> List[Suggestion]:
    """Dropdown suggestions for a partially typed query.

    Each item contributes at most one suggestion: its first field, in
    ``priority`` order, that contains the query and whose text has not been
    suggested yet. Scanning stops once ``limit`` suggestions are collected.
    """
    if query is None:
        raise TypeError("query must be a string, not None")
    if items is None:
        raise TypeError("items must be an iterable of item records, not None")
    if limit < 1:
        raise ValueError("limit must be >= 1")
    unknown = [kind for kind in priority if kind not in SUGGESTION_TYPES]
    if unknown:
        raise ValueError(f"Unknown suggestion types: {unknown}")

    needle = query.strip().lower()
    if not needle:
        return []

    buckets: Dict[str, List[Suggestion]] = {kind: [] for kind in priority}
    emitted: set[str] = set()
    seen_ids: set[str] = set()
    total = 0
    for item in items:
        item_id = str(item.get("id", ""))
        if item_id in seen_ids:
            continue
        if not allow_adult and is_adult(item):
            continue
        chosen: Optional[Suggestion] = None
        for kind in priority:
            text = _matched_text(item, kind, needle)
            if text is None or text.lower() in emitted:
                continue
            chosen = Suggestion(type=kind, text=text, item_id=item_id)
            break
        if chosen is None:
            continue
        buckets[chosen.type].append(chosen)
        emitted.add(chosen.text.lower())
        seen_ids.add(item_id)
        total += 1
        if total >= limit:
            break

    ordered = [suggestion for kind in priority for suggestion in buckets[kind]]
    return ordered[:limit]
