from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .config import DEFAULT_SEARCH_FIELDS
from .items import release_status

_TERM_RE = re.compile(r"\{([^}]+)\}|(\S+)")
FIELD_SEPARATOR = " | "


class Logic(str, Enum):
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class ParsedQuery:
    keywords: List[str] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)
    logic: Logic = Logic.AND

    @property
    def is_empty(self) -> bool:
        return not self.keywords and not self.excluded

    def as_dict(self) -> Dict[str, Any]:
        return {"keywords": list(self.keywords), "excluded": list(self.excluded), "logic": self.logic.value}


def parse(query: str, logic: Logic | str = Logic.AND) -> ParsedQuery:
    """Split search box text into keywords.

    ``{good smile}`` keeps its inner spaces as one keyword, any other run of
    non-space characters is one keyword, and ``-word`` excludes items that
    contain ``word``.
    """
    if query is None:
        raise TypeError("query must be a string, not None")
    required: List[str] = []
    excluded: List[str] = []
    for match in _TERM_RE.finditer(query.lower()):
        term = match.group(1) if match.group(1) is not None else match.group(2)
        if term.startswith("-") and len(term) > 1:
            excluded.append(term[1:])
        else:
            required.append(term)
    return ParsedQuery(keywords=required, excluded=excluded, logic=Logic(logic))


def _note_value(item: Mapping[str, Any], key: str) -> str:
    notes = item.get("notes")
    if not isinstance(notes, Mapping):
        return ""
    value = notes.get(key)
    return "" if value is None else str(value)


_FIELD_READERS: Dict[str, Callable[[Mapping[str, Any]], List[str]]] = {
    "name": lambda item: [str(item.get("name") or "")],
    "category": lambda item: [str(item.get("category") or "")],
    "scale": lambda item: [str(item.get("scale") or "")],
    "age_rating": lambda item: [str(item.get("age_rating") or "")],
    "draft_status": lambda item: [release_status(item)],
    "tags": lambda item: [str(tag) for tag in item.get("tags") or []],
    "store": lambda item: [_note_value(item, "store")],
    "price": lambda item: [_note_value(item, "price")],
}


def searchable_text(item: Mapping[str, Any], fields: Sequence[str] = DEFAULT_SEARCH_FIELDS) -> str:
    parts: List[str] = []
    for name in fields:
        reader = _FIELD_READERS.get(name)
        if reader is None:
            raise ValueError(f"Unknown search field: {name}")
        parts.extend(reader(item))
    return FIELD_SEPARATOR.join(parts).lower()


def matches(parsed: ParsedQuery, item: Mapping[str, Any], fields: Sequence[str] = DEFAULT_SEARCH_FIELDS) -> bool:
    text = searchable_text(item, fields)
    if any(keyword in text for keyword in parsed.excluded):
        return False
    if not parsed.keywords:
        return True
    if parsed.logic is Logic.OR:
        return any(keyword in text for keyword in parsed.keywords)
    return all(keyword in text for keyword in parsed.keywords)


def filter_items(
    query: str | ParsedQuery,
    items: Iterable[Mapping[str, Any]],
    logic: Logic | str = Logic.AND,
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> List[Mapping[str, Any]]:
    if items is None:
        raise TypeError("items must be an iterable of item records, not None")
    parsed = query if isinstance(query, ParsedQuery) else parse(query, logic)
    if parsed.is_empty:
        return list(items)
    return [item for item in items if matches(parsed, item, fields)]


@dataclass
class LiveListSync:
    matched_ids: List[str]
    added: List[str]
    removed: List[str]

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def sync_live_list(
    query: str,
    logic: Logic | str,
    items: Iterable[Mapping[str, Any]],
    current_ids: Optional[Iterable[str]] = None,
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> LiveListSync:
    """Recompute a saved live list's members and diff them against what is stored."""
    matched = [str(item.get("id")) for item in filter_items(query, items, logic, fields)]
    current = [str(item_id) for item_id in current_ids or []]
    matched_set = set(matched)
    current_set = set(current)
    return LiveListSync(
        matched_ids=matched,
        added=[item_id for item_id in matched if item_id not in current_set],
        removed=[item_id for item_id in current if item_id not in matched_set],
    )
