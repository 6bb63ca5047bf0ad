from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .text_utils import fold

_NUMBER_CHARS = re.compile(r"[^0-9,.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
_FRACTION = re.compile(r"(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)")
_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%Y", "%Y/%m/%d", "%Y/%m", "%m/%d/%Y")

PRIORITY_RANKS = {"High": 3, "Medium": 2, "Low": 1, "Normal": 1}


def get_number(value: Any) -> float:
    """Pull a number out of a free-form price/rating string.

    Only digits, ``,``, ``.`` and ``-`` are kept. When both separators appear
    the rightmost one is the decimal point; a lone comma is a decimal point.
    Anything without a leading number is 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    cleaned = _NUMBER_CHARS.sub("", str(value))
    if not cleaned:
        return 0.0
    last_comma = cleaned.rfind(",")
    last_dot = cleaned.rfind(".")
    if last_comma > last_dot:
        head, _, tail = cleaned.replace(".", "").rpartition(",")
        cleaned = f"{head.replace(',', '')}.{tail}"
    else:
        cleaned = cleaned.replace(",", "")
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def get_scale(value: Any) -> float:
    if isinstance(value, str):
        match = _FRACTION.search(value)
        if match:
            denominator = float(match.group(2))
            if denominator:
                return float(match.group(1)) / denominator
    return get_number(value)


def _to_epoch(moment: datetime) -> float:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def _parse_date_string(text: str) -> Optional[datetime]:
    text = text.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def get_timestamp(value: Any) -> float:
    """Epoch seconds for a date-ish value; empty or unreadable values are 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, datetime):
        return _to_epoch(value)
    if isinstance(value, date):
        return _to_epoch(datetime(value.year, value.month, value.day))
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            return 0.0
        nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
        return get_number(seconds) + get_number(nanos) / 1e9
    parsed = _parse_date_string(str(value))
    if parsed is None:
        return 0.0
    return _to_epoch(parsed)


def get_text(value: Any) -> str:
    """Sort key for text columns.

    Accents are folded and case is folded instead of using locale collation, so
    the order does not depend on the server locale (``"Émilia"`` sorts as
    ``"emilia"`` everywhere).
    """
    if value is None:
        return ""
    return fold(str(value)).casefold()


def _notes(item: Mapping[str, Any]) -> Mapping[str, Any]:
    notes = item.get("notes")
    return notes if isinstance(notes, Mapping) else {}


def _note(item: Mapping[str, Any], *keys: str) -> Any:
    notes = _notes(item)
    for key in keys:
        if notes.get(key) not in (None, ""):
            return notes[key]
    return None


def _priority_rank(item: Mapping[str, Any]) -> int:
    label = _note(item, "priority") or "Normal"
    return PRIORITY_RANKS.get(str(label), 0)


_EXTRACTORS: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
    "created": lambda item: get_timestamp(item.get("created_at")),
    "name": lambda item: get_text(item.get("name")),
    "release": lambda item: get_timestamp(item.get("release_date")),
    "age": lambda item: get_number(item.get("age_rating")),
    "scale": lambda item: get_scale(item.get("scale")),
    "price": lambda item: get_number(_note(item, "price")),
    "totalPrice": lambda item: get_number(_note(item, "price")) + get_number(_note(item, "shipping")),
    "amount": lambda item: get_number(_note(item, "amount") or 1),
    "score": lambda item: get_number(_note(item, "score")),
    "store": lambda item: get_text(_note(item, "store")),
    "collectionDate": lambda item: get_timestamp(_note(item, "collectionDate", "collection_date")),
    "priority": _priority_rank,
}


class SortKey(str, Enum):
    CREATED_DESC = "createdDesc"
    CREATED_ASC = "createdAsc"
    NAME_ASC = "nameAsc"
    NAME_DESC = "nameDesc"
    RELEASE_ASC = "releaseAsc"
    RELEASE_DESC = "releaseDesc"
    AGE_ASC = "ageAsc"
    AGE_DESC = "ageDesc"
    SCALE_ASC = "scaleAsc"
    SCALE_DESC = "scaleDesc"
    PRICE_ASC = "priceAsc"
    PRICE_DESC = "priceDesc"
    TOTAL_PRICE_ASC = "totalPriceAsc"
    TOTAL_PRICE_DESC = "totalPriceDesc"
    AMOUNT_ASC = "amountAsc"
    AMOUNT_DESC = "amountDesc"
    SCORE_ASC = "scoreAsc"
    SCORE_DESC = "scoreDesc"
    STORE_ASC = "storeAsc"
    STORE_DESC = "storeDesc"
    COLLECTION_DATE_ASC = "collectionDateAsc"
    COLLECTION_DATE_DESC = "collectionDateDesc"
    PRIORITY_ASC = "priorityAsc"
    PRIORITY_DESC = "priorityDesc"

    @property
    def descending(self) -> bool:
        return self.value.endswith("Desc")

    @property
    def field(self) -> str:
        return self.value[: -4] if self.descending else self.value[: -3]

    def extract(self, item: Mapping[str, Any]) -> Any:
        return _EXTRACTORS[self.field](item)


def _require_items(items: Optional[Sequence[Any]]) -> None:
    if items is None:
        raise TypeError("items must be a sequence of item records, not None")


def sort_items(items: Sequence[Mapping[str, Any]], sort_key: SortKey | str) -> List[Mapping[str, Any]]:
    """Stable sort; items with equal keys keep their input order either way."""
    _require_items(items)
    key = SortKey(sort_key)
    return sorted(items, key=key.extract, reverse=key.descending)


def page_count(total: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return max(math.ceil(total / page_size), 0)


def paginate(items: Sequence[Any], page: int, page_size: int) -> List[Any]:
    _require_items(items)
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    if page < 1:
        return []
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


def sort_and_page(
    items: Sequence[Mapping[str, Any]],
    sort_key: SortKey | str,
    page: int,
    page_size: int,
) -> List[Mapping[str, Any]]:
    return paginate(sort_items(items, sort_key), page, page_size)
