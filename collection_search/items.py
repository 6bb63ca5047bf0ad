from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, TypedDict

from .sorting import get_timestamp
from .text_utils import split_tags

ADULT_RATINGS = {"18+", "adult"}


class ImageRef(TypedDict):
    url: str
    delete_url: str


class ItemRecord(TypedDict):
    id: str
    name: str
    tags: List[str]
    category: str
    scale: str
    age_rating: str
    release_date: str
    created_at: float
    image_refs: List[ImageRef]
    uploader_id: str
    is_draft: bool
    status: str
    notes: Dict[str, Any]


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _text(raw: Mapping[str, Any], *keys: str) -> str:
    value = _first(raw, *keys)
    return "" if value is None else str(value).strip()


def _image_refs(raw: Any) -> List[ImageRef]:
    refs: List[ImageRef] = []
    if not isinstance(raw, list):
        return refs
    for entry in raw:
        if isinstance(entry, str) and entry:
            refs.append({"url": entry, "delete_url": ""})
        elif isinstance(entry, Mapping) and entry.get("url"):
            refs.append(
                {
                    "url": str(entry["url"]),
                    "delete_url": str(entry.get("deleteUrl") or entry.get("delete_url") or ""),
                }
            )
    return refs


def coerce_item(raw: Mapping[str, Any], item_id: Optional[str] = None) -> ItemRecord:
    """Build an ``ItemRecord`` from a document-store record or a plain dict."""
    if not isinstance(raw, Mapping):
        raise TypeError(f"item record must be a mapping, got {type(raw).__name__}")
    resolved_id = item_id or _text(raw, "id", "itemId")
    if not resolved_id:
        raise ValueError("item record is missing an id")
    notes = _first(raw, "notes", "privateNotes")
    return {
        "id": str(resolved_id),
        "name": _text(raw, "name", "itemName"),
        "tags": split_tags(_first(raw, "tags")),
        "category": _text(raw, "category", "itemCategory"),
        "scale": _text(raw, "scale", "itemScale"),
        "age_rating": _text(raw, "age_rating", "ageRating", "itemAgeRating"),
        "release_date": _text(raw, "release_date", "releaseDate", "itemReleaseDate"),
        "created_at": get_timestamp(_first(raw, "created_at", "createdAt")),
        "image_refs": _image_refs(_first(raw, "image_refs", "imageRefs", "itemImageUrls")),
        "uploader_id": _text(raw, "uploader_id", "uploaderId"),
        "is_draft": bool(_first(raw, "is_draft", "isDraft")),
        "status": _text(raw, "status", "itemStatus"),
        "notes": dict(notes) if isinstance(notes, Mapping) else {},
    }


def is_adult(item: Mapping[str, Any]) -> bool:
    return str(item.get("age_rating") or "").strip().lower() in ADULT_RATINGS


def release_status(item: Mapping[str, Any]) -> str:
    return "draft" if item.get("is_draft") else "released"
