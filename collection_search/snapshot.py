from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .items import ItemRecord, coerce_item


def _shard_records(payload: Any) -> Iterable[Mapping[str, Any]]:
    if isinstance(payload, list):
        yield from payload
        return
    if not isinstance(payload, Mapping):
        raise ValueError("Snapshot must be a JSON list or object")
    if "shards" in payload:
        for shard in payload["shards"] or []:
            yield from (shard or {}).get("items") or []
        return
    if "items" in payload and isinstance(payload["items"], list):
        yield from payload["items"]
        return
    # denormalized document: {item_id: item}
    for item_id, record in payload.items():
        if isinstance(record, Mapping):
            yield {"id": item_id, **record}


class Snapshot:
    """In-memory copy of every catalog item, newest first."""

    def __init__(self, path: str | Path | None = None, *, records: Optional[Iterable[Mapping[str, Any]]] = None):
        self.items: List[ItemRecord] = []
        self._by_id: Dict[str, ItemRecord] = {}
        if records is not None:
            self._path = None
            self._load_items(records)
            joined = "|".join(sorted(self._by_id))
            self._hash = hashlib.sha256(joined.encode("utf-8")).hexdigest()
            return
        if path is None:
            raise TypeError("Snapshot needs a path or records")
        self._path = Path(path)
        if not self._path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {self._path}")
        raw_bytes = self._path.read_bytes()
        self._hash = hashlib.sha256(raw_bytes).hexdigest()
        self._load_items(_shard_records(json.loads(raw_bytes.decode("utf-8"))))

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "Snapshot":
        return cls(records=records)

    def _load_items(self, records: Iterable[Mapping[str, Any]]) -> None:
        for raw in records:
            if not isinstance(raw, Mapping) or not (raw.get("id") or raw.get("itemId")):
                continue
            item = coerce_item(raw)
            if item["id"] in self._by_id:
                continue
            self._by_id[item["id"]] = item
            self.items.append(item)
        self.items.sort(key=lambda item: item["created_at"], reverse=True)

    def __len__(self) -> int:
        return len(self.items)

    def get(self, item_id: str) -> Optional[ItemRecord]:
        return self._by_id.get(item_id)

    def latest(self, limit: int = 32) -> List[ItemRecord]:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        return self.items[:limit]

    def tags(self) -> List[str]:
        return sorted({tag.lower() for item in self.items for tag in item["tags"]})

    def content_hash(self) -> str:
        return self._hash
