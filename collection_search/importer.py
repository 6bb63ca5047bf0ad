from __future__ import annotations

import csv
import hashlib
import io
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, TypeVar

from .sorting import get_number

VALID_STATUSES = ("Owned", "Wished", "Ordered")
BATCH_LIMIT = 490
MIN_COLUMNS = 10

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")

T = TypeVar("T")


@dataclass
class ImportedItem:
    doc_id: str
    name: str
    category: str
    release_date: str
    scale: str
    barcode: str
    price: float
    status: str
    count: int = 1
    root: str = ""

    @property
    def link_to_collection(self) -> bool:
        return self.status in VALID_STATUSES

    def as_document(self, uploader_id: str = "", uploader_name: str = "") -> Dict[str, Any]:
        """Shape written to the public item collection (camelCase, as stored)."""
        return {
            "uploaderId": uploader_id,
            "uploaderName": uploader_name,
            "itemName": self.name,
            "itemRoot": self.root,
            "itemCategory": self.category,
            "itemReleaseDate": self.release_date,
            "itemPrice": self.price,
            "itemScale": self.scale,
            "itemStatus": self.status,
            "itemCount": self.count,
        }

    def link_document(self) -> Optional[Dict[str, str]]:
        if not self.link_to_collection:
            return None
        return {"itemId": self.doc_id, "status": self.status}


def import_doc_id(title: str, barcode: str) -> str:
    if barcode and barcode != "0":
        return f"IMP-{barcode}"
    stem = _NON_ALNUM.sub("", title)[:15]
    digest = hashlib.sha256(title.encode("utf-8")).hexdigest()[:6]
    return f"IMPC-{stem}-{digest}"


def _cell(row: Sequence[str], index: int) -> str:
    return row[index].strip() if index < len(row) else ""


def _parse_count(raw: str) -> int:
    try:
        value = int(float(raw))
    except (TypeError, ValueError):
        return 1
    return value if value > 0 else 1


def parse_row(row: Sequence[str]) -> Optional[ImportedItem]:
    if len(row) < MIN_COLUMNS:
        return None
    title = _cell(row, 1)
    barcode = _cell(row, 7)
    return ImportedItem(
        doc_id=import_doc_id(title, barcode),
        name=title,
        root=_cell(row, 2),
        category=_cell(row, 3),
        release_date=_cell(row, 4),
        price=get_number(_cell(row, 5)),
        scale=_cell(row, 6),
        barcode=barcode,
        status=_cell(row, 8),
        count=_parse_count(_cell(row, 9)),
    )


def parse_csv(text: str) -> List[ImportedItem]:
    """Parse a MyFigureCollection CSV export, skipping the header row."""
    if text is None:
        raise TypeError("csv text must be a string, not None")
    reader = csv.reader(io.StringIO(text))
    next(reader, None)
    parsed: List[ImportedItem] = []
    for row in reader:
        item = parse_row(row)
        if item is not None:
            parsed.append(item)
    return parsed


def batched(rows: Iterable[T], size: int = BATCH_LIMIT) -> Iterator[List[T]]:
    if size < 1:
        raise ValueError("batch size must be >= 1")
    batch: List[T] = []
    for row in rows:
        batch.append(row)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def can_overwrite(existing: Optional[Dict[str, Any]], uploader_id: str) -> bool:
    """Imports may create new items or replace ones the same user uploaded."""
    if existing is None:
        return True
    return existing.get("uploaderId") == uploader_id
