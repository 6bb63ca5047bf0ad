from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import SearchConfig
from .importer import ImportedItem, batched, can_overwrite, parse_csv
from .observability import (
    duplicate_outcome,
    hash_query,
    record_duplicate_check,
    record_import,
    record_search,
    record_snapshot_size,
    record_suggestions,
    span,
    structured_log,
)
from .query import LiveListSync, Logic, filter_items, parse, sync_live_list
from .similarity import RankOutcome, RankerOptions, rank_with_report
from .snapshot import Snapshot
from .sorting import SortKey, page_count, sort_and_page
from .suggestions import Suggestion, suggest
from .tokenizer import Tokenizer


@dataclass
class SearchPage:
    query: Dict[str, Any]
    total: int
    page: int
    page_size: int
    page_count: int
    items: List[Mapping[str, Any]]


class SearchService:
    """Read-side operations over one loaded snapshot."""

    def __init__(self, snapshot: Snapshot, config: SearchConfig):
        self.snapshot = snapshot
        self.config = config
        self.tokenizer = Tokenizer.from_config(config)
        record_snapshot_size(len(snapshot))
        structured_log("snapshot.loaded", items=len(snapshot), snapshot_hash=snapshot.content_hash())

    def search(
        self,
        query: str,
        logic: Logic | str = Logic.AND,
        sort: SortKey | str = SortKey.CREATED_DESC,
        page: int = 1,
        page_size: Optional[int] = None,
        field_set: Optional[str] = None,
    ) -> SearchPage:
        size = page_size or self.config.page_size
        fields = self.config.fields_for(field_set)
        started = time.perf_counter()
        with span("search", field_set=field_set or "default"):
            parsed = parse(query, logic)
            matched = filter_items(parsed, self.snapshot.items, fields=fields)
            rows = sort_and_page(matched, sort, page, size)
        latency_ms = (time.perf_counter() - started) * 1000.0
        record_search("search", latency_ms, len(matched))
        structured_log(
            "search.executed",
            query_hash=hash_query(query),
            logic=parsed.logic.value,
            sort=SortKey(sort).value,
            total=len(matched),
            page=page,
        )
        return SearchPage(
            query=parsed.as_dict(),
            total=len(matched),
            page=page,
            page_size=size,
            page_count=page_count(len(matched), size),
            items=rows,
        )

    def suggestions(self, query: str, profile: Optional[str] = None, limit: Optional[int] = None, allow_adult: bool = True) -> List[Suggestion]:
        priority = self.config.suggestion_priority(profile)
        found = suggest(
            query,
            self.snapshot.items,
            limit=limit or self.config.suggestion_limit,
            priority=priority,
            allow_adult=allow_adult,
        )
        record_suggestions(profile or "catalog", len(found))
        structured_log("suggestions.served", query_hash=hash_query(query), profile=profile or "catalog", count=len(found))
        return found

    def duplicates(self, name: str, exclude_id: Optional[str] = None) -> RankOutcome:
        options = RankerOptions(
            start_threshold=self.config.duplicate_start_threshold,
            target_size=self.config.duplicate_target_size,
            exclude_id=exclude_id,
        )
        started = time.perf_counter()
        with span("duplicates"):
            outcome = rank_with_report(name, self.snapshot.items, self.tokenizer, options)
        record_search("duplicates", (time.perf_counter() - started) * 1000.0, len(outcome.candidates))
        label = duplicate_outcome(len(outcome.candidates), outcome.converged)
        record_duplicate_check(label)
        structured_log(
            "duplicates.checked",
            query_hash=hash_query(name),
            core_tokens=len(outcome.query.core),
            threshold=outcome.threshold,
            candidates=len(outcome.candidates),
            outcome=label,
        )
        return outcome

    def sync_live_list(self, query: str, logic: Logic | str, current_ids: Iterable[str]) -> LiveListSync:
        with span("live_list_sync"):
            return sync_live_list(query, logic, self.snapshot.items, current_ids, self.config.fields_for(None))

    def latest(self, limit: int = 32) -> List[Mapping[str, Any]]:
        return self.snapshot.latest(limit)

    def item(self, item_id: str) -> Optional[Mapping[str, Any]]:
        return self.snapshot.get(item_id)

    def tags(self) -> List[str]:
        return self.snapshot.tags()


def stage_import(
    csv_text: str,
    uploader_id: str = "",
    uploader_name: str = "",
    existing: Optional[Mapping[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Parse an export and lay it out as document-store writes.

    ``existing`` maps document ids already in the store to their data; rows
    whose document belongs to another uploader are skipped, but their
    collection links are still written.
    """
    existing = existing or {}
    with span("import.parse"):
        rows: List[ImportedItem] = parse_csv(csv_text)
    documents: Dict[str, Dict[str, Any]] = {}
    skipped: List[str] = []
    links: List[Dict[str, str]] = []
    for row in rows:
        if can_overwrite(existing.get(row.doc_id), uploader_id):
            documents[row.doc_id] = row.as_document(uploader_id, uploader_name)
        else:
            skipped.append(row.doc_id)
        link = row.link_document()
        if link is not None:
            links.append(link)
    batches = [len(batch) for batch in batched(rows)]
    record_import(len(rows))
    structured_log(
        "import.parsed",
        rows=len(rows),
        linked=len(links),
        skipped=len(skipped),
        batches=len(batches),
    )
    return {
        "parsed": len(rows),
        "linked": len(links),
        "batches": batches,
        "documents": documents,
        "links": links,
        "skipped": skipped,
    }
