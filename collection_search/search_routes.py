from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Optional

from fastapi import APIRouter, HTTPException, Query

from .config import load_config
from .observability import duplicate_outcome
from .query import Logic
from .schemas import (
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    LiveListSyncRequest,
    LiveListSyncResponse,
    MfcImportRequest,
    MfcImportResponse,
    SearchResponse,
    SuggestionsResponse,
    TagsResponse,
)
from .service import SearchService, stage_import
from .snapshot import Snapshot
from .sorting import SortKey

BASE_DIR = Path(__file__).resolve().parent.parent
SNAPSHOT_PATH = Path(os.getenv("COLLECTION_SNAPSHOT_PATH") or BASE_DIR / "data" / "items_snapshot.json")
CONFIG_PATH = Path(os.getenv("COLLECTION_CONFIG_PATH") or BASE_DIR / "data" / "search_config.json")

service = SearchService(Snapshot(SNAPSHOT_PATH), load_config(CONFIG_PATH))
router = APIRouter()


@router.get("/search", response_model=SearchResponse)
async def search_items(
    q: str = "",
    logic: Logic = Logic.AND,
    sort: SortKey = SortKey.CREATED_DESC,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[Optional[int], Query(ge=1, le=500)] = None,
    profile_fields: bool = False,
):
    try:
        result = service.search(
            q,
            logic=logic,
            sort=sort,
            page=page,
            page_size=page_size,
            field_set="profile" if profile_fields else None,
        )
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return SearchResponse(
        query=result.query,
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        page_count=result.page_count,
        items=[dict(item) for item in result.items],
    )


@router.get("/suggestions", response_model=SuggestionsResponse)
async def suggestions(
    q: str = "",
    profile: str = "catalog",
    limit: Annotated[Optional[int], Query(ge=1, le=50)] = None,
    allow_adult: bool = True,
):
    try:
        found = service.suggestions(q, profile=profile, limit=limit, allow_adult=allow_adult)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return SuggestionsResponse(profile=profile, suggestions=[entry.as_dict() for entry in found])


@router.post("/duplicates", response_model=DuplicateCheckResponse)
async def check_duplicates(payload: DuplicateCheckRequest):
    try:
        outcome = service.duplicates(payload.name, exclude_id=payload.exclude_id)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return DuplicateCheckResponse(
        candidates=[candidate.as_dict() for candidate in outcome.candidates],
        threshold=outcome.threshold,
        converged=outcome.converged,
        outcome=duplicate_outcome(len(outcome.candidates), outcome.converged),
    )


@router.post("/lists/live/sync", response_model=LiveListSyncResponse)
async def sync_live_list(payload: LiveListSyncRequest):
    try:
        result = service.sync_live_list(payload.query, payload.logic, payload.current_ids)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return LiveListSyncResponse(
        matched_ids=result.matched_ids,
        added=result.added,
        removed=result.removed,
        changed=result.changed,
    )


@router.post("/imports/mfc", response_model=MfcImportResponse)
async def import_mfc(payload: MfcImportRequest):
    try:
        staged = stage_import(payload.csv_text, payload.uploader_id, payload.uploader_name, payload.existing)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return MfcImportResponse(**staged)


@router.get("/items/latest")
async def latest_items(limit: Annotated[int, Query(ge=1, le=200)] = 32):
    try:
        items = service.latest(limit)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"items": [dict(item) for item in items]}


@router.get("/items/{item_id}")
async def get_item(item_id: str):
    item = service.item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Unknown item: {item_id}")
    return dict(item)


@router.get("/tags", response_model=TagsResponse)
async def list_tags():
    return TagsResponse(tags=service.tags())
