import asyncio

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from collection_search import main
from collection_search.query import Logic
from collection_search.schemas import DuplicateCheckRequest, LiveListSyncRequest, MfcImportRequest
from collection_search.search_routes import (
    check_duplicates,
    get_item,
    import_mfc,
    latest_items,
    list_tags,
    search_items,
    suggestions,
    sync_live_list,
)
from collection_search.sorting import SortKey


def test_search_defaults_to_newest_first():
    data = asyncio.run(search_items(q=""))
    assert data.total == 16
    assert data.page_size == 52
    assert data.page_count == 1
    assert data.items[0]["id"] == "ITM-0010"


def test_search_with_keywords_sort_and_paging():
    data = asyncio.run(search_items(q="miku", sort=SortKey.NAME_ASC, page=1, page_size=2))
    assert data.total == 4
    assert data.page_count == 2
    assert [item["id"] for item in data.items] == ["ITM-0011", "ITM-0002"]
    assert data.query["keywords"] == ["miku"]


def test_search_or_logic_and_exclusion():
    data = asyncio.run(search_items(q="frieren makima -nendoroid", logic=Logic.OR))
    assert sorted(item["id"] for item in data.items) == ["ITM-0005", "ITM-0010"]


def test_suggestions_route_uses_profile():
    data = asyncio.run(suggestions(q="goodsmile", profile="search", limit=3))
    assert data.profile == "search"
    assert [entry.type for entry in data.suggestions] == ["tag"]
    assert data.suggestions[0].search_term == "{Goodsmile}"


def test_suggestions_unknown_profile_is_bad_request():
    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(suggestions(q="miku", profile="nope"))
    assert excinfo.value.status_code == 400


def test_suggestions_hide_adult_items():
    shown = asyncio.run(suggestions(q="asuna", allow_adult=True))
    hidden = asyncio.run(suggestions(q="asuna", allow_adult=False))
    assert [entry.item_id for entry in shown.suggestions] == ["ITM-0007"]
    assert hidden.suggestions == []


def test_duplicates_finds_existing_release():
    payload = DuplicateCheckRequest.model_validate({"itemName": "Nendoroid Miku Racing 2024", "itemId": "ITM-0001"})
    data = asyncio.run(check_duplicates(payload))
    assert [candidate.item_id for candidate in data.candidates] == ["ITM-0011", "ITM-0002"]
    assert all(candidate.core_match_count >= 2 for candidate in data.candidates)
    assert data.converged is True
    assert data.outcome == "match"


def test_duplicates_with_only_stop_words():
    data = asyncio.run(check_duplicates(DuplicateCheckRequest(name="The Figure")))
    assert data.candidates == []
    assert data.outcome == "none"


def test_duplicate_request_requires_name():
    with pytest.raises(ValidationError):
        DuplicateCheckRequest.model_validate({"exclude_id": "x"})


def test_live_list_sync_route():
    payload = LiveListSyncRequest.model_validate(
        {"liveQuery": "{frieren}", "liveLogic": "and", "currentIds": ["ITM-0005", "ITM-0003", "ITM-0003"]}
    )
    assert payload.logic is Logic.AND
    assert payload.current_ids == ["ITM-0005", "ITM-0003"]
    data = asyncio.run(sync_live_list(payload))
    assert data.matched_ids == ["ITM-0008", "ITM-0005"]
    assert data.added == ["ITM-0008"]
    assert data.removed == ["ITM-0003"]
    assert data.changed is True


def test_import_route_stages_documents():
    csv_text = "\n".join(
        [
            '"ID","Title","Root","Category","Release","Price","Scale","Barcode","Status","Count"',
            '"1","Nendoroid Frieren","Frieren","Nendoroid","2024-09","5,800","","4580590178000","Wished","1"',
            '"2","Unknown Prize","","Prize","","","","0","","2"',
        ]
    )
    payload = MfcImportRequest.model_validate({"csvText": csv_text, "uploaderId": "user-aki"})
    data = asyncio.run(import_mfc(payload))
    assert data.parsed == 2
    assert data.linked == 1
    assert data.batches == [2]
    assert "IMP-4580590178000" in data.documents
    assert data.documents["IMP-4580590178000"]["uploaderId"] == "user-aki"
    assert data.links == [{"itemId": "IMP-4580590178000", "status": "Wished"}]
    assert data.skipped == []


def test_import_route_keeps_items_owned_by_other_uploaders():
    csv_text = "\n".join(
        [
            '"ID","Title","Root","Category","Release","Price","Scale","Barcode","Status","Count"',
            '"1","Nendoroid Frieren","Frieren","Nendoroid","2024-09","5,800","","4580590178000","Owned","1"',
            '"2","Figma Fern","Frieren","Figma","2025-01","9,000","","4580590179000","","1"',
        ]
    )
    payload = MfcImportRequest.model_validate(
        {
            "csvText": csv_text,
            "uploaderId": "user-aki",
            "existingDocuments": {
                "IMP-4580590178000": {"uploaderId": "user-ren"},
                "IMP-4580590179000": {"uploaderId": "user-aki"},
            },
        }
    )
    data = asyncio.run(import_mfc(payload))
    assert data.skipped == ["IMP-4580590178000"]
    assert list(data.documents) == ["IMP-4580590179000"]
    assert data.links == [{"itemId": "IMP-4580590178000", "status": "Owned"}]


def test_item_route_returns_one_item():
    data = asyncio.run(get_item("ITM-0001"))
    assert data["name"] == "Nendoroid Hatsune Miku Racing 2024 Ver."
    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(get_item("ITM-9999"))
    assert excinfo.value.status_code == 404


def test_tags_route_lists_lowercase_tags():
    data = asyncio.run(list_tags())
    assert "goodsmile" in data.tags
    assert data.tags == sorted(data.tags)


def test_latest_items_route():
    data = asyncio.run(latest_items(limit=3))
    assert [item["id"] for item in data["items"]] == ["ITM-0010", "ITM-0002", "ITM-0001"]


def test_healthz_and_metrics():
    health = main.healthz()
    assert health["status"] == "ok"
    assert health["items"] == 16
    asyncio.run(search_items(q="miku"))
    body = main.metrics().body.decode("utf-8")
    assert "# TYPE search_latency_ms histogram" in body
    assert "snapshot_items 16" in body
