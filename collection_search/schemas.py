from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .query import Logic

_CAMEL_ALIASES = {
    "itemName": "name",
    "itemId": "exclude_id",
    "excludeId": "exclude_id",
    "currentIds": "current_ids",
    "itemIds": "current_ids",
    "csvText": "csv_text",
    "uploaderId": "uploader_id",
    "uploaderName": "uploader_name",
    "existingDocuments": "existing",
}


def _rename_camel(value: Any) -> Any:
    if not isinstance(value, dict):
        raise ValueError("Body must be an object")
    renamed = dict(value)
    for camel, snake in _CAMEL_ALIASES.items():
        if camel in renamed and snake not in renamed:
            renamed[snake] = renamed.pop(camel)
    return renamed


class DuplicateCheckRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=500)
    exclude_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, value: Any) -> Any:
        return _rename_camel(value)


class DuplicateCandidate(BaseModel):
    item_id: str
    name: str
    core_match_count: int
    supportive_match_count: int
    match_count: int


class DuplicateCheckResponse(BaseModel):
    candidates: List[DuplicateCandidate]
    threshold: int
    converged: bool
    outcome: str


class LiveListSyncRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    query: str = ""
    logic: Logic = Logic.AND
    current_ids: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, value: Any) -> Any:
        renamed = _rename_camel(value)
        # stored live lists keep their criteria under liveQuery / liveLogic
        if "query" not in renamed and "liveQuery" in renamed:
            renamed["query"] = renamed.pop("liveQuery")
        if "logic" not in renamed and "liveLogic" in renamed:
            renamed["logic"] = renamed.pop("liveLogic")
        return renamed

    @field_validator("logic", mode="before")
    @classmethod
    def upper_logic(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("current_ids")
    @classmethod
    def unique_ids(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(str(item_id) for item_id in value))


class LiveListSyncResponse(BaseModel):
    matched_ids: List[str]
    added: List[str]
    removed: List[str]
    changed: bool


class MfcImportRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    csv_text: str = Field(..., min_length=1)
    uploader_id: str = ""
    uploader_name: str = ""
    existing: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, value: Any) -> Any:
        return _rename_camel(value)


class MfcImportResponse(BaseModel):
    parsed: int
    linked: int
    batches: List[int]
    documents: Dict[str, Dict[str, Any]]
    links: List[Dict[str, str]]
    skipped: List[str]


class SearchResponse(BaseModel):
    query: Dict[str, Any]
    total: int
    page: int
    page_size: int
    page_count: int
    items: List[Dict[str, Any]]


class SuggestionOut(BaseModel):
    type: str
    text: str
    item_id: str
    search_term: str


class SuggestionsResponse(BaseModel):
    profile: str
    suggestions: List[SuggestionOut]


class TagsResponse(BaseModel):
    tags: List[str]
