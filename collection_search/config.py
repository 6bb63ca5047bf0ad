from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Tuple

SUGGESTION_TYPES = ("tag", "category", "age", "scale", "name")
DEFAULT_SUGGESTION_PRIORITY = ("tag", "category", "age", "scale", "name")
SEARCH_FIELD_NAMES = ("name", "category", "scale", "age_rating", "draft_status", "tags", "store", "price")
DEFAULT_SEARCH_FIELDS = ("name", "category", "scale", "age_rating", "draft_status", "tags")


@dataclass(frozen=True)
class SearchConfig:
    stop_words: FrozenSet[str]
    supportive_vocabulary: Tuple[str, ...]
    suggestion_profiles: Dict[str, Tuple[str, ...]] = field(
        default_factory=lambda: {"catalog": DEFAULT_SUGGESTION_PRIORITY}
    )
    search_fields: Dict[str, Tuple[str, ...]] = field(
        default_factory=lambda: {"default": DEFAULT_SEARCH_FIELDS}
    )
    page_size: int = 52
    suggestion_limit: int = 10
    duplicate_start_threshold: int = 2
    duplicate_target_size: int = 2

    def suggestion_priority(self, profile: str | None = None) -> Tuple[str, ...]:
        if not profile:
            return self.suggestion_profiles.get("catalog", DEFAULT_SUGGESTION_PRIORITY)
        try:
            return self.suggestion_profiles[profile]
        except KeyError:
            raise ValueError(f"Unknown suggestion profile: {profile}") from None

    def fields_for(self, variant: str | None = None) -> Tuple[str, ...]:
        if not variant:
            return self.search_fields.get("default", DEFAULT_SEARCH_FIELDS)
        try:
            return self.search_fields[variant]
        except KeyError:
            raise ValueError(f"Unknown search field set: {variant}") from None


def _validated_order(name: str, values: object, allowed: Tuple[str, ...]) -> Tuple[str, ...]:
    if not isinstance(values, list) or not values:
        raise ValueError(f"{name} must be a non-empty list")
    order = tuple(str(value) for value in values)
    unknown = [value for value in order if value not in allowed]
    if unknown:
        raise ValueError(f"{name} has unknown entries: {unknown}")
    if len(set(order)) != len(order):
        raise ValueError(f"{name} repeats an entry")
    return order


def _positive_int(payload: dict, key: str, default: int) -> int:
    value = int(payload.get(key, default))
    if value < 1:
        raise ValueError(f"{key} must be >= 1")
    return value


def load_config(path: str | Path) -> SearchConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Search config not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, dict):
        raise ValueError("Search config must be a JSON object")

    stop_words = frozenset(str(word).strip().lower() for word in payload.get("stop_words", []) if str(word).strip())
    vocabulary = tuple(str(entry).strip() for entry in payload.get("supportive_vocabulary", []) if str(entry).strip())

    profiles: Dict[str, Tuple[str, ...]] = {"catalog": DEFAULT_SUGGESTION_PRIORITY}
    for profile, order in (payload.get("suggestion_profiles") or {}).items():
        profiles[str(profile)] = _validated_order(f"suggestion_profiles.{profile}", order, SUGGESTION_TYPES)

    field_sets: Dict[str, Tuple[str, ...]] = {"default": DEFAULT_SEARCH_FIELDS}
    for variant, fields in (payload.get("search_fields") or {}).items():
        field_sets[str(variant)] = _validated_order(f"search_fields.{variant}", fields, SEARCH_FIELD_NAMES)

    return SearchConfig(
        stop_words=stop_words,
        supportive_vocabulary=vocabulary,
        suggestion_profiles=profiles,
        search_fields=field_sets,
        page_size=_positive_int(payload, "page_size", 52),
        suggestion_limit=_positive_int(payload, "suggestion_limit", 10),
        duplicate_start_threshold=_positive_int(payload, "duplicate_start_threshold", 2),
        duplicate_target_size=_positive_int(payload, "duplicate_target_size", 2),
    )
