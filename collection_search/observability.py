from __future__ import annotations

import hashlib
import json
import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from .metrics import Counter, Gauge, Histogram

logger = logging.getLogger("collection_search")
logger.setLevel(logging.INFO)

DUPLICATE_OUTCOMES = ("none", "match", "overflow")

SEARCH_LATENCY_MS = Histogram(
    "search_latency_ms",
    "Search latency in milliseconds",
    buckets=(1, 2, 5, 10, 25, 50, 100, 250, 500),
    labelnames=("route",),
)
SEARCH_RESULTS = Histogram(
    "search_results",
    "Items matched per search",
    buckets=(0, 1, 5, 10, 25, 52, 100, 250, 1000),
)
DUPLICATE_CHECKS = Counter("duplicate_checks_total", "Duplicate checks by outcome", labelnames=("outcome",))
SUGGESTIONS_SERVED = Histogram(
    "suggestions_served",
    "Suggestions returned per request",
    buckets=(0, 1, 2, 5, 10, 20),
    labelnames=("profile",),
)
IMPORTED_ROWS = Counter("imported_rows_total", "Rows parsed from collection imports")
SNAPSHOT_ITEMS = Gauge("snapshot_items", "Items held in the loaded snapshot")


class _Span:
    def __init__(self, name: str):
        self.name = name
        self.attributes: Dict[str, Any] = {}
        self._started = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "_Span":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000.0
        logger.debug("span_end", extra={"span": self.name, "elapsed_ms": self.elapsed_ms, "failed": exc_type is not None})

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value


class _Tracer:
    def start_as_current_span(self, name: str) -> _Span:
        return _Span(name)


tracer = _Tracer()


@contextmanager
def span(name: str, **attributes: Any) -> Iterator[_Span]:
    with tracer.start_as_current_span(name) as current_span:
        for key, value in attributes.items():
            current_span.set_attribute(key, value)
        yield current_span


def record_search(route: str, latency_ms: float, result_count: int) -> None:
    SEARCH_LATENCY_MS.labels(route=route).observe(latency_ms)
    SEARCH_RESULTS.observe(result_count)


def duplicate_outcome(candidate_count: int, converged: bool) -> str:
    if candidate_count == 0:
        return "none"
    return "match" if converged else "overflow"


def record_duplicate_check(outcome: str) -> None:
    if outcome not in DUPLICATE_OUTCOMES:
        raise ValueError(f"Unknown duplicate outcome: {outcome}")
    DUPLICATE_CHECKS.labels(outcome=outcome).inc()


def record_suggestions(profile: str, count: int) -> None:
    SUGGESTIONS_SERVED.labels(profile=profile).observe(count)


def record_import(rows: int) -> None:
    IMPORTED_ROWS.inc(rows)


def record_snapshot_size(items: int) -> None:
    SNAPSHOT_ITEMS.set(items)


def hash_query(text: str) -> str:
    return hashlib.sha256((text or "").strip().lower().encode("utf-8")).hexdigest()[:16]


def structured_log(event: str, **payload: Any) -> None:
    entry: Dict[str, Any] = {"event": event, **payload}
    logger.info(json.dumps(entry, default=str))
