from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence

from .tokenizer import TokenSet, Tokenizer

DUPLICATE_FLOOR = 2


class MatchCounts(NamedTuple):
    core: int
    supportive: int


@dataclass
class RankerOptions:
    start_threshold: int = 2
    target_size: int = 2
    exclude_id: Optional[str] = None


@dataclass
class SimilarityCandidate:
    item: Mapping[str, Any]
    core_match_count: int
    supportive_match_count: int

    @property
    def match_count(self) -> int:
        # brand words only corroborate an existing core overlap
        if self.core_match_count >= DUPLICATE_FLOOR:
            return self.core_match_count + self.supportive_match_count
        return self.core_match_count

    @property
    def item_id(self) -> str:
        return str(self.item.get("id", ""))

    def as_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "name": self.item.get("name", ""),
            "core_match_count": self.core_match_count,
            "supportive_match_count": self.supportive_match_count,
            "match_count": self.match_count,
        }


@dataclass
class RankOutcome:
    candidates: List[SimilarityCandidate]
    threshold: int
    converged: bool
    query: TokenSet


def score(query: TokenSet, candidate: TokenSet) -> MatchCounts:
    """Count query tokens present in the candidate, per vocabulary class.

    Repeated query tokens are counted each time they appear.
    """
    core_pool = set(candidate.core)
    supportive_pool = set(candidate.supportive)
    core = sum(1 for token in query.core if token in core_pool)
    supportive = sum(1 for token in query.supportive if token in supportive_pool)
    return MatchCounts(core=core, supportive=supportive)


def survivors_at(candidates: Iterable[SimilarityCandidate], threshold: int) -> List[SimilarityCandidate]:
    return [candidate for candidate in candidates if candidate.core_match_count >= threshold]


def score_items(
    query: TokenSet,
    items: Iterable[Mapping[str, Any]],
    tokenizer: Tokenizer,
    *,
    exclude_id: Optional[str] = None,
) -> List[SimilarityCandidate]:
    scored: List[SimilarityCandidate] = []
    for item in items:
        if exclude_id is not None and str(item.get("id")) == exclude_id:
            continue
        counts = score(query, tokenizer.tokenize(item.get("name") or ""))
        if counts.core <= 0:
            continue
        scored.append(
            SimilarityCandidate(
                item=item,
                core_match_count=counts.core,
                supportive_match_count=counts.supportive,
            )
        )
    return scored


def rank_with_report(
    query_text: str,
    items: Sequence[Mapping[str, Any]],
    tokenizer: Tokenizer,
    options: Optional[RankerOptions] = None,
) -> RankOutcome:
    """Find existing items that look like the same release as ``query_text``.

    The core-overlap bar starts at ``start_threshold`` and is raised one word at
    a time until at most ``target_size`` candidates survive or the bar passes
    the number of core words in the query. The last non-empty survivor set
    wins, so a title that never narrows down returns more than ``target_size``
    candidates; ``converged`` is False whenever that happens.
    """
    if query_text is None:
        raise TypeError("query_text must be a string, not None")
    if items is None:
        raise TypeError("items must be a sequence of item records, not None")
    options = options or RankerOptions()
    query = tokenizer.tokenize(query_text)
    threshold = options.start_threshold
    if not query.core:
        return RankOutcome(candidates=[], threshold=threshold, converged=True, query=query)

    scored = score_items(query, items, tokenizer, exclude_id=options.exclude_id)
    best: List[SimilarityCandidate] = []
    best_threshold = threshold
    while threshold <= len(query.core):
        survivors = survivors_at(scored, threshold)
        if survivors:
            best = survivors
            best_threshold = threshold
        if len(survivors) <= options.target_size:
            break
        threshold += 1

    ranked = sorted(
        survivors_at(best, DUPLICATE_FLOOR),
        key=lambda candidate: candidate.match_count,
        reverse=True,
    )
    return RankOutcome(
        candidates=ranked,
        threshold=best_threshold,
        converged=len(ranked) <= options.target_size,
        query=query,
    )


def rank(
    query_text: str,
    items: Sequence[Mapping[str, Any]],
    tokenizer: Tokenizer,
    options: Optional[RankerOptions] = None,
) -> List[SimilarityCandidate]:
    return rank_with_report(query_text, items, tokenizer, options).candidates
