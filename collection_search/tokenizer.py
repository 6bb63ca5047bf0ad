from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Set, Tuple

from .config import SearchConfig
from .text_utils import collapse, split_words

MIN_TOKEN_LENGTH = 2


@dataclass(frozen=True)
class TokenSet:
    core: Tuple[str, ...] = ()
    supportive: Tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.core or self.supportive)


class Tokenizer:
    """Splits item titles into core words and brand/manufacturer words.

    Both word lists are fixed when the tokenizer is built; build a new one to
    change them.
    """

    def __init__(self, stop_words: Iterable[str], supportive_vocabulary: Iterable[str]):
        self._stop_words: FrozenSet[str] = frozenset(
            word for raw in stop_words for word in split_words(raw)
        )
        supportive: Set[str] = set()
        phrases: Dict[str, List[Tuple[str, ...]]] = {}
        for entry in supportive_vocabulary:
            words = tuple(split_words(entry))
            if not words:
                continue
            supportive.add(collapse(entry))
            if len(words) > 1:
                phrases.setdefault(words[0], []).append(words)
        for candidates in phrases.values():
            candidates.sort(key=len, reverse=True)
        self._supportive: FrozenSet[str] = frozenset(supportive)
        self._phrases = phrases

    @classmethod
    def from_config(cls, config: SearchConfig) -> "Tokenizer":
        return cls(config.stop_words, config.supportive_vocabulary)

    @property
    def stop_words(self) -> FrozenSet[str]:
        return self._stop_words

    @property
    def supportive_vocabulary(self) -> FrozenSet[str]:
        return self._supportive

    def _merge_phrases(self, words: List[str]) -> Iterator[str]:
        # a multi-word brand becomes one token only when its words appear in sequence
        index = 0
        while index < len(words):
            for phrase in self._phrases.get(words[index], ()):
                if tuple(words[index : index + len(phrase)]) == phrase:
                    yield "".join(phrase)
                    index += len(phrase)
                    break
            else:
                yield words[index]
                index += 1

    def words(self, text: str) -> Tuple[str, ...]:
        if text is None:
            raise TypeError("text must be a string, not None")
        return tuple(
            token
            for token in self._merge_phrases(split_words(text))
            if len(token) >= MIN_TOKEN_LENGTH and token not in self._stop_words
        )

    def tokenize(self, text: str) -> TokenSet:
        core = []
        supportive = []
        for token in self.words(text):
            if token in self._supportive:
                supportive.append(token)
            else:
                core.append(token)
        return TokenSet(core=tuple(core), supportive=tuple(supportive))
