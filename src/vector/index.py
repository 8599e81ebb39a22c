"""
Read-only query capability over a segmented store.
Searchers only read the vocabulary and vectors; any number may run concurrently.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Union

import numpy as np

from .errors import UnknownWordError
from .segments import SegmentedVectorStore
from .types import Match


class ISearcher(ABC):
    """Abstract interface for nearest-neighbour queries over a model."""

    @abstractmethod
    def contains(self, word: str) -> bool:
        """Check whether ``word`` is in the vocabulary."""
        pass

    @abstractmethod
    def raw_vector(self, word: str) -> np.ndarray:
        """Stored vector for ``word``."""
        pass

    @abstractmethod
    def matches(self, query: Union[str, Sequence[float]], top_k: int = 10) -> List[Match]:
        """Words closest to ``query`` (a word or a vector), best first."""
        pass

    @abstractmethod
    def cosine_distance(self, first: str, second: str) -> float:
        """Cosine similarity between two vocabulary words."""
        pass

    @abstractmethod
    def similarity(self, first: str, second: str) -> "SemanticDifference":
        """Difference between two words, applied to others with ``matches``."""
        pass


class SemanticDifference:
    """
    Offset between two word vectors.

    ``matches(word)`` answers "``first`` is to ``second`` as ``word`` is to
    what": it ranks words by similarity to ``vec(word) - (vec(first) - vec(second))``.
    """

    def __init__(self, searcher: ISearcher, offset: np.ndarray):
        self.searcher = searcher
        self.offset = offset

    def matches(self, word: str, top_k: int = 10) -> List[Match]:
        target = self.searcher.raw_vector(word) - self.offset
        return self.searcher.matches(target, top_k)


class SimpleInMemorySearcher(ISearcher):
    """Brute-force cosine similarity over every segment using numpy."""

    def __init__(self, store: SegmentedVectorStore):
        self.store = store
        self.vocab = store.vocab

        # First occurrence wins for duplicated words
        self._word_index: Dict[str, int] = {}
        for i, word in enumerate(self.vocab):
            self._word_index.setdefault(word, i)

        self._norms = [
            np.linalg.norm(segment.reshape(-1, store.layer_size), axis=1)
            for segment in store.segments
        ]

    def index_of(self, word: str) -> int:
        try:
            return self._word_index[word]
        except KeyError:
            raise UnknownWordError(word) from None

    def contains(self, word: str) -> bool:
        return word in self._word_index

    def raw_vector(self, word: str) -> np.ndarray:
        return self.store.vector_at(self.index_of(word))

    def _query_vector(self, query) -> np.ndarray:
        if isinstance(query, str):
            return self.raw_vector(query)
        vector = np.asarray(query, dtype=np.float64).reshape(-1)
        if vector.size != self.store.layer_size:
            raise ValueError(
                f"Query vector has {vector.size} components, expected {self.store.layer_size}"
            )
        return vector

    def _scores(self, vector: np.ndarray) -> np.ndarray:
        """Cosine similarity of ``vector`` against every stored vector, in index order."""
        norm = np.linalg.norm(vector)
        scores = []
        for segment, norms in zip(self.store.segments, self._norms):
            dots = segment.reshape(-1, self.store.layer_size) @ vector
            denom = norms * norm
            # zero vectors score 0 instead of nan
            scores.append(np.divide(dots, denom, out=np.zeros_like(dots), where=denom != 0))
        if not scores:
            return np.zeros(0, dtype=np.float64)
        return np.concatenate(scores)

    def matches(self, query: Union[str, Sequence[float]], top_k: int = 10) -> List[Match]:
        vector = self._query_vector(query)
        if top_k <= 0 or not self.vocab:
            return []

        scores = self._scores(vector)
        k = min(top_k, scores.size)
        best = np.argpartition(-scores, k - 1)[:k]
        best = best[np.argsort(-scores[best], kind="stable")]

        return [Match(word=self.vocab[i], distance=float(scores[i]), index=int(i)) for i in best]

    def cosine_distance(self, first: str, second: str) -> float:
        a = self.raw_vector(first)
        b = self.raw_vector(second)
        denom = np.linalg.norm(a) * np.linalg.norm(b)
        if denom == 0:
            return 0.0
        return float(np.dot(a, b) / denom)

    def similarity(self, first: str, second: str) -> SemanticDifference:
        return SemanticDifference(self, self.raw_vector(first) - self.raw_vector(second))
