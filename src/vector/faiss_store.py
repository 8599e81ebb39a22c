"""
FAISS-backed searcher.
Keeps a float32, L2-normalized copy of the vectors in an inner product index.
"""

from typing import List, Sequence, Union

import numpy as np

from .index import SimpleInMemorySearcher
from .segments import SegmentedVectorStore
from .types import Match


class FaissSearcher(SimpleInMemorySearcher):
    """FAISS-backed implementation of ISearcher."""

    def __init__(self, store: SegmentedVectorStore):
        """
        Initialize FAISS searcher.

        Args:
            store: Model vectors to index
        """
        try:
            import faiss
            self.faiss = faiss
        except ImportError:
            raise ImportError("FAISS not installed. Please install faiss-cpu package.")

        super().__init__(store)
        self.dimension = store.layer_size

        # Flat index, inner product on normalized vectors is cosine similarity
        self.index = faiss.IndexFlatIP(self.dimension)

        # Segments are added one at a time so only one float32 copy is in flight
        for segment in store.segments:
            rows = np.array(segment.reshape(-1, self.dimension), dtype=np.float32)
            if rows.shape[0] == 0:
                continue
            faiss.normalize_L2(rows)
            self.index.add(rows)

    def matches(self, query: Union[str, Sequence[float]], top_k: int = 10) -> List[Match]:
        vector = self._query_vector(query)
        if top_k <= 0 or not self.index.ntotal:
            return []

        norm = np.linalg.norm(vector)
        if norm == 0:
            return super().matches(vector, top_k)

        query_array = np.array(vector / norm, dtype=np.float32).reshape(1, -1)
        scores, indices = self.index.search(query_array, min(top_k, self.index.ntotal))

        results = []
        for score, i in zip(scores[0], indices[0]):
            if i < 0:
                continue
            results.append(Match(word=self.vocab[i], distance=float(score), index=int(i)))
        return results
