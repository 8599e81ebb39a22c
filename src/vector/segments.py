"""
Segmented vector store.
Holds an ordered vocabulary and its vectors across fixed-capacity float64 segments,
so no single allocation or mapping exceeds the platform size ceiling.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import VectorIndexError


def vectors_per_segment_for(layer_size: int, max_segment_doubles: int) -> int:
    """Number of whole vectors that fit in one segment."""
    if layer_size <= 0:
        raise ValueError(f"layer_size must be positive, got {layer_size}")
    vectors_per_segment = max_segment_doubles // layer_size
    if vectors_per_segment < 1:
        raise ValueError(
            f"Segment capacity of {max_segment_doubles} doubles cannot hold a vector of size {layer_size}"
        )
    return vectors_per_segment


def allocate_segments(vocab_size: int, layer_size: int, max_segment_doubles: int) -> List[np.ndarray]:
    """
    Allocate zeroed segments for ``vocab_size`` vectors.

    Every segment but the last holds exactly ``max_segment_doubles // layer_size``
    vectors. The last one holds the remainder, or a full complement when
    ``vocab_size`` divides evenly.

    Args:
        vocab_size: Number of vectors to hold
        layer_size: Components per vector
        max_segment_doubles: Upper bound on a single segment, in doubles

    Returns:
        List of 1-D float64 arrays
    """
    if vocab_size < 0:
        raise ValueError(f"vocab_size must not be negative, got {vocab_size}")

    vectors_per_segment = vectors_per_segment_for(layer_size, max_segment_doubles)
    full, remainder = divmod(vocab_size, vectors_per_segment)

    segments = [np.zeros(vectors_per_segment * layer_size, dtype=np.float64) for _ in range(full)]
    if remainder:
        segments.append(np.zeros(remainder * layer_size, dtype=np.float64))
    return segments


class SegmentedVectorStore:
    """
    Ordered vocabulary plus vectors partitioned across float64 segments.

    Segment ``i`` holds the vectors with global index in
    ``[i * vectors_per_segment, (i + 1) * vectors_per_segment)``. A store is
    read-only once constructed; segments are flagged non-writeable so it can
    be shared between any number of readers.
    """

    def __init__(self, vocab: Iterable[str], layer_size: int, segments: Sequence[np.ndarray],
                 vectors_per_segment: Optional[int] = None):
        """
        Initialize the store.

        Args:
            vocab: Ordered vocabulary, one entry per vector
            layer_size: Components per vector
            segments: Float64 segments in index order
            vectors_per_segment: Capacity of a full segment in vectors.
                Defaults to the size of the first segment.
        """
        if layer_size <= 0:
            raise ValueError(f"layer_size must be positive, got {layer_size}")

        self.vocab: Tuple[str, ...] = tuple(vocab)
        self.layer_size = int(layer_size)
        self.segments: Tuple[np.ndarray, ...] = tuple(
            np.asarray(segment, dtype=np.float64).reshape(-1) for segment in segments
        )

        if vectors_per_segment is None:
            vectors_per_segment = self.segments[0].size // self.layer_size if self.segments else 0
        self.vectors_per_segment = int(vectors_per_segment)

        self._check_layout()

        for segment in self.segments:
            segment.flags.writeable = False

    def _check_layout(self) -> None:
        total = 0
        last = len(self.segments) - 1
        for i, segment in enumerate(self.segments):
            if segment.size % self.layer_size != 0:
                raise ValueError(
                    f"Segment {i} holds {segment.size} doubles, not a multiple of layer size {self.layer_size}"
                )
            count = segment.size // self.layer_size
            if i < last and count != self.vectors_per_segment:
                raise ValueError(
                    f"Segment {i} holds {count} vectors, expected {self.vectors_per_segment}"
                )
            if i == last and count > self.vectors_per_segment:
                raise ValueError(
                    f"Final segment holds {count} vectors, more than {self.vectors_per_segment}"
                )
            total += count

        if total != len(self.vocab):
            raise ValueError(
                f"Vocabulary has {len(self.vocab)} entries but segments hold {total} vectors"
            )

    @classmethod
    def from_dense(cls, vocab: Iterable[str], layer_size: int, vectors,
                   max_segment_doubles: Optional[int] = None,
                   copy: bool = True) -> "SegmentedVectorStore":
        """
        Build a store from a flat ``vocab_size * layer_size`` array.

        With no ``max_segment_doubles`` the array becomes the only segment;
        pass ``copy=False`` to adopt it without copying (the store then
        freezes it). Otherwise it is copied into segments of at most that
        many doubles.
        """
        vocab = tuple(vocab)
        dense = np.asarray(vectors, dtype=np.float64).reshape(-1)
        if dense.size != len(vocab) * layer_size:
            raise ValueError(
                f"Expected {len(vocab) * layer_size} values for {len(vocab)} vectors "
                f"of size {layer_size}, got {dense.size}"
            )

        if max_segment_doubles is None:
            if copy:
                dense = dense.copy()
            return cls(vocab, layer_size, [dense], vectors_per_segment=len(vocab))

        segments = allocate_segments(len(vocab), layer_size, max_segment_doubles)
        copied = 0
        for segment in segments:
            segment[:] = dense[copied:copied + segment.size]
            copied += segment.size
        return cls(vocab, layer_size, segments,
                   vectors_per_segment=vectors_per_segment_for(layer_size, max_segment_doubles))

    @property
    def vocab_size(self) -> int:
        return len(self.vocab)

    def locate(self, index: int) -> Tuple[int, int]:
        """Map a vocabulary index to (segment number, offset in doubles)."""
        if not 0 <= index < len(self.vocab):
            raise VectorIndexError(index, len(self.vocab))
        segment, slot = divmod(index, self.vectors_per_segment)
        return segment, slot * self.layer_size

    def vector_at(self, index: int) -> np.ndarray:
        """Read-only view of the vector at ``index``."""
        segment, offset = self.locate(index)
        return self.segments[segment][offset:offset + self.layer_size]

    def flatten(self) -> np.ndarray:
        """
        All vectors as one ``vocab_size * layer_size`` array in index order.

        A single segment is returned as-is (zero copy, read-only); several are
        concatenated into a new array.
        """
        if len(self.segments) == 1:
            return self.segments[0]
        if not self.segments:
            return np.zeros(0, dtype=np.float64)
        return np.concatenate(self.segments)

    def iter_vectors(self):
        """Yield (word, vector) pairs in index order."""
        index = 0
        for segment in self.segments:
            for row in segment.reshape(-1, self.layer_size):
                yield self.vocab[index], row
                index += 1

    def __len__(self) -> int:
        return len(self.vocab)

    def __repr__(self) -> str:
        return (
            f"SegmentedVectorStore(vocab_size={len(self.vocab)}, layer_size={self.layer_size}, "
            f"segments={len(self.segments)})"
        )
