"""
Word2Vec model facade.

Instances are obtained from a trainer hand-over (``from_trainer``), from any of
the three codecs (``from_bin_file``, ``from_text_file``, ``from_compact_file``)
or from a payload (``from_payload``). Every path converges on the same
``SegmentedVectorStore``.
"""

from pathlib import Path
from typing import BinaryIO, Iterable, Optional, TextIO, Tuple, Union

import numpy as np

from src.core.config import SUPPORTED_FORMATS, get_max_double_buffer, get_searcher_class
from util.logging import ProgressTimer, logger

from . import binary_codec, compact_codec, text_codec
from .compact_codec import ModelPayload
from .index import ISearcher
from .segments import SegmentedVectorStore


class Word2VecModel:
    """Vocabulary plus one vector per word, stored in bounded segments."""

    def __init__(self, store: SegmentedVectorStore):
        self.store = store

    @property
    def vocab(self) -> Tuple[str, ...]:
        return self.store.vocab

    @property
    def layer_size(self) -> int:
        return self.store.layer_size

    def vector_at(self, index: int) -> np.ndarray:
        return self.store.vector_at(index)

    def for_search(self, backend: Optional[str] = None) -> ISearcher:
        """Searcher over this model (``memory`` or ``faiss``; default from config)."""
        return get_searcher_class(backend)(self.store)

    def __len__(self) -> int:
        return len(self.store)

    def __repr__(self) -> str:
        return f"Word2VecModel(vocab_size={len(self.store)}, layer_size={self.layer_size})"

    # =========================================================================
    # Trainer hand-over
    # =========================================================================

    @classmethod
    def from_trainer(cls, vocab: Iterable[str], layer_size: int, vectors,
                     max_segment_doubles: Optional[int] = None) -> "Word2VecModel":
        """
        Wrap vectors produced by a trainer.

        Args:
            vocab: Ordered vocabulary
            layer_size: Vector dimensionality
            vectors: Flat ``len(vocab) * layer_size`` sequence of floats
            max_segment_doubles: Segment capacity bound (default from config)
        """
        store = SegmentedVectorStore.from_dense(
            vocab, layer_size, vectors, max_segment_doubles or get_max_double_buffer()
        )
        logger.log_store_built(store.vocab_size, store.layer_size, len(store.segments), "trainer")
        return cls(store)

    from_vectors = from_trainer

    # =========================================================================
    # Compact
    # =========================================================================

    def to_payload(self) -> ModelPayload:
        """Serializable payload carrying every value at full precision."""
        return compact_codec.to_payload(self.store)

    @classmethod
    def from_payload(cls, payload: ModelPayload) -> "Word2VecModel":
        return cls(compact_codec.from_payload(payload))

    @classmethod
    def from_compact_file(cls, path: Union[str, Path],
                          max_segment_doubles: Optional[int] = None) -> "Word2VecModel":
        return cls(compact_codec.decode_file(path, max_segment_doubles))

    def to_compact_file(self, out: BinaryIO) -> None:
        compact_codec.encode(self.store, out)

    # =========================================================================
    # Text
    # =========================================================================

    @classmethod
    def from_text_file(cls, path: Union[str, Path],
                       max_segment_doubles: Optional[int] = None) -> "Word2VecModel":
        """Model read from the text output format of the C word2vec tool."""
        return cls(text_codec.decode_file(path, max_segment_doubles))

    def to_text_file(self, out: TextIO) -> None:
        text_codec.encode(self.store, out)

    # =========================================================================
    # Binary
    # =========================================================================

    @classmethod
    def from_bin_file(cls, path: Union[str, Path],
                      byte_order: Optional[str] = None,
                      progress: Optional[ProgressTimer] = None,
                      max_segment_doubles: Optional[int] = None) -> "Word2VecModel":
        """
        Model read from the binary output of the C word2vec tool.

        Args:
            path: Model file
            byte_order: 'little' (default) or 'big' for the float data
            progress: Progress sink; nothing is reported when omitted
            max_segment_doubles: Segment capacity bound, mostly for tests
        """
        return cls(binary_codec.decode(
            path,
            byte_order=byte_order,
            max_segment_doubles=max_segment_doubles,
            progress=progress,
        ))

    def to_bin_file(self, out: BinaryIO) -> None:
        """Save as a bin file compatible with the C word2vec tool."""
        binary_codec.encode(self.store, out)

    # =========================================================================
    # Format dispatch
    # =========================================================================

    @classmethod
    def load(cls, path: Union[str, Path], fmt: str = "bin", **kwargs) -> "Word2VecModel":
        """Load ``path`` written in ``fmt`` (bin, text or compact)."""
        if fmt == "bin":
            return cls.from_bin_file(path, **kwargs)
        elif fmt == "text":
            return cls.from_text_file(path, **kwargs)
        elif fmt == "compact":
            return cls.from_compact_file(path, **kwargs)
        raise ValueError(f"Unknown model format {fmt!r}, expected one of {SUPPORTED_FORMATS}")

    def save(self, path: Union[str, Path], fmt: str = "bin") -> None:
        """Write the model to ``path`` in ``fmt`` (bin, text or compact)."""
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"Unknown model format {fmt!r}, expected one of {SUPPORTED_FORMATS}")

        if fmt == "text":
            with open(path, "w", encoding="utf-8", newline="\n") as out:
                self.to_text_file(out)
        else:
            with open(path, "wb") as out:
                if fmt == "bin":
                    self.to_bin_file(out)
                else:
                    self.to_compact_file(out)
