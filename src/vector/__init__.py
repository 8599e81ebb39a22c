"""
Segmented word-vector store with C-compatible binary, text and compact codecs.
"""

# Package initialization for vector module
from .segments import SegmentedVectorStore, allocate_segments
from .model import Word2VecModel
from .compact_codec import ModelPayload
from .index import ISearcher, SemanticDifference, SimpleInMemorySearcher
from .faiss_store import FaissSearcher
from .types import Match
from .errors import (
    Word2VecError,
    MalformedHeaderError,
    SizeMismatchError,
    VectorIndexError,
    CompactFormatError,
    UnknownWordError,
)

__all__ = [
    'SegmentedVectorStore',
    'allocate_segments',
    'Word2VecModel',
    'ModelPayload',
    'ISearcher',
    'SemanticDifference',
    'SimpleInMemorySearcher',
    'FaissSearcher',
    'Match',
    'Word2VecError',
    'MalformedHeaderError',
    'SizeMismatchError',
    'VectorIndexError',
    'CompactFormatError',
    'UnknownWordError',
]
