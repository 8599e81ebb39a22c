"""
Compact codec: lossless persistence between processes running this package.

A validated ``ModelPayload`` carries the three fields ``layer_size``, ``vocab``
and ``vectors``. On disk it is a length-prefixed little endian record:

    b"W2VC" | version:u8 | layer_size:u32 | vocab_size:u64
    (token_length:u32 | token utf-8)*
    vocab_size * layer_size x float64
"""

import struct
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, field_serializer, field_validator, model_validator

from util.logging import log_codec_operation

from .errors import CompactFormatError
from .segments import SegmentedVectorStore

MAGIC = b"W2VC"
FORMAT_VERSION = 1

_HEADER = struct.Struct("<4sBIQ")
_TOKEN_LENGTH = struct.Struct("<I")
_DOUBLE = np.dtype("<f8")


class ModelPayload(BaseModel):
    """Serializable representation of a model; JSON carries the vectors as a flat list."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    layer_size: int
    vocab: List[str]
    vectors: np.ndarray

    @field_validator('layer_size')
    @classmethod
    def layer_size_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError('layer_size must be positive')
        return v

    @field_validator('vectors', mode='before')
    @classmethod
    def vectors_must_be_flat_doubles(cls, v):
        return np.asarray(v, dtype=np.float64).reshape(-1)

    @model_validator(mode='after')
    def vectors_must_match_vocab(self):
        expected = len(self.vocab) * self.layer_size
        if self.vectors.size != expected:
            raise ValueError(
                f'expected {expected} values for {len(self.vocab)} words of size '
                f'{self.layer_size}, got {self.vectors.size}'
            )
        return self

    @field_serializer('vectors')
    def vectors_as_list(self, v):
        return v.tolist()


def to_payload(store: SegmentedVectorStore) -> ModelPayload:
    return ModelPayload(
        layer_size=store.layer_size,
        vocab=list(store.vocab),
        vectors=store.flatten(),
    )


def from_payload(payload: ModelPayload, max_segment_doubles: Optional[int] = None) -> SegmentedVectorStore:
    return SegmentedVectorStore.from_dense(
        payload.vocab, payload.layer_size, payload.vectors, max_segment_doubles
    )


def _read_exact(stream: BinaryIO, size: int, wanted: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise CompactFormatError(f"Unexpected end of compact model while reading {wanted}")
    return data


def decode(stream: BinaryIO, max_segment_doubles: Optional[int] = None) -> SegmentedVectorStore:
    """
    Read a compact model.

    Raises:
        CompactFormatError: Bad magic, unsupported version or truncated data
    """
    magic, version, layer_size, vocab_size = _HEADER.unpack(
        _read_exact(stream, _HEADER.size, "header")
    )
    if magic != MAGIC:
        raise CompactFormatError(f"Not a compact model (magic {magic!r})")
    if version != FORMAT_VERSION:
        raise CompactFormatError(f"Unsupported compact model version {version}")
    if layer_size == 0:
        raise CompactFormatError("Compact model declares a layer size of 0")

    vocab = []
    for i in range(vocab_size):
        (length,) = _TOKEN_LENGTH.unpack(_read_exact(stream, _TOKEN_LENGTH.size, f"token #{i}"))
        vocab.append(_read_exact(stream, length, f"token #{i}").decode("utf-8"))

    vectors = np.empty(vocab_size * layer_size, dtype=_DOUBLE)
    view = memoryview(vectors.view(np.uint8))
    filled = 0
    while filled < view.nbytes:
        count = stream.readinto(view[filled:])
        if not count:
            raise CompactFormatError(
                f"Unexpected end of compact model after {filled // 8} of {vectors.size} values"
            )
        filled += count
    view.release()

    payload = ModelPayload(
        layer_size=layer_size,
        vocab=vocab,
        vectors=vectors.astype(np.float64, copy=False),
    )
    return SegmentedVectorStore.from_dense(
        payload.vocab, payload.layer_size, payload.vectors, max_segment_doubles, copy=False
    )


def decode_file(path: Union[str, Path], max_segment_doubles: Optional[int] = None) -> SegmentedVectorStore:
    """Read a compact model from ``path``."""
    with open(path, "rb") as f:
        store = decode(f, max_segment_doubles)

    log_codec_operation("compact", "decode", str(Path(path).absolute()), {
        "vocab_size": store.vocab_size,
        "layer_size": store.layer_size,
    })
    return store


def encode(store: SegmentedVectorStore, out: BinaryIO) -> None:
    """Write ``store`` as a compact model. Vectors keep full double precision."""
    out.write(_HEADER.pack(MAGIC, FORMAT_VERSION, store.layer_size, store.vocab_size))
    for word in store.vocab:
        data = word.encode("utf-8")
        out.write(_TOKEN_LENGTH.pack(len(data)))
        out.write(data)

    for segment in store.segments:
        out.write(np.ascontiguousarray(segment, dtype=_DOUBLE).tobytes())

    out.flush()
    log_codec_operation("compact", "encode", getattr(out, "name", None), {
        "vocab_size": store.vocab_size,
        "layer_size": store.layer_size,
    })
