"""
Shared test fixtures and helpers.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Repository root on the path so `src` and `util` import without installation
sys.path.insert(0, str(Path(__file__).parent.parent))


def write_bin_model(path, vocab, vectors, byte_order="little", newline=True, header=None):
    """
    Write a binary word2vec file by hand, independent of the encoder under test.

    Args:
        path: Output file
        vocab: Words in order
        vectors: (len(vocab), layer_size) array-like
        byte_order: 'little' or 'big' float32 layout
        newline: Whether each vector is followed by a newline
        header: Override for the header line (without newline)
    """
    vectors = np.asarray(vectors, dtype=np.float64).reshape(len(vocab), -1)
    dtype = np.dtype("<f4") if byte_order == "little" else np.dtype(">f4")
    if header is None:
        header = f"{len(vocab)} {vectors.shape[1]}"

    with open(path, "wb") as f:
        f.write(header.encode("ascii") + b"\n")
        for word, row in zip(vocab, vectors):
            f.write(word.encode("utf-8") + b" ")
            f.write(row.astype(dtype).tobytes())
            if newline:
                f.write(b"\n")
    return path


def sample_vectors(vocab_size, layer_size, seed=7):
    """Deterministic vectors, one row per word."""
    rng = np.random.default_rng(seed)
    return rng.standard_normal((vocab_size, layer_size))


@pytest.fixture
def small_vocab():
    return ["the", "of", "and", "zoë", "京都", "the"]


@pytest.fixture
def small_vectors(small_vocab):
    return sample_vectors(len(small_vocab), 4)


@pytest.fixture
def bin_model_path(tmp_path, small_vocab, small_vectors):
    """Binary model file with six words of dimension 4."""
    return write_bin_model(tmp_path / "model.bin", small_vocab, small_vectors)
