"""
Tests for the Word2VecModel facade: trainer hand-over, codec entry points and dispatch.
"""

import io

import numpy as np
import pytest

import src.core.config as config
from src.vector import (
    FaissSearcher,
    MalformedHeaderError,
    ModelPayload,
    SimpleInMemorySearcher,
    VectorIndexError,
    Word2VecModel,
)

from conftest import sample_vectors, write_bin_model


@pytest.fixture
def model():
    vocab = ["king", "queen", "man", "woman", "apple"]
    return Word2VecModel.from_trainer(vocab, 3, sample_vectors(5, 3).reshape(-1))


def test_from_trainer(model):
    assert model.vocab == ("king", "queen", "man", "woman", "apple")
    assert model.layer_size == 3
    assert len(model) == 5
    assert len(model.store.segments) == 1


def test_from_trainer_partitions(model):
    split = Word2VecModel.from_trainer(model.vocab, 3, model.store.flatten(), max_segment_doubles=6)

    assert len(split.store.segments) == 3
    for i in range(5):
        np.testing.assert_array_equal(split.vector_at(i), model.vector_at(i))


def test_from_trainer_respects_configured_segment_limit(monkeypatch):
    monkeypatch.setattr(config, "MAX_DOUBLE_BUFFER", 4)

    model = Word2VecModel.from_trainer(["a", "b", "c"], 2, np.arange(6.0))

    assert len(model.store.segments) == 2
    assert model.store.vectors_per_segment == 2
    assert model.vector_at(2).tolist() == [4.0, 5.0]


def test_from_vectors_alias():
    model = Word2VecModel.from_vectors(["a"], 2, [1.0, 2.0])
    assert model.vector_at(0).tolist() == [1.0, 2.0]


def test_vector_at_out_of_range(model):
    with pytest.raises(VectorIndexError):
        model.vector_at(5)


def test_payload_round_trip(model):
    payload = model.to_payload()

    assert isinstance(payload, ModelPayload)
    restored = Word2VecModel.from_payload(payload)
    assert restored.vocab == model.vocab
    np.testing.assert_array_equal(restored.store.flatten(), model.store.flatten())


def test_from_bin_file_defaults_to_little_endian(bin_model_path, small_vocab, small_vectors):
    model = Word2VecModel.from_bin_file(bin_model_path)

    assert list(model.vocab) == small_vocab
    expected = small_vectors.astype(np.float32).astype(np.float64)
    np.testing.assert_array_equal(model.vector_at(4), expected[4])


def test_from_bin_file_big_endian(tmp_path, small_vocab, small_vectors):
    path = write_bin_model(tmp_path / "be.bin", small_vocab, small_vectors, byte_order="big")

    model = Word2VecModel.from_bin_file(path, byte_order="big", max_segment_doubles=8)

    assert len(model.store.segments) == 3
    expected = small_vectors.astype(np.float32).astype(np.float64)
    np.testing.assert_array_equal(model.vector_at(5), expected[5])


def test_to_bin_file_stream(model):
    out = io.BytesIO()
    model.to_bin_file(out)

    assert out.getvalue().startswith(b"5 3\nking ")


@pytest.mark.parametrize("fmt,exact", [("bin", False), ("text", False), ("compact", True)])
def test_save_and_load(tmp_path, model, fmt, exact):
    path = tmp_path / f"model.{fmt}"

    model.save(path, fmt)
    loaded = Word2VecModel.load(path, fmt)

    assert loaded.vocab == model.vocab
    assert loaded.layer_size == model.layer_size
    for i in range(len(model)):
        if exact:
            np.testing.assert_array_equal(loaded.vector_at(i), model.vector_at(i))
        else:
            np.testing.assert_allclose(loaded.vector_at(i), model.vector_at(i), rtol=1e-6, atol=1e-7)


def test_cross_format_conversion(tmp_path, model):
    """bin -> compact -> text keeps the float32-rounded values."""
    model.save(tmp_path / "a.bin", "bin")
    from_bin = Word2VecModel.load(tmp_path / "a.bin", "bin")

    from_bin.save(tmp_path / "b.compact", "compact")
    from_compact = Word2VecModel.load(tmp_path / "b.compact", "compact")
    np.testing.assert_array_equal(from_compact.store.flatten(), from_bin.store.flatten())

    from_compact.save(tmp_path / "c.txt", "text")
    from_text = Word2VecModel.load(tmp_path / "c.txt", "text")
    np.testing.assert_allclose(from_text.store.flatten(), from_bin.store.flatten(), rtol=1e-6)


def test_text_round_trip_keeps_unicode_whitespace_in_words(tmp_path):
    model = Word2VecModel.from_trainer(["new\u00a0york", "line\u2028break"], 2, [1.0, 2.0, 3.0, 4.0])
    path = tmp_path / "model.txt"

    model.save(path, "text")
    loaded = Word2VecModel.load(path, "text")

    assert loaded.vocab == model.vocab
    assert loaded.vector_at(1).tolist() == [3.0, 4.0]


def test_text_file_uses_unix_newlines(tmp_path, model):
    path = tmp_path / "model.txt"
    model.save(path, "text")

    assert b"\r\n" not in path.read_bytes()


def test_unknown_format(tmp_path, model):
    with pytest.raises(ValueError):
        model.save(tmp_path / "x", "xml")
    with pytest.raises(ValueError):
        Word2VecModel.load(tmp_path / "x", "xml")


def test_load_propagates_header_errors(tmp_path):
    path = tmp_path / "bad.bin"
    path.write_bytes(b"100\n")

    with pytest.raises(MalformedHeaderError):
        Word2VecModel.load(path, "bin")


def test_for_search_memory(model):
    searcher = model.for_search("memory")

    assert isinstance(searcher, SimpleInMemorySearcher)
    assert searcher.contains("queen")


def test_for_search_faiss(model):
    pytest.importorskip("faiss")

    searcher = model.for_search("faiss")

    assert isinstance(searcher, FaissSearcher)
    assert searcher.matches("king", top_k=1)[0].word == "king"


def test_for_search_unknown_backend(model):
    with pytest.raises(ValueError):
        model.for_search("annoy")
