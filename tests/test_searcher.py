"""
Test cases for the in-memory and FAISS searchers.
"""

import threading

import numpy as np
import pytest

from src.vector import SimpleInMemorySearcher, UnknownWordError
from src.vector.index import ISearcher
from src.vector.segments import SegmentedVectorStore
from src.vector.types import Match

VOCAB = ["north", "south", "east", "west", "up", "zero"]
VECTORS = np.array([
    [1.0, 0.0, 0.0],
    [-1.0, 0.0, 0.0],
    [0.0, 1.0, 0.0],
    [0.0, -1.0, 0.0],
    [0.9, 0.1, 0.0],
    [0.0, 0.0, 0.0],
])


@pytest.fixture(params=[None, 6, 9])
def store(request):
    """Same vectors in one, three and two segments."""
    return SegmentedVectorStore.from_dense(VOCAB, 3, VECTORS, max_segment_doubles=request.param)


@pytest.fixture
def searcher(store):
    return SimpleInMemorySearcher(store)


def test_searcher_interface(searcher):
    assert isinstance(searcher, ISearcher)


def test_contains(searcher):
    assert searcher.contains("north")
    assert not searcher.contains("northwest")


def test_raw_vector(searcher):
    assert searcher.raw_vector("east").tolist() == [0.0, 1.0, 0.0]


def test_unknown_word(searcher):
    with pytest.raises(UnknownWordError):
        searcher.raw_vector("northwest")
    with pytest.raises(KeyError):
        searcher.matches("northwest")


def test_matches_ordered_by_similarity(searcher):
    results = searcher.matches("north", top_k=3)

    assert [m.word for m in results][:2] == ["north", "up"]
    assert results[0] == Match(word="north", distance=pytest.approx(1.0), index=0)
    # east, west and zero all tie at 0 for third place
    assert results[2].distance == pytest.approx(0.0)


def test_matches_by_vector(searcher):
    results = searcher.matches([0.0, -2.0, 0.0], top_k=1)

    assert results[0].word == "west"
    assert results[0].distance == pytest.approx(1.0)


def test_matches_rejects_wrong_dimension(searcher):
    with pytest.raises(ValueError):
        searcher.matches([1.0, 0.0], top_k=1)


def test_matches_top_k_larger_than_vocab(searcher):
    assert len(searcher.matches("north", top_k=100)) == len(VOCAB)


def test_matches_zero_top_k(searcher):
    assert searcher.matches("north", top_k=0) == []


def test_zero_vector_scores_zero(searcher):
    results = {m.word: m.distance for m in searcher.matches("north", top_k=len(VOCAB))}
    assert results["zero"] == 0.0
    assert results["south"] == pytest.approx(-1.0)


def test_cosine_distance(searcher):
    assert searcher.cosine_distance("north", "south") == pytest.approx(-1.0)
    assert searcher.cosine_distance("north", "east") == pytest.approx(0.0)
    assert searcher.cosine_distance("north", "zero") == 0.0


def test_duplicate_words_resolve_to_first():
    store = SegmentedVectorStore.from_dense(["a", "a"], 1, [1.0, 2.0])
    searcher = SimpleInMemorySearcher(store)

    assert searcher.raw_vector("a").tolist() == [1.0]


def test_concurrent_readers(store):
    searcher = SimpleInMemorySearcher(store)
    errors = []

    def worker():
        try:
            for _ in range(50):
                assert searcher.matches("east", top_k=1)[0].word == "east"
                assert store.vector_at(3).tolist() == [0.0, -1.0, 0.0]
        except AssertionError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []


def test_similarity_applies_offset():
    vocab = ["man", "woman", "king", "queen", "apple"]
    vectors = [
        1.0, 0.0, 0.0,
        1.0, 1.0, 0.0,
        1.0, 0.0, 1.0,
        1.0, 1.0, 1.0,
        0.0, -1.0, 0.0,
    ]
    searcher = SimpleInMemorySearcher(SegmentedVectorStore.from_dense(vocab, 3, vectors))

    difference = searcher.similarity("man", "woman")

    assert difference.offset.tolist() == [0.0, -1.0, 0.0]
    assert difference.matches("king", top_k=1)[0].word == "queen"


def test_similarity_unknown_word(searcher):
    with pytest.raises(UnknownWordError):
        searcher.similarity("north", "northwest")


class TestFaissSearcher:
    """FAISS-backed searcher mirrors the in-memory results."""

    @pytest.fixture
    def faiss_searcher(self, store):
        pytest.importorskip("faiss")
        from src.vector.faiss_store import FaissSearcher
        return FaissSearcher(store)

    def test_index_holds_every_vector(self, faiss_searcher):
        assert faiss_searcher.index.ntotal == len(VOCAB)
        assert faiss_searcher.dimension == 3

    def test_matches(self, faiss_searcher):
        results = faiss_searcher.matches("north", top_k=2)

        assert [m.word for m in results] == ["north", "up"]
        assert results[0].distance == pytest.approx(1.0, abs=1e-5)

    def test_matches_agree_with_memory(self, faiss_searcher, searcher):
        expected = searcher.matches("east", top_k=3)
        actual = faiss_searcher.matches("east", top_k=3)

        assert [m.word for m in actual][:2] == [m.word for m in expected][:2]
        for a, e in zip(actual, expected):
            assert a.distance == pytest.approx(e.distance, abs=1e-5)

    def test_zero_query_falls_back(self, faiss_searcher):
        results = faiss_searcher.matches([0.0, 0.0, 0.0], top_k=2)
        assert all(m.distance == 0.0 for m in results)
