"""Basic sanity tests for normalisation, vocabulary and cosine similarity."""
from __future__ import annotations

import math

import numpy as np
import pytest

from questiondup.pairs.errors import InvalidInputError
from questiondup.pairs import ingest
from questiondup.pairs.ingest import normalize, resolve_stopwords
from questiondup.pairs.similarity import cosine_similarity, pair_similarity
from questiondup.pairs.vocab import build_vocabulary, encode


def test_normalize_learn_python() -> None:
    assert normalize("What is the best way to learn Python") == ["best", "way", "learn", "python"]
    assert normalize("How can I learn Python quickly") == ["can", "learn", "python", "quickly"]


def test_normalize_empty_and_all_stopwords() -> None:
    assert normalize("") == []
    assert normalize("the") == []
    assert normalize("What is the") == []


def test_normalize_strips_punctuation_after_stopwords() -> None:
    # "you?" is not whitespace-bounded "you", so it survives stopword removal.
    assert normalize("Who are you?") == ["you"]
    assert normalize("Is e-mail dead?!") == ["email", "dead"]


def test_normalize_drops_punctuation_only_tokens() -> None:
    assert normalize("love ... ? hate") == ["love", "hate"]


@pytest.mark.parametrize("bad", [None, 3.5, float("nan"), b"bytes", ["list"]])
def test_normalize_rejects_non_strings(bad) -> None:
    with pytest.raises(InvalidInputError):
        normalize(bad)


def test_invalid_input_is_type_error() -> None:
    with pytest.raises(TypeError):
        normalize(42)


def test_normalize_sklearn_stopwords() -> None:
    # scikit-learn's list contains "can", the Snowball one does not.
    assert "can" not in normalize("How can I learn Python quickly", stopwords="sklearn")


class _FakeCorpus:
    def __init__(self, words):
        self._words = words
        self.calls = 0

    def words(self, lang):
        assert lang == "english"
        self.calls += 1
        return self._words


def test_normalize_nltk_stopwords(monkeypatch) -> None:
    corpus = _FakeCorpus(["how", "can", "i", "what", "is", "the", "to"])
    monkeypatch.setattr(ingest, "nltk_stopwords", corpus)
    ingest._nltk_english.cache_clear()
    try:
        assert normalize("How can I learn Python quickly", stopwords="nltk") == ["learn", "python", "quickly"]
        assert "can" in resolve_stopwords("nltk")
        assert corpus.calls == 1
    finally:
        ingest._nltk_english.cache_clear()


def test_unknown_stopword_list() -> None:
    with pytest.raises(ValueError):
        resolve_stopwords("klingon")


def test_vocabulary_first_occurrence_order() -> None:
    vocab = build_vocabulary(["b", "a", "b"], ["c", "a", "d"])
    assert vocab == ["b", "a", "c", "d"]


def test_vocabulary_empty() -> None:
    assert build_vocabulary([], []) == []


def test_encode_membership() -> None:
    vocab = ["best", "way", "learn", "python", "can", "quickly"]
    vec = encode(["can", "learn", "python", "quickly"], vocab)
    assert vec.dtype == bool
    assert vec.tolist() == [False, False, True, True, True, True]


def test_learn_python_example() -> None:
    a = normalize("What is the best way to learn Python")
    b = normalize("How can I learn Python quickly")
    assert len(build_vocabulary(a, b)) == 6
    assert pair_similarity(a, b) == 0.5


def test_self_similarity_is_one() -> None:
    assert pair_similarity(["dog", "cat"], ["dog", "cat"]) == 1.0


def test_undefined_when_one_side_empty() -> None:
    a = normalize("the")
    b = normalize("dogs are great")
    assert b == ["dogs", "great"]
    assert pair_similarity(a, b) is None
    assert pair_similarity([], []) is None


def test_disjoint_is_zero_not_undefined() -> None:
    sim = pair_similarity(["dog"], ["cat"])
    assert sim == 0.0
    assert sim is not None


def test_cosine_similarity_shape_mismatch() -> None:
    with pytest.raises(ValueError):
        cosine_similarity(np.array([True, False]), np.array([True]))


def test_repeated_tokens_count_once() -> None:
    assert math.isclose(pair_similarity(["dog", "dog", "cat"], ["dog"]), 1 / math.sqrt(2))
