"""Property-based similarity tests (Hypothesis)."""
from __future__ import annotations

import string
from typing import List

import pytest

hyp = pytest.importorskip("hypothesis")

import hypothesis.strategies as st  # type: ignore
from hypothesis import assume, given  # type: ignore

from questiondup.pairs.ingest import normalize
from questiondup.pairs.similarity import batch_cosine_similarity, pair_similarity
from questiondup.pairs.vocab import build_vocabulary, encode

_tokens = st.lists(st.text(string.ascii_lowercase, min_size=1, max_size=6), min_size=0, max_size=30)


@st.composite
def _questions(draw) -> str:
    words = draw(st.lists(st.sampled_from(["the", "what", "is", "dog", "cat", "Python", "learn",
                                           "best?", "way", "google", "How", "money"]),
                          min_size=0, max_size=12))
    return " ".join(words)


# ---------------------------------------------------------------------------
# Vocabulary / encoding
# ---------------------------------------------------------------------------


@given(a=_tokens, b=_tokens)
def test_vocabulary_is_deduplicated_union(a: List[str], b: List[str]) -> None:
    vocab = build_vocabulary(a, b)
    assert len(vocab) == len(set(a) | set(b))
    assert len(vocab) == len(set(vocab))
    assert set(a) <= set(vocab) and set(b) <= set(vocab)


@given(a=_tokens, b=_tokens)
def test_encoded_lengths_match_vocabulary(a: List[str], b: List[str]) -> None:
    vocab = build_vocabulary(a, b)
    vec_a = encode(a, vocab)
    vec_b = encode(b, vocab)
    assert len(vec_a) == len(vec_b) == len(vocab)
    assert vec_a.sum() == len(set(a))


# ---------------------------------------------------------------------------
# Cosine similarity
# ---------------------------------------------------------------------------


@given(a=_tokens, b=_tokens)
def test_cosine_symmetric(a: List[str], b: List[str]) -> None:
    assert pair_similarity(a, b) == pair_similarity(b, a)


@given(tokens=_tokens)
def test_cosine_self_similarity(tokens: List[str]) -> None:
    assume(tokens)
    assert pair_similarity(tokens, tokens) == 1.0


@given(a=_tokens, b=_tokens)
def test_cosine_undefined_iff_empty_side(a: List[str], b: List[str]) -> None:
    sim = pair_similarity(a, b)
    if not a or not b:
        assert sim is None
    else:
        assert sim is not None
        assert 0.0 <= sim <= 1.0 + 1e-12


@given(rows=st.lists(st.tuples(_questions(), _questions()), min_size=0, max_size=25))
def test_batch_matches_reference_path(rows) -> None:
    expected = [pair_similarity(normalize(q1), normalize(q2)) for q1, q2 in rows]
    assert batch_cosine_similarity(rows, chunksize=7) == expected
