"""Lexical feature tests."""
from __future__ import annotations

import pandas as pd
import pytest

from questiondup.pairs.features import (
    DEFAULT_KEYWORDS,
    extract_features,
    extract_lexical_features,
    keyword_column,
    keyword_flags,
)
from questiondup.pairs.ingest import QuestionPair, iter_pairs, prepare_pairs


def test_char_diff_sign() -> None:
    pair = QuestionPair(id=1, question1="a" * 40, question2="b" * 25)
    assert extract_features(pair).char_diff == 15
    swapped = QuestionPair(id=2, question1="b" * 25, question2="a" * 40)
    assert extract_features(swapped).char_diff == -15


def test_char_diff_uses_raw_text() -> None:
    pair = QuestionPair(id=1, question1="What is the?", question2="dog")
    feats = extract_features(pair)
    assert feats.char_diff == len("What is the?") - 3
    # "the?" is not whitespace-bounded, so it survives as "the".
    assert feats.q1_wordcount == 1


def test_wordcount_zero_for_bare_stopwords() -> None:
    pair = QuestionPair(id=1, question1="What is the", question2="dog")
    feats = extract_features(pair)
    assert feats.q1_wordcount == 0
    assert feats.wordcount_diff == -1


def test_wordcounts_use_normalised_tokens() -> None:
    pair = QuestionPair(
        id=7,
        question1="What is the best way to learn Python",
        question2="How can I learn Python quickly today?",
    )
    feats = extract_features(pair)
    assert (feats.q1_wordcount, feats.q2_wordcount) == (4, 5)
    assert feats.wordcount_diff == -1


@pytest.mark.parametrize(
    "q1, q2, expected",
    [
        ("Is Google better than Bing?", "Why do people use google?", True),
        ("Is Google better than Bing?", "Why do people use Bing?", False),
        ("Who searched this?", "I googled it", False),
        ("Can you google it?", "I googled it", True),
    ],
)
def test_google_flag_requires_both_sides(q1: str, q2: str, expected: bool) -> None:
    assert keyword_flags(q1, q2, ["google"])["google"] is expected


def test_keyword_substring_match() -> None:
    flags = keyword_flags("Is the trumpeter famous?", "Trump rally tonight", ["trump"])
    assert flags["trump"] is True


def test_batch_matches_record_path() -> None:
    df = prepare_pairs(pd.DataFrame({
        "id": [1, 2, 3],
        "question1": ["How do I make money online?", None, "Is life on Mars possible?"],
        "question2": ["Best way to make money from home", "What is love?", "What is life?"],
        "is_duplicate": [1, 0, 0],
    }))
    batch = extract_lexical_features(df)
    assert batch.index.name == "id"
    assert list(batch.columns[:4]) == ["char_diff", "q1_wordcount", "q2_wordcount", "wordcount_diff"]
    assert [c for c in batch.columns[4:]] == [keyword_column(k) for k in DEFAULT_KEYWORDS]

    for pair in iter_pairs(df):
        rec = extract_features(pair)
        row = batch.loc[pair.id]
        assert row["char_diff"] == rec.char_diff
        assert row["q1_wordcount"] == rec.q1_wordcount
        assert row["q2_wordcount"] == rec.q2_wordcount
        assert row["wordcount_diff"] == rec.wordcount_diff
        for k, flag in rec.keyword_flags.items():
            assert bool(row[keyword_column(k)]) is flag

    assert bool(batch.loc[1, "kw_money"]) is True
    assert bool(batch.loc[3, "kw_life"]) is True
    assert batch.loc[2, "q1_wordcount"] == 0


def test_empty_frame_yields_empty_features() -> None:
    df = prepare_pairs(pd.DataFrame({"id": [], "question1": [], "question2": []}))
    assert df["question1"].dtype == object
    batch = extract_lexical_features(df)
    assert len(batch) == 0
    assert list(batch.columns[:4]) == ["char_diff", "q1_wordcount", "q2_wordcount", "wordcount_diff"]
