"""Lexical features for duplicate-question classification."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

import pandas as pd
from tqdm import tqdm

from .ingest import QuestionPair, detect_key, normalize

DEFAULT_KEYWORDS = (
    "life",
    "money",
    "trump",
    "google",
    "india",
    "quora",
    "learn",
    "job",
    "weight",
    "difference",
)


def keyword_column(keyword: str) -> str:
    return f"kw_{keyword}"


@dataclass(frozen=True)
class LexicalFeatures:
    id: int
    char_diff: int
    q1_wordcount: int
    q2_wordcount: int
    wordcount_diff: int
    keyword_flags: Dict[str, bool] = field(default_factory=dict)


def keyword_flags(question1: str, question2: str, keywords: Sequence[str] = DEFAULT_KEYWORDS) -> Dict[str, bool]:
    """Flag each keyword found as a substring of *both* lowercased questions."""
    q1 = question1.lower()
    q2 = question2.lower()
    return {k: (k in q1 and k in q2) for k in keywords}


def extract_features(
    pair: QuestionPair,
    keywords: Sequence[str] = DEFAULT_KEYWORDS,
    stopwords="snowball",
) -> LexicalFeatures:
    """Compute length, word-count and keyword features for one pair.

    ``char_diff`` uses the raw strings; word counts use normalised tokens.
    """
    wc1 = len(normalize(pair.question1, stopwords))
    wc2 = len(normalize(pair.question2, stopwords))
    return LexicalFeatures(
        id=pair.id,
        char_diff=len(pair.question1) - len(pair.question2),
        q1_wordcount=wc1,
        q2_wordcount=wc2,
        wordcount_diff=wc1 - wc2,
        keyword_flags=keyword_flags(pair.question1, pair.question2, keywords),
    )


def extract_lexical_features(
    df: pd.DataFrame,
    keywords: Sequence[str] = DEFAULT_KEYWORDS,
    stopwords="snowball",
    key: Optional[str] = None,
    show_progress: bool = False,
) -> pd.DataFrame:
    """Vectorised :func:`extract_features` over a prepared pairs DataFrame.

    Returns a frame indexed by the join key with columns ``char_diff,
    q1_wordcount, q2_wordcount, wordcount_diff`` and one ``kw_<keyword>``
    boolean column per keyword.
    """
    key = key or detect_key(df)
    q1 = df["question1"]
    q2 = df["question2"]

    # Questions repeat heavily across pairs, so count each distinct text once.
    unique_texts = pd.unique(pd.concat([q1, q2], ignore_index=True))
    counts = {
        text: len(normalize(text, stopwords))
        for text in tqdm(unique_texts, desc="Word counts", disable=not show_progress)
    }
    wc1 = q1.map(counts).astype("int64")
    wc2 = q2.map(counts).astype("int64")

    out = pd.DataFrame(
        {
            "char_diff": (q1.str.len() - q2.str.len()).astype("int64").to_numpy(),
            "q1_wordcount": wc1.to_numpy(),
            "q2_wordcount": wc2.to_numpy(),
            "wordcount_diff": (wc1 - wc2).to_numpy(),
        },
        index=pd.Index(df[key].to_numpy(), name=key),
    )

    low1 = q1.str.lower()
    low2 = q2.str.lower()
    for k in keywords:
        both = low1.str.contains(k, regex=False) & low2.str.contains(k, regex=False)
        out[keyword_column(k)] = both.to_numpy()
    return out
