"""Question-pair ingestion and text normalisation.

Two concerns live here:

* :func:`normalize` turns one raw question into its token list (lowercase,
  stopword removal on the whole string, single-space split, punctuation strip).
* :func:`load_pairs` / :func:`prepare_pairs` read training (``id``) or test
  (``test_id``) tables into a uniform DataFrame where missing question text is
  an empty string.
"""
from __future__ import annotations

import logging
import re
import string
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, Iterable, Iterator, List, Optional, Union

import nltk
import pandas as pd
from nltk.corpus import stopwords as nltk_stopwords
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

from .errors import InvalidInputError, SchemaMismatchError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------
# Stopwords
# -----------------------------------------------------------

# Snowball English stopword list. nltk's "english" list adds "can" and the
# bare contraction stems ("don", "ll", "ve"), so it is offered but not the default.
SNOWBALL_STOPWORDS: FrozenSet[str] = frozenset(
    """
    i me my myself we our ours ourselves you your yours yourself yourselves
    he him his himself she her hers herself it its itself they them their
    theirs themselves what which who whom this that these those am is are was
    were be been being have has had having do does did doing would should
    could ought i'm you're he's she's it's we're they're i've you've we've
    they've i'd you'd he'd she'd we'd they'd i'll you'll he'll she'll we'll
    they'll isn't aren't wasn't weren't hasn't haven't hadn't doesn't don't
    didn't won't wouldn't shan't shouldn't can't cannot couldn't mustn't let's
    that's who's what's here's there's when's where's why's how's a an the and
    but if or because as until while of at by for with about against between
    into through during before after above below to from up down in out on
    off over under again further then once here there when where why how all
    any both each few more most other some such no nor not only own same so
    than too very
    """.split()
)

TRAIN_KEY = "id"
TEST_KEY = "test_id"
LABEL_COLUMN = "is_duplicate"
TEXT_COLUMNS = ("question1", "question2")

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCT_TABLE = str.maketrans("", "", string.punctuation + "‘’“”–—…¿¡")
STOPWORD_LISTS = ("snowball", "sklearn", "nltk")


@lru_cache(maxsize=1)
def _nltk_english() -> FrozenSet[str]:
    try:
        words = nltk_stopwords.words("english")
    except LookupError:
        nltk.download("stopwords", quiet=True)
        words = nltk_stopwords.words("english")
    return frozenset(words)


def resolve_stopwords(stopwords: Union[str, Iterable[str], None] = "snowball") -> FrozenSet[str]:
    """Return the stopword set named by *stopwords*.

    ``"snowball"`` (default), ``"sklearn"`` and ``"nltk"`` select a named list,
    ``None`` disables stopword removal, any other iterable is used verbatim.
    The nltk corpus is downloaded on first use if it is not installed.
    """
    if stopwords is None:
        return frozenset()
    if isinstance(stopwords, str):
        if stopwords == "snowball":
            return SNOWBALL_STOPWORDS
        if stopwords == "sklearn":
            return frozenset(ENGLISH_STOP_WORDS)
        if stopwords == "nltk":
            return _nltk_english()
        raise ValueError(f"Unknown stopword list: {stopwords!r}")
    return frozenset(w.lower() for w in stopwords)


@lru_cache(maxsize=8)
def _stopword_pattern(stopwords: FrozenSet[str]) -> Optional[re.Pattern]:
    if not stopwords:
        return None
    # Longest first so alternation never settles on a prefix.
    alternatives = "|".join(re.escape(w) for w in sorted(stopwords, key=len, reverse=True))
    return re.compile(rf"(?<!\S)(?:{alternatives})(?!\S)")


# -----------------------------------------------------------
# Tokenisation
# -----------------------------------------------------------


def normalize(text: str, stopwords: Union[str, Iterable[str], None] = "snowball") -> List[str]:
    """Normalise *text* into a list of tokens.

    Steps, in order: lowercase (other whitespace folded to single spaces),
    remove whitespace-bounded stopwords from the whole string, split on single
    spaces, strip punctuation from every token. Empty tokens are dropped.

    Raises
    ------
    InvalidInputError
        If *text* is not a ``str``. Missing text must be mapped to ``""`` by
        the caller (see :func:`prepare_pairs`).
    """
    if not isinstance(text, str):
        raise InvalidInputError(f"normalize() expects str, got {type(text).__name__}")

    lowered = _WHITESPACE_RE.sub(" ", text.lower())
    pattern = _stopword_pattern(resolve_stopwords(stopwords))
    if pattern is not None:
        lowered = pattern.sub("", lowered)

    tokens = (tok.translate(_PUNCT_TABLE) for tok in lowered.split(" "))
    return [tok for tok in tokens if tok]


# -----------------------------------------------------------
# Records
# -----------------------------------------------------------


@dataclass(frozen=True)
class QuestionPair:
    """One input row. ``label`` is ``None`` for inference rows."""

    id: int
    question1: str
    question2: str
    label: Optional[bool] = None


def detect_key(df: pd.DataFrame) -> str:
    """Return the join-key column of *df*: ``test_id`` for test data, else ``id``."""
    if TEST_KEY in df.columns:
        return TEST_KEY
    if TRAIN_KEY in df.columns:
        return TRAIN_KEY
    raise SchemaMismatchError(f"Dataset has neither '{TRAIN_KEY}' nor '{TEST_KEY}' column")


def _coerce_text(value) -> str:
    if isinstance(value, str):
        return value
    if value is None or pd.isna(value):
        return ""
    # Numeric-looking questions ("42") may come back from CSV as numbers.
    return str(value)


def prepare_pairs(df: pd.DataFrame, key: Optional[str] = None) -> pd.DataFrame:
    """Return a copy of *df* reduced to ``[key, question1, question2(, is_duplicate)]``.

    Missing question text becomes ``""``; the key column is cast to ``int``.
    """
    key = key or detect_key(df)
    required = [key, *TEXT_COLUMNS]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SchemaMismatchError("Dataset is missing required columns", missing)

    columns = required + ([LABEL_COLUMN] if LABEL_COLUMN in df.columns else [])
    out = df[columns].copy()
    for col in TEXT_COLUMNS:
        out[col] = out[col].map(_coerce_text).astype(object)
    out[key] = out[key].astype("int64")
    if LABEL_COLUMN in out.columns:
        out[LABEL_COLUMN] = out[LABEL_COLUMN].astype("int64")

    empty = int((out["question1"] == "").sum() + (out["question2"] == "").sum())
    if empty:
        logger.info("%d empty question fields treated as empty strings", empty)
    return out


def load_pairs(path: Union[str, Path], key: Optional[str] = None, nrows: Optional[int] = None) -> pd.DataFrame:
    """Read a question-pair CSV (UTF-8) into a prepared DataFrame."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    df = pd.read_csv(
        path,
        encoding="utf-8",
        dtype={"question1": str, "question2": str},
        keep_default_na=False,
        nrows=nrows,
    )
    logger.info("Loaded %d rows from %s", len(df), path)
    return prepare_pairs(df, key=key)


def iter_pairs(df: pd.DataFrame, key: Optional[str] = None) -> Iterator[QuestionPair]:
    """Yield :class:`QuestionPair` records from a prepared DataFrame."""
    key = key or detect_key(df)
    labels = df[LABEL_COLUMN] if LABEL_COLUMN in df.columns else None
    for i, (pid, q1, q2) in enumerate(zip(df[key], df["question1"], df["question2"])):
        label = bool(labels.iat[i]) if labels is not None else None
        yield QuestionPair(id=int(pid), question1=q1, question2=q2, label=label)
