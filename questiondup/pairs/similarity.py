"""Cosine similarity between the membership vectors of a question pair.

Two paths compute the same number:

* :func:`cosine_similarity` / :func:`pair_similarity` build the pair's shared
  vocabulary and encode both questions as boolean vectors. Clear, but slow at
  dataset scale.
* :func:`batch_cosine_similarity` normalises and hashes every *unique* question
  once, then scores each pair from its two integer ID sets. For 0/1 vectors
  over a shared vocabulary the dot product is the size of the intersection and
  each squared norm is the number of distinct tokens, so no per-row vocabulary
  has to be materialised.

A pair where either question has no tokens has no defined similarity; both
paths return ``None`` for it and leave imputation to the assembler.
"""
from __future__ import annotations

import logging
import math
from multiprocessing import Pool
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from tqdm import tqdm

from .hashing import token_ids
from .ingest import detect_key, normalize
from .vocab import encode_pair

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]

DEFAULT_CHUNKSIZE = 10_000


def _ratio(dot: int, count_a: int, count_b: int) -> Optional[float]:
    if count_a == 0 or count_b == 0:
        return None
    # sqrt of the product keeps self-similarity exactly 1.0
    return dot / math.sqrt(count_a * count_b)


def cosine_similarity(vec_a: np.ndarray, vec_b: np.ndarray) -> Optional[float]:
    """Cosine of two boolean membership vectors, or ``None`` if either is all-false."""
    vec_a = np.asarray(vec_a, dtype=bool)
    vec_b = np.asarray(vec_b, dtype=bool)
    if vec_a.shape != vec_b.shape:
        raise ValueError(f"Membership vectors differ in shape: {vec_a.shape} != {vec_b.shape}")
    dot = int(np.count_nonzero(vec_a & vec_b))
    return _ratio(dot, int(np.count_nonzero(vec_a)), int(np.count_nonzero(vec_b)))


def pair_similarity(tokens_a: Sequence[str], tokens_b: Sequence[str]) -> Optional[float]:
    """Similarity of two token lists via their shared vocabulary."""
    _, vec_a, vec_b = encode_pair(tokens_a, tokens_b)
    return cosine_similarity(vec_a, vec_b)


def id_set_similarity(ids_a: FrozenSet[int], ids_b: FrozenSet[int]) -> Optional[float]:
    """Similarity of two hashed token sets; equal to :func:`pair_similarity`."""
    return _ratio(len(ids_a & ids_b), len(ids_a), len(ids_b))


# -----------------------------------------------------------
# Batch scoring
# -----------------------------------------------------------


def _score_chunk(args: Tuple[List[Pair], object]) -> List[Optional[float]]:
    rows, stopwords = args
    cache: Dict[str, FrozenSet[int]] = {}

    def _ids(text: str) -> FrozenSet[int]:
        ids = cache.get(text)
        if ids is None:
            ids = token_ids(normalize(text, stopwords))
            cache[text] = ids
        return ids

    return [id_set_similarity(_ids(q1), _ids(q2)) for q1, q2 in rows]


def _as_rows(pairs: Union[pd.DataFrame, Iterable[Pair]]) -> List[Pair]:
    if isinstance(pairs, pd.DataFrame):
        return list(zip(pairs["question1"], pairs["question2"]))
    return [(q1, q2) for q1, q2 in pairs]


def batch_cosine_similarity(
    pairs: Union[pd.DataFrame, Iterable[Pair]],
    *,
    stopwords="snowball",
    processes: int = 1,
    chunksize: int = DEFAULT_CHUNKSIZE,
    show_progress: bool = False,
) -> List[Optional[float]]:
    """Score every ``(question1, question2)`` row; output order follows input order.

    Rows are split into chunks of *chunksize*; with ``processes > 1`` the chunks
    are scored on a process pool. Each chunk scores its rows independently, so
    the result does not depend on how rows are partitioned.
    """
    rows = _as_rows(pairs)
    if chunksize < 1:
        raise ValueError("chunksize must be >= 1")
    chunks = [(rows[i : i + chunksize], stopwords) for i in range(0, len(rows), chunksize)]

    scores: List[Optional[float]] = []
    if processes > 1 and len(chunks) > 1:
        with Pool(processes=processes) as pool:
            results = pool.imap(_score_chunk, chunks)
            for part in tqdm(results, total=len(chunks), desc="Cosine similarity", disable=not show_progress):
                scores.extend(part)
    else:
        for chunk in tqdm(chunks, desc="Cosine similarity", disable=not show_progress):
            scores.extend(_score_chunk(chunk))

    undefined = sum(1 for s in scores if s is None)
    logger.debug("Scored %d pairs (%d undefined)", len(scores), undefined)
    return scores


def similarity_series(df: pd.DataFrame, key: Optional[str] = None, **kwargs) -> pd.Series:
    """Return ``cos_sim`` as a nullable ``Float64`` series indexed by the join key."""
    key = key or detect_key(df)
    scores = batch_cosine_similarity(df, **kwargs)
    index = pd.Index(df[key].to_numpy(), name=key)
    return pd.Series(scores, index=index, dtype="Float64", name="cos_sim")
