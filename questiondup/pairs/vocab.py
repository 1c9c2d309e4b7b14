"""Per-pair shared vocabulary and binary membership vectors."""
from __future__ import annotations

from typing import List, Sequence

import numpy as np


def build_vocabulary(tokens_a: Sequence[str], tokens_b: Sequence[str]) -> List[str]:
    """Return the union of both token lists, deduplicated in first-occurrence order.

    The order fixes the index space shared by both membership vectors of a pair,
    and depends only on the pair itself.
    """
    # dict preserves insertion order
    return list(dict.fromkeys([*tokens_a, *tokens_b]))


def encode(tokens: Sequence[str], vocabulary: Sequence[str]) -> np.ndarray:
    """Encode *tokens* as a boolean vector over *vocabulary*.

    Position *i* is ``True`` iff ``vocabulary[i]`` equals one of *tokens*.
    """
    present = set(tokens)
    return np.fromiter((word in present for word in vocabulary), dtype=bool, count=len(vocabulary))


def encode_pair(tokens_a: Sequence[str], tokens_b: Sequence[str]):
    """Build the pair's vocabulary and return ``(vocabulary, vec_a, vec_b)``."""
    vocabulary = build_vocabulary(tokens_a, tokens_b)
    return vocabulary, encode(tokens_a, vocabulary), encode(tokens_b, vocabulary)
