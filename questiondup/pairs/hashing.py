"""64-bit token hashing used by the batch similarity path."""
from __future__ import annotations

from typing import FrozenSet, Iterable, List

import xxhash


def batch_xxhash64(strings: Iterable[str], seed: int = 0) -> List[int]:
    """Return the 64-bit xxHash of the UTF-8 bytes of every string, in order."""
    return [xxhash.xxh64_intdigest(s.encode("utf-8"), seed=seed) for s in strings]


def token_ids(tokens: Iterable[str], seed: int = 0) -> FrozenSet[int]:
    """Hash *tokens* to a set of integer IDs.

    Set semantics match a membership vector: a token repeated inside one
    question still contributes a single ``True`` entry.
    """
    return frozenset(batch_xxhash64(tokens, seed=seed))
