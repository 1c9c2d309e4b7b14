"""Feature-matrix assembly.

Joins the similarity stream and the lexical stream onto the input pairs by
join key (``id`` for training, ``test_id`` for inference) and lays the result
out in the column order fixed by a :class:`FeatureSchema`. Both matrices fed
to one classifier must come from the same schema.

Undefined similarities are imputed here and only here, by a
:class:`MissingSimilarityPolicy`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import SchemaMismatchError
from .features import DEFAULT_KEYWORDS, LexicalFeatures, keyword_column
from .ingest import LABEL_COLUMN, detect_key

logger = logging.getLogger(__name__)

BASE_COLUMNS: Tuple[str, ...] = ("char_diff", "cos_sim", "q1_wordcount", "q2_wordcount", "wordcount_diff")
MISSING_INDICATOR = "cos_sim_missing"


@dataclass(frozen=True)
class FeatureRow:
    id: int
    char_diff: int
    cos_sim: Optional[float]
    q1_wordcount: int
    q2_wordcount: int
    wordcount_diff: int
    keyword_flags: Mapping[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class FeatureSchema:
    """Ordered feature columns shared by the training and inference matrices."""

    keywords: Tuple[str, ...] = DEFAULT_KEYWORDS
    missing_indicator: bool = False

    @property
    def columns(self) -> List[str]:
        cols = list(BASE_COLUMNS)
        if self.missing_indicator:
            cols.append(MISSING_INDICATOR)
        cols.extend(keyword_column(k) for k in self.keywords)
        return cols


@dataclass(frozen=True)
class MissingSimilarityPolicy:
    """Value substituted for undefined ``cos_sim`` before the classifier sees it.

    The default of 1.0 treats "no vocabulary on one side" as trivially similar.
    ``default=None`` keeps the gaps as NaN for classifiers that handle missing
    values themselves.
    """

    default: Optional[float] = 1.0
    name: str = "constant"

    @classmethod
    def keep(cls) -> "MissingSimilarityPolicy":
        return cls(default=None, name="keep")

    def apply(self, scores: pd.Series) -> pd.Series:
        values = scores.astype("Float64")
        if self.default is not None:
            values = values.fillna(float(self.default))
        return values.astype("float64")


# -----------------------------------------------------------
# Key checks
# -----------------------------------------------------------


def _check_stream(name: str, keys: pd.Index, index: pd.Index) -> None:
    if index.has_duplicates:
        raise SchemaMismatchError(f"Duplicate keys in {name} stream", index[index.duplicated()].unique())
    missing = keys.difference(index)
    if len(missing):
        raise SchemaMismatchError(f"Rows without a {name} feature", missing)
    extra = index.difference(keys)
    if len(extra):
        raise SchemaMismatchError(f"{name} feature rows without a matching pair", extra)


# -----------------------------------------------------------
# Matrix assembly
# -----------------------------------------------------------


def assemble(
    pairs: pd.DataFrame,
    similarity_scores: pd.Series,
    lexical_features: pd.DataFrame,
    schema: Optional[FeatureSchema] = None,
    policy: Optional[MissingSimilarityPolicy] = None,
    key: Optional[str] = None,
) -> pd.DataFrame:
    """Join both feature streams onto *pairs* by key.

    Returns one row per pair, indexed by the join key, with exactly
    ``schema.columns``. Raises :class:`SchemaMismatchError` if any stream is
    missing a key, carries a key not in *pairs*, or repeats one.
    """
    schema = schema or FeatureSchema()
    policy = policy or MissingSimilarityPolicy()
    key = key or detect_key(pairs)

    keys = pd.Index(pairs[key].to_numpy(), name=key)
    if keys.has_duplicates:
        raise SchemaMismatchError("Duplicate keys in pairs", keys[keys.duplicated()].unique())
    _check_stream("cos_sim", keys, similarity_scores.index)
    _check_stream("lexical", keys, lexical_features.index)

    lexical_cols = [c for c in schema.columns if c not in ("cos_sim", MISSING_INDICATOR)]
    absent = [c for c in lexical_cols if c not in lexical_features.columns]
    if absent:
        raise SchemaMismatchError("Lexical features lack schema columns", absent)

    matrix = lexical_features.reindex(keys)[lexical_cols].copy()
    raw = similarity_scores.reindex(keys).astype("Float64")
    if schema.missing_indicator:
        matrix[MISSING_INDICATOR] = raw.isna().to_numpy()
    matrix["cos_sim"] = policy.apply(raw).to_numpy()

    undefined = int(raw.isna().sum())
    if undefined:
        logger.info(
            "%d of %d similarities undefined; policy %r -> %s",
            undefined, len(raw), policy.name, policy.default,
        )
    matrix.index.name = key
    return matrix[schema.columns]


def check_schema_parity(train_matrix: pd.DataFrame, test_matrix: pd.DataFrame) -> None:
    """Raise unless both matrices have the same feature columns in the same order."""
    train_cols = [c for c in train_matrix.columns if c != LABEL_COLUMN]
    test_cols = [c for c in test_matrix.columns if c != LABEL_COLUMN]
    if train_cols != test_cols:
        diff = sorted(set(train_cols) ^ set(test_cols)) or ["<column order>"]
        raise SchemaMismatchError("Training and inference feature columns differ", diff)


# -----------------------------------------------------------
# Record view
# -----------------------------------------------------------


def merge_rows(
    lexical: Iterable[LexicalFeatures],
    scores: Mapping[int, Optional[float]],
) -> List[FeatureRow]:
    """Merge per-pair lexical features with similarity scores by ``id``."""
    lexical = list(lexical)
    ids = pd.Index([lf.id for lf in lexical])
    if ids.has_duplicates:
        raise SchemaMismatchError("Duplicate ids in lexical stream", ids[ids.duplicated()].unique())
    _check_stream("cos_sim", ids, pd.Index(list(scores)))
    return [
        FeatureRow(
            id=lf.id,
            char_diff=lf.char_diff,
            cos_sim=scores[lf.id],
            q1_wordcount=lf.q1_wordcount,
            q2_wordcount=lf.q2_wordcount,
            wordcount_diff=lf.wordcount_diff,
            keyword_flags=dict(lf.keyword_flags),
        )
        for lf in lexical
    ]


def to_frame(rows: Iterable[FeatureRow], schema: Optional[FeatureSchema] = None, key: str = "id") -> pd.DataFrame:
    """Lay :class:`FeatureRow` records out as a raw (un-imputed) feature frame."""
    schema = schema or FeatureSchema()
    records: List[Dict] = []
    for row in rows:
        rec = {
            key: row.id,
            "char_diff": row.char_diff,
            "cos_sim": row.cos_sim,
            "q1_wordcount": row.q1_wordcount,
            "q2_wordcount": row.q2_wordcount,
            "wordcount_diff": row.wordcount_diff,
        }
        if schema.missing_indicator:
            rec[MISSING_INDICATOR] = row.cos_sim is None
        for k in schema.keywords:
            rec[keyword_column(k)] = bool(row.keyword_flags.get(k, False))
        records.append(rec)

    frame = pd.DataFrame.from_records(records, columns=[key, *schema.columns]).set_index(key)
    frame["cos_sim"] = frame["cos_sim"].astype("Float64")
    return frame


def feature_rows(matrix: pd.DataFrame, schema: Optional[FeatureSchema] = None) -> List[FeatureRow]:
    """Read an assembled matrix back into :class:`FeatureRow` records."""
    schema = schema or FeatureSchema()
    rows = []
    for pid, rec in zip(matrix.index, matrix.to_dict("records")):
        cos = rec["cos_sim"]
        rows.append(
            FeatureRow(
                id=int(pid),
                char_diff=int(rec["char_diff"]),
                cos_sim=None if pd.isna(cos) else float(cos),
                q1_wordcount=int(rec["q1_wordcount"]),
                q2_wordcount=int(rec["q2_wordcount"]),
                wordcount_diff=int(rec["wordcount_diff"]),
                keyword_flags={k: bool(rec[keyword_column(k)]) for k in schema.keywords},
            )
        )
    return rows


def as_model_input(matrix: pd.DataFrame) -> np.ndarray:
    """Float matrix for the classifier; booleans become 0/1."""
    return matrix.astype("float64").to_numpy()
