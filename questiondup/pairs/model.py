"""Gradient-boosted duplicate classifier.

A thin boundary around scikit-learn's tree boosting::

    model = train(features, labels)
    probs = predict(model, features)

``gbm`` (``GradientBoostingClassifier``) needs fully imputed features.
``hist_gbm`` (``HistGradientBoostingClassifier``) accepts NaN, so it can take a
matrix assembled with ``MissingSimilarityPolicy.keep()``.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import joblib
import numpy as np
import pandas as pd
from sklearn.ensemble import GradientBoostingClassifier, HistGradientBoostingClassifier
from sklearn.metrics import auc, log_loss, precision_recall_curve, roc_auc_score
from sklearn.model_selection import train_test_split

from .assemble import as_model_input
from .errors import SchemaMismatchError

logger = logging.getLogger(__name__)

_BACKENDS = {
    "gbm": GradientBoostingClassifier,
    "hist_gbm": HistGradientBoostingClassifier,
}
_ACCEPTS_MISSING = {"gbm": False, "hist_gbm": True}


class DuplicateClassifier:
    """Fitted estimator plus the feature columns it was trained on."""

    def __init__(self, backend: str = "gbm", random_state: int = 42, **params: Any) -> None:
        if backend not in _BACKENDS:
            raise ValueError(f"Unknown classifier backend: {backend!r}")
        self.backend = backend
        self.params = dict(params)
        self.estimator = _BACKENDS[backend](random_state=random_state, **params)
        self.columns: Optional[List[str]] = None
        # PipelineConfig used to build the training matrix, kept for inference.
        self.feature_config = None

    @property
    def accepts_missing(self) -> bool:
        return _ACCEPTS_MISSING[self.backend]

    def _matrix(self, features: pd.DataFrame) -> np.ndarray:
        X = as_model_input(features)
        if not self.accepts_missing and np.isnan(X).any():
            raise ValueError(
                f"Backend {self.backend!r} cannot take missing values; "
                "impute cos_sim with a MissingSimilarityPolicy default first"
            )
        return X

    def fit(self, features: pd.DataFrame, labels) -> "DuplicateClassifier":
        y = np.asarray(labels, dtype=int)
        if len(y) != len(features):
            raise SchemaMismatchError(f"{len(features)} feature rows but {len(y)} labels")
        self.estimator.fit(self._matrix(features), y)
        self.columns = list(features.columns)
        logger.info("Fitted %s on %d rows x %d features", self.backend, *features.shape)
        return self

    def predict_proba(self, features: pd.DataFrame) -> np.ndarray:
        if self.columns is None:
            raise RuntimeError("Classifier has not been fitted")
        if list(features.columns) != self.columns:
            diff = sorted(set(features.columns) ^ set(self.columns)) or ["<column order>"]
            raise SchemaMismatchError("Feature columns differ from training", diff)
        return self.estimator.predict_proba(self._matrix(features))[:, 1]

    # --------------------------------------------------
    # Persistence
    # --------------------------------------------------

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self, path)
        return path

    @staticmethod
    def load(path: Union[str, Path]) -> "DuplicateClassifier":
        model = joblib.load(Path(path))
        if not isinstance(model, DuplicateClassifier):
            raise TypeError(f"{path} does not hold a DuplicateClassifier")
        return model


def train(features: pd.DataFrame, labels, backend: str = "gbm", random_state: int = 42, **params: Any) -> DuplicateClassifier:
    return DuplicateClassifier(backend, random_state=random_state, **params).fit(features, labels)


def predict(model: DuplicateClassifier, features: pd.DataFrame) -> np.ndarray:
    """Duplicate probability per row of *features*."""
    return model.predict_proba(features)


def evaluate(
    features: pd.DataFrame,
    labels,
    backend: str = "gbm",
    validation_fraction: float = 0.2,
    random_state: int = 42,
    **params: Any,
) -> Dict[str, float]:
    """Fit on a stratified split and score the held-out part."""
    y = np.asarray(labels, dtype=int)
    X_train, X_val, y_train, y_val = train_test_split(
        features, y, test_size=validation_fraction, random_state=random_state, stratify=y
    )
    model = train(X_train, y_train, backend=backend, random_state=random_state, **params)
    y_prob = predict(model, X_val)

    prec, rec, _ = precision_recall_curve(y_val, y_prob)
    metrics = {
        "roc_auc": float(roc_auc_score(y_val, y_prob)),
        "pr_auc": float(auc(rec, prec)),
        "log_loss": float(log_loss(y_val, y_prob, labels=[0, 1])),
        "validation_rows": int(len(y_val)),
    }
    logger.info("Validation ROC_AUC=%.3f PR_AUC=%.3f log_loss=%.4f", metrics["roc_auc"], metrics["pr_auc"], metrics["log_loss"])
    return metrics


def undefined_similarity_report(cos_sim: pd.Series, labels) -> Dict[str, Optional[float]]:
    """Summarise labels of pairs whose similarity is undefined.

    Pass the *raw* (un-imputed) ``cos_sim`` series. A duplicate rate near the
    rate for ``cos_sim == 1.0`` supports imputing 1.0; a rate near the overall
    base rate does not.
    """
    y = pd.Series(np.asarray(labels, dtype=int), index=cos_sim.index)
    undefined = cos_sim.isna()
    exact = cos_sim.fillna(-1.0) == 1.0

    def _rate(mask: pd.Series) -> Optional[float]:
        return float(y[mask].mean()) if mask.any() else None

    return {
        "rows": int(len(y)),
        "undefined": int(undefined.sum()),
        "duplicate_rate_overall": _rate(pd.Series(True, index=y.index)),
        "duplicate_rate_undefined": _rate(undefined),
        "duplicate_rate_similarity_1": _rate(exact),
    }
