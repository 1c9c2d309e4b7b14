"""End-to-end duplicate-question pipeline.

Integrates:
- Loading training and test pairs
- Cosine-similarity and lexical feature extraction
- Feature assembly with train/test schema parity
- Hold-out evaluation, final fit and submission export
- Run statistics
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .assemble import FeatureRow, assemble, check_schema_parity, merge_rows
from .config import PipelineConfig
from .features import extract_features, extract_lexical_features
from .ingest import LABEL_COLUMN, TEST_KEY, detect_key, iter_pairs, load_pairs, normalize
from .model import DuplicateClassifier, evaluate, undefined_similarity_report
from .output import RunStats, write_features, write_submission
from .similarity import pair_similarity, similarity_series

logger = logging.getLogger(__name__)


def build_feature_matrix(
    pairs: pd.DataFrame,
    config: Optional[PipelineConfig] = None,
    show_progress: bool = False,
) -> Tuple[pd.DataFrame, pd.Series]:
    """Return ``(matrix, raw_cos_sim)`` for a prepared pairs DataFrame.

    *matrix* is imputed per ``config.policy``; *raw_cos_sim* keeps undefined
    similarities as ``<NA>``.
    """
    config = config or PipelineConfig()
    key = detect_key(pairs)
    cos = similarity_series(
        pairs,
        key=key,
        stopwords=config.stopwords,
        processes=config.processes,
        chunksize=config.chunksize,
        show_progress=show_progress,
    )
    lexical = extract_lexical_features(
        pairs, keywords=config.keywords, stopwords=config.stopwords, key=key, show_progress=show_progress
    )
    matrix = assemble(pairs, cos, lexical, schema=config.schema, policy=config.policy, key=key)
    return matrix, cos


def preview_pairs(pairs: pd.DataFrame, config: Optional[PipelineConfig] = None, limit: int = 5) -> List[FeatureRow]:
    """Feature rows for the first *limit* pairs, computed one pair at a time."""
    config = config or PipelineConfig()
    lexical = []
    scores: Dict[int, Optional[float]] = {}
    for i, pair in enumerate(iter_pairs(pairs)):
        if i >= limit:
            break
        lexical.append(extract_features(pair, keywords=config.keywords, stopwords=config.stopwords))
        scores[pair.id] = pair_similarity(
            normalize(pair.question1, config.stopwords), normalize(pair.question2, config.stopwords)
        )
    return merge_rows(lexical, scores)


class QuestionDupPipeline:
    """Train on ``config.train_csv`` and write predictions for ``config.test_csv``."""

    def __init__(self, config: PipelineConfig, verbose: bool = True, save_features: bool = False):
        if config.train_csv is None or config.test_csv is None:
            raise ValueError("Both train_csv and test_csv must be configured")
        self.config = config
        self.verbose = verbose
        self.save_features = save_features
        self.stats = RunStats()
        self.out_dir = Path(config.out)

    @property
    def submission_path(self) -> Path:
        return self.out_dir / "submission.csv"

    @property
    def model_path(self) -> Path:
        return self.out_dir / "model.joblib"

    def run(self) -> Dict[str, Any]:
        cfg = self.config

        self.stats.start("load")
        train_df = load_pairs(cfg.train_csv, nrows=cfg.sample)
        test_df = load_pairs(cfg.test_csv, key=TEST_KEY, nrows=cfg.sample)
        if LABEL_COLUMN not in train_df.columns:
            raise ValueError(f"{cfg.train_csv} has no '{LABEL_COLUMN}' column")
        self.stats.count("train_rows", len(train_df))
        self.stats.count("test_rows", len(test_df))
        self.stats.stop()

        self.stats.start("features")
        X_train, cos_train = build_feature_matrix(train_df, cfg, show_progress=self.verbose)
        X_test, cos_test = build_feature_matrix(test_df, cfg, show_progress=self.verbose)
        check_schema_parity(X_train, X_test)
        self.stats.count("train_undefined_similarity", int(cos_train.isna().sum()))
        self.stats.count("test_undefined_similarity", int(cos_test.isna().sum()))
        self.stats.stop()

        y_train = train_df[LABEL_COLUMN].to_numpy()
        self.stats.metrics["undefined_similarity"] = undefined_similarity_report(cos_train, y_train)

        if cfg.validation_fraction > 0:
            self.stats.start("validation")
            self.stats.metrics["validation"] = evaluate(
                X_train,
                y_train,
                backend=cfg.classifier,
                validation_fraction=cfg.validation_fraction,
                random_state=cfg.random_state,
                **cfg.classifier_params,
            )
            self.stats.stop()

        self.stats.start("fit")
        model = DuplicateClassifier(cfg.classifier, random_state=cfg.random_state, **cfg.classifier_params)
        model.fit(X_train, y_train)
        model.feature_config = cfg
        model.save(self.model_path)
        self.stats.stop()

        self.stats.start("predict")
        probabilities = model.predict_proba(X_test)
        write_submission(X_test.index.to_numpy(), probabilities, self.submission_path)
        self.stats.stop()

        if self.save_features:
            write_features(X_train, self.out_dir / "train_features.parquet")
            write_features(X_test, self.out_dir / "test_features.parquet")

        stats_path = self.stats.save_stats(self.submission_path)
        summary = self.stats.get_summary()
        summary["submission"] = str(self.submission_path)
        summary["model"] = str(self.model_path)
        summary["stats"] = str(stats_path)
        logger.info("Wrote %d predictions to %s", len(probabilities), self.submission_path)
        return summary


def run_pipeline(config: PipelineConfig, **kwargs) -> Dict[str, Any]:
    """Convenience wrapper around :class:`QuestionDupPipeline`."""
    return QuestionDupPipeline(config, **kwargs).run()
