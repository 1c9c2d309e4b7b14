"""questiondup - duplicate-question features and classifier.

Given pairs of free-text questions, questiondup derives bag-of-words cosine
similarity and lexical features, assembles aligned train/test feature
matrices and fits a gradient-boosted classifier:

- Normalisation (lowercase, stopwords, punctuation)
- Per-pair shared vocabulary and membership vectors
- Batch cosine similarity over hashed token IDs
- Length, word-count and keyword features
- Submission export (test_id, is_duplicate)

Quick Start:
    # CLI usage
    questiondup run config.yml

    # Python API
    from questiondup import build_feature_matrix, load_pairs
    matrix, raw_cos = build_feature_matrix(load_pairs("train.csv"))
"""

from .pairs import __version__

# Re-export main API
from .pairs import (
    normalize,
    load_pairs,
    batch_cosine_similarity,
    extract_lexical_features,
    assemble,
    FeatureSchema,
    MissingSimilarityPolicy,
    PipelineConfig,
    load_config,
    build_feature_matrix,
    run_pipeline,
    train,
    predict,
)

__all__ = [
    "__version__",
    "normalize",
    "load_pairs",
    "batch_cosine_similarity",
    "extract_lexical_features",
    "assemble",
    "FeatureSchema",
    "MissingSimilarityPolicy",
    "PipelineConfig",
    "load_config",
    "build_feature_matrix",
    "run_pipeline",
    "train",
    "predict",
]
