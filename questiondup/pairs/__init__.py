"""questiondup pairs package.

Core public API lives here so external users can::

    from questiondup.pairs import normalize, batch_cosine_similarity, assemble

Feature pipeline:
    from questiondup.pairs.pipeline import build_feature_matrix, run_pipeline
    from questiondup.pairs.model import train, predict
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version


# Semantic version of the installed package
try:
    __version__: str = _pkg_version("questiondup")
except PackageNotFoundError:  # pragma: no cover – local dev path
    __version__ = "0.1.0"

from .errors import ConfigError, InvalidInputError, QuestionDupError, SchemaMismatchError
from .ingest import QuestionPair, load_pairs, normalize, prepare_pairs
from .vocab import build_vocabulary, encode
from .similarity import batch_cosine_similarity, cosine_similarity, pair_similarity
from .features import DEFAULT_KEYWORDS, extract_features, extract_lexical_features
from .assemble import (
    FeatureRow,
    FeatureSchema,
    MissingSimilarityPolicy,
    assemble,
    check_schema_parity,
)
from .config import PipelineConfig, load_config
from .model import DuplicateClassifier, predict, train
from .pipeline import build_feature_matrix, run_pipeline

__all__ = [
    "__version__",
    # Errors
    "QuestionDupError",
    "InvalidInputError",
    "SchemaMismatchError",
    "ConfigError",
    # Core
    "QuestionPair",
    "normalize",
    "load_pairs",
    "prepare_pairs",
    "build_vocabulary",
    "encode",
    "cosine_similarity",
    "pair_similarity",
    "batch_cosine_similarity",
    "DEFAULT_KEYWORDS",
    "extract_features",
    "extract_lexical_features",
    "FeatureRow",
    "FeatureSchema",
    "MissingSimilarityPolicy",
    "assemble",
    "check_schema_parity",
    # Pipeline
    "PipelineConfig",
    "load_config",
    "DuplicateClassifier",
    "train",
    "predict",
    "build_feature_matrix",
    "run_pipeline",
]
