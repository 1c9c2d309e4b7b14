"""YAML run configuration.

Example ``config.yml``::

    train_csv: data/train.csv
    test_csv: data/test.csv
    out: results
    keywords: [life, money, trump, google]
    missing_similarity_default: 1.0   # null keeps gaps for hist_gbm
    classifier: gbm
    classifier_params:
      n_estimators: 300
      max_depth: 4
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml  # type: ignore

from .assemble import FeatureSchema, MissingSimilarityPolicy
from .errors import ConfigError
from .features import DEFAULT_KEYWORDS
from .ingest import STOPWORD_LISTS

CLASSIFIERS = ("gbm", "hist_gbm")


@dataclass(frozen=True)
class PipelineConfig:
    train_csv: Optional[Path] = None
    test_csv: Optional[Path] = None
    out: Path = Path("results")
    keywords: Tuple[str, ...] = DEFAULT_KEYWORDS
    stopwords: str = "snowball"
    missing_similarity_default: Optional[float] = 1.0
    missing_indicator: bool = False
    classifier: str = "gbm"
    classifier_params: Dict[str, Any] = field(default_factory=dict)
    validation_fraction: float = 0.2
    random_state: int = 42
    processes: int = 1
    chunksize: int = 10_000
    sample: Optional[int] = None

    def __post_init__(self) -> None:
        if self.classifier not in CLASSIFIERS:
            raise ConfigError(f"classifier must be one of {CLASSIFIERS}, got {self.classifier!r}")
        if self.stopwords not in STOPWORD_LISTS:
            raise ConfigError(f"stopwords must be one of {STOPWORD_LISTS}, got {self.stopwords!r}")
        if not 0.0 <= self.validation_fraction < 1.0:
            raise ConfigError("validation_fraction must be in [0, 1)")
        if self.processes < 1:
            raise ConfigError("processes must be >= 1")
        if self.chunksize < 1:
            raise ConfigError("chunksize must be >= 1")
        if len(set(self.keywords)) != len(self.keywords):
            raise ConfigError("keywords must be unique")
        if "random_state" in self.classifier_params:
            raise ConfigError("set random_state at the top level, not in classifier_params")

    @property
    def schema(self) -> FeatureSchema:
        return FeatureSchema(keywords=tuple(self.keywords), missing_indicator=self.missing_indicator)

    @property
    def policy(self) -> MissingSimilarityPolicy:
        if self.missing_similarity_default is None:
            return MissingSimilarityPolicy.keep()
        return MissingSimilarityPolicy(default=float(self.missing_similarity_default))

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a copy with every non-``None`` override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def config_from_dict(cfg: Dict[str, Any]) -> PipelineConfig:
    known = {f.name for f in fields(PipelineConfig)}
    unknown = sorted(set(cfg) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    try:
        default = cfg.get("missing_similarity_default", 1.0)
        sample = cfg.get("sample")
        return PipelineConfig(
            train_csv=Path(cfg["train_csv"]).expanduser() if cfg.get("train_csv") else None,
            test_csv=Path(cfg["test_csv"]).expanduser() if cfg.get("test_csv") else None,
            out=Path(cfg.get("out", "results")).expanduser(),
            keywords=tuple(str(k).lower() for k in cfg.get("keywords", DEFAULT_KEYWORDS)),
            stopwords=str(cfg.get("stopwords", "snowball")),
            missing_similarity_default=None if default is None else float(default),
            missing_indicator=bool(cfg.get("missing_indicator", False)),
            classifier=str(cfg.get("classifier", "gbm")),
            classifier_params=dict(cfg.get("classifier_params") or {}),
            validation_fraction=float(cfg.get("validation_fraction", 0.2)),
            random_state=int(cfg.get("random_state", 42)),
            processes=int(cfg.get("processes", 1)),
            chunksize=int(cfg.get("chunksize", 10_000)),
            sample=None if sample is None else int(sample),
        )
    except (TypeError, ValueError) as exc:
        if isinstance(exc, ConfigError):
            raise
        raise ConfigError(f"Invalid configuration value: {exc}") from exc


def load_config(path: Union[str, Path]) -> PipelineConfig:
    """Read a YAML file into a :class:`PipelineConfig`."""
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return config_from_dict(cfg)
