"""Writers for submissions, feature matrices and run statistics.

- Submission: CSV with exactly ``test_id,is_duplicate``.
- Feature matrices: ``.csv``, ``.parquet`` or ``.jsonl`` picked from the suffix.
- Run statistics: JSON next to the submission.
"""
from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd
import psutil

from .errors import SchemaMismatchError
from .ingest import LABEL_COLUMN, TEST_KEY


def write_submission(test_ids, probabilities, path: Union[str, Path]) -> Path:
    """Write one ``test_id,is_duplicate`` row per test pair."""
    test_ids = np.asarray(test_ids)
    probabilities = np.asarray(probabilities, dtype="float64")
    if len(test_ids) != len(probabilities):
        raise SchemaMismatchError(f"{len(test_ids)} test ids but {len(probabilities)} predictions")
    if len(probabilities) and (np.isnan(probabilities).any() or probabilities.min() < 0 or probabilities.max() > 1):
        raise ValueError("Predictions must be probabilities in [0, 1]")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame({TEST_KEY: test_ids, LABEL_COLUMN: probabilities}).to_csv(
        path, index=False, float_format="%.17g"
    )
    return path


def write_features(matrix: pd.DataFrame, path: Union[str, Path], format: str = "auto") -> Path:
    """Write an assembled feature matrix, keeping the join key as a column."""
    path = Path(path)
    if format == "auto":
        suffix = path.suffix.lower()
        if suffix == ".csv":
            format = "csv"
        elif suffix == ".parquet":
            format = "parquet"
        elif suffix in (".jsonl", ".json"):
            format = "jsonl"
        else:
            raise ValueError(f"Cannot auto-detect format from suffix '{suffix}'")

    path.parent.mkdir(parents=True, exist_ok=True)
    frame = matrix.reset_index()
    if format == "csv":
        frame.to_csv(path, index=False)
    elif format == "parquet":
        frame.to_parquet(path, index=False)
    elif format == "jsonl":
        frame.to_json(path, orient="records", lines=True)
    else:
        raise ValueError(f"Unsupported format: {format}")
    return path


class RunStats:
    """Track timings and counts for one pipeline run."""

    def __init__(self) -> None:
        self.started = time.time()
        self.timings: Dict[str, float] = {}
        self.counts: Dict[str, int] = {}
        self.metrics: Dict[str, Any] = {}
        self._stage: Optional[str] = None
        self._stage_start = 0.0

    def start(self, stage: str) -> None:
        self._stage = stage
        self._stage_start = time.time()

    def stop(self) -> None:
        if self._stage is not None:
            self.timings[self._stage] = time.time() - self._stage_start
            self._stage = None

    def count(self, name: str, value: int) -> None:
        self.counts[name] = int(value)

    def get_summary(self) -> Dict[str, Any]:
        elapsed = time.time() - self.started
        rows = self.counts.get("train_rows", 0) + self.counts.get("test_rows", 0)
        return {
            "processing_time_seconds": elapsed,
            "peak_memory_mb": psutil.Process().memory_info().rss / 1024 / 1024,
            "counts": dict(self.counts),
            "stage_seconds": dict(self.timings),
            "rows_per_second": rows / max(elapsed, 1e-9),
            "metrics": dict(self.metrics),
        }

    def save_stats(self, output_path: Path) -> Path:
        """Save statistics as ``<stem>_stats.json`` beside *output_path*."""
        output_path = Path(output_path)
        stats_path = output_path.parent / f"{output_path.stem}_stats.json"
        stats_path.parent.mkdir(parents=True, exist_ok=True)
        with open(stats_path, "w", encoding="utf-8") as f:
            json.dump(self.get_summary(), f, indent=2, ensure_ascii=False)
        return stats_path
