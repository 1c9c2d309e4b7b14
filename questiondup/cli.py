"""questiondup unified command-line interface.

Usage
-----
$ questiondup run config.yml
$ questiondup features train.csv -o results/train_features.parquet
$ questiondup train train.csv --model results/model.joblib
$ questiondup predict test.csv --model results/model.joblib -o results/submission.csv
$ questiondup preview train.csv

The *run* command executes the whole pipeline (features, validation, final
fit, submission) from a YAML configuration file.

The *features* command writes the assembled feature matrix of one dataset.

The *train* and *predict* commands split the run in two; the fitted model
carries its feature configuration so *predict* rebuilds the same columns.

The *preview* command shows a few pairs with their tokens and features.
"""
from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import List

from .pairs import __version__
from .pairs.config import CLASSIFIERS, PipelineConfig, load_config
from .pairs.ingest import LABEL_COLUMN, STOPWORD_LISTS, TEST_KEY, detect_key, load_pairs, normalize
from .pairs.model import DuplicateClassifier, evaluate
from .pairs.output import write_features, write_submission
from .pairs.pipeline import QuestionDupPipeline, build_feature_matrix, preview_pairs

# -----------------------------------------------------------
# Helpers
# -----------------------------------------------------------


def _config_from_args(args: argparse.Namespace) -> PipelineConfig:
    cfg = load_config(args.config) if getattr(args, "config", None) else PipelineConfig()
    overrides = {
        "keywords": tuple(k.lower() for k in args.keywords) if getattr(args, "keywords", None) else None,
        "stopwords": getattr(args, "stopwords", None),
        "missing_similarity_default": getattr(args, "missing_default", None),
        "processes": getattr(args, "processes", None),
        "sample": getattr(args, "sample", None),
        "classifier": getattr(args, "classifier", None),
    }
    cfg = cfg.with_overrides(**overrides)
    if getattr(args, "keep_missing", False):
        cfg = replace(cfg, missing_similarity_default=None)
    return cfg


def _add_feature_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=Path, help="YAML configuration providing defaults")
    p.add_argument("--keywords", nargs="+", help="Keywords flagged when present in both questions")
    p.add_argument("--stopwords", choices=STOPWORD_LISTS, help="Stopword list (default: snowball)")
    p.add_argument("--missing-default", type=float,
                   help="Value imputed for undefined cosine similarity (default: 1.0)")
    p.add_argument("--keep-missing", action="store_true",
                   help="Leave undefined cosine similarity as NaN (hist_gbm only)")
    p.add_argument("--processes", type=int, help="Worker processes for similarity scoring")
    p.add_argument("--sample", type=int, help="Limit rows read from each CSV")


# -----------------------------------------------------------
# Commands
# -----------------------------------------------------------


def _cmd_run(args: argparse.Namespace) -> None:
    cfg = load_config(args.config)
    if args.out:
        cfg = cfg.with_overrides(out=args.out)
    stats = QuestionDupPipeline(cfg, verbose=not args.quiet, save_features=args.save_features).run()

    print(f"Train rows: {stats['counts'].get('train_rows', 0):,}  "
          f"Test rows: {stats['counts'].get('test_rows', 0):,}")
    validation = stats["metrics"].get("validation")
    if validation:
        print(f"ROC_AUC={validation['roc_auc']:.3f}  PR_AUC={validation['pr_auc']:.3f}  "
              f"log_loss={validation['log_loss']:.4f}")
    print(f"Processing time: {stats['processing_time_seconds']:.2f}s  "
          f"Peak memory: {stats['peak_memory_mb']:.1f} MB")
    print(f"Submission saved to {stats['submission']}")


def _cmd_features(args: argparse.Namespace) -> None:
    cfg = _config_from_args(args)
    pairs = load_pairs(args.input, nrows=cfg.sample)
    matrix, raw = build_feature_matrix(pairs, cfg, show_progress=not args.quiet)
    if args.keep_label and LABEL_COLUMN in pairs.columns:
        matrix = matrix.assign(**{LABEL_COLUMN: pairs[LABEL_COLUMN].to_numpy()})
    path = write_features(matrix, args.output)
    print(f"Wrote {len(matrix):,} feature rows ({int(raw.isna().sum()):,} undefined similarities) to {path}")


def _cmd_train(args: argparse.Namespace) -> None:
    cfg = _config_from_args(args)
    pairs = load_pairs(args.input, nrows=cfg.sample)
    if LABEL_COLUMN not in pairs.columns:
        raise SystemExit(f"{args.input} has no '{LABEL_COLUMN}' column")
    matrix, _ = build_feature_matrix(pairs, cfg, show_progress=not args.quiet)
    labels = pairs[LABEL_COLUMN].to_numpy()

    if args.validate:
        metrics = evaluate(
            matrix, labels,
            backend=cfg.classifier,
            validation_fraction=cfg.validation_fraction or 0.2,
            random_state=cfg.random_state,
            **cfg.classifier_params,
        )
        print(json.dumps(metrics, indent=2))

    model = DuplicateClassifier(cfg.classifier, random_state=cfg.random_state, **cfg.classifier_params)
    model.fit(matrix, labels)
    model.feature_config = cfg
    print(f"Saved model to {model.save(args.model)}")


def _cmd_predict(args: argparse.Namespace) -> None:
    model = DuplicateClassifier.load(args.model)
    cfg = model.feature_config or PipelineConfig()
    if args.processes:
        cfg = cfg.with_overrides(processes=args.processes)
    pairs = load_pairs(args.input, key=TEST_KEY)
    matrix, _ = build_feature_matrix(pairs, cfg, show_progress=not args.quiet)
    probabilities = model.predict_proba(matrix)
    path = write_submission(matrix.index.to_numpy(), probabilities, args.output)
    print(f"Wrote {len(probabilities):,} predictions to {path}")


def _cmd_preview(args: argparse.Namespace) -> None:
    cfg = _config_from_args(args)
    pairs = load_pairs(args.input, nrows=args.samples)
    rows = preview_pairs(pairs, cfg, limit=args.samples)
    texts = dict(zip(pairs[detect_key(pairs)], zip(pairs["question1"], pairs["question2"])))

    for row in rows:
        q1, q2 = texts[row.id]
        cos = "undefined" if row.cos_sim is None else f"{row.cos_sim:.4f}"
        flags = [k for k, v in row.keyword_flags.items() if v]
        print(f"\nPair {row.id}:")
        print(f"  q1: {q1[:120]}")
        print(f"      -> {normalize(q1, cfg.stopwords)}")
        print(f"  q2: {q2[:120]}")
        print(f"      -> {normalize(q2, cfg.stopwords)}")
        print(f"  cos_sim={cos}  char_diff={row.char_diff}  "
              f"wordcounts={row.q1_wordcount}/{row.q2_wordcount}  keywords={flags or '-'}")
    if not rows:
        print("No pairs found!")


# -----------------------------------------------------------
# Entrypoint
# -----------------------------------------------------------


def main(argv: List[str] | None = None) -> None:  # noqa: D401 – simple
    parser = argparse.ArgumentParser(
        prog="questiondup",
        description="Duplicate-question feature pipeline and classifier",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(required=True, dest="cmd")

    # run
    p_run = sub.add_parser("run", help="Run the full pipeline from a YAML configuration")
    p_run.add_argument("config", type=Path, help="Path to YAML configuration file")
    p_run.add_argument("--out", type=Path, help="Override output directory")
    p_run.add_argument("--save-features", action="store_true",
                       help="Also write train/test feature matrices as Parquet")
    p_run.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    p_run.set_defaults(func=_cmd_run)

    # features
    p_feat = sub.add_parser("features", help="Write the feature matrix of one dataset")
    p_feat.add_argument("input", type=Path, help="Question-pair CSV (id or test_id keyed)")
    p_feat.add_argument("-o", "--output", type=Path, required=True,
                        help="Output file (.csv, .parquet or .jsonl)")
    p_feat.add_argument("--keep-label", action="store_true",
                        help=f"Copy '{LABEL_COLUMN}' into the output when present")
    p_feat.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    _add_feature_options(p_feat)
    p_feat.set_defaults(func=_cmd_features)

    # train
    p_train = sub.add_parser("train", help="Fit the classifier on a labelled CSV")
    p_train.add_argument("input", type=Path, help="Training CSV with is_duplicate")
    p_train.add_argument("--model", type=Path, default=Path("results/model.joblib"))
    p_train.add_argument("--classifier", choices=CLASSIFIERS)
    p_train.add_argument("--validate", action="store_true",
                         help="Report hold-out metrics before the final fit")
    p_train.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    _add_feature_options(p_train)
    p_train.set_defaults(func=_cmd_train)

    # predict
    p_pred = sub.add_parser("predict", help="Write a submission for a test CSV")
    p_pred.add_argument("input", type=Path, help="Test CSV keyed by test_id")
    p_pred.add_argument("--model", type=Path, default=Path("results/model.joblib"))
    p_pred.add_argument("-o", "--output", type=Path, default=Path("results/submission.csv"))
    p_pred.add_argument("--processes", type=int, help="Worker processes for similarity scoring")
    p_pred.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    p_pred.set_defaults(func=_cmd_predict)

    # preview
    p_prev = sub.add_parser("preview", help="Show tokens and features for a few pairs")
    p_prev.add_argument("input", type=Path, help="Question-pair CSV")
    p_prev.add_argument("--samples", type=int, default=5,
                        help="Number of pairs to show (default: 5)")
    _add_feature_options(p_prev)
    p_prev.set_defaults(func=_cmd_preview)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO if not getattr(args, "quiet", False) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":  # pragma: no cover
    main()
