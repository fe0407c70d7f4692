"""
Classifier comparison on one frozen train/test split.

Lasso, Ridge and PCR are tuned on the train split with the same CV folds,
scored on the test split, and the winner's operating cutoff is chosen by F1.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from ktx_ml.config.context import RunContext
from ktx_ml.config.defaults import VALID_MODELS
from ktx_ml.data.io import ExpressionData
from ktx_ml.data.splits import Split, make_train_test_split
from ktx_ml.metrics.discrimination import curve_table
from ktx_ml.metrics.thresholds import ThresholdResult, threshold_max_f1
from ktx_ml.models.cv import kfold_indices
from ktx_ml.models.pcr import train_pcr
from ktx_ml.models.regularized import train_lasso, train_ridge
from ktx_ml.models.selection import CandidateModel, select_model
from ktx_ml.utils.logging import log_section
from ktx_ml.utils.random import CV_STREAM, SPLIT_STREAM

logger = logging.getLogger(__name__)

MODEL_SUMMARY_COLUMNS = [
    "kind",
    "hyperparameter_name",
    "hyperparameter",
    "n_effective",
    "cv_auc",
    "test_auc",
    "at_search_boundary",
    "selected",
]


@dataclass(frozen=True, eq=False)
class ClassificationResult:
    """Outcome of the model-selection stage."""

    split: Split
    candidates: list[CandidateModel]
    selected: CandidateModel
    threshold: ThresholdResult
    curves: pd.DataFrame

    def model_summary(self) -> pd.DataFrame:
        rows = [{**m.summary(), "selected": m is self.selected} for m in self.candidates]
        return pd.DataFrame(rows, columns=MODEL_SUMMARY_COLUMNS)

    @property
    def roc(self) -> pd.DataFrame:
        """(fpr, tpr) pairs of the selected model, increasing fpr."""
        valid = self.curves[["fpr", "tpr"]].notna().all(axis=1)
        return self.curves.loc[valid, ["cutoff", "fpr", "tpr"]].iloc[::-1].reset_index(drop=True)

    @property
    def pr(self) -> pd.DataFrame:
        """(recall, precision) pairs of the selected model, increasing recall."""
        valid = self.curves[["recall", "precision"]].notna().all(axis=1)
        return (
            self.curves.loc[valid, ["cutoff", "recall", "precision"]]
            .iloc[::-1]
            .reset_index(drop=True)
        )


def train_candidates(
    X_train: np.ndarray,
    y_train: np.ndarray,
    ctx: RunContext,
    feature_names: list[str] | None = None,
) -> list[CandidateModel]:
    """Tune Lasso, Ridge and PCR on identical CV folds."""
    cfg = ctx.config
    folds = kfold_indices(len(y_train), cfg.cv.folds, ctx.rng(CV_STREAM))
    shared = {"folds": folds, "seed": ctx.child_seed(CV_STREAM), "n_jobs": cfg.n_jobs}

    trainers = {
        "lasso": lambda: train_lasso(
            X_train, y_train, cfg.lasso, feature_names=feature_names, **shared
        ),
        "ridge": lambda: train_ridge(
            X_train, y_train, cfg.ridge, feature_names=feature_names, **shared
        ),
        "pcr": lambda: train_pcr(X_train, y_train, cfg.pcr, **shared),
    }
    return [trainers[kind]() for kind in VALID_MODELS]


def classify(
    data: ExpressionData, ctx: RunContext, split: Split | None = None
) -> ClassificationResult:
    """
    Split, train all candidates, select on the test split, and pick a cutoff.

    Args:
        data: Aligned expression data
        ctx: Run context (config + seed)
        split: Precomputed split (None = draw one from the context seed)

    Returns:
        ClassificationResult

    Raises:
        ValueError: If the training partition holds a single class
    """
    cfg = ctx.config
    if split is None:
        split = make_train_test_split(
            data.y,
            test_size=cfg.splits.test_size,
            seed=ctx.child_seed(SPLIT_STREAM),
            stratify=cfg.splits.stratify,
        )
    logger.info(f"Split: {split.n_train} train / {split.n_test} test")

    X_train, y_train = data.X[split.train_idx], data.y[split.train_idx]
    X_test, y_test = data.X[split.test_idx], data.y[split.test_idx]
    if np.unique(y_train).size < 2:
        raise ValueError("Training partition contains a single class; cannot fit classifiers")

    log_section(logger, "Training candidate models")
    candidates = train_candidates(X_train, y_train, ctx, data.feature_names)

    log_section(logger, "Held-out model selection")
    selected, ranked = select_model(candidates, X_test, y_test)

    scores = selected.predict_scores(X_test)
    threshold = threshold_max_f1(y_test, scores)
    logger.info(
        f"F1-optimal cutoff={threshold.cutoff:.3f} (F1={threshold.f1:.3f}, "
        f"confusion={threshold.confusion.to_dict()})"
    )

    return ClassificationResult(
        split=split,
        candidates=ranked,
        selected=selected,
        threshold=threshold,
        curves=curve_table(y_test, scores),
    )
