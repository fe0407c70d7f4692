"""
K-fold cross-validation harness and hyperparameter sweeps.

Provides:
- Label-agnostic k-fold partitioning (fold sizes differ by at most one)
- Fold-wise fit / predict / cost evaluation with failure absorption
- Grid sweeps that select the hyperparameter with minimum mean cost

Cost convention: LOWER IS BETTER everywhere. The AUC-based cost is
``1 - grid_auc``; reported ``cv_auc`` values are ``1 - mean_cost``.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from ktx_ml.metrics.discrimination import auc_cost

logger = logging.getLogger(__name__)

# Numerical failures absorbed per fold; anything else is a bug and propagates
FOLD_ERRORS = (ValueError, FloatingPointError, np.linalg.LinAlgError)

FitFn = Callable[[np.ndarray, np.ndarray], Any]
PredictFn = Callable[[Any, np.ndarray], np.ndarray]
CostFn = Callable[[np.ndarray, np.ndarray], float]


@dataclass(frozen=True)
class CVResult:
    """Per-fold costs and their mean for one hyperparameter value."""

    fold_costs: np.ndarray
    mean_cost: float

    @property
    def n_valid(self) -> int:
        return int(np.isfinite(self.fold_costs).sum())

    @property
    def cv_auc(self) -> float:
        return 1.0 - self.mean_cost


def kfold_indices(
    n_samples: int, n_folds: int = 10, rng: np.random.Generator | None = None
) -> list[np.ndarray]:
    """
    Partition range(n_samples) into n_folds disjoint folds.

    Args:
        n_samples: Number of samples
        n_folds: Number of folds (2 <= n_folds <= n_samples)
        rng: Generator used to shuffle indices (None = no shuffling)

    Returns:
        List of sorted index arrays; sizes differ by at most 1 and their
        union is range(n_samples)

    Raises:
        ValueError: If n_folds is out of range
    """
    if n_folds < 2:
        raise ValueError(f"cv.folds must be >= 2 for cross-validation, got {n_folds}")
    if n_folds > n_samples:
        raise ValueError(f"Cannot split {n_samples} samples into {n_folds} folds")

    order = rng.permutation(n_samples) if rng is not None else np.arange(n_samples)
    return [np.sort(fold) for fold in np.array_split(order, n_folds)]


def _run_fold(
    k: int,
    X: np.ndarray,
    y: np.ndarray,
    test_idx: np.ndarray,
    fit_fn: FitFn,
    predict_fn: PredictFn,
    cost_fn: CostFn,
) -> float:
    train_mask = np.ones(len(y), dtype=bool)
    train_mask[test_idx] = False
    try:
        model = fit_fn(X[train_mask], y[train_mask])
        scores = predict_fn(model, X[test_idx])
        cost = float(cost_fn(y[test_idx], scores))
    except FOLD_ERRORS as e:
        logger.warning(f"Fold {k} failed ({type(e).__name__}: {e}); recorded as missing")
        return np.nan
    return cost


def cross_validate(
    X: np.ndarray,
    y: np.ndarray,
    fit_fn: FitFn,
    predict_fn: PredictFn,
    folds: Sequence[np.ndarray],
    cost_fn: CostFn = auc_cost,
    n_jobs: int = 1,
) -> CVResult:
    """
    Evaluate one fit/predict/cost triple over fixed folds.

    Args:
        X: Training features (N x D)
        y: Training labels (N,)
        fit_fn: fit_fn(X_train, y_train) -> model
        predict_fn: predict_fn(model, X_held_out) -> scores
        folds: Held-out index arrays (from kfold_indices)
        cost_fn: cost_fn(y_held_out, scores) -> float, lower is better
        n_jobs: joblib workers across folds (1 = sequential)

    Returns:
        CVResult; folds that fail or whose cost is undefined (e.g. a held-out
        fold with one class) are NaN and excluded from the mean
    """
    costs = Parallel(n_jobs=n_jobs)(
        delayed(_run_fold)(k, X, y, np.asarray(idx), fit_fn, predict_fn, cost_fn)
        for k, idx in enumerate(folds)
    )
    costs = np.asarray(costs, dtype=float)
    mean_cost = float(np.mean(costs[np.isfinite(costs)])) if np.isfinite(costs).any() else np.nan
    return CVResult(fold_costs=costs, mean_cost=mean_cost)


def select_best_index(results: Sequence[CVResult]) -> int:
    """
    Index of the minimum mean cost; NaN costs rank worst, ties go to the first.

    Raises:
        RuntimeError: If every grid point is missing
    """
    costs = np.array([r.mean_cost for r in results], dtype=float)
    if not np.isfinite(costs).any():
        raise RuntimeError("Every grid point failed cross-validation; no model can be selected")
    return int(np.argmin(np.where(np.isfinite(costs), costs, np.inf)))


def sweep_grid(
    grid: Sequence[Any],
    evaluate: Callable[[Any], CVResult],
) -> tuple[list[CVResult], int]:
    """
    Cross-validate every grid value and pick the best one.

    A grid value whose evaluation raises a numerical error is recorded as
    missing and the sweep continues.

    Returns:
        (results aligned with grid, index of the selected value)
    """
    results = []
    for value in grid:
        try:
            result = evaluate(value)
        except FOLD_ERRORS as e:
            logger.warning(f"Grid point {value!r} failed ({type(e).__name__}: {e}); skipped")
            result = CVResult(fold_costs=np.array([np.nan]), mean_cost=np.nan)
        results.append(result)

    n_missing = sum(1 for r in results if not np.isfinite(r.mean_cost))
    if n_missing:
        logger.warning(f"{n_missing}/{len(grid)} grid points have no valid CV cost")

    return results, select_best_index(results)


def path_frame(name: str, grid: Sequence[Any], results: Sequence[CVResult]) -> pd.DataFrame:
    """Tabulate a sweep: hyperparameter value, mean cost, CV AUC, valid folds."""
    return pd.DataFrame(
        {
            name: list(grid),
            "mean_cost": [r.mean_cost for r in results],
            "cv_auc": [r.cv_auc for r in results],
            "n_valid_folds": [r.n_valid for r in results],
        }
    )
