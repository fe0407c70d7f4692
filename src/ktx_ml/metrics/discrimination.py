"""
Grid-based discrimination metrics for binary classifiers.

The AUC used throughout the pipeline is a discretized empirical estimate:
scores are binarized at the fixed cutoffs c = i / 500 (i = 0..500, inclusive),
a confusion matrix is formed at each cutoff, and the resulting ROC points are
integrated with the trapezoidal rule. It is intentionally not the rank-based
AUC, so results depend on the exact grid.

Cutoff rows where a ratio is undefined (no actual positives, no actual
negatives, or no predicted positives for precision) carry NaN and are left out
of integration and argmax operations.
"""

import logging

import numpy as np
import pandas as pd

from ktx_ml.config.defaults import N_CUTOFFS

logger = logging.getLogger(__name__)

CURVE_COLUMNS = [
    "cutoff",
    "tp",
    "fp",
    "tn",
    "fn",
    "tpr",
    "fpr",
    "specificity",
    "precision",
    "recall",
    "f1",
]


def cutoff_grid(n_cutoffs: int = N_CUTOFFS) -> np.ndarray:
    """Ascending cutoffs i / n_cutoffs for i = 0..n_cutoffs (n_cutoffs + 1 points)."""
    return np.arange(n_cutoffs + 1) / n_cutoffs


def _safe_ratio(num: np.ndarray, den: np.ndarray) -> np.ndarray:
    out = np.full(num.shape, np.nan, dtype=float)
    np.divide(num, den, out=out, where=den > 0)
    return out


def confusion_counts(
    y_true: np.ndarray, scores: np.ndarray, cutoffs: np.ndarray, inclusive: bool = False
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Confusion counts at every cutoff.

    Prediction is ``score > cutoff``, or ``score >= cutoff`` when ``inclusive``.

    Returns:
        (tp, fp, tn, fn) integer arrays aligned with ``cutoffs``
    """
    y_true = np.asarray(y_true).astype(int).ravel()
    scores = np.asarray(scores, dtype=float).ravel()
    if y_true.shape != scores.shape:
        raise ValueError(
            f"y_true and scores must have equal length, got {y_true.size} and {scores.size}"
        )

    grid = np.asarray(cutoffs, dtype=float)[:, None]
    predicted = scores[None, :] >= grid if inclusive else scores[None, :] > grid
    actual = (y_true == 1)[None, :]

    tp = np.sum(predicted & actual, axis=1)
    fp = np.sum(predicted & ~actual, axis=1)
    fn = np.sum(~predicted & actual, axis=1)
    tn = np.sum(~predicted & ~actual, axis=1)
    return tp, fp, tn, fn


def curve_table(
    y_true: np.ndarray, scores: np.ndarray, n_cutoffs: int = N_CUTOFFS, inclusive: bool = False
) -> pd.DataFrame:
    """
    Full per-cutoff table over the fixed grid (ascending cutoff order).

    Args:
        y_true: Binary labels (0/1)
        scores: Continuous scores, expected in [0, 1]
        n_cutoffs: Grid resolution (grid has n_cutoffs + 1 rows)
        inclusive: Count ``score == cutoff`` as a predicted positive

    Returns:
        DataFrame with columns CURVE_COLUMNS; undefined ratios are NaN
    """
    cutoffs = cutoff_grid(n_cutoffs)
    tp, fp, tn, fn = confusion_counts(y_true, scores, cutoffs, inclusive=inclusive)

    tpr = _safe_ratio(tp, tp + fn)
    specificity = _safe_ratio(tn, fp + tn)
    precision = _safe_ratio(tp, tp + fp)

    denom = precision + tpr
    f1 = np.full(cutoffs.shape, np.nan, dtype=float)
    valid = np.isfinite(denom)
    f1[valid] = 0.0
    np.divide(2.0 * precision * tpr, denom, out=f1, where=valid & (denom > 0))

    return pd.DataFrame(
        {
            "cutoff": cutoffs,
            "tp": tp,
            "fp": fp,
            "tn": tn,
            "fn": fn,
            "tpr": tpr,
            "fpr": 1.0 - specificity,
            "specificity": specificity,
            "precision": precision,
            "recall": tpr,
            "f1": f1,
        },
        columns=CURVE_COLUMNS,
    )


def roc_points(
    y_true: np.ndarray, scores: np.ndarray, n_cutoffs: int = N_CUTOFFS
) -> pd.DataFrame:
    """
    ROC points ordered by increasing false-positive rate.

    Traversing the grid from the highest to the lowest cutoff yields
    non-decreasing FPR; undefined points are dropped.

    Returns:
        DataFrame with columns cutoff, fpr, tpr
    """
    table = curve_table(y_true, scores, n_cutoffs).iloc[::-1]
    valid = table["fpr"].notna() & table["tpr"].notna()
    return table.loc[valid, ["cutoff", "fpr", "tpr"]].reset_index(drop=True)


def pr_points(
    y_true: np.ndarray, scores: np.ndarray, n_cutoffs: int = N_CUTOFFS
) -> pd.DataFrame:
    """
    Precision-recall points ordered by increasing recall (descending cutoff).

    Returns:
        DataFrame with columns cutoff, recall, precision
    """
    table = curve_table(y_true, scores, n_cutoffs).iloc[::-1]
    valid = table["recall"].notna() & table["precision"].notna()
    return table.loc[valid, ["cutoff", "recall", "precision"]].reset_index(drop=True)


def trapezoid_area(x: np.ndarray, y: np.ndarray) -> float:
    """Sum of (y[i] + y[i+1]) / 2 * |x[i+1] - x[i]| over consecutive points."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size < 2:
        return np.nan
    return float(np.sum((y[:-1] + y[1:]) / 2.0 * np.abs(np.diff(x))))


def grid_auc(y_true: np.ndarray, scores: np.ndarray, n_cutoffs: int = N_CUTOFFS) -> float:
    """
    Approximate AUC from the fixed cutoff grid.

    Args:
        y_true: Binary labels (0/1)
        scores: Continuous scores, expected in [0, 1]
        n_cutoffs: Grid resolution (default 500 -> 501 cutoffs)

    Returns:
        AUC in [0, 1], or NaN when fewer than two ROC points are defined
        (e.g. only one class present in y_true)

    Examples:
        >>> grid_auc(np.array([0, 0, 1, 1]), np.array([0.1, 0.2, 0.8, 0.9]))
        1.0
    """
    points = roc_points(y_true, scores, n_cutoffs)
    if len(points) < 2:
        logger.debug("grid_auc undefined: fewer than two valid ROC points")
        return np.nan

    fpr = points["fpr"].to_numpy()
    tpr = points["tpr"].to_numpy()
    # Scores outside (0, 1) (e.g. probabilities that underflow to exactly 0)
    # never cross the grid ends; close the curve at (0, 0) and (1, 1).
    if fpr[0] > 0 or tpr[0] > 0:
        fpr, tpr = np.r_[0.0, fpr], np.r_[0.0, tpr]
    if fpr[-1] < 1 or tpr[-1] < 1:
        fpr, tpr = np.r_[fpr, 1.0], np.r_[tpr, 1.0]
    return trapezoid_area(fpr, tpr)


def auc_cost(y_true: np.ndarray, scores: np.ndarray) -> float:
    """Cross-validation cost ``1 - grid_auc``; lower is better (NaN if undefined)."""
    return 1.0 - grid_auc(y_true, scores)
