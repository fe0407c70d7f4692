"""Decision-cutoff selection for a fitted classifier.

Sweeps the same cutoff grid as the AUC estimator and picks the cutoff with
maximal F1, resolving ties toward the lowest cutoff. An operating cutoff
classifies ``score >= cutoff`` as positive.
"""

import logging
from dataclasses import asdict, dataclass

import numpy as np

from ktx_ml.config.defaults import N_CUTOFFS
from ktx_ml.metrics.discrimination import confusion_counts, curve_table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfusionMatrix:
    """2x2 confusion counts at a fixed cutoff."""

    tp: int
    fp: int
    tn: int
    fn: int

    def as_array(self) -> np.ndarray:
        """[[tn, fp], [fn, tp]] (rows = truth, columns = prediction)."""
        return np.array([[self.tn, self.fp], [self.fn, self.tp]], dtype=int)

    def to_dict(self) -> dict[str, int]:
        return {k: int(v) for k, v in asdict(self).items()}


@dataclass(frozen=True)
class ThresholdResult:
    """F1-optimal operating point."""

    cutoff: float
    f1: float
    precision: float
    recall: float
    confusion: ConfusionMatrix

    def to_dict(self) -> dict:
        return {
            "cutoff": float(self.cutoff),
            "f1": float(self.f1),
            "precision": float(self.precision),
            "recall": float(self.recall),
            "confusion_matrix": self.confusion.to_dict(),
        }


def binary_metrics_at_threshold(
    y_true: np.ndarray, scores: np.ndarray, cutoff: float
) -> ConfusionMatrix:
    """Confusion matrix for ``score >= cutoff``."""
    tp, fp, tn, fn = confusion_counts(
        y_true, scores, np.array([cutoff], dtype=float), inclusive=True
    )
    return ConfusionMatrix(tp=int(tp[0]), fp=int(fp[0]), tn=int(tn[0]), fn=int(fn[0]))


def threshold_max_f1(
    y_true: np.ndarray, scores: np.ndarray, n_cutoffs: int = N_CUTOFFS
) -> ThresholdResult:
    """Find the grid cutoff that maximizes F1.

    Args:
        y_true: True binary labels (0/1)
        scores: Predicted probabilities [0, 1]
        n_cutoffs: Grid resolution (same grid as grid_auc)

    Returns:
        ThresholdResult with the lowest F1-maximizing cutoff and its confusion matrix

    Notes:
        - Cutoffs with no predicted positives (undefined precision) are skipped
        - Falls back to 0.5 (F1 = NaN) if F1 is undefined at every cutoff
    """
    table = curve_table(y_true, scores, n_cutoffs, inclusive=True)
    f1 = table["f1"].to_numpy()

    if not np.isfinite(f1).any():
        logger.warning("F1 undefined at every cutoff (single class or empty input); using 0.5")
        return ThresholdResult(
            cutoff=0.5,
            f1=np.nan,
            precision=np.nan,
            recall=np.nan,
            confusion=binary_metrics_at_threshold(y_true, scores, 0.5),
        )

    # nanargmax returns the first maximum; the table is in ascending cutoff order
    i = int(np.nanargmax(f1))
    row = table.iloc[i]
    return ThresholdResult(
        cutoff=float(row["cutoff"]),
        f1=float(row["f1"]),
        precision=float(row["precision"]),
        recall=float(row["recall"]),
        confusion=ConfusionMatrix(
            tp=int(row["tp"]), fp=int(row["fp"]), tn=int(row["tn"]), fn=int(row["fn"])
        ),
    )
