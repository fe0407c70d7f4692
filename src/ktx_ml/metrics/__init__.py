"""Metrics module for model evaluation."""

from ktx_ml.metrics.discrimination import (
    CURVE_COLUMNS,
    auc_cost,
    confusion_counts,
    curve_table,
    cutoff_grid,
    grid_auc,
    pr_points,
    roc_points,
    trapezoid_area,
)
from ktx_ml.metrics.thresholds import (
    ConfusionMatrix,
    ThresholdResult,
    binary_metrics_at_threshold,
    threshold_max_f1,
)

__all__ = [
    # Grid AUC estimator
    "CURVE_COLUMNS",
    "auc_cost",
    "confusion_counts",
    "curve_table",
    "cutoff_grid",
    "grid_auc",
    "pr_points",
    "roc_points",
    "trapezoid_area",
    # Threshold selection
    "ConfusionMatrix",
    "ThresholdResult",
    "binary_metrics_at_threshold",
    "threshold_max_f1",
]
