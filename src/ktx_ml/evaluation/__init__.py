"""Report tables and artifact writers for the two pipeline stages."""

from ktx_ml.evaluation.differential import DE_COLUMNS, DifferentialResult, differential_expression
from ktx_ml.evaluation.holdout import (
    MODEL_SUMMARY_COLUMNS,
    ClassificationResult,
    classify,
    train_candidates,
)
from ktx_ml.evaluation.reports import OutputDirectories, ResultsWriter

__all__ = [
    "DE_COLUMNS",
    "DifferentialResult",
    "differential_expression",
    "MODEL_SUMMARY_COLUMNS",
    "ClassificationResult",
    "classify",
    "train_candidates",
    "OutputDirectories",
    "ResultsWriter",
]
