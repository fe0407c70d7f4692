"""Data loading, alignment and splitting."""

from ktx_ml.data.io import (
    AlignmentError,
    ExpressionData,
    align_samples,
    load_expression_data,
    read_expression_file,
    read_labels_file,
)
from ktx_ml.data.schema import ID_COL, TARGET_COL
from ktx_ml.data.splits import Split, make_train_test_split

__all__ = [
    "ID_COL",
    "TARGET_COL",
    "AlignmentError",
    "ExpressionData",
    "align_samples",
    "load_expression_data",
    "read_expression_file",
    "read_labels_file",
    "Split",
    "make_train_test_split",
]
