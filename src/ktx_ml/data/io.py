"""
Data I/O and the sample-alignment precondition.

Reads the expression matrix (samples x genes, one identifier column) and the
rejection-status table, then verifies that both describe exactly the same
samples. Alignment failures are fatal: no stage may run on misaligned data.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from ktx_ml.data.schema import ID_COL, TARGET_COL, VALID_LABELS

logger = logging.getLogger(__name__)


class AlignmentError(ValueError):
    """Sample identifiers of the expression matrix and label table disagree."""


@dataclass(frozen=True)
class ExpressionData:
    """Aligned, read-only feature matrix and label vector.

    Attributes:
        X: Feature matrix (n_samples x n_features), float64, non-writeable
        y: Binary labels (n_samples,), int, non-writeable
        sample_ids: Numeric sample identifiers in row order
        feature_names: Gene/feature names in column order
    """

    X: np.ndarray
    y: np.ndarray
    sample_ids: np.ndarray
    feature_names: list[str]

    @property
    def n_samples(self) -> int:
        return int(self.X.shape[0])

    @property
    def n_features(self) -> int:
        return int(self.X.shape[1])


def _read_table(filepath: str | Path) -> pd.DataFrame:
    """Read CSV/TSV/Parquet based on file extension."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    suffix = filepath.suffix.lower()
    if suffix in (".parquet", ".pq"):
        df = pd.read_parquet(filepath)
    elif suffix in (".tsv", ".txt"):
        df = pd.read_csv(filepath, sep="\t", low_memory=False)
    else:
        df = pd.read_csv(filepath, low_memory=False)

    logger.info(f"Loaded {filepath.name}: {len(df):,} rows × {len(df.columns):,} columns")
    return df


def read_expression_file(filepath: str | Path, id_col: str = ID_COL) -> pd.DataFrame:
    """
    Read the expression matrix (one row per sample).

    Args:
        filepath: CSV, TSV or Parquet file with an identifier column
        id_col: Name of the sample identifier column

    Returns:
        DataFrame with the identifier column and numeric feature columns

    Raises:
        ValueError: If the identifier column is missing or features are non-numeric
    """
    df = _read_table(filepath)
    if id_col not in df.columns:
        raise ValueError(f"Expression file is missing identifier column '{id_col}'")

    feature_cols = [c for c in df.columns if c != id_col]
    if not feature_cols:
        raise ValueError("Expression file has no feature columns")

    non_numeric = [c for c in feature_cols if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        preview = ", ".join(map(str, non_numeric[:5]))
        raise ValueError(f"{len(non_numeric)} non-numeric feature columns (e.g. {preview})")

    return df


def read_labels_file(
    filepath: str | Path, id_col: str = ID_COL, target_col: str = TARGET_COL
) -> pd.DataFrame:
    """
    Read the rejection-status table.

    Returns:
        DataFrame with exactly the identifier and target columns
    """
    df = _read_table(filepath)
    missing = [c for c in (id_col, target_col) if c not in df.columns]
    if missing:
        raise ValueError(f"Label file is missing required columns: {missing}")
    return df[[id_col, target_col]]


def _numeric_ids(ids: pd.Series, source: str) -> np.ndarray:
    numeric = pd.to_numeric(ids, errors="coerce")
    if numeric.isna().any():
        bad = ids[numeric.isna()].head(3).tolist()
        raise AlignmentError(f"{source} has non-numeric sample identifiers, e.g. {bad}")
    if numeric.duplicated().any():
        dup = numeric[numeric.duplicated()].head(3).tolist()
        raise AlignmentError(f"{source} has duplicated sample identifiers, e.g. {dup}")
    return numeric.to_numpy()


def _validate_labels(labels: pd.Series) -> np.ndarray:
    values = pd.to_numeric(labels, errors="coerce")
    if values.isna().any():
        raise ValueError(f"Label column '{labels.name}' contains missing or non-numeric values")
    invalid = sorted(set(values.unique()) - set(VALID_LABELS))
    if invalid:
        raise ValueError(f"Labels must be in {list(VALID_LABELS)}, found {invalid}")
    return values.to_numpy(dtype=int)


def align_samples(
    expression_df: pd.DataFrame,
    labels_df: pd.DataFrame,
    id_col: str = ID_COL,
    target_col: str = TARGET_COL,
) -> ExpressionData:
    """
    Sort both tables by numeric sample identifier and verify row-for-row equality.

    Args:
        expression_df: Expression table with id_col and feature columns
        labels_df: Label table with id_col and target_col
        id_col: Sample identifier column
        target_col: Binary label column

    Returns:
        ExpressionData with read-only arrays in sorted identifier order

    Raises:
        AlignmentError: If identifiers are non-numeric, duplicated, or differ
            between the two tables after sorting
        ValueError: If labels are not binary 0/1
    """
    expr_ids = _numeric_ids(expression_df[id_col], "Expression table")
    label_ids = _numeric_ids(labels_df[id_col], "Label table")

    if len(expr_ids) != len(label_ids):
        raise AlignmentError(
            f"Sample count mismatch: {len(expr_ids)} expression rows vs "
            f"{len(label_ids)} label rows"
        )

    expr_order = np.argsort(expr_ids, kind="stable")
    label_order = np.argsort(label_ids, kind="stable")
    expr_sorted = expr_ids[expr_order]
    label_sorted = label_ids[label_order]

    mismatch = np.flatnonzero(expr_sorted != label_sorted)
    if mismatch.size > 0:
        i = int(mismatch[0])
        raise AlignmentError(
            f"Sample identifiers differ after sorting at {mismatch.size} positions "
            f"(first at row {i}: expression={expr_sorted[i]}, labels={label_sorted[i]})"
        )

    feature_names = [str(c) for c in expression_df.columns if c != id_col]
    X = expression_df.iloc[expr_order][
        [c for c in expression_df.columns if c != id_col]
    ].to_numpy(dtype=float, copy=True)
    y = _validate_labels(labels_df[target_col].iloc[label_order])

    X.setflags(write=False)
    y.setflags(write=False)
    ids = np.array(expr_sorted, copy=True)
    ids.setflags(write=False)

    n_pos = int(y.sum())
    logger.info(
        f"Aligned {len(y):,} samples × {X.shape[1]:,} features "
        f"(positives={n_pos}, negatives={len(y) - n_pos})"
    )
    if np.isnan(X).any():
        logger.warning(f"Feature matrix contains {int(np.isnan(X).sum()):,} missing values")

    return ExpressionData(X=X, y=y, sample_ids=ids, feature_names=feature_names)


def load_expression_data(
    expression_file: str | Path,
    labels_file: str | Path,
    id_col: str = ID_COL,
    target_col: str = TARGET_COL,
) -> ExpressionData:
    """Read both input tables and return the aligned, read-only data."""
    expression_df = read_expression_file(expression_file, id_col=id_col)
    labels_df = read_labels_file(labels_file, id_col=id_col, target_col=target_col)
    return align_samples(expression_df, labels_df, id_col=id_col, target_col=target_col)
