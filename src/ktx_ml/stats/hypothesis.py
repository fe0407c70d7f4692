"""
Per-feature two-sample testing.

Welch's unequal-variance t-test for every feature (gene), comparing the
positive class (rejection) against the negative class. Features are processed
in independent column blocks, optionally in parallel with joblib; each block
reads its own column slice and returns its own records, so results never
depend on scheduling.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from scipy import stats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WelchRecord:
    """Welch test result for one feature (NaN fields when the test is undefined)."""

    feature: str
    p_value: float
    t_statistic: float
    df: float


def _welch_block(X_block: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, ...]:
    """
    Welch statistics for every column of a block.

    Returns:
        (t_statistic, df, p_value) arrays of length X_block.shape[1]
    """
    x1 = X_block[y == 1]
    x0 = X_block[y == 0]

    n1 = np.sum(np.isfinite(x1), axis=0)
    n0 = np.sum(np.isfinite(x0), axis=0)
    ok = (n1 >= 2) & (n0 >= 2)

    t_stat = np.full(X_block.shape[1], np.nan)
    dof = np.full(X_block.shape[1], np.nan)
    p_val = np.full(X_block.shape[1], np.nan)
    if not ok.any():
        return t_stat, dof, p_val

    with np.errstate(divide="ignore", invalid="ignore"):
        res = stats.ttest_ind(
            x1[:, ok], x0[:, ok], axis=0, equal_var=False, nan_policy="omit"
        )
    t_ok = np.asarray(res.statistic, dtype=float)
    # both classes constant: zero standard error, no usable statistic
    defined = np.isfinite(t_ok)

    t_stat[ok] = np.where(defined, t_ok, np.nan)
    dof[ok] = np.where(defined, np.asarray(res.df, dtype=float), np.nan)
    p_val[ok] = np.where(defined, np.asarray(res.pvalue, dtype=float), np.nan)
    return t_stat, dof, p_val


def welch_test(x: np.ndarray, y: np.ndarray, feature: str = "feature") -> WelchRecord:
    """
    Welch's t-test for a single feature.

    Args:
        x: Feature values (n_samples,)
        y: Binary labels (0/1)
        feature: Feature name carried into the record

    Returns:
        WelchRecord with t = (mean_1 - mean_0) / sqrt(s1²/n1 + s0²/n0)
        and Welch-Satterthwaite degrees of freedom
    """
    t_stat, dof, p_val = _welch_block(np.asarray(x, dtype=float)[:, None], np.asarray(y))
    return WelchRecord(
        feature=feature, p_value=float(p_val[0]), t_statistic=float(t_stat[0]), df=float(dof[0])
    )


def welch_tests(
    X: np.ndarray,
    y: np.ndarray,
    feature_names: list[str] | None = None,
    block_size: int = 2000,
    n_jobs: int = 1,
) -> list[WelchRecord]:
    """
    Run Welch's t-test for every feature.

    Args:
        X: Feature matrix (n_samples x n_features)
        y: Binary labels (0=negative, 1=positive)
        feature_names: Names in column order (default: "f0", "f1", ...)
        block_size: Columns per work unit
        n_jobs: joblib worker count (1 = sequential)

    Returns:
        One WelchRecord per feature, in column order

    Raises:
        ValueError: If shapes disagree or y is not binary with both classes
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y).astype(int)
    if X.ndim != 2 or X.shape[0] != y.shape[0]:
        raise ValueError(f"X must be (n_samples, n_features) matching y, got {X.shape} and {y.shape}")
    if set(np.unique(y)) != {0, 1}:
        raise ValueError("Welch tests require both classes (0 and 1) in y")

    n_features = X.shape[1]
    if feature_names is None:
        feature_names = [f"f{j}" for j in range(n_features)]
    if len(feature_names) != n_features:
        raise ValueError(f"{len(feature_names)} feature names for {n_features} columns")

    blocks = [slice(s, min(s + block_size, n_features)) for s in range(0, n_features, block_size)]
    outputs = Parallel(n_jobs=n_jobs)(delayed(_welch_block)(X[:, blk], y) for blk in blocks)

    t_stat = np.concatenate([o[0] for o in outputs]) if outputs else np.array([])
    dof = np.concatenate([o[1] for o in outputs]) if outputs else np.array([])
    p_val = np.concatenate([o[2] for o in outputs]) if outputs else np.array([])

    n_undefined = int(np.isnan(p_val).sum())
    if n_undefined:
        logger.warning(
            f"Welch test undefined for {n_undefined}/{n_features} features "
            "(constant values or fewer than 2 observations per class)"
        )
    logger.info(
        f"Welch tests: {n_features:,} features (n1={int(y.sum())}, n0={int((y == 0).sum())}, "
        f"blocks={len(blocks)}, n_jobs={n_jobs})"
    )

    return [
        WelchRecord(feature=name, p_value=float(p), t_statistic=float(t), df=float(d))
        for name, p, t, d in zip(feature_names, p_val, t_stat, dof, strict=True)
    ]


def records_to_frame(records: list[WelchRecord]) -> pd.DataFrame:
    """Per-feature table with columns feature, p_value, t_statistic, df."""
    return pd.DataFrame(
        [(r.feature, r.p_value, r.t_statistic, r.df) for r in records],
        columns=["feature", "p_value", "t_statistic", "df"],
    )
