"""
Differential-expression report.

Welch test per feature -> BH q-values -> z-scores and local fdr, combined
into one per-feature table in the original column order. Computed on the full
matrix, independent of any train/test split.
"""

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from ktx_ml.config.schema import LocalFdrConfig, TestingConfig
from ktx_ml.stats.fdr import DiscoverySummary, bh_adjust, count_discoveries
from ktx_ml.stats.hypothesis import records_to_frame, welch_tests
from ktx_ml.stats.local_fdr import LocalFdrResult, estimate_local_fdr, t_to_z

logger = logging.getLogger(__name__)

DE_COLUMNS = ["feature", "p_value", "t_statistic", "df", "q_value", "z_score", "local_fdr"]


@dataclass(frozen=True, eq=False)
class DifferentialResult:
    """Per-feature table plus the BH and local-fdr summaries."""

    table: pd.DataFrame
    discoveries: DiscoverySummary
    local_fdr: LocalFdrResult

    def summary(self) -> dict[str, Any]:
        return {
            **self.discoveries.to_dict(),
            "n_features": int(len(self.table)),
            "local_fdr": self.local_fdr.summary(),
        }

    def significant(self) -> pd.DataFrame:
        """Rows with q < alpha, smallest q first."""
        hits = self.table[self.table["q_value"] < self.discoveries.alpha]
        return hits.sort_values("q_value", kind="stable")


def differential_expression(
    X: np.ndarray,
    y: np.ndarray,
    feature_names: list[str] | None = None,
    testing: TestingConfig | None = None,
    local_fdr: LocalFdrConfig | None = None,
    n_jobs: int = 1,
) -> DifferentialResult:
    """
    Run the full per-feature inference stage.

    Args:
        X: Feature matrix (n_samples x n_features)
        y: Binary labels
        feature_names: Column names (default f0, f1, ...)
        testing: Welch/BH settings
        local_fdr: Local fdr settings
        n_jobs: joblib workers for the Welch blocks

    Returns:
        DifferentialResult with columns DE_COLUMNS
    """
    testing = testing or TestingConfig()
    local_fdr = local_fdr or LocalFdrConfig()

    table = records_to_frame(
        welch_tests(X, y, feature_names, block_size=testing.block_size, n_jobs=n_jobs)
    )
    table["q_value"] = bh_adjust(table["p_value"].to_numpy())
    discoveries = count_discoveries(table["q_value"].to_numpy(), testing.fdr_alpha)

    z = t_to_z(table["t_statistic"].to_numpy(), table["df"].to_numpy())
    lfdr = estimate_local_fdr(
        z,
        null=local_fdr.null,
        n_bins=local_fdr.n_bins,
        spline_df=local_fdr.spline_df,
        central_quantile=local_fdr.central_quantile,
        fdr_cutoff=local_fdr.fdr_cutoff,
    )
    table["z_score"] = lfdr.z
    table["local_fdr"] = lfdr.local_fdr

    return DifferentialResult(table=table[DE_COLUMNS], discoveries=discoveries, local_fdr=lfdr)
