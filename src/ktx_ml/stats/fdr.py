"""
Multiple-testing correction.

Benjamini-Hochberg step-up adjustment via statsmodels. Undefined (NaN)
p-values are excluded from the family and receive NaN q-values.
"""

import logging
from dataclasses import dataclass

import numpy as np
from statsmodels.stats.multitest import multipletests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoverySummary:
    """Rejection count at an FDR level."""

    alpha: float
    n_tested: int
    n_significant: int
    expected_false_discoveries: float

    def to_dict(self) -> dict:
        return {
            "alpha": self.alpha,
            "n_tested": self.n_tested,
            "n_significant": self.n_significant,
            "expected_false_discoveries": self.expected_false_discoveries,
        }


def bh_adjust(p_values: np.ndarray) -> np.ndarray:
    """
    Benjamini-Hochberg adjusted p-values (q-values) in the original order.

    q_(i) = min_{j >= i} p_(j) * m / j over the ascending sort of the m finite
    p-values, capped at 1.

    Args:
        p_values: Unordered p-values (NaN allowed)

    Returns:
        q-values aligned with p_values (NaN where p is NaN)
    """
    p = np.asarray(p_values, dtype=float)
    q = np.full(p.shape, np.nan)
    ok = np.isfinite(p)
    if ok.any():
        _, q_ok, _, _ = multipletests(p[ok], method="fdr_bh")
        q[ok] = q_ok
    return q


def count_discoveries(q_values: np.ndarray, alpha: float = 0.05) -> DiscoverySummary:
    """
    Count features with q < alpha.

    The expected number of false discoveries among them is count * alpha.
    """
    q = np.asarray(q_values, dtype=float)
    ok = np.isfinite(q)
    n_sig = int(np.sum(q[ok] < alpha))
    summary = DiscoverySummary(
        alpha=float(alpha),
        n_tested=int(ok.sum()),
        n_significant=n_sig,
        expected_false_discoveries=float(n_sig * alpha),
    )
    logger.info(
        f"BH at FDR {alpha:g}: {n_sig}/{summary.n_tested} significant "
        f"(~{summary.expected_false_discoveries:.1f} expected false discoveries)"
    )
    return summary
