"""Logistic-regression builders.

References:
- scikit-learn 1.8+ deprecates penalty= in LogisticRegression (use l1_ratio= / C=inf)
"""

import re

import numpy as np
import sklearn
from sklearn.linear_model import LogisticRegression


def _sklearn_version_tuple(ver: str) -> tuple[int, int, int]:
    """Parse sklearn version string (robust to rc/dev suffixes)."""
    nums = re.findall(r"\d+", ver)
    nums = (nums + ["0", "0", "0"])[:3]
    return (int(nums[0]), int(nums[1]), int(nums[2]))


SKLEARN_VER = _sklearn_version_tuple(getattr(sklearn, "__version__", "0.0.0"))


def build_penalized_logistic(
    C: float,
    l1_ratio: float,
    max_iter: int = 5000,
    tol: float = 1e-4,
    random_state: int | None = 0,
) -> LogisticRegression:
    """Elastic-net logistic regression (l1_ratio=1 Lasso, l1_ratio=0 Ridge).

    Args:
        C: Inverse regularization strength, C = 1 / (n * lambda)
        l1_ratio: Mixing parameter alpha
        max_iter: Maximum saga iterations
        tol: Convergence tolerance
        random_state: Seed for saga's sample shuffling

    Returns:
        Configured LogisticRegression estimator
    """
    common = {
        "solver": "saga",
        "C": float(C),
        "l1_ratio": float(l1_ratio),
        "max_iter": int(max_iter),
        "tol": float(tol),
        "random_state": random_state,
    }
    if SKLEARN_VER >= (1, 8, 0):
        return LogisticRegression(**common)
    return LogisticRegression(penalty="elasticnet", **common)


def build_unpenalized_logistic(max_iter: int = 1000) -> LogisticRegression:
    """Plain maximum-likelihood logistic regression."""
    if SKLEARN_VER >= (1, 8, 0):
        return LogisticRegression(C=np.inf, solver="lbfgs", max_iter=int(max_iter))
    return LogisticRegression(penalty=None, solver="lbfgs", max_iter=int(max_iter))
