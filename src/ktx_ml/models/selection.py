"""
Candidate models and held-out model selection.

A CandidateModel is what each trainer returns: the refit estimator, its
selected hyperparameter, cross-validated AUC, and effective complexity.
select_model scores every candidate on the same test split and ranks them by
(test AUC descending, effective parameters ascending, kind ascending), so the
outcome never depends on the order candidates are passed in.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np
import pandas as pd

from ktx_ml.metrics.discrimination import grid_auc

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CandidateModel:
    """One fitted classifier competing in model selection.

    Attributes:
        kind: Model family ("lasso", "ridge", "pcr")
        hyperparameter_name: "lambda" or "rank"
        hyperparameter: Selected penalty strength or retained rank
        estimator: Fitted object exposing predict_proba(X)
        cv_auc: Cross-validated AUC at the selected hyperparameter
        n_effective: Non-zero coefficients (Lasso/Ridge) or retained rank (PCR)
        coefficients: Per-feature weights (Lasso/Ridge) or per-component weights (PCR)
        cv_path: Sweep table from models.cv.path_frame
        test_auc: Held-out AUC (NaN until scored)
        at_search_boundary: True when the optimum sits on the edge of the search window
    """

    kind: str
    hyperparameter_name: str
    hyperparameter: float
    estimator: Any
    cv_auc: float
    n_effective: int
    coefficients: pd.Series = field(default_factory=lambda: pd.Series(dtype=float))
    cv_path: pd.DataFrame = field(default_factory=pd.DataFrame)
    test_auc: float = np.nan
    at_search_boundary: bool = False

    @property
    def selected_features(self) -> list[str]:
        """Labels of the non-zero coefficients."""
        return [str(k) for k in self.coefficients.index[self.coefficients.to_numpy() != 0]]

    def predict_scores(self, X: np.ndarray) -> np.ndarray:
        """Positive-class probabilities for the rows of X."""
        return np.asarray(self.estimator.predict_proba(X))[:, 1]

    def with_test_auc(self, test_auc: float) -> "CandidateModel":
        return replace(self, test_auc=float(test_auc))

    def summary(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "hyperparameter_name": self.hyperparameter_name,
            "hyperparameter": float(self.hyperparameter),
            "n_effective": int(self.n_effective),
            "cv_auc": float(self.cv_auc),
            "test_auc": float(self.test_auc),
            "at_search_boundary": bool(self.at_search_boundary),
        }


def _rank_key(model: CandidateModel) -> tuple:
    auc = model.test_auc
    return (
        0 if np.isfinite(auc) else 1,
        -auc if np.isfinite(auc) else 0.0,
        model.n_effective,
        model.kind,
    )


def rank_candidates(candidates: Sequence[CandidateModel]) -> list[CandidateModel]:
    """Order already-scored candidates best first."""
    return sorted(candidates, key=_rank_key)


def score_candidates(
    candidates: Sequence[CandidateModel], X_test: np.ndarray, y_test: np.ndarray
) -> list[CandidateModel]:
    """Attach the held-out grid AUC to each candidate."""
    scored = []
    for model in candidates:
        auc = grid_auc(y_test, model.predict_scores(X_test))
        logger.info(f"  {model.kind:<6} test AUC = {auc:.4f} (n_effective={model.n_effective})")
        scored.append(model.with_test_auc(auc))
    return scored


def select_model(
    candidates: Sequence[CandidateModel], X_test: np.ndarray, y_test: np.ndarray
) -> tuple[CandidateModel, list[CandidateModel]]:
    """
    Score every candidate on the test split and pick the best.

    Args:
        candidates: Fitted candidates (any order)
        X_test: Held-out features
        y_test: Held-out labels

    Returns:
        (selected candidate, all scored candidates ranked best first)

    Raises:
        ValueError: If no candidates are given
    """
    if not candidates:
        raise ValueError("select_model needs at least one candidate")

    ranked = rank_candidates(score_candidates(candidates, X_test, y_test))
    best = ranked[0]
    if len(ranked) > 1 and ranked[1].test_auc == best.test_auc:
        logger.warning(
            f"Test AUC tie at {best.test_auc:.4f}; "
            f"{best.kind} chosen with {best.n_effective} effective parameters"
        )
    if not np.isfinite(best.test_auc):
        logger.warning("No candidate has a defined test AUC (single-class test split?)")
    logger.info(f"Selected model: {best.kind} ({best.hyperparameter_name}={best.hyperparameter:g})")
    return best, ranked
