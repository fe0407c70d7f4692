"""
Principal component classifier (PCR).

The training split is centered and decomposed once, X_c = U D V^T. Candidate
ranks k = 1..K are compared by cross-validating an unpenalized logistic
regression on the first k score columns. New data is always projected with
the stored training mean and right singular vectors; the basis is never
refit on the data being scored.
"""

import logging
import warnings
from collections.abc import Sequence
from functools import partial

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression

from ktx_ml.config.schema import PCRConfig
from ktx_ml.models.cv import cross_validate, kfold_indices, path_frame, sweep_grid
from ktx_ml.models.registry import build_unpenalized_logistic
from ktx_ml.models.selection import CandidateModel
from ktx_ml.utils.random import make_rng

logger = logging.getLogger(__name__)


class PCRBasis:
    """Centered SVD basis with near-zero singular directions dropped."""

    def __init__(self, singular_tol: float = 1e-10):
        self.singular_tol = singular_tol

    def fit(self, X: np.ndarray) -> "PCRBasis":
        X = np.asarray(X, dtype=float)
        self.mean_ = X.mean(axis=0)
        _, d, vt = np.linalg.svd(X - self.mean_, full_matrices=False)
        if d.size == 0 or d[0] <= 0:
            raise ValueError("Training matrix has no variance; PCR basis is empty")

        keep = d > self.singular_tol * d[0]
        if not keep.all():
            logger.debug(f"Dropped {int((~keep).sum())} near-zero singular values")
        self.singular_values_ = d[keep]
        self.components_ = vt[keep]
        return self

    @property
    def n_components(self) -> int:
        return self.components_.shape[0]

    def _check_rank(self, rank: int | None) -> int:
        if rank is None:
            return self.n_components
        if not 1 <= rank <= self.n_components:
            raise ValueError(f"rank must be in [1, {self.n_components}], got {rank}")
        return int(rank)

    def transform(self, X: np.ndarray, rank: int | None = None) -> np.ndarray:
        """Scores Z = (X - mean) V_k."""
        k = self._check_rank(rank)
        return (np.asarray(X, dtype=float) - self.mean_) @ self.components_[:k].T

    def inverse_transform(self, Z: np.ndarray) -> np.ndarray:
        """Reconstruct X from the first Z.shape[1] scores."""
        Z = np.asarray(Z, dtype=float)
        k = self._check_rank(Z.shape[1])
        return Z @ self.components_[:k] + self.mean_


class PrincipalComponentClassifier:
    """Logistic regression on the first ``rank`` training principal components."""

    def __init__(self, basis: PCRBasis, rank: int, classifier: LogisticRegression):
        self.basis = basis
        self.rank = rank
        self.classifier = classifier

    @property
    def loadings(self) -> np.ndarray:
        """Right singular vectors truncated to rank (D x rank)."""
        return self.basis.components_[: self.rank].T

    @property
    def feature_weights(self) -> np.ndarray:
        """Component weights mapped back to per-feature weights (D,)."""
        return self.loadings @ self.classifier.coef_.ravel()

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        return self.classifier.predict_proba(self.basis.transform(X, self.rank))


def _fit_unpenalized(Z: np.ndarray, y: np.ndarray, max_iter: int) -> LogisticRegression:
    clf = build_unpenalized_logistic(max_iter=max_iter)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", ConvergenceWarning)
        clf.fit(Z, y)
    return clf


def _predict_proba(model: LogisticRegression, Z: np.ndarray) -> np.ndarray:
    return model.predict_proba(Z)[:, 1]


def train_pcr(
    X: np.ndarray,
    y: np.ndarray,
    config: PCRConfig | None = None,
    folds: Sequence[np.ndarray] | None = None,
    n_folds: int = 10,
    seed: int | None = 0,
    n_jobs: int = 1,
) -> CandidateModel:
    """
    Select the retained rank by cross-validated grid AUC.

    Args:
        X: Training features (N x D)
        y: Training labels (N,)
        config: Rank window and SVD tolerance
        folds: Fixed held-out index arrays (None = draw n_folds from seed)
        n_folds: Fold count when folds is None
        seed: Seed for fold assignment
        n_jobs: joblib workers across folds

    Returns:
        CandidateModel with hyperparameter "rank"; rank ties resolve to the
        smallest rank. When the optimum is the largest searched rank and more
        components exist, a UserWarning is emitted and at_search_boundary is set.
    """
    config = config or PCRConfig()
    X = np.asarray(X, dtype=float)
    y = np.asarray(y).astype(int)
    if folds is None:
        folds = kfold_indices(len(y), n_folds, make_rng(seed))

    basis = PCRBasis(config.singular_tol).fit(X)
    Z = basis.transform(X)
    max_rank = min(config.max_rank, basis.n_components)
    ranks = list(range(1, max_rank + 1))
    logger.info(
        f"pcr: {basis.n_components} usable components, searching ranks 1..{max_rank}, "
        f"{len(folds)} folds"
    )

    def evaluate(rank: int):
        return cross_validate(
            Z[:, :rank],
            y,
            fit_fn=partial(_fit_unpenalized, max_iter=config.max_iter),
            predict_fn=_predict_proba,
            folds=folds,
            n_jobs=n_jobs,
        )

    results, best = sweep_grid(ranks, evaluate)
    best_rank = ranks[best]

    at_boundary = best_rank == max_rank and max_rank < basis.n_components
    if at_boundary:
        msg = (
            f"PCR optimum at the upper edge of the search window (rank {best_rank}); "
            f"the true optimum may lie above pcr.max_rank={config.max_rank}"
        )
        warnings.warn(msg, UserWarning, stacklevel=2)
        logger.warning(msg)

    clf = _fit_unpenalized(Z[:, :best_rank], y, config.max_iter)
    estimator = PrincipalComponentClassifier(basis, best_rank, clf)
    logger.info(f"pcr: rank={best_rank}, CV AUC={results[best].cv_auc:.4f}")

    return CandidateModel(
        kind="pcr",
        hyperparameter_name="rank",
        hyperparameter=best_rank,
        estimator=estimator,
        cv_auc=results[best].cv_auc,
        n_effective=best_rank,
        coefficients=pd.Series(
            clf.coef_.ravel(), index=[f"PC{k + 1}" for k in range(best_rank)]
        ),
        cv_path=path_frame("rank", ranks, results),
        at_search_boundary=at_boundary,
    )
