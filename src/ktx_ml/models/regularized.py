"""
Penalized logistic regression over a lambda path (Lasso and Ridge).

Objective (glmnet scaling):

    (1/n) * sum(logloss) + lambda * [alpha * ||b||_1 + (1 - alpha) / 2 * ||b||_2^2]

which maps onto scikit-learn's LogisticRegression with C = 1 / (n * lambda)
and l1_ratio = alpha. Features are standardized inside a Pipeline so the
scaling statistics always come from the data the model is fit on.
"""

import logging
import warnings
from collections.abc import Sequence
from functools import partial

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from ktx_ml.config.schema import LassoConfig, RegularizedConfig, RidgeConfig
from ktx_ml.models.cv import cross_validate, kfold_indices, path_frame, sweep_grid
from ktx_ml.models.registry import build_penalized_logistic
from ktx_ml.models.selection import CandidateModel
from ktx_ml.utils.random import make_rng

logger = logging.getLogger(__name__)

# Keeps lambda_max finite for pure Ridge (glmnet uses the same floor)
MIN_ALPHA_FOR_LAMBDA_MAX = 1e-3


def lambda_path(
    X: np.ndarray,
    y: np.ndarray,
    alpha: float,
    n_lambdas: int = 50,
    lambda_min_ratio: float | None = None,
) -> np.ndarray:
    """
    Descending geometric lambda grid.

    lambda_max is the smallest penalty that zeroes every coefficient of the
    Lasso on standardized X; the path runs down to lambda_max * lambda_min_ratio.

    Args:
        X: Training features (N x D)
        y: Binary labels (N,)
        alpha: Elastic-net mixing (1 = Lasso, 0 = Ridge)
        n_lambdas: Grid length
        lambda_min_ratio: Smallest/largest ratio (None = 0.01 if N < D else 1e-4)

    Returns:
        Array of n_lambdas decreasing positive values

    Raises:
        ValueError: If no feature varies or correlates with y
    """
    n, p = X.shape
    if lambda_min_ratio is None:
        lambda_min_ratio = 0.01 if n < p else 1e-4

    Xs = StandardScaler().fit_transform(X)
    residual = np.asarray(y, dtype=float) - np.mean(y)
    lambda_max = np.max(np.abs(Xs.T @ residual)) / (n * max(alpha, MIN_ALPHA_FOR_LAMBDA_MAX))
    if not np.isfinite(lambda_max) or lambda_max <= 0:
        raise ValueError("Cannot build a lambda path: no feature varies with the labels")

    return np.geomspace(lambda_max, lambda_max * lambda_min_ratio, n_lambdas)


def _fit_penalized(
    X: np.ndarray,
    y: np.ndarray,
    lam: float,
    config: RegularizedConfig,
    random_state: int | None,
) -> Pipeline:
    model = Pipeline(
        [
            ("scaler", StandardScaler()),
            (
                "clf",
                build_penalized_logistic(
                    C=1.0 / (len(y) * lam),
                    l1_ratio=config.alpha,
                    max_iter=config.max_iter,
                    tol=config.tol,
                    random_state=random_state,
                ),
            ),
        ]
    )
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ConvergenceWarning)
        model.fit(X, y)
    n_conv = sum(issubclass(w.category, ConvergenceWarning) for w in caught)
    if n_conv:
        logger.debug(f"saga did not converge at lambda={lam:.4g} (max_iter={config.max_iter})")
    return model


def _predict_proba(model, X: np.ndarray) -> np.ndarray:
    return model.predict_proba(X)[:, 1]


def train_regularized(
    X: np.ndarray,
    y: np.ndarray,
    config: RegularizedConfig,
    kind: str,
    folds: Sequence[np.ndarray] | None = None,
    n_folds: int = 10,
    seed: int | None = 0,
    n_jobs: int = 1,
    feature_names: Sequence[str] | None = None,
) -> CandidateModel:
    """
    Select lambda by cross-validated grid AUC and refit on the full split.

    Args:
        X: Training features (N x D)
        y: Training labels (N,)
        config: Lasso/Ridge settings (alpha, path length, solver limits)
        kind: Candidate label ("lasso" or "ridge")
        folds: Fixed held-out index arrays (None = draw n_folds from seed)
        n_folds: Fold count when folds is None
        seed: Seed for fold assignment and the saga solver
        n_jobs: joblib workers across folds
        feature_names: Labels for the coefficient vector

    Returns:
        CandidateModel with hyperparameter "lambda"; ties in CV cost resolve to
        the largest lambda (sparsest model)
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y).astype(int)
    if feature_names is None:
        feature_names = [f"x{j}" for j in range(X.shape[1])]
    if folds is None:
        folds = kfold_indices(len(y), n_folds, make_rng(seed))

    lambdas = lambda_path(X, y, config.alpha, config.n_lambdas, config.lambda_min_ratio)
    logger.info(
        f"{kind}: alpha={config.alpha:g}, {len(lambdas)} lambdas "
        f"[{lambdas[0]:.4g} .. {lambdas[-1]:.4g}], {len(folds)} folds"
    )

    def evaluate(lam: float):
        return cross_validate(
            X,
            y,
            fit_fn=partial(_fit_penalized, lam=lam, config=config, random_state=seed),
            predict_fn=_predict_proba,
            folds=folds,
            n_jobs=n_jobs,
        )

    results, best = sweep_grid(lambdas, evaluate)
    lam_min = float(lambdas[best])

    final = _fit_penalized(X, y, lam_min, config, seed)
    coefs = pd.Series(final.named_steps["clf"].coef_.ravel(), index=list(feature_names))
    n_nonzero = int(np.count_nonzero(coefs.to_numpy()))

    logger.info(
        f"{kind}: lambda_min={lam_min:.4g}, CV AUC={results[best].cv_auc:.4f}, "
        f"{n_nonzero}/{len(coefs)} non-zero coefficients"
    )

    return CandidateModel(
        kind=kind,
        hyperparameter_name="lambda",
        hyperparameter=lam_min,
        estimator=final,
        cv_auc=results[best].cv_auc,
        n_effective=n_nonzero,
        coefficients=coefs,
        cv_path=path_frame("lambda", lambdas, results),
    )


def train_lasso(
    X: np.ndarray, y: np.ndarray, config: LassoConfig | None = None, **kwargs
) -> CandidateModel:
    """Pure L1 path; see train_regularized for keyword arguments."""
    return train_regularized(X, y, config or LassoConfig(), kind="lasso", **kwargs)


def train_ridge(
    X: np.ndarray, y: np.ndarray, config: RidgeConfig | None = None, **kwargs
) -> CandidateModel:
    """Pure L2 path; see train_regularized for keyword arguments."""
    return train_regularized(X, y, config or RidgeConfig(), kind="ridge", **kwargs)
