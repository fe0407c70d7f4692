"""Cross-validated classifier training and selection."""

from ktx_ml.models.cv import (
    CVResult,
    cross_validate,
    kfold_indices,
    path_frame,
    select_best_index,
    sweep_grid,
)
from ktx_ml.models.pcr import PCRBasis, PrincipalComponentClassifier, train_pcr
from ktx_ml.models.regularized import lambda_path, train_lasso, train_regularized, train_ridge
from ktx_ml.models.registry import build_penalized_logistic, build_unpenalized_logistic
from ktx_ml.models.selection import CandidateModel, rank_candidates, select_model

__all__ = [
    "CVResult",
    "CandidateModel",
    "PCRBasis",
    "PrincipalComponentClassifier",
    "build_penalized_logistic",
    "build_unpenalized_logistic",
    "cross_validate",
    "kfold_indices",
    "lambda_path",
    "path_frame",
    "rank_candidates",
    "select_best_index",
    "select_model",
    "sweep_grid",
    "train_lasso",
    "train_pcr",
    "train_regularized",
    "train_ridge",
]
