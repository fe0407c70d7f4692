"""
Default configuration values.

Single source of truth for default parameters; AnalysisConfig field defaults
match these dicts exactly.
"""

from typing import Any

# Model kinds compared by the selector (order used only for reporting)
VALID_MODELS = ["lasso", "ridge", "pcr"]

# Number of cutoff intervals on [0, 1]; the grid has N_CUTOFFS + 1 points
N_CUTOFFS = 500

DEFAULT_SPLITS_CONFIG: dict[str, Any] = {
    "test_size": 0.30,
    "stratify": False,
}

DEFAULT_CV_CONFIG: dict[str, Any] = {
    "folds": 10,
}

DEFAULT_LASSO_CONFIG: dict[str, Any] = {
    "alpha": 1.0,
    "n_lambdas": 50,
    "lambda_min_ratio": None,
    "max_iter": 5000,
    "tol": 1e-4,
}

DEFAULT_RIDGE_CONFIG: dict[str, Any] = {
    **DEFAULT_LASSO_CONFIG,
    "alpha": 0.0,
}

DEFAULT_PCR_CONFIG: dict[str, Any] = {
    "max_rank": 100,
    "max_iter": 1000,
    "singular_tol": 1e-10,
}

DEFAULT_TESTING_CONFIG: dict[str, Any] = {
    "fdr_alpha": 0.05,
    "block_size": 2000,
}

DEFAULT_LOCAL_FDR_CONFIG: dict[str, Any] = {
    "null": "theoretical",
    "n_bins": 120,
    "spline_df": 7,
    "central_quantile": 0.25,
    "fdr_cutoff": 0.2,
}

DEFAULT_ANALYSIS_CONFIG: dict[str, Any] = {
    "expression_file": None,
    "labels_file": None,
    "outdir": "results",
    "seed": 0,
    "n_jobs": 1,
    "splits": DEFAULT_SPLITS_CONFIG,
    "cv": DEFAULT_CV_CONFIG,
    "lasso": DEFAULT_LASSO_CONFIG,
    "ridge": DEFAULT_RIDGE_CONFIG,
    "pcr": DEFAULT_PCR_CONFIG,
    "testing": DEFAULT_TESTING_CONFIG,
    "local_fdr": DEFAULT_LOCAL_FDR_CONFIG,
}
