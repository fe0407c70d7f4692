"""
KTX-ML: Differential Expression and Classifier Selection for Kidney Rejection

Statistical inference and supervised model selection over a gene-expression
matrix: per-gene Welch tests with FDR control, and cross-validated
Lasso / Ridge / principal-component classifiers compared by AUC.
"""

import pandas as pd

pd.options.mode.copy_on_write = True

__version__ = "0.3.0"
__license__ = "MIT"

from ktx_ml import (  # noqa: E402
    config,
    data,
    evaluation,
    metrics,
    models,
    stats,
    utils,
)

__all__ = [
    "__version__",
    "config",
    "data",
    "evaluation",
    "metrics",
    "models",
    "stats",
    "utils",
]
