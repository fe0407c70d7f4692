"""
Configuration schema for the KTX-ML pipeline.

Pydantic models for every tunable of the differential-expression and
classifier-selection stages. Defaults mirror config/defaults.py.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ============================================================================
# Data and Split Configuration
# ============================================================================


class SplitsConfig(BaseModel):
    """Configuration for the single train/test split shared by all models."""

    model_config = ConfigDict(extra="forbid")

    test_size: float = Field(default=0.30, gt=0.0, lt=1.0)
    stratify: bool = False


# ============================================================================
# Cross-Validation Configuration
# ============================================================================


class CVConfig(BaseModel):
    """Configuration for the k-fold cross-validation harness."""

    model_config = ConfigDict(extra="forbid")

    folds: int = Field(default=10, ge=2)


# ============================================================================
# Model-Specific Configurations
# ============================================================================


class RegularizedConfig(BaseModel):
    """Penalized logistic regression path (alpha=1 Lasso, alpha=0 Ridge).

    lambda_min_ratio=None selects the glmnet rule: 0.01 when n < p, else 1e-4.
    """

    model_config = ConfigDict(extra="forbid")

    alpha: float = Field(default=1.0, ge=0.0, le=1.0)
    n_lambdas: int = Field(default=50, ge=2)
    lambda_min_ratio: float | None = Field(default=None, gt=0.0, lt=1.0)
    max_iter: int = Field(default=5000, ge=1)
    tol: float = Field(default=1e-4, gt=0.0)


class LassoConfig(RegularizedConfig):
    """Pure L1 penalty."""

    alpha: float = Field(default=1.0, ge=1.0, le=1.0)


class RidgeConfig(RegularizedConfig):
    """Pure L2 penalty."""

    alpha: float = Field(default=0.0, ge=0.0, le=0.0)


class PCRConfig(BaseModel):
    """Principal component classifier: rank search window and SVD tolerance."""

    model_config = ConfigDict(extra="forbid")

    max_rank: int = Field(default=100, ge=1)
    max_iter: int = Field(default=1000, ge=1)
    singular_tol: float = Field(default=1e-10, gt=0.0, lt=1.0)


# ============================================================================
# Hypothesis Testing Configuration
# ============================================================================


class TestingConfig(BaseModel):
    """Per-feature Welch tests and Benjamini-Hochberg reporting."""

    __test__ = False  # not a pytest test class
    model_config = ConfigDict(extra="forbid")

    fdr_alpha: float = Field(default=0.05, gt=0.0, lt=1.0)
    block_size: int = Field(default=2000, ge=1)


class LocalFdrConfig(BaseModel):
    """Efron-style local false discovery rate estimation."""

    model_config = ConfigDict(extra="forbid")

    null: Literal["theoretical", "empirical"] = "theoretical"
    n_bins: int = Field(default=120, ge=10)
    spline_df: int = Field(default=7, ge=4)
    central_quantile: float = Field(default=0.25, gt=0.0, lt=0.5)
    fdr_cutoff: float = Field(default=0.2, gt=0.0, lt=1.0)


# ============================================================================
# Root Configuration
# ============================================================================


class AnalysisConfig(BaseModel):
    """Complete configuration for one end-to-end run."""

    model_config = ConfigDict(extra="forbid")

    expression_file: Path | None = None
    labels_file: Path | None = None
    outdir: Path = Field(default=Path("results"))
    seed: int | None = Field(default=0, ge=0)
    n_jobs: int = Field(default=1)

    splits: SplitsConfig = Field(default_factory=SplitsConfig)
    cv: CVConfig = Field(default_factory=CVConfig)
    lasso: LassoConfig = Field(default_factory=LassoConfig)
    ridge: RidgeConfig = Field(default_factory=RidgeConfig)
    pcr: PCRConfig = Field(default_factory=PCRConfig)
    testing: TestingConfig = Field(default_factory=TestingConfig)
    local_fdr: LocalFdrConfig = Field(default_factory=LocalFdrConfig)

    @model_validator(mode="after")
    def validate_n_jobs(self):
        """joblib semantics: positive worker count, or negative for all-but-k."""
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be a positive integer or negative (joblib style), got 0")
        return self
