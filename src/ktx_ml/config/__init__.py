"""Configuration management for KTX-ML."""

from ktx_ml.config.context import RunContext
from ktx_ml.config.defaults import (
    DEFAULT_ANALYSIS_CONFIG,
    N_CUTOFFS,
    VALID_MODELS,
)
from ktx_ml.config.loader import (
    apply_overrides,
    load_analysis_config,
    load_yaml,
    log_config_summary,
    save_config,
)
from ktx_ml.config.schema import (
    AnalysisConfig,
    CVConfig,
    LassoConfig,
    LocalFdrConfig,
    PCRConfig,
    RegularizedConfig,
    RidgeConfig,
    SplitsConfig,
    TestingConfig,
)

__all__ = [
    "VALID_MODELS",
    "N_CUTOFFS",
    "DEFAULT_ANALYSIS_CONFIG",
    "RunContext",
    "apply_overrides",
    "load_analysis_config",
    "load_yaml",
    "log_config_summary",
    "save_config",
    "AnalysisConfig",
    "CVConfig",
    "LassoConfig",
    "LocalFdrConfig",
    "PCRConfig",
    "RegularizedConfig",
    "RidgeConfig",
    "SplitsConfig",
    "TestingConfig",
]
