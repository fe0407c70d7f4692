"""Utility functions for KTX-ML."""

from ktx_ml.utils.logging import log_section, setup_logger
from ktx_ml.utils.random import derive_seed, make_rng
from ktx_ml.utils.serialization import load_joblib, load_json, save_joblib, save_json

__all__ = [
    "setup_logger",
    "log_section",
    "derive_seed",
    "make_rng",
    "save_joblib",
    "load_joblib",
    "save_json",
    "load_json",
]
