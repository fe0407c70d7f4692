"""
Serialization utilities for models and results.
"""

import json
import logging
import warnings
from pathlib import Path
from typing import Any

import joblib
import numpy as np

logger = logging.getLogger(__name__)


def _to_native(obj: Any) -> Any:
    """Convert numpy types to native Python types for JSON serialization."""
    if isinstance(obj, dict):
        return {k: _to_native(v) for k, v in obj.items()}
    elif isinstance(obj, list | tuple):
        return [_to_native(v) for v in obj]
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        value = float(obj)
        return None if np.isnan(value) else value
    elif isinstance(obj, float) and np.isnan(obj):
        return None
    elif isinstance(obj, np.ndarray):
        return _to_native(obj.tolist())
    elif isinstance(obj, Path):
        return str(obj)
    return obj


def save_joblib(obj: Any, path: str | Path, compress: int = 3):
    """Save object using joblib."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(obj, path, compress=compress)


def load_joblib(path: str | Path, check_versions: bool = True) -> Any:
    """
    Load object using joblib with optional version checking.

    Args:
        path: Path to joblib file
        check_versions: If True and object is a model bundle with version metadata,
            warn if sklearn/numpy versions differ from current environment

    Returns:
        Loaded object
    """
    obj = joblib.load(path)

    if check_versions and isinstance(obj, dict) and "versions" in obj:
        import sklearn

        current_versions = {"sklearn": sklearn.__version__, "numpy": np.__version__}
        mismatches = [
            f"{lib}: saved={saved}, current={current_versions[lib]}"
            for lib, saved in obj["versions"].items()
            if lib in current_versions and saved != current_versions[lib]
        ]
        if mismatches:
            warnings.warn(
                f"Model bundle version mismatch in {Path(path).name}:\n"
                + "\n".join(f"  - {m}" for m in mismatches)
                + "\nPredictions may be inconsistent.",
                UserWarning,
                stacklevel=2,
            )

    return obj


def save_json(obj: Any, path: str | Path, indent: int = 2):
    """Save object as JSON (numpy scalars/arrays converted, NaN -> null)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(_to_native(obj), f, indent=indent, default=str)


def load_json(path: str | Path) -> Any:
    """Load JSON file."""
    with open(path) as f:
        return json.load(f)
