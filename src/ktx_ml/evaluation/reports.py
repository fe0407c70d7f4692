"""
ResultsWriter: output directory layout and artifact serialization.

Layout under the run's outdir:

    config_resolved.yaml
    differential_expression.csv
    differential_expression_summary.json
    split_indices.csv
    model_summary.csv
    cv_paths/<kind>_path.csv
    selected_features_<kind>.csv
    curves.csv
    threshold.json
    selected_model.joblib
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import sklearn

from ktx_ml import __version__
from ktx_ml.config.loader import save_config
from ktx_ml.config.schema import AnalysisConfig
from ktx_ml.data.splits import Split
from ktx_ml.evaluation.differential import DifferentialResult
from ktx_ml.evaluation.holdout import ClassificationResult
from ktx_ml.metrics.discrimination import CURVE_COLUMNS
from ktx_ml.utils.serialization import save_joblib, save_json

logger = logging.getLogger(__name__)


@dataclass
class OutputDirectories:
    """
    Output directory paths.

    Attributes:
        root: Base output directory
        cv_paths: Per-model hyperparameter sweep tables
    """

    root: Path
    cv_paths: Path

    @classmethod
    def create(cls, root: str | Path) -> "OutputDirectories":
        """Create (if needed) and return the directory layout."""
        root = Path(root)
        dirs = cls(root=root, cv_paths=root / "cv_paths")
        for path in (dirs.root, dirs.cv_paths):
            path.mkdir(parents=True, exist_ok=True)
        return dirs


class ResultsWriter:
    """
    Writes every run artifact; each save_* method returns the written path.

    Usage:
        writer = ResultsWriter(OutputDirectories.create(config.outdir))
        writer.save_differential(de_result)
        writer.save_classification(cls_result, feature_names)
    """

    def __init__(self, output_dirs: OutputDirectories):
        self.dirs = output_dirs

    def _log(self, path: Path) -> Path:
        logger.info(f"Saved: {path}")
        return path

    # ========== Settings ==========

    def save_resolved_config(self, config: AnalysisConfig) -> Path:
        path = self.dirs.root / "config_resolved.yaml"
        save_config(config, path)
        return self._log(path)

    def save_split_indices(self, split: Split, sample_ids: np.ndarray) -> Path:
        path = self.dirs.root / "split_indices.csv"
        split.to_frame(sample_ids).to_csv(path, index=False)
        return self._log(path)

    # ========== Differential expression ==========

    def save_differential(self, result: DifferentialResult) -> list[Path]:
        table_path = self.dirs.root / "differential_expression.csv"
        result.table.to_csv(table_path, index=False)
        summary_path = self.dirs.root / "differential_expression_summary.json"
        save_json(result.summary(), summary_path)
        return [self._log(table_path), self._log(summary_path)]

    # ========== Model selection ==========

    def save_model_summary(self, result: ClassificationResult) -> Path:
        path = self.dirs.root / "model_summary.csv"
        result.model_summary().to_csv(path, index=False)
        return self._log(path)

    def save_cv_paths(self, result: ClassificationResult) -> list[Path]:
        paths = []
        for model in result.candidates:
            path = self.dirs.cv_paths / f"{model.kind}_path.csv"
            model.cv_path.to_csv(path, index=False)
            paths.append(self._log(path))
        return paths

    def save_selected_features(self, result: ClassificationResult) -> list[Path]:
        """Non-zero coefficients of the penalized models (standardized scale)."""
        paths = []
        for model in result.candidates:
            if model.hyperparameter_name != "lambda":
                continue
            coefs = model.coefficients[model.coefficients != 0]
            df = pd.DataFrame({"feature": coefs.index, "coefficient": coefs.to_numpy()})
            df = df.reindex(df["coefficient"].abs().sort_values(ascending=False).index)
            path = self.dirs.root / f"selected_features_{model.kind}.csv"
            df.to_csv(path, index=False)
            paths.append(self._log(path))
        return paths

    def save_curves(self, result: ClassificationResult) -> Path:
        path = self.dirs.root / "curves.csv"
        result.curves[CURVE_COLUMNS].to_csv(path, index=False)
        return self._log(path)

    def save_threshold(self, result: ClassificationResult) -> Path:
        path = self.dirs.root / "threshold.json"
        save_json({"model": result.selected.kind, **result.threshold.to_dict()}, path)
        return self._log(path)

    def save_model_bundle(
        self, result: ClassificationResult, feature_names: list[str]
    ) -> Path:
        model = result.selected
        bundle: dict[str, Any] = {
            "kind": model.kind,
            "estimator": model.estimator,
            "hyperparameter_name": model.hyperparameter_name,
            "hyperparameter": model.hyperparameter,
            "threshold": result.threshold.cutoff,
            "feature_names": list(feature_names),
            "versions": {
                "ktx_ml": __version__,
                "sklearn": sklearn.__version__,
                "numpy": np.__version__,
            },
        }
        path = self.dirs.root / "selected_model.joblib"
        save_joblib(bundle, path)
        return self._log(path)

    def save_classification(
        self, result: ClassificationResult, feature_names: list[str], sample_ids: np.ndarray
    ) -> list[Path]:
        """Write every model-selection artifact."""
        return [
            self.save_split_indices(result.split, sample_ids),
            self.save_model_summary(result),
            *self.save_cv_paths(result),
            *self.save_selected_features(result),
            self.save_curves(result),
            self.save_threshold(result),
            self.save_model_bundle(result, feature_names),
        ]
