"""Tests for ResultsWriter artifact layout."""

import numpy as np
import pandas as pd
import pytest

from ktx_ml.config.context import RunContext
from ktx_ml.config.schema import AnalysisConfig, CVConfig, LassoConfig, PCRConfig, RidgeConfig
from ktx_ml.data.io import ExpressionData
from ktx_ml.evaluation.differential import DE_COLUMNS, differential_expression
from ktx_ml.evaluation.holdout import classify
from ktx_ml.evaluation.reports import OutputDirectories, ResultsWriter
from ktx_ml.metrics.discrimination import CURVE_COLUMNS
from ktx_ml.utils.serialization import load_joblib, load_json


@pytest.fixture(scope="module")
def data(predictive_data):
    X, y = predictive_data
    return ExpressionData(
        X=X,
        y=y,
        sample_ids=np.arange(500, 600),
        feature_names=[f"g{j}" for j in range(20)],
    )


@pytest.fixture(scope="module")
def classification(data):
    config = AnalysisConfig(
        cv=CVConfig(folds=4),
        lasso=LassoConfig(n_lambdas=5, max_iter=1000),
        ridge=RidgeConfig(n_lambdas=5, max_iter=1000),
        pcr=PCRConfig(max_rank=4),
    )
    return classify(data, RunContext.from_config(config))


@pytest.fixture
def writer(tmp_path):
    return ResultsWriter(OutputDirectories.create(tmp_path / "run"))


class TestOutputDirectories:
    def test_create(self, tmp_path):
        dirs = OutputDirectories.create(tmp_path / "a" / "b")
        assert dirs.root.is_dir()
        assert dirs.cv_paths == dirs.root / "cv_paths"
        assert dirs.cv_paths.is_dir()


class TestResultsWriter:
    def test_resolved_config(self, writer):
        path = writer.save_resolved_config(AnalysisConfig(seed=9))
        assert path.name == "config_resolved.yaml"
        assert "seed: 9" in path.read_text()

    def test_differential_artifacts(self, writer, data):
        result = differential_expression(data.X, data.y, data.feature_names)
        table_path, summary_path = writer.save_differential(result)
        table = pd.read_csv(table_path)
        assert list(table.columns) == DE_COLUMNS
        assert len(table) == 20
        summary = load_json(summary_path)
        assert summary["n_tested"] == 20
        assert "local_fdr" in summary

    def test_classification_artifacts(self, writer, classification, data):
        paths = writer.save_classification(classification, data.feature_names, data.sample_ids)
        names = {p.name for p in paths}
        assert {
            "split_indices.csv",
            "model_summary.csv",
            "lasso_path.csv",
            "ridge_path.csv",
            "pcr_path.csv",
            "selected_features_lasso.csv",
            "selected_features_ridge.csv",
            "curves.csv",
            "threshold.json",
            "selected_model.joblib",
        } <= names
        assert all(p.exists() for p in paths)

    def test_curves_csv(self, writer, classification):
        curves = pd.read_csv(writer.save_curves(classification))
        assert list(curves.columns) == CURVE_COLUMNS
        assert len(curves) == 501

    def test_split_indices_cover_all_samples(self, writer, classification, data):
        df = pd.read_csv(writer.save_split_indices(classification.split, data.sample_ids))
        assert sorted(df["sample_id"]) == list(range(500, 600))
        assert (df["split"] == "test").sum() == 30

    def test_threshold_json(self, writer, classification):
        payload = load_json(writer.save_threshold(classification))
        assert payload["model"] == classification.selected.kind
        assert set(payload["confusion_matrix"]) == {"tp", "fp", "tn", "fn"}

    def test_selected_features_sorted_by_magnitude(self, writer, classification):
        for path in writer.save_selected_features(classification):
            df = pd.read_csv(path)
            assert (df["coefficient"] != 0).all()
            assert df["coefficient"].abs().is_monotonic_decreasing

    def test_model_bundle_predicts(self, writer, classification, data):
        bundle = load_joblib(writer.save_model_bundle(classification, data.feature_names))
        assert bundle["kind"] == classification.selected.kind
        assert bundle["feature_names"] == data.feature_names
        scores = bundle["estimator"].predict_proba(data.X)[:, 1]
        np.testing.assert_allclose(scores, classification.selected.predict_scores(data.X))
