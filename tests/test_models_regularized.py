"""Tests for the Lasso / Ridge lambda-path trainers."""

import numpy as np
import pytest
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline

from ktx_ml.config.schema import LassoConfig, RidgeConfig
from ktx_ml.models.registry import build_penalized_logistic, build_unpenalized_logistic
from ktx_ml.models.regularized import lambda_path, train_lasso, train_ridge

FAST_LASSO = LassoConfig(n_lambdas=15, max_iter=2000)
FAST_RIDGE = RidgeConfig(n_lambdas=15, max_iter=2000)


@pytest.fixture(scope="module")
def lasso_model(predictive_data):
    X, y = predictive_data
    return train_lasso(X, y, FAST_LASSO, seed=0)


class TestLambdaPath:
    def test_descending_geometric(self, predictive_data):
        X, y = predictive_data
        path = lambda_path(X, y, alpha=1.0, n_lambdas=10, lambda_min_ratio=0.01)
        assert path.shape == (10,)
        assert np.all(np.diff(path) < 0)
        assert path[-1] / path[0] == pytest.approx(0.01)
        ratios = path[1:] / path[:-1]
        np.testing.assert_allclose(ratios, ratios[0])

    def test_lambda_max_formula(self, predictive_data):
        X, y = predictive_data
        Xs = (X - X.mean(axis=0)) / X.std(axis=0)
        expected = np.max(np.abs(Xs.T @ (y - y.mean()))) / len(y)
        assert lambda_path(X, y, alpha=1.0)[0] == pytest.approx(expected)

    def test_ridge_lambda_max_uses_alpha_floor(self, predictive_data):
        X, y = predictive_data
        lasso_max = lambda_path(X, y, alpha=1.0)[0]
        ridge_max = lambda_path(X, y, alpha=0.0)[0]
        assert ridge_max == pytest.approx(lasso_max * 1000)

    def test_default_min_ratio_depends_on_shape(self):
        rng = np.random.default_rng(0)
        y = np.tile([0, 1], 10)
        wide = lambda_path(rng.normal(size=(20, 40)), y, 1.0, n_lambdas=5)
        tall = lambda_path(rng.normal(size=(20, 5)), y, 1.0, n_lambdas=5)
        assert wide[-1] / wide[0] == pytest.approx(0.01)
        assert tall[-1] / tall[0] == pytest.approx(1e-4)

    def test_constant_features_raise(self):
        with pytest.raises(ValueError, match="lambda path"):
            lambda_path(np.ones((10, 3)), np.tile([0, 1], 5), alpha=1.0)


class TestBuilders:
    def test_penalized_uses_saga_and_l1_ratio(self):
        clf = build_penalized_logistic(C=0.5, l1_ratio=1.0)
        assert isinstance(clf, LogisticRegression)
        assert clf.solver == "saga"
        assert clf.l1_ratio == 1.0
        assert clf.C == 0.5

    def test_unpenalized_fits(self, predictive_data):
        X, y = predictive_data
        clf = build_unpenalized_logistic(max_iter=200)
        clf.fit(X[:, 2:5], y)
        assert clf.coef_.shape == (1, 3)


class TestTrainLasso:
    def test_candidate_fields(self, lasso_model):
        assert lasso_model.kind == "lasso"
        assert lasso_model.hyperparameter_name == "lambda"
        assert len(lasso_model.cv_path) == FAST_LASSO.n_lambdas
        assert lasso_model.hyperparameter in lasso_model.cv_path["lambda"].tolist()
        assert isinstance(lasso_model.estimator, Pipeline)

    def test_sparse_and_predictive(self, lasso_model):
        assert lasso_model.cv_auc > 0.8
        assert lasso_model.n_effective < 20
        assert {"x0", "x1"} <= set(lasso_model.selected_features)

    def test_selected_lambda_has_best_cv_cost(self, lasso_model):
        path = lasso_model.cv_path
        best = path["mean_cost"].min()
        first_best = path.loc[path["mean_cost"] == best, "lambda"].iloc[0]
        assert lasso_model.hyperparameter == first_best

    def test_feature_names_label_coefficients(self, predictive_data, feature_names):
        X, y = predictive_data
        model = train_lasso(
            X, y, LassoConfig(n_lambdas=5, max_iter=1000), n_folds=3, feature_names=feature_names
        )
        assert list(model.coefficients.index) == feature_names

    def test_scores_are_probabilities(self, lasso_model, predictive_data):
        X, _ = predictive_data
        scores = lasso_model.predict_scores(X)
        assert scores.shape == (X.shape[0],)
        assert np.all((scores >= 0) & (scores <= 1))


class TestTrainRidge:
    def test_dense_and_predictive(self, predictive_data):
        X, y = predictive_data
        model = train_ridge(X, y, FAST_RIDGE, seed=0)
        assert model.kind == "ridge"
        assert model.cv_auc > 0.8
        top2 = set(model.coefficients.abs().nlargest(2).index)
        assert top2 == {"x0", "x1"}

    def test_shared_folds_are_used(self, predictive_data):
        X, y = predictive_data
        folds = [np.arange(i, 100, 4) for i in range(4)]
        model = train_ridge(X, y, RidgeConfig(n_lambdas=4, max_iter=1000), folds=folds)
        assert (model.cv_path["n_valid_folds"] <= 4).all()
