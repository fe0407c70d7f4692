"""Tests for the k-fold harness and grid sweeps."""

import numpy as np
import pytest
from sklearn.linear_model import LogisticRegression

from ktx_ml.metrics.discrimination import auc_cost
from ktx_ml.models.cv import (
    CVResult,
    cross_validate,
    kfold_indices,
    path_frame,
    select_best_index,
    sweep_grid,
)


def _fit_lr(X, y):
    return LogisticRegression(max_iter=500).fit(X, y)


def _predict(model, X):
    return model.predict_proba(X)[:, 1]


class TestKFoldIndices:
    @pytest.mark.parametrize("n", [100, 97, 10, 23])
    def test_sizes_differ_by_at_most_one(self, n):
        folds = kfold_indices(n, 10, np.random.default_rng(0))
        sizes = [len(f) for f in folds]
        assert len(folds) == 10
        assert max(sizes) - min(sizes) <= 1

    def test_union_is_full_and_disjoint(self):
        folds = kfold_indices(57, 10, np.random.default_rng(1))
        allidx = np.concatenate(folds)
        assert len(allidx) == 57
        np.testing.assert_array_equal(np.sort(allidx), np.arange(57))

    def test_seeded_is_reproducible(self):
        a = kfold_indices(40, 5, np.random.default_rng(3))
        b = kfold_indices(40, 5, np.random.default_rng(3))
        for fa, fb in zip(a, b, strict=True):
            np.testing.assert_array_equal(fa, fb)

    def test_no_rng_is_contiguous(self):
        folds = kfold_indices(6, 3)
        np.testing.assert_array_equal(folds[0], [0, 1])

    def test_invalid_fold_counts(self):
        with pytest.raises(ValueError, match=">= 2"):
            kfold_indices(10, 1)
        with pytest.raises(ValueError, match="Cannot split"):
            kfold_indices(5, 10)


class TestCrossValidate:
    def test_informative_feature_low_cost(self, predictive_data):
        X, y = predictive_data
        folds = kfold_indices(len(y), 10, np.random.default_rng(0))
        result = cross_validate(X[:, :2], y, _fit_lr, _predict, folds)
        assert result.fold_costs.shape == (10,)
        assert result.mean_cost < 0.1
        assert result.cv_auc == pytest.approx(1.0 - result.mean_cost)

    def test_failed_folds_are_absorbed(self):
        X = np.c_[np.arange(30.0), np.random.default_rng(0).normal(size=30)]
        y = np.tile([0, 1], 15)
        folds = kfold_indices(30, 5)

        def fit_unless_sample_zero_in_train(X_train, y_train):
            if 0.0 in X_train[:, 0]:
                raise np.linalg.LinAlgError("singular")
            return _fit_lr(X_train[:, 1:], y_train)

        def predict(model, X_held):
            return _predict(model, X_held[:, 1:])

        result = cross_validate(X, y, fit_unless_sample_zero_in_train, predict, folds)
        assert result.n_valid == 1
        assert np.isfinite(result.fold_costs[0])
        assert np.isnan(result.fold_costs[1:]).all()
        assert result.mean_cost == pytest.approx(result.fold_costs[0])

    def test_single_class_fold_is_nan(self):
        X = np.random.default_rng(0).normal(size=(20, 1))
        y = np.r_[np.zeros(10, dtype=int), np.ones(10, dtype=int)]
        folds = [np.arange(0, 10), np.arange(10, 20)]
        result = cross_validate(X, y, lambda X, y: None, lambda m, X: X[:, 0], folds)
        assert result.n_valid == 0
        assert np.isnan(result.mean_cost)

    def test_parallel_matches_sequential(self, predictive_data):
        X, y = predictive_data
        folds = kfold_indices(len(y), 5, np.random.default_rng(4))
        seq = cross_validate(X, y, _fit_lr, _predict, folds, n_jobs=1)
        par = cross_validate(X, y, _fit_lr, _predict, folds, n_jobs=2)
        np.testing.assert_allclose(seq.fold_costs, par.fold_costs)

    def test_default_cost_is_auc_cost(self, predictive_data):
        X, y = predictive_data
        folds = kfold_indices(len(y), 4, np.random.default_rng(2))
        a = cross_validate(X, y, _fit_lr, _predict, folds)
        b = cross_validate(X, y, _fit_lr, _predict, folds, cost_fn=auc_cost)
        assert a.mean_cost == b.mean_cost


class TestSweep:
    def _result(self, cost):
        return CVResult(fold_costs=np.array([cost]), mean_cost=cost)

    def test_minimum_cost_selected(self):
        results = [self._result(c) for c in (0.3, 0.1, 0.2)]
        assert select_best_index(results) == 1

    def test_ties_resolve_to_first(self):
        results = [self._result(c) for c in (0.3, 0.1, 0.1)]
        assert select_best_index(results) == 1

    def test_nan_is_worst(self):
        results = [self._result(c) for c in (np.nan, 0.4, np.nan)]
        assert select_best_index(results) == 1

    def test_all_missing_raises(self):
        with pytest.raises(RuntimeError, match="Every grid point failed"):
            select_best_index([self._result(np.nan)] * 3)

    def test_failing_grid_point_skipped(self):
        def evaluate(value):
            if value == 2:
                raise FloatingPointError("overflow")
            return self._result(abs(value - 2.5))

        results, best = sweep_grid([1, 2, 3], evaluate)
        assert np.isnan(results[1].mean_cost)
        assert best == 2

    def test_path_frame(self):
        results = [self._result(c) for c in (0.3, 0.1)]
        df = path_frame("lambda", [1.0, 0.5], results)
        assert list(df.columns) == ["lambda", "mean_cost", "cv_auc", "n_valid_folds"]
        assert df["cv_auc"].tolist() == pytest.approx([0.7, 0.9])
