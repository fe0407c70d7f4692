"""Tests for CandidateModel and held-out model selection."""

import numpy as np
import pandas as pd
import pytest

from ktx_ml.models.selection import CandidateModel, rank_candidates, select_model


class FixedScores:
    """Estimator stub returning the same scores for any input."""

    def __init__(self, scores):
        self.scores = np.asarray(scores, dtype=float)

    def predict_proba(self, X):
        return np.c_[1.0 - self.scores, self.scores]


@pytest.fixture
def holdout_split():
    y = np.array([0, 0, 0, 1, 1, 1])
    X = np.zeros((6, 2))
    return X, y


def _candidate(kind, scores, n_effective):
    return CandidateModel(
        kind=kind,
        hyperparameter_name="lambda",
        hyperparameter=0.1,
        estimator=FixedScores(scores),
        cv_auc=0.9,
        n_effective=n_effective,
        coefficients=pd.Series(np.r_[np.ones(n_effective), np.zeros(10 - n_effective)]),
    )


GOOD = [0.1, 0.2, 0.3, 0.7, 0.8, 0.9]
WORSE = [0.1, 0.8, 0.3, 0.7, 0.2, 0.9]


class TestSelectModel:
    def test_highest_test_auc_wins(self, holdout_split):
        X, y = holdout_split
        best, ranked = select_model(
            [_candidate("ridge", WORSE, 3), _candidate("lasso", GOOD, 8)], X, y
        )
        assert best.kind == "lasso"
        assert best.test_auc == pytest.approx(1.0)
        assert [m.kind for m in ranked] == ["lasso", "ridge"]

    @pytest.mark.parametrize("order", [0, 1])
    def test_tie_prefers_sparser_model(self, holdout_split, order):
        X, y = holdout_split
        dense = _candidate("ridge", GOOD, 10)
        sparse = _candidate("lasso", GOOD, 2)
        pair = [dense, sparse] if order == 0 else [sparse, dense]
        best, _ = select_model(pair, X, y)
        assert best.kind == "lasso"
        assert best.n_effective == 2

    def test_full_tie_breaks_on_kind(self, holdout_split):
        X, y = holdout_split
        best, _ = select_model([_candidate("ridge", GOOD, 4), _candidate("pcr", GOOD, 4)], X, y)
        assert best.kind == "pcr"

    def test_scoring_does_not_mutate_inputs(self, holdout_split):
        X, y = holdout_split
        original = _candidate("lasso", GOOD, 2)
        select_model([original], X, y)
        assert np.isnan(original.test_auc)

    def test_empty_raises(self, holdout_split):
        X, y = holdout_split
        with pytest.raises(ValueError, match="at least one"):
            select_model([], X, y)


class TestRankCandidates:
    def test_nan_sorts_last(self):
        a = _candidate("lasso", GOOD, 2).with_test_auc(np.nan)
        b = _candidate("ridge", GOOD, 9).with_test_auc(0.6)
        assert [m.kind for m in rank_candidates([a, b])] == ["ridge", "lasso"]


class TestCandidateModel:
    def test_selected_features(self):
        model = CandidateModel(
            kind="lasso",
            hyperparameter_name="lambda",
            hyperparameter=0.2,
            estimator=FixedScores([0.5]),
            cv_auc=0.8,
            n_effective=2,
            coefficients=pd.Series([0.0, 1.2, 0.0, -0.4], index=["a", "b", "c", "d"]),
        )
        assert model.selected_features == ["b", "d"]

    def test_summary(self):
        summary = _candidate("lasso", GOOD, 3).with_test_auc(0.75).summary()
        assert summary["kind"] == "lasso"
        assert summary["test_auc"] == 0.75
        assert summary["n_effective"] == 3
