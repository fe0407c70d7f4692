"""
Shared pytest fixtures for KTX-ML tests.
"""

import logging

import numpy as np
import pandas as pd
import pytest

from ktx_ml.data.schema import ID_COL, TARGET_COL


def make_predictive_data(n_samples=100, n_features=20, seed=0, signal_sd=4.0):
    """
    Synthetic matrix where only features 0 and 1 carry the label.

    label = 1 when feature0 + feature1 > 0. The two predictive features are
    scaled by ``signal_sd`` so they carry most of the variance and load on the
    leading principal components; PCR is label-agnostic and only reaches a low
    rank when the signal is also the dominant variance. With unit-variance
    signal features the label direction is spread over all 20 components and
    the cross-validated PCR rank lands near 12.
    """
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n_samples, n_features))
    X[:, :2] *= signal_sd
    y = (X[:, 0] + X[:, 1] > 0).astype(int)
    return X, y


@pytest.fixture(scope="session")
def predictive_data():
    """Read-only 100 x 20 matrix; features 0 and 1 determine the label."""
    X, y = make_predictive_data()
    X.setflags(write=False)
    y.setflags(write=False)
    return X, y


@pytest.fixture
def feature_names():
    return [f"GENE_{j:03d}" for j in range(20)]


@pytest.fixture
def input_files(tmp_path, feature_names):
    """Expression and label CSVs for 100 samples, rows in different orders."""
    X, y = make_predictive_data()
    ids = np.arange(1001, 1001 + len(y))

    expr = pd.DataFrame(X, columns=feature_names)
    expr.insert(0, ID_COL, ids)
    labels = pd.DataFrame({ID_COL: ids, TARGET_COL: y})

    expr_path = tmp_path / "expression.csv"
    labels_path = tmp_path / "labels.csv"
    expr.sample(frac=1.0, random_state=1).to_csv(expr_path, index=False)
    labels.sample(frac=1.0, random_state=2).to_csv(labels_path, index=False)
    return expr_path, labels_path


@pytest.fixture(autouse=True)
def reset_package_logger():
    """CLI runs attach handlers to captured streams; detach them after each test."""
    yield
    pkg_logger = logging.getLogger("ktx_ml")
    pkg_logger.handlers.clear()
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)
