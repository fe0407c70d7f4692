"""Tests for input loading and the sample-alignment precondition."""

import numpy as np
import pandas as pd
import pytest

from ktx_ml.data.io import (
    AlignmentError,
    align_samples,
    load_expression_data,
    read_expression_file,
    read_labels_file,
)
from ktx_ml.data.schema import ID_COL, TARGET_COL


@pytest.fixture
def expression_df():
    return pd.DataFrame(
        {ID_COL: [30, 10, 20], "GENE_A": [3.0, 1.0, 2.0], "GENE_B": [0.3, 0.1, 0.2]}
    )


@pytest.fixture
def labels_df():
    return pd.DataFrame({ID_COL: [20, 30, 10], TARGET_COL: [1, 1, 0]})


class TestAlignSamples:
    def test_sorted_by_numeric_id(self, expression_df, labels_df):
        data = align_samples(expression_df, labels_df)
        np.testing.assert_array_equal(data.sample_ids, [10, 20, 30])
        np.testing.assert_array_equal(data.X[:, 0], [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(data.y, [0, 1, 1])
        assert data.feature_names == ["GENE_A", "GENE_B"]
        assert (data.n_samples, data.n_features) == (3, 2)

    def test_string_ids_sort_numerically(self):
        expr = pd.DataFrame({ID_COL: ["100", "9"], "g": [1.0, 2.0]})
        labels = pd.DataFrame({ID_COL: ["9", "100"], TARGET_COL: [0, 1]})
        data = align_samples(expr, labels)
        np.testing.assert_array_equal(data.sample_ids, [9, 100])
        np.testing.assert_array_equal(data.X[:, 0], [2.0, 1.0])

    def test_arrays_are_read_only(self, expression_df, labels_df):
        data = align_samples(expression_df, labels_df)
        with pytest.raises(ValueError):
            data.X[0, 0] = 99.0
        with pytest.raises(ValueError):
            data.y[0] = 1

    def test_id_mismatch_is_fatal(self, expression_df, labels_df):
        labels_df.loc[0, ID_COL] = 21
        with pytest.raises(AlignmentError, match="differ after sorting"):
            align_samples(expression_df, labels_df)

    def test_count_mismatch_is_fatal(self, expression_df, labels_df):
        with pytest.raises(AlignmentError, match="count mismatch"):
            align_samples(expression_df, labels_df.iloc[:2])

    def test_duplicate_ids(self, expression_df, labels_df):
        expression_df.loc[0, ID_COL] = 10
        with pytest.raises(AlignmentError, match="duplicated"):
            align_samples(expression_df, labels_df)

    def test_non_numeric_ids(self, expression_df, labels_df):
        expression_df[ID_COL] = ["a", "b", "c"]
        with pytest.raises(AlignmentError, match="non-numeric"):
            align_samples(expression_df, labels_df)

    def test_alignment_error_is_value_error(self):
        assert issubclass(AlignmentError, ValueError)

    def test_invalid_labels(self, expression_df, labels_df):
        labels_df[TARGET_COL] = [0, 2, 1]
        with pytest.raises(ValueError, match="Labels must be in"):
            align_samples(expression_df, labels_df)


class TestReadFiles:
    def test_missing_id_column(self, tmp_path):
        path = tmp_path / "expr.csv"
        pd.DataFrame({"id": [1], "g": [0.5]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="identifier column"):
            read_expression_file(path)

    def test_non_numeric_features(self, tmp_path):
        path = tmp_path / "expr.csv"
        pd.DataFrame({ID_COL: [1, 2], "g": ["x", "y"]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="non-numeric feature"):
            read_expression_file(path)

    def test_labels_missing_target(self, tmp_path):
        path = tmp_path / "labels.csv"
        pd.DataFrame({ID_COL: [1, 2], "status": [0, 1]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="missing required columns"):
            read_labels_file(path)

    def test_tsv_supported(self, tmp_path):
        path = tmp_path / "labels.tsv"
        pd.DataFrame({ID_COL: [1, 2], TARGET_COL: [0, 1]}).to_csv(path, sep="\t", index=False)
        assert list(read_labels_file(path).columns) == [ID_COL, TARGET_COL]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_labels_file(tmp_path / "nope.csv")

    def test_load_expression_data(self, input_files, feature_names):
        expr_path, labels_path = input_files
        data = load_expression_data(expr_path, labels_path)
        assert data.n_samples == 100
        assert data.feature_names == feature_names
        assert np.all(np.diff(data.sample_ids) > 0)
        # label is recoverable from the first two features after alignment
        np.testing.assert_array_equal(data.y, (data.X[:, 0] + data.X[:, 1] > 0).astype(int))
