"""
Tests for missing-value threshold filtering.

Validates that:
1. The threshold boundary is inclusive
2. A threshold of 0 keeps everything, even all-missing rows
3. Removing every row/column raises AllRemovedError suggesting a more lenient threshold
4. Column fractions are computed only on rows that survived row filtering
"""

import logging

import numpy as np
import pytest

from tsnorm.core.exceptions import AllRemovedError, TsNormError
from tsnorm.quality.filtering import MissingValueFilter, filter_missing

from conftest import make_feature_matrix

nan = np.nan


class TestFilterMissing:
    @pytest.mark.parametrize("threshold", [0.25, 0.5, 0.75, 1.0])
    def test_boundary_inclusive(self, threshold):
        # Row i has (i + 1) of 4 values good: fractions 0.25, 0.5, 0.75, 1.0
        values = np.array([
            [1.0, nan, nan, nan],
            [1.0, 2.0, nan, nan],
            [1.0, 2.0, 3.0, nan],
            [1.0, 2.0, 3.0, 4.0],
        ])
        keep = filter_missing(values, threshold, "time series")
        expected = np.array([0.25, 0.5, 0.75, 1.0]) >= threshold
        np.testing.assert_array_equal(keep, expected)

    def test_zero_threshold_keeps_all_missing_row(self):
        values = np.array([[nan, nan], [1.0, 2.0]])
        keep = filter_missing(values, 0, "time series")
        assert keep.all()

    def test_zero_threshold_with_no_columns(self):
        keep = filter_missing(np.empty((3, 0)), 0, "time series")
        assert keep.tolist() == [True, True, True]

    def test_all_removed_raises(self):
        values = np.array([[nan, 1.0], [nan, nan]])
        with pytest.raises(AllRemovedError, match="Set a more lenient threshold"):
            filter_missing(values, 0.9, "time series")

    def test_all_removed_is_pipeline_error(self):
        with pytest.raises(TsNormError) as exc_info:
            filter_missing(np.array([[nan]]), 0.5, "operations")
        assert exc_info.value.stage == "filter operations"
        assert "[filter operations]" in str(exc_info.value)

    def test_reports_when_nothing_removed(self, caplog):
        with caplog.at_level(logging.INFO, logger="tsnorm"):
            filter_missing(np.ones((3, 2)), 0.7, "time series")
        assert "Keeping them all" in caplog.text

    def test_reports_counts_when_removing(self, caplog):
        values = np.array([[1.0, 1.0], [nan, 1.0], [1.0, 1.0]])
        with caplog.at_level(logging.INFO, logger="tsnorm"):
            filter_missing(values, 0.7, "time series")
        assert "Removing 1 time series" in caplog.text
        assert "from 3 to 2" in caplog.text


class TestMissingValueFilter:
    def test_row_filter_removes_from_every_component(self):
        data = np.array([
            [1.0, 2.0, 3.0],
            [nan, nan, 3.0],
            [4.0, 5.0, 6.0],
        ])
        matrix = make_feature_matrix(data)

        filtered = MissingValueFilter(0.7, axis="time_series").apply(matrix)

        assert filtered.shape == (2, 3)
        assert filtered.quality.shape == (2, 3)
        assert list(filtered.time_series['Name']) == ['ts_000', 'ts_002']

    def test_column_filter_uses_transpose(self):
        data = np.array([
            [1.0, nan, 3.0],
            [1.0, 2.0, 3.0],
        ])
        matrix = make_feature_matrix(data)

        filtered = MissingValueFilter(1.0, axis="operations").apply(matrix)

        assert filtered.shape == (2, 2)
        assert list(filtered.operations['Name']) == ['op_000', 'op_002']

    def test_column_fraction_computed_after_row_filtering(self):
        # Column 1 is missing only in row 1, which row filtering removes
        data = np.array([
            [1.0, 2.0, 3.0, 4.0],
            [nan, nan, nan, 4.0],
            [5.0, 6.0, 7.0, 8.0],
        ])
        matrix = make_feature_matrix(data)

        rows_done = MissingValueFilter(0.7, axis="time_series").apply(matrix)
        both_done = MissingValueFilter(1.0, axis="operations").apply(rows_done)

        assert both_done.shape == (2, 4)
        assert not np.isnan(both_done.data).any()

    def test_nothing_removed_returns_same_matrix(self, clean_matrix):
        assert MissingValueFilter(1.0).apply(clean_matrix) is clean_matrix

    def test_invalid_axis(self):
        with pytest.raises(ValueError, match="axis"):
            MissingValueFilter(0.5, axis="rows")

    def test_repr(self):
        assert repr(MissingValueFilter(0.7)) == "MissingValueFilter(threshold=0.7, axis=time_series)"
