"""
Tests for quality-code masking and the FeatureMatrix container.

Validates that:
1. Non-finite values and positive quality codes both become NaN
2. The quality matrix is never modified
3. Masking reports special-value counts and good-value ranges
4. Selections keep data, quality and metadata aligned and identities stable
"""

import logging

import numpy as np
import pandas as pd
import pytest

from tsnorm.core.featurematrix import FeatureMatrix
from tsnorm.core.quality import QualityCode, describe_quality, is_invalid
from tsnorm.quality.masking import QualityMasker, mask_invalid

from conftest import make_feature_matrix


class TestMaskInvalid:
    def test_non_finite_values_become_nan(self):
        data = np.array([[1.0, np.inf], [-np.inf, np.nan]])
        quality = np.zeros((2, 2), dtype=np.int64)

        masked = mask_invalid(data, quality)

        assert masked[0, 0] == 1.0
        assert np.isnan(masked[0, 1])
        assert np.isnan(masked[1, 0])
        assert np.isnan(masked[1, 1])

    def test_bad_quality_masks_finite_value(self):
        data = np.array([[1.0, 2.0], [3.0, 4.0]])
        quality = np.array([[0, QualityCode.FATAL_ERROR], [QualityCode.EMPTY, 0]])

        masked = mask_invalid(data, quality)

        np.testing.assert_array_equal(np.isnan(masked), [[False, True], [True, False]])

    def test_input_not_modified(self):
        data = np.array([[1.0, np.inf]])
        mask_invalid(data, np.array([[1, 0]]))
        assert data[0, 0] == 1.0
        assert np.isinf(data[0, 1])


class TestQualityMasker:
    def test_quality_matrix_unchanged(self):
        data = np.array([[1.0, 2.0, np.inf], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]])
        quality = np.array([[0, 0, 3], [0, 1, 0], [0, 0, 0]])
        matrix = make_feature_matrix(data, quality=quality)

        masked = QualityMasker().apply(matrix)

        np.testing.assert_array_equal(masked.quality, quality)
        assert masked.shape == matrix.shape
        assert np.isnan(masked.data[1, 1])
        assert np.isnan(masked.data[0, 2])
        assert int(np.isnan(masked.data).sum()) == 2

    def test_reports_special_values_and_ranges(self, caplog):
        data = np.array([[1.0, 2.0], [3.0, 4.0]])
        quality = np.array([[0, 2], [0, 0]])
        matrix = make_feature_matrix(data, quality=quality)

        with caplog.at_level(logging.INFO, logger="tsnorm"):
            QualityMasker().apply(matrix)

        assert "There are 1 special values in the data matrix." in caplog.text
        assert "Time series vary from 50.00--100.00% good values" in caplog.text
        assert "Features vary from 50.00--100.00% good values" in caplog.text

    def test_injected_logger_receives_messages(self, caplog):
        matrix = make_feature_matrix(np.ones((2, 2)))
        log = logging.getLogger("masking-test")

        with caplog.at_level(logging.INFO, logger="masking-test"):
            QualityMasker(logger=log).apply(matrix)

        assert all(record.name == "masking-test" for record in caplog.records)
        assert caplog.records


class TestQualityCodes:
    def test_is_invalid(self):
        quality = np.array([0, 1, 2, 7])
        np.testing.assert_array_equal(is_invalid(quality), [False, True, True, True])

    def test_describe_quality_counts_by_name(self):
        quality = np.array([[0, 2, 2], [3, 0, 9]])
        assert describe_quality(quality) == {'NAN': 2, 'INF': 1, '9': 1}


class TestFeatureMatrix:
    def test_shape_mismatch_rejected(self):
        with pytest.raises(ValueError, match="quality shape"):
            FeatureMatrix(
                data=np.zeros((2, 2)),
                quality=np.zeros((2, 3), dtype=np.int64),
                time_series=pd.DataFrame({'Name': ['a', 'b']}),
                operations=pd.DataFrame({'Name': ['x', 'y'], 'MasterID': [1, 2]}),
            )

    def test_missing_required_column_rejected(self):
        with pytest.raises(ValueError, match="MasterID"):
            FeatureMatrix(
                data=np.zeros((1, 1)),
                quality=np.zeros((1, 1), dtype=np.int64),
                time_series=pd.DataFrame({'Name': ['a']}),
                operations=pd.DataFrame({'Name': ['x']}),
            )

    def test_select_keeps_components_aligned(self):
        data = np.arange(12, dtype=float).reshape(4, 3)
        matrix = make_feature_matrix(data)

        subset = matrix.select(rows=np.array([True, False, True, True]), columns=[2, 0])

        assert subset.shape == (3, 2)
        np.testing.assert_array_equal(subset.data, [[2, 0], [8, 6], [11, 9]])
        assert list(subset.time_series['Name']) == ['ts_000', 'ts_002', 'ts_003']
        assert list(subset.operations['Name']) == ['op_002', 'op_000']

    def test_identity_survives_successive_selections(self):
        matrix = make_feature_matrix(np.arange(20, dtype=float).reshape(5, 4))

        once = matrix.select_rows(np.array([False, True, True, True, True]))
        twice = once.select_rows(np.array([True, False, True, True]))

        assert list(twice.time_series.index) == [2, 4, 5]
        assert list(twice.time_series['Name']) == ['ts_001', 'ts_003', 'ts_004']

    def test_mask_length_checked(self):
        matrix = make_feature_matrix(np.zeros((3, 2)))
        with pytest.raises(ValueError, match="mask length"):
            matrix.select_rows(np.array([True, False]))

    def test_groups(self, grouped_matrix, clean_matrix):
        assert grouped_matrix.has_groups
        assert set(grouped_matrix.groups) == {'A', 'B'}
        assert clean_matrix.groups is None
        assert not clean_matrix.has_groups


class TestValidation:
    def test_empty_matrix_rejected(self):
        matrix = make_feature_matrix(np.empty((0, 3)))
        assert QualityMasker().validate(matrix) == ["Cannot process empty matrix"]
        with pytest.raises(ValueError, match="Cannot process empty matrix"):
            QualityMasker().apply(matrix)


class TestFeatureMatrixCopy:
    def test_deep_copy_is_independent(self, clean_matrix):
        copied = clean_matrix.copy()
        copied.data[0, 0] = -999.0
        assert clean_matrix.data[0, 0] != -999.0

    def test_shallow_copy_shares_arrays(self, clean_matrix):
        assert clean_matrix.copy(deep=False).data is clean_matrix.data

    def test_repr(self, gappy_matrix):
        text = repr(gappy_matrix)
        assert "30 time series" in text
        assert "ts_000...ts_029" in text
        assert f"Missing values: {int(np.isnan(gappy_matrix.data).sum())}" in text
