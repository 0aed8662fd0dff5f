"""Unit tests for no-data masking and contribution accumulation."""

import numpy as np
import pytest

from dem_overlay.compositing import accumulate, nodata_mask
from dem_overlay.rasterize import LayerContribution


def _contribution(values, covered=None):
    values = np.asarray(values, dtype=np.float32)
    if covered is None:
        covered = values != 0
    return LayerContribution(values=values, covered=np.asarray(covered, dtype=bool), feature_count=1)


class TestNodataMask:
    def test_no_declared_value(self):
        data = np.array([[-9999.0, 1.0]], dtype=np.float32)
        assert not nodata_mask(data, None).any()

    def test_tolerance(self):
        data = np.array([[-9999.0, -9999.000001, -9998.9, 0.0]], dtype=np.float32)
        mask = nodata_mask(data, -9999.0, 1e-5)
        assert mask.tolist() == [[True, True, False, False]]

    def test_nan_nodata(self):
        data = np.array([[np.nan, 1.0]], dtype=np.float32)
        assert nodata_mask(data, float("nan")).tolist() == [[True, False]]


class TestAccumulate:
    def test_adds_nonzero_cells(self):
        buffer = np.full((1, 3), 100.0, dtype=np.float32)
        burned, skipped = accumulate(buffer, _contribution([[5.0, 0.0, -2.0]]), np.zeros((1, 3), bool))
        assert buffer.tolist() == [[105.0, 100.0, 98.0]]
        assert (burned, skipped) == (2, 0)

    def test_skips_nodata_cells(self):
        buffer = np.array([[-9999.0, 100.0]], dtype=np.float32)
        mask = nodata_mask(buffer, -9999.0)
        burned, skipped = accumulate(buffer, _contribution([[5.0, 5.0]]), mask)
        assert buffer.tolist() == [[-9999.0, 105.0]]
        assert (burned, skipped) == (1, 1)

    def test_zero_contribution_is_noop(self):
        buffer = np.full((2, 2), 3.0, dtype=np.float32)
        burned, _ = accumulate(buffer, _contribution(np.zeros((2, 2))), np.zeros((2, 2), bool))
        assert np.all(buffer == 3.0)
        assert burned == 0

    def test_covered_mode_counts_zero_valued_coverage(self):
        buffer = np.full((1, 2), 10.0, dtype=np.float32)
        contribution = _contribution([[0.0, 4.0]], covered=[[True, True]])

        nonzero = buffer.copy()
        assert accumulate(nonzero, contribution, np.zeros((1, 2), bool), "nonzero") == (1, 0)
        covered = buffer.copy()
        assert accumulate(covered, contribution, np.zeros((1, 2), bool), "covered") == (2, 0)
        np.testing.assert_array_equal(nonzero, covered)

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="accumulation must be one of"):
            accumulate(np.zeros((1, 1), np.float32), _contribution([[1.0]]), np.zeros((1, 1), bool), "max")
