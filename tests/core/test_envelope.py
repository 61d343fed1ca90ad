"""Tests for the lower-envelope minimisation and the propagation passes."""

import unittest
from unittest import mock

import numpy as np
import torch

from edt3d.core.distance_transform import (
    band_pass,
    column_seed_pass,
    lower_envelope_line,
    propagate_axis,
    row_pass,
    search_window,
)


def _line_reference(field, foreground, axis, epsilon):
    """Minimise every line of a numpy field with lower_envelope_line."""
    field = field.copy()
    lines = np.moveaxis(field, axis, -1)
    fg = np.moveaxis(foreground, axis, -1)
    scratch = np.empty(max(field.shape))
    for k in range(lines.shape[0]):
        for m in range(lines.shape[1]):
            lower_envelope_line(lines[k, m], fg[k, m], scratch, epsilon)
    return field


def _window_work(field, foreground, axis, epsilon):
    """Number of candidates other than the voxel itself over all windows of an axis."""
    lines = np.moveaxis(field, axis, -1)
    fg = np.moveaxis(foreground, axis, -1)
    n = lines.shape[-1]
    total = 0
    for index in np.ndindex(*lines.shape):
        if fg[index]:
            continue
        start, end = search_window(lines[index], index[-1], n, epsilon)
        total += end - start - 1
    return total


class TestSearchWindow(unittest.TestCase):
    """Test cases for the candidate window."""

    def test_window_bounds(self):
        """Test the window spans the reach on both sides plus epsilon below."""
        self.assertEqual(search_window(4.0, 5, 10), (3, 8))
        self.assertEqual(search_window(4.0, 5, 10, epsilon=1), (2, 8))

    def test_window_rounds_reach_up(self):
        """Test a non-square value widens the reach to the next integer."""
        # sqrt(5) is about 2.24, so the reach is 3
        self.assertEqual(search_window(5.0, 5, 20), (2, 9))

    def test_zero_value_only_covers_itself(self):
        """Test a zero value searches only its own position."""
        self.assertEqual(search_window(0.0, 3, 10), (3, 4))

    def test_window_is_clamped(self):
        """Test the window never leaves the line."""
        self.assertEqual(search_window(9.0, 1, 4), (0, 4))
        self.assertEqual(search_window(100.0, 0, 1, epsilon=1), (0, 1))


class TestLowerEnvelopeLine(unittest.TestCase):
    """Test cases for minimising one line."""

    def test_fills_between_foreground(self):
        """Test distances between two foreground voxels."""
        values = np.array([0.0, 9.0, 9.0, 9.0, 0.0])
        foreground = np.array([True, False, False, False, True])
        scratch = np.empty(5)

        lower_envelope_line(values, foreground, scratch)

        np.testing.assert_array_equal(values, [0.0, 1.0, 4.0, 1.0, 0.0])

    def test_combines_with_seeded_values(self):
        """Test seeded values spread to their neighbours."""
        values = np.array([4.0, 0.0, 4.0])
        foreground = np.array([False, True, False])

        lower_envelope_line(values, foreground, np.empty(3))

        np.testing.assert_array_equal(values, [1.0, 0.0, 1.0])

    def test_values_never_increase(self):
        """Test minimisation only lowers values."""
        values = np.array([2.0, 5.0, 1.0, 8.0, 3.0, 50.0])
        before = values.copy()

        lower_envelope_line(values, np.zeros(6, dtype=bool), np.empty(6))

        self.assertTrue(np.all(values <= before))
        np.testing.assert_array_equal(values, [2.0, 2.0, 1.0, 2.0, 3.0, 4.0])

    def test_matches_full_scan(self):
        """Test the windowed search finds the minimum over the whole line."""
        rng = np.random.default_rng(5)
        for _ in range(20):
            values = rng.integers(0, 40, size=12).astype(np.float64)
            foreground = values == 0
            positions = np.arange(12)
            expected = np.min(values[None, :] + (positions[:, None] - positions[None, :]) ** 2, axis=1)

            lower_envelope_line(values, foreground, np.empty(12))

            np.testing.assert_array_equal(values, expected)

    def test_foreground_is_skipped(self):
        """Test foreground positions keep their value."""
        values = np.array([0.0, 7.0])
        foreground = np.array([True, True])
        lower_envelope_line(values, foreground, np.empty(2))
        np.testing.assert_array_equal(values, [0.0, 7.0])

    def test_scratch_must_fit_line(self):
        """Test a short scratch buffer is rejected."""
        with self.assertRaises(ValueError):
            lower_envelope_line(np.zeros(4), np.zeros(4, dtype=bool), np.empty(3))


class TestPropagateAxis(unittest.TestCase):
    """Test cases for the vectorized axis passes."""

    def setUp(self):
        """Set up a random volume and its column-seeded field."""
        rng = np.random.default_rng(11)
        self.foreground = rng.random((5, 6, 7)) < 0.1
        self.foreground[0, 0, 0] = True
        self.field = column_seed_pass(torch.from_numpy(self.foreground))

    def test_matches_line_version(self):
        """Test the vectorized pass equals minimising each line separately."""
        for axis in (0, 1):
            for epsilon in (0, 1):
                expected = _line_reference(self.field.numpy(), self.foreground, axis, epsilon)
                result = propagate_axis(self.field.clone(), torch.from_numpy(self.foreground), axis, epsilon)
                np.testing.assert_array_equal(result.numpy(), expected)

    def test_updates_in_place(self):
        """Test the field passed in is the one updated."""
        field = self.field.clone()
        result = propagate_axis(field, torch.from_numpy(self.foreground), 1)
        self.assertIs(result, field)

    def test_work_follows_window_sizes(self):
        """Test each voxel only compares the candidates inside its own window."""
        foreground = torch.from_numpy(self.foreground)
        for axis in (0, 1):
            for epsilon in (0, 1):
                expected = _window_work(self.field.numpy(), self.foreground, axis, epsilon)
                with mock.patch("torch.minimum", wraps=torch.minimum) as minimum:
                    propagate_axis(self.field.clone(), foreground, axis, epsilon)
                compared = sum(call.args[0].numel() for call in minimum.call_args_list)
                self.assertEqual(compared, expected)

    def test_one_wide_window_does_not_widen_the_rest(self):
        """Test an empty row costs its own windows, not the whole volume's."""
        foreground = torch.ones((1, 64, 64), dtype=torch.bool)
        foreground[0, 10, :] = False
        field = column_seed_pass(foreground)

        with mock.patch("torch.minimum", wraps=torch.minimum) as minimum:
            row_pass(field, foreground)
        compared = sum(call.args[0].numel() for call in minimum.call_args_list)

        # 64 background voxels, each with a window spanning its 64-voxel line
        self.assertEqual(compared, 64 * 63)
        self.assertTrue(torch.all(field[0, 10] == 1.0))
        self.assertTrue(torch.all(field[foreground] == 0.0))

    def test_passes_only_reduce(self):
        """Test the row pass never raises the column values and the band pass never raises the row values."""
        foreground = torch.from_numpy(self.foreground)
        seeded = self.field.clone()
        rows = row_pass(seeded.clone(), foreground)
        bands = band_pass(rows.clone(), foreground)

        self.assertTrue(torch.all(rows <= seeded))
        self.assertTrue(torch.all(bands <= rows))
        self.assertTrue(torch.all(bands[foreground] == 0.0))

    def test_each_pass_adds_an_axis(self):
        """Test the row and band passes each reach foreground the previous pass could not."""
        foreground = torch.zeros((5, 5, 5), dtype=torch.bool)
        foreground[2, 2, 2] = True
        seeded = column_seed_pass(foreground)
        rows = row_pass(seeded.clone(), foreground)
        bands = band_pass(rows.clone(), foreground)

        # same band, other row: only reachable once rows are considered
        self.assertEqual(seeded[2, 0, 2].item(), 75.0)
        self.assertEqual(rows[2, 0, 2].item(), 4.0)
        # other band: only reachable once bands are considered
        self.assertEqual(rows[0, 2, 2].item(), 75.0)
        self.assertEqual(bands[0, 2, 2].item(), 4.0)
        self.assertEqual(bands[0, 0, 0].item(), 12.0)


if __name__ == '__main__':
    unittest.main()
