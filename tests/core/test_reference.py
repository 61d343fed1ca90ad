"""Tests for the brute-force reference transform."""

import unittest

import numpy as np
import torch

from edt3d.core.distance_transform import brute_force_distance


class TestBruteForceDistance(unittest.TestCase):
    """Test cases for brute_force_distance."""

    def test_two_seeds(self):
        """Test a line between two foreground voxels."""
        volume = np.zeros((1, 1, 7), dtype=bool)
        volume[0, 0, 0] = True
        volume[0, 0, 6] = True

        result = brute_force_distance(volume)

        np.testing.assert_array_equal(result[0, 0], [0, 1, 2, 3, 2, 1, 0])

    def test_diagonal_distance(self):
        """Test distances across all three axes."""
        volume = torch.zeros((3, 3, 3), dtype=torch.bool)
        volume[0, 0, 0] = True

        result = brute_force_distance(volume)

        self.assertAlmostEqual(result[2, 2, 2], np.sqrt(12.0))
        self.assertAlmostEqual(result[1, 0, 1], np.sqrt(2.0))

    def test_blocks_do_not_change_result(self):
        """Test the block size only affects memory use."""
        rng = np.random.default_rng(0)
        volume = rng.random((4, 4, 4)) < 0.1
        volume[0, 0, 0] = True
        np.testing.assert_array_equal(
            brute_force_distance(volume, max_block=5), brute_force_distance(volume)
        )


if __name__ == '__main__':
    unittest.main()
