"""
Brute-force Euclidean distance transform.

Compares every voxel against every foreground voxel. Quadratic in the volume
size, so only meant for small volumes and for checking the separable
transform.
"""

import numpy as np

from edt3d.core.distance_transform.volume import VolumeLike, as_binary_volume, default_sentinel, volume_shape


def brute_force_distance(volume: VolumeLike, max_block: int = 4096) -> np.ndarray:
    """
    Exact distance of each voxel to its nearest foreground voxel.

    Args:
        volume: Binary volume of shape (bands, rows, columns)
        max_block: Number of voxels compared against the foreground at once

    Returns:
        Float64 array of distances. A volume without foreground yields
        sqrt(B^2 + R^2 + C^2) everywhere, the same sentinel the separable
        transform uses.
    """
    binary = as_binary_volume(volume)
    shape = volume_shape(binary)
    foreground = binary.cpu().numpy()

    seeds = np.argwhere(foreground).astype(np.float64)
    if seeds.shape[0] == 0:
        return np.full(shape, np.sqrt(default_sentinel(shape)), dtype=np.float64)

    voxels = np.indices(shape).reshape(3, -1).T.astype(np.float64)
    squared = np.empty(voxels.shape[0], dtype=np.float64)

    for start in range(0, voxels.shape[0], max_block):
        block = voxels[start:start + max_block]
        diff = block[:, None, :] - seeds[None, :, :]
        squared[start:start + max_block] = np.min(np.sum(diff * diff, axis=-1), axis=1)

    return np.sqrt(squared).reshape(shape)
