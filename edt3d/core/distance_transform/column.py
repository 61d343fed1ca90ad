"""
Column seed pass of the separable distance transform.

Every voxel receives the squared distance to the nearest foreground voxel in
its own (band, row) line, i.e. along the fastest varying axis. This seeds the
two propagation passes in envelope.py.
"""

import logging
from typing import Optional

import numpy as np
import torch

from edt3d.core.distance_transform.volume import default_sentinel, volume_shape

logger = logging.getLogger(__name__)


def column_seed_line(line: np.ndarray, out: np.ndarray, sentinel: float) -> np.ndarray:
    """
    Seed one column line with squared 1D distances.

    For each background voxel the line is scanned forward and backward up to
    the first foreground voxel. A side without foreground counts as ncols
    steps away, which always loses against the other side.

    Args:
        line: Boolean array of the line, True at foreground voxels
        out: Float array of the same length receiving the squared distances
        sentinel: Value written everywhere if the line holds no foreground

    Returns:
        The filled out array
    """
    ncols = line.shape[0]

    if not line.any():
        out[:ncols] = sentinel
        return out

    for c in range(ncols):
        if line[c]:
            out[c] = 0.0
            continue

        cc1 = c
        while cc1 < ncols and not line[cc1]:
            cc1 += 1
        d1 = cc1 - c if cc1 < ncols else ncols

        cc2 = c
        while cc2 >= 0 and not line[cc2]:
            cc2 -= 1
        d2 = c - cc2 if cc2 >= 0 else ncols

        d = min(d1, d2)
        out[c] = float(d * d)

    return out


def column_seed_pass(volume: torch.Tensor, sentinel: Optional[float] = None) -> torch.Tensor:
    """
    Compute the squared column distance for every voxel of a volume.

    This is the vectorized form of column_seed_line: the nearest foreground
    index after and before each voxel is found with running min/max scans over
    the column axis instead of explicit walks.

    Args:
        volume: Boolean tensor of shape (bands, rows, columns)
        sentinel: Squared distance for lines without foreground
                  (defaults to B^2 + R^2 + C^2)

    Returns:
        Float64 tensor of squared distances with the volume's shape
    """
    shape = volume_shape(volume)
    ncols = shape[2]
    if sentinel is None:
        sentinel = default_sentinel(shape)

    index = torch.arange(ncols, device=volume.device, dtype=torch.int64).expand(shape)
    far = 2 * ncols

    # nearest foreground at or after each column
    following = torch.where(volume, index, torch.full_like(index, ncols + far))
    following = torch.flip(torch.cummin(torch.flip(following, dims=[-1]), dim=-1).values, dims=[-1])

    # nearest foreground at or before each column
    preceding = torch.where(volume, index, torch.full_like(index, -1 - far))
    preceding = torch.cummax(preceding, dim=-1).values

    distance = torch.minimum(following - index, index - preceding).to(torch.float64)
    field = distance * distance

    has_foreground = volume.any(dim=-1, keepdim=True)
    field = torch.where(has_foreground, field, torch.full_like(field, float(sentinel)))

    logger.debug(
        f"Column pass seeded {shape[0] * shape[1]} lines, "
        f"{int((~has_foreground).sum().item())} without foreground"
    )
    return field
