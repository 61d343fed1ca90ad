"""
Lower-envelope minimisation shared by the row and band passes.

Along one axis the squared distance field f is replaced by

    g[i] = min_{j in window(i)} f[j] + (i - j)^2

which is the lower envelope of the parabolas rooted at each f[j]. Since
g[i] <= f[i], only j with (i - j)^2 <= f[i] can win, so the search is limited to

    window(i) = [i - ceil(sqrt(f[i])) - epsilon, i + ceil(sqrt(f[i])) + 1)

clamped to the line. epsilon is 0 for rows and 1 for bands, matching the
reference algorithm. Foreground voxels are never recomputed and stay 0.
"""

import logging
import math
import time

import numpy as np
import torch

logger = logging.getLogger(__name__)

ROW_AXIS = 1
BAND_AXIS = 0


def search_window(value: float, index: int, length: int, epsilon: int = 0):
    """
    Candidate index range for one position of a line.

    Args:
        value: Squared distance currently stored at the position
        index: Position in the line
        length: Length of the line
        epsilon: Extra reach below the position

    Returns:
        Tuple (start, end) of the half-open index range, clamped to [0, length)
    """
    reach = int(math.ceil(math.sqrt(value)))
    start = max(0, index - reach - epsilon)
    end = min(length, index + reach + 1)
    return start, end


def lower_envelope_line(
    values: np.ndarray,
    foreground: np.ndarray,
    scratch: np.ndarray,
    epsilon: int = 0,
) -> np.ndarray:
    """
    Minimise one line of squared distances in place.

    The line is first copied into the scratch buffer so that every position is
    computed from the values the line held before this call.

    Args:
        values: Float array of squared distances, overwritten with the result
        foreground: Boolean array of the same length, True at foreground voxels
        scratch: Float buffer at least as long as the line
        epsilon: Extra reach of the window below each position

    Returns:
        The updated values array
    """
    n = values.shape[0]
    if scratch.shape[0] < n:
        raise ValueError(f"scratch buffer of length {scratch.shape[0]} is shorter than line of length {n}")

    scratch[:n] = values
    positions = np.arange(n)

    for i in range(n):
        if foreground[i]:
            continue

        start, end = search_window(scratch[i], i, n, epsilon)
        offsets = i - positions[start:end]
        values[i] = np.min(scratch[start:end] + offsets * offsets)

    return values


def _count_reaching(neg_reach: torch.Tensor, offset: int) -> int:
    """Number of leading voxels in reach-sorted order whose reach is at least offset."""
    bound = torch.tensor([-offset], dtype=neg_reach.dtype, device=neg_reach.device)
    return int(torch.searchsorted(neg_reach, bound, right=True).item())


def propagate_axis(
    field: torch.Tensor,
    foreground: torch.Tensor,
    axis: int,
    epsilon: int = 0,
) -> torch.Tensor:
    """
    Apply the lower-envelope minimisation to every line along one axis.

    Vectorized over all lines at once. Voxels are ordered by the reach of
    their own window, ceil(sqrt(f)), so that for an offset d the voxels whose
    window still contains i + d (or i - d) form a prefix of that order. Each
    offset only gathers that prefix, which keeps the total work at the sum of
    the per-voxel window sizes rather than the volume times the widest window.
    This yields exactly the values of lower_envelope_line.

    Args:
        field: Float64 tensor of squared distances, updated in place
        foreground: Boolean tensor of the same shape
        axis: Axis the lines run along
        epsilon: Extra reach of the window below each position

    Returns:
        The updated field
    """
    lines = field.movedim(axis, -1)
    fg = foreground.movedim(axis, -1).reshape(-1)
    n = lines.shape[-1]

    # values of the axis before minimisation, the role of the scratch buffer;
    # flattened so that voxel v + d is d steps further along v's own line
    snapshot = lines.reshape(-1).clone()
    best = snapshot.clone()

    reach = torch.ceil(torch.sqrt(snapshot)).clamp(max=n).to(torch.int64)
    # foreground voxels are never recomputed
    reach = reach.masked_fill(fg, -1 - epsilon)
    reach_sorted, order = torch.sort(reach, descending=True)
    neg_reach = -reach_sorted
    position = order % n

    max_offset = 0
    if n > 1:
        max_offset = min(n - 1, int(reach_sorted[0].item()) + epsilon)

    for d in range(1, max_offset + 1):
        dd = float(d * d)

        # candidates above: j = i + d
        count = _count_reaching(neg_reach, d)
        if count:
            voxels = order[:count][position[:count] < n - d]
            best[voxels] = torch.minimum(best[voxels], snapshot[voxels + d] + dd)

        # candidates below: j = i - d
        count = _count_reaching(neg_reach, d - epsilon)
        if not count:
            break
        voxels = order[:count][position[:count] >= d]
        best[voxels] = torch.minimum(best[voxels], snapshot[voxels - d] + dd)

    best = best.masked_fill(fg, 0.0)
    lines.copy_(best.view(lines.shape))
    return field


def row_pass(field: torch.Tensor, foreground: torch.Tensor, epsilon: int = 0) -> torch.Tensor:
    """Minimise the field along rows for every (band, column) pair."""
    start = time.time()
    propagate_axis(field, foreground, ROW_AXIS, epsilon)
    logger.debug(f"Row pass finished in {time.time() - start:.3f}s")
    return field


def band_pass(field: torch.Tensor, foreground: torch.Tensor, epsilon: int = 1) -> torch.Tensor:
    """Minimise the field along bands for every (row, column) pair."""
    start = time.time()
    propagate_axis(field, foreground, BAND_AXIS, epsilon)
    logger.debug(f"Band pass finished in {time.time() - start:.3f}s")
    return field
