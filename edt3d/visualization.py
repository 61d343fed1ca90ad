"""
Visualization utilities for distance fields.

Plots orthogonal slices through a (bands, rows, columns) distance field so the
growth of distances away from the foreground can be inspected.
"""

from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import torch

AXIS_NAMES = ("band", "row", "column")


def _to_numpy(field: Union[torch.Tensor, np.ndarray]) -> np.ndarray:
    if isinstance(field, torch.Tensor):
        field = field.detach().cpu().numpy()
    field = np.asarray(field)
    if field.ndim != 3:
        raise ValueError(f"Expected a 3D distance field, got shape {field.shape}")
    return field


def plot_distance_slice(
    field: Union[torch.Tensor, np.ndarray],
    axis: int = 0,
    index: Optional[int] = None,
    ax: Optional[plt.Axes] = None,
    cmap: str = "magma",
    title: Optional[str] = None,
) -> plt.Axes:
    """
    Show one slice of a distance field as an image.

    Args:
        field: Distance field of shape (bands, rows, columns)
        axis: Axis the slice is taken across (0 band, 1 row, 2 column)
        index: Slice index along that axis (defaults to the middle)
        ax: Optional axes to draw on
        cmap: Matplotlib colormap name
        title: Optional title (defaults to the axis name and index)

    Returns:
        The matplotlib Axes used for plotting
    """
    data = _to_numpy(field)
    if axis not in (0, 1, 2):
        raise ValueError(f"axis must be 0, 1 or 2, got {axis}")
    if index is None:
        index = data.shape[axis] // 2

    slice_2d = np.take(data, index, axis=axis)

    if ax is None:
        fig = plt.figure(figsize=(6, 5))
        ax = fig.add_subplot(111)

    image = ax.imshow(slice_2d, cmap=cmap, interpolation="nearest")
    ax.figure.colorbar(image, ax=ax, fraction=0.046, pad=0.04)
    ax.set_title(title or f"{AXIS_NAMES[axis]} {index}")
    return ax


def save_distance_preview(
    field: Union[torch.Tensor, np.ndarray],
    path: Union[str, Path],
    indices: Optional[Sequence[int]] = None,
    figsize: Tuple[float, float] = (15, 5),
) -> Path:
    """
    Save a figure with the three central orthogonal slices of a distance field.

    Args:
        field: Distance field of shape (bands, rows, columns)
        path: Output image path
        indices: Optional slice index per axis
        figsize: Figure size in inches

    Returns:
        The path the figure was written to
    """
    data = _to_numpy(field)
    path = Path(path)
    if indices is None:
        indices = [s // 2 for s in data.shape]

    fig, axes = plt.subplots(1, 3, figsize=figsize)
    for axis, ax in enumerate(axes):
        plot_distance_slice(data, axis=axis, index=indices[axis], ax=ax)

    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path
