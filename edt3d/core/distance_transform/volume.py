"""
Input handling for binary volumes.

Volumes are indexed [band, row, column]. Either a torch tensor or a numpy
array is accepted; both are normalised to a boolean torch tensor.
"""

from typing import Tuple, Union

import numpy as np
import torch

from edt3d.errors import InvalidInputKind

VolumeLike = Union[torch.Tensor, np.ndarray]

_INTEGER_DTYPES = (
    torch.uint8,
    torch.int8,
    torch.int16,
    torch.int32,
    torch.int64,
)


def as_binary_volume(volume: VolumeLike, device: Union[str, torch.device] = "cpu") -> torch.Tensor:
    """
    Validate a volume and return it as a boolean tensor.

    Boolean volumes are accepted as is. Integer volumes are accepted when every
    value is 0 or 1. Anything else, including floating point volumes, is not a
    binary representation and is rejected.

    Args:
        volume: 3D tensor or array of shape (bands, rows, columns)
        device: Device the returned tensor lives on

    Returns:
        Boolean tensor where True marks foreground voxels

    Raises:
        InvalidInputKind: If the volume is not a 3D binary grid
    """
    if isinstance(volume, np.ndarray):
        if volume.dtype.kind not in ("b", "u", "i"):
            raise InvalidInputKind(f"input volume must be binary, got numpy dtype {volume.dtype}")
        # uint16/uint32 have no torch counterpart on older releases
        if volume.dtype.kind == "u" and volume.dtype.itemsize > 1:
            volume = volume.astype(np.int64)
        tensor = torch.from_numpy(np.ascontiguousarray(volume))
    elif isinstance(volume, torch.Tensor):
        tensor = volume
    else:
        raise InvalidInputKind(f"input volume must be a torch.Tensor or numpy.ndarray, got {type(volume)}")

    if tensor.dim() != 3:
        raise InvalidInputKind(f"input volume must be 3D, got shape {tuple(tensor.shape)}")
    if any(s < 1 for s in tensor.shape):
        raise InvalidInputKind(f"input volume must be non-empty, got shape {tuple(tensor.shape)}")

    if tensor.dtype == torch.bool:
        return tensor.to(device)
    if tensor.dtype not in _INTEGER_DTYPES:
        raise InvalidInputKind(f"input volume must be binary, got dtype {tensor.dtype}")
    if not bool(((tensor == 0) | (tensor == 1)).all()):
        raise InvalidInputKind("input volume holds values other than 0 and 1")

    return (tensor != 0).to(device)


def volume_shape(volume: torch.Tensor) -> Tuple[int, int, int]:
    bands, rows, columns = volume.shape
    return int(bands), int(rows), int(columns)


def default_sentinel(shape: Tuple[int, int, int]) -> float:
    """
    Squared distance assigned to lines that hold no foreground voxel.

    The value B^2 + R^2 + C^2 is larger than any squared distance that can occur
    inside the grid, so a sentinel voxel's search window spans its whole line.
    """
    bands, rows, columns = shape
    return float(bands * bands + rows * rows + columns * columns)
