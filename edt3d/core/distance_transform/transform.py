"""
Exact 3D Euclidean distance transform of binary volumes.

Implements the separable squared-distance algorithm of

    Toyofumi Saito, Jun-Ichiro Toriwaki (1994).
    "New algorithms for euclidean distance transformation of a n-dimensional
    picture with applications", Pattern Recognition 27(11), pp. 1551-1565.

The squared distance field is built by three passes (columns, rows, bands)
and then finished either as floating point distances or as distances scaled
by 10 and stored as saturated integers.
"""

import logging
import time
from enum import Enum
from typing import Optional, Tuple, Union

import torch

from edt3d.config import TransformConfig
from edt3d.core.distance_transform.column import column_seed_pass
from edt3d.core.distance_transform.envelope import BAND_AXIS, ROW_AXIS, band_pass, row_pass
from edt3d.core.distance_transform.parallel import LineTransform
from edt3d.core.distance_transform.volume import (
    VolumeLike,
    as_binary_volume,
    default_sentinel,
    volume_shape,
)
from edt3d.errors import AllocationFailure, InvalidOutputKind

logger = logging.getLogger(__name__)


class OutputKind(Enum):
    """Numeric representation of the transform's output."""
    SCALED_SHORT = "short"
    FLOAT = "float"

    @classmethod
    def parse(cls, kind: Union["OutputKind", str, torch.dtype]) -> "OutputKind":
        """
        Resolve an output kind given as a member, a name or a torch dtype.

        Raises:
            InvalidOutputKind: If the kind names neither representation
        """
        if isinstance(kind, cls):
            return kind
        if isinstance(kind, str):
            try:
                return cls(kind.lower())
            except ValueError:
                pass
        if kind == torch.int16:
            return cls.SCALED_SHORT
        if kind == torch.float32:
            return cls.FLOAT
        raise InvalidOutputKind(f"output kind must be either 'short' or 'float', got {kind!r}")


def _is_allocation_error(err: Exception) -> bool:
    if isinstance(err, MemoryError):
        return True
    message = str(err).lower()
    return isinstance(err, RuntimeError) and (
        "out of memory" in message or "not enough memory" in message or "can't allocate" in message
    )


def select_destination(
    out: Optional[torch.Tensor],
    shape: Tuple[int, int, int],
    dtype: torch.dtype,
    device: Union[str, torch.device] = "cpu",
) -> torch.Tensor:
    """
    Return the tensor the finished distances are written into.

    A caller supplied tensor is used when it matches the volume's shape and the
    output dtype; otherwise a new one is allocated.

    Raises:
        AllocationFailure: If out does not match or allocation fails
    """
    if out is not None:
        if not isinstance(out, torch.Tensor):
            raise AllocationFailure(f"output buffer must be a torch.Tensor, got {type(out)}")
        if tuple(out.shape) != tuple(shape):
            raise AllocationFailure(f"output buffer has shape {tuple(out.shape)}, expected {tuple(shape)}")
        if out.dtype != dtype:
            raise AllocationFailure(f"output buffer has dtype {out.dtype}, expected {dtype}")
        return out

    try:
        return torch.empty(shape, dtype=dtype, device=device)
    except (MemoryError, RuntimeError) as err:
        if _is_allocation_error(err):
            raise AllocationFailure(f"could not allocate output of shape {shape}") from err
        raise


def _squared_field(foreground: torch.Tensor, config: TransformConfig) -> torch.Tensor:
    shape = volume_shape(foreground)
    sentinel = config.sentinel if config.sentinel is not None else default_sentinel(shape)

    # a smaller sentinel both loses against real distances and cuts the search window short
    largest = float(sum((s - 1) * (s - 1) for s in shape))
    if sentinel <= largest:
        raise ValueError(
            f"sentinel {sentinel} must exceed the largest squared distance {largest} of a {shape} volume"
        )
    start = time.time()

    try:
        if config.backend == "lines":
            fg = foreground.cpu().numpy()
            lines = LineTransform(shape, workers=config.workers)
            field = lines.column_pass(fg, sentinel)
            lines.propagate(field, fg, ROW_AXIS, config.row_epsilon)
            lines.propagate(field, fg, BAND_AXIS, config.band_epsilon)
            field = torch.from_numpy(field).to(foreground.device)
        else:
            field = column_seed_pass(foreground, sentinel)
            row_pass(field, foreground, config.row_epsilon)
            band_pass(field, foreground, config.band_epsilon)
    except (MemoryError, RuntimeError) as err:
        if _is_allocation_error(err):
            raise AllocationFailure(f"could not allocate working buffers for volume of shape {shape}") from err
        raise

    logger.debug(f"Squared distance field {shape} computed with {config.backend} backend in {time.time() - start:.3f}s")
    return field


def squared_distance_field(volume: VolumeLike, config: Optional[TransformConfig] = None) -> torch.Tensor:
    """
    Compute the squared Euclidean distance of every voxel to the nearest foreground voxel.

    Args:
        volume: Binary volume of shape (bands, rows, columns)
        config: Transform options (defaults to TransformConfig())

    Returns:
        Float64 tensor of squared distances. Voxels with no foreground anywhere
        in reach hold the sentinel value.
    """
    config = config or TransformConfig()
    foreground = as_binary_volume(volume, device=config.device)
    return _squared_field(foreground, config)


def finish_float(squared: torch.Tensor, out: Optional[torch.Tensor] = None) -> torch.Tensor:
    """Take the square root of a squared distance field as float32."""
    result = torch.sqrt(squared).to(torch.float32)
    if out is None:
        return result
    out.copy_(result)
    return out


def finish_scaled(
    squared: torch.Tensor,
    scale: float = 10.0,
    dtype: torch.dtype = torch.int16,
    out: Optional[torch.Tensor] = None,
) -> torch.Tensor:
    """
    Scale distances and round them to integers.

    Values are rounded half away from zero and saturate at the largest value
    the integer dtype can hold instead of wrapping.

    Args:
        squared: Squared distance field
        scale: Factor applied to the distance before rounding
        dtype: Integer dtype of the result
        out: Optional destination tensor of that dtype

    Returns:
        Integer tensor of round(scale * sqrt(squared)), clamped to dtype's max
    """
    limit = torch.iinfo(dtype).max
    scaled = torch.floor(scale * torch.sqrt(squared.to(torch.float64)) + 0.5)
    result = torch.clamp(scaled, max=float(limit)).to(dtype)
    if out is None:
        return result
    out.copy_(result)
    return out


def distance_float(
    volume: VolumeLike,
    out: Optional[torch.Tensor] = None,
    config: Optional[TransformConfig] = None,
) -> torch.Tensor:
    """
    Euclidean distance transform with float32 output.

    Args:
        volume: Binary volume of shape (bands, rows, columns)
        out: Optional float32 destination with the volume's shape
        config: Transform options

    Returns:
        Float32 tensor of distances to the nearest foreground voxel
    """
    config = config or TransformConfig()
    foreground = as_binary_volume(volume, device=config.device)
    dest = select_destination(out, volume_shape(foreground), torch.float32, foreground.device)
    return finish_float(_squared_field(foreground, config), out=dest)


def distance_scaled(
    volume: VolumeLike,
    out: Optional[torch.Tensor] = None,
    config: Optional[TransformConfig] = None,
) -> torch.Tensor:
    """
    Euclidean distance transform with scaled fixed-point output.

    Distances are multiplied by config.scale (10 by default), rounded and stored
    in config.output_dtype (int16 by default), saturating at its maximum.

    Args:
        volume: Binary volume of shape (bands, rows, columns)
        out: Optional destination of the output dtype with the volume's shape
        config: Transform options

    Returns:
        Integer tensor of scaled distances
    """
    config = config or TransformConfig()
    foreground = as_binary_volume(volume, device=config.device)
    dest = select_destination(out, volume_shape(foreground), config.output_dtype, foreground.device)
    squared = _squared_field(foreground, config)
    return finish_scaled(squared, scale=config.scale, dtype=config.output_dtype, out=dest)


def euclidean_distance_3d(
    volume: VolumeLike,
    output_kind: Union[OutputKind, str, torch.dtype] = OutputKind.FLOAT,
    out: Optional[torch.Tensor] = None,
    config: Optional[TransformConfig] = None,
) -> torch.Tensor:
    """
    Compute the 3D Euclidean distance transform of a binary volume.

    For each background voxel, the length of the shortest straight path to the
    nearest foreground voxel is computed; foreground voxels get 0.

    Args:
        volume: Binary volume of shape (bands, rows, columns)
        output_kind: "float" for float32 distances, "short" for distances
                     multiplied by 10 and stored as int16
        out: Optional destination tensor matching the volume and output kind
        config: Transform options

    Returns:
        Tensor of distances with the volume's shape

    Raises:
        InvalidInputKind: If the volume is not binary
        InvalidOutputKind: If output_kind is not supported
        AllocationFailure: If the output cannot be allocated or out does not fit
    """
    config = config or TransformConfig()
    foreground = as_binary_volume(volume, device=config.device)
    kind = OutputKind.parse(output_kind)

    logger.debug(f"Euclidean distance transform of {tuple(foreground.shape)} volume, output {kind.value}")
    if kind is OutputKind.SCALED_SHORT:
        return distance_scaled(foreground, out=out, config=config)
    return distance_float(foreground, out=out, config=config)
