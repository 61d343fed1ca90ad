"""
Exact 3D Euclidean distance transform.

This package computes, for every voxel of a binary volume, the Euclidean
distance to the nearest foreground voxel using the separable algorithm of
Saito and Toriwaki.
"""

from .config import TransformConfig
from .errors import DistanceTransformError, InvalidInputKind, InvalidOutputKind, AllocationFailure
from .core.distance_transform import (
    OutputKind,
    euclidean_distance_3d,
    distance_float,
    distance_scaled,
    squared_distance_field,
    brute_force_distance,
)

__version__ = "0.1.0"
