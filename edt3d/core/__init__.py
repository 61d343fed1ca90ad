"""Core functionality for edt3d package."""

from .distance_transform import euclidean_distance_3d, squared_distance_field, OutputKind

__all__ = ["euclidean_distance_3d", "squared_distance_field", "OutputKind"]
