"""
Exceptions raised by the distance transform.

All of them are precondition failures: the transform is a deterministic
function of its inputs, so nothing here is ever retried.
"""


class DistanceTransformError(Exception):
    """Base class for every error reported by the distance transform."""


class InvalidInputKind(DistanceTransformError, TypeError):
    """The input volume is not a binary 3D grid."""


class InvalidOutputKind(DistanceTransformError, ValueError):
    """The requested output representation is neither 'short' nor 'float'."""


class AllocationFailure(DistanceTransformError, MemoryError):
    """The output or scratch buffer could not be obtained or sized."""
