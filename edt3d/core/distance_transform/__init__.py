"""
Exact Euclidean distance transform for binary volumes.

The transform maps each voxel to the Euclidean distance to the nearest
foreground voxel. It is computed with the separable Saito-Toriwaki algorithm:
a column seed pass followed by lower-envelope minimisation along rows and then
bands, and a finishing step producing float or scaled integer distances.
"""

from edt3d.core.distance_transform.volume import (
    as_binary_volume,
    default_sentinel,
)

from edt3d.core.distance_transform.column import (
    column_seed_line,
    column_seed_pass,
)

from edt3d.core.distance_transform.envelope import (
    search_window,
    lower_envelope_line,
    propagate_axis,
    row_pass,
    band_pass,
)

from edt3d.core.distance_transform.parallel import LineTransform

from edt3d.core.distance_transform.transform import (
    OutputKind,
    squared_distance_field,
    finish_float,
    finish_scaled,
    distance_float,
    distance_scaled,
    euclidean_distance_3d,
)

from edt3d.core.distance_transform.reference import brute_force_distance
