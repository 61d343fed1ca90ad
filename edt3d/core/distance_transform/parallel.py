"""
Line-by-line backend for the distance transform.

Each pass is split into independent groups of lines (all lines sharing the
outer index that is not the processed axis). Groups run on a thread pool;
every worker thread owns one scratch line buffer that it reuses for all the
lines it processes. Passes are issued one after the other, so a pass has
finished everywhere before the next one reads the field.

The per-position loops hold the GIL, so extra workers only overlap the numpy
window reductions; this backend is the explicit line-by-line form of the
transform, while the vectorized backend is the fast path.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Tuple

import numpy as np

from edt3d.core.distance_transform.column import column_seed_line
from edt3d.core.distance_transform.envelope import lower_envelope_line

logger = logging.getLogger(__name__)


class LineTransform:
    """
    Runs the three passes over numpy arrays one line at a time.

    Attributes:
        shape: (bands, rows, columns) of the volume
        workers: Number of worker threads (1 runs inline)
        scratch_length: Length of each worker's scratch buffer
    """

    def __init__(self, shape: Tuple[int, int, int], workers: int = 1):
        self.shape = tuple(int(s) for s in shape)
        self.workers = max(1, int(workers))
        self.scratch_length = max(self.shape)
        self._local = threading.local()

    def scratch(self) -> np.ndarray:
        """Return the calling thread's scratch buffer, allocating it on first use."""
        buffer = getattr(self._local, "buffer", None)
        if buffer is None:
            buffer = np.empty(self.scratch_length, dtype=np.float64)
            self._local.buffer = buffer
        return buffer

    def _run(self, func: Callable[[int], None], tasks: Iterable[int]) -> None:
        if self.workers == 1:
            for task in tasks:
                func(task)
            return

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            # consuming the results re-raises worker exceptions here
            list(executor.map(func, tasks))

    def column_pass(self, volume: np.ndarray, sentinel: float) -> np.ndarray:
        """
        Seed the squared column distances of a boolean volume.

        Args:
            volume: Boolean array of shape (bands, rows, columns)
            sentinel: Value for lines without foreground

        Returns:
            New float64 array holding the seeded field
        """
        bands, rows, _ = self.shape
        field = np.empty(self.shape, dtype=np.float64)

        def seed_band(b: int) -> None:
            for r in range(rows):
                column_seed_line(volume[b, r], field[b, r], sentinel)

        start = time.time()
        self._run(seed_band, range(bands))
        logger.debug(f"Column pass (lines) finished in {time.time() - start:.3f}s")
        return field

    def propagate(self, field: np.ndarray, foreground: np.ndarray, axis: int, epsilon: int = 0) -> np.ndarray:
        """
        Minimise every line of the field along one axis in place.

        Args:
            field: Float64 array of squared distances
            foreground: Boolean array of the same shape
            axis: Axis the lines run along
            epsilon: Extra reach of the window below each position

        Returns:
            The updated field
        """
        lines = np.moveaxis(field, axis, -1)
        fg = np.moveaxis(foreground, axis, -1)
        outer, inner = lines.shape[0], lines.shape[1]

        def minimise(k: int) -> None:
            scratch = self.scratch()
            for m in range(inner):
                lower_envelope_line(lines[k, m], fg[k, m], scratch, epsilon)

        start = time.time()
        self._run(minimise, range(outer))
        logger.debug(f"Axis {axis} pass (lines) finished in {time.time() - start:.3f}s")
        return field
