from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

    from blendedgridding.pre.sampling import Sampling

logger = logging.getLogger(__name__)


class SimpleGridder2:
    """
    Places scattered samples in the nearest grid cell.

    Samples that fall into the same cell are averaged. Cells without any
    sample are set to the null value.
    """

    def __init__(
        self,
        f: npt.ArrayLike | None = None,
        x1: npt.ArrayLike | None = None,
        x2: npt.ArrayLike | None = None,
    ) -> None:
        self.pnull = 0.0
        self.f = f
        self.x1 = x1
        self.x2 = x2

    def set_null_value(self, pnull: float) -> None:
        """Sets the value of cells that contain no sample."""
        self.pnull = pnull

    def set_scattered(self, f: npt.ArrayLike, x1: npt.ArrayLike, x2: npt.ArrayLike) -> None:
        self.f = f
        self.x1 = x1
        self.x2 = x2

    def grid(self, s1: Sampling, s2: Sampling) -> npt.NDArray[np.float64]:
        """
        Rasterize the scattered samples.

        Args:
            s1: Sampling of the first dimension.
            s2: Sampling of the second dimension.

        Returns:
            Array of shape (n2, n1) with averaged values and nulls.
        """
        if self.f is None or self.x1 is None or self.x2 is None:
            raise RuntimeError("Scattered samples have not been set.")

        n1, n2 = s1.count, s2.count
        f = np.asarray(self.f, dtype=np.float64)
        x1 = np.asarray(self.x1, dtype=np.float64)
        x2 = np.asarray(self.x2, dtype=np.float64)

        i1 = s1.index_of_nearest(x1)
        i2 = s2.index_of_nearest(x2)
        inside = (i1 >= 0) & (i1 < n1) & (i2 >= 0) & (i2 < n2)
        n_outside = int(np.count_nonzero(~inside))
        if n_outside:
            logger.debug(f"Ignoring {n_outside} scattered samples outside the grid.")

        total = np.zeros((n2, n1), dtype=np.float64)
        count = np.zeros((n2, n1), dtype=np.int64)
        np.add.at(total, (i2[inside], i1[inside]), f[inside])
        np.add.at(count, (i2[inside], i1[inside]), 1)

        p = np.full((n2, n1), self.pnull, dtype=np.float64)
        filled = count > 0
        p[filled] = total[filled] / count[filled]
        return p
