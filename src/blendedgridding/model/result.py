from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

    from blendedgridding.pre.sampling import Sampling


@dataclass
class GriddedResult:
    """
    Output of one gridding run.

    Attributes:
        s1: Sampling of the first dimension.
        s2: Sampling of the second dimension.
        q: Gridded values, blended if blending was enabled.
        t: Times to the nearest known samples.
        p: Nearest-neighbor gridded values.
    """
    s1: Sampling
    s2: Sampling
    q: npt.NDArray[np.float64]
    t: npt.NDArray[np.float64]
    p: npt.NDArray[np.float64]

    @property
    def shape(self) -> tuple[int, int]:
        return self.s2.count, self.s1.count

    @property
    def known(self) -> npt.NDArray[np.bool_]:
        """Mask of samples with known values."""
        return self.t == 0.0
