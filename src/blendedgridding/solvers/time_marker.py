"""
Time Marker
===========
Computes times to the nearest seeded sample, and the marks of those samples,
by solving the eikonal equation grad(t)' D grad(t) = 1 on a 2D grid.

The solve is heap-ordered and label-correcting: a sample whose time
decreases is queued again, so fronts that bend with an anisotropic tensor
field still converge. Local updates use the four quadrant triangles around a
sample and one-sided updates along the grid axes.
"""
from __future__ import annotations

import heapq
import logging
import math
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

    from blendedgridding.pre.tensors import Tensors2

logger = logging.getLogger(__name__)

# A queued sample is updated only if its time decreases by this fraction
RELATIVE_DECREASE = 1.0e-9


class TimeMarker2:
    """
    Class for the shortest-time (eikonal) solver with marks.
    """

    def __init__(self, n1: int, n2: int, tensors: Tensors2) -> None:
        """
        Initialize the time marker.

        Args:
            n1: Number of samples in the first dimension.
            n2: Number of samples in the second dimension.
            tensors: Metric tensor field.
        """
        self.n1 = n1
        self.n2 = n2
        self.tensors = tensors

    def apply(self, t: npt.NDArray[np.float64], m: npt.NDArray[np.int64]) -> None:
        """
        Compute times and marks in place.

        Samples with zero time are seeds; their times and marks are not
        changed. All other times and marks are overwritten.

        Args:
            t: Array of times with shape (n2, n1).
            m: Array of marks with shape (n2, n1).

        Raises:
            ValueError: If the array shapes do not match the grid.
        """
        n1, n2 = self.n1, self.n2
        if t.shape != (n2, n1) or m.shape != (n2, n1):
            raise ValueError(f"Expected arrays of shape {(n2, n1)}, got {t.shape} and {m.shape}.")

        d0, d1, d2 = self.tensors.get_tensor_arrays(n1, n2)
        det = d0 * d2 - d1 * d1
        # Times to cross one sample along each axis, sqrt(e' inv(D) e)
        cost1 = np.sqrt(d2 / det).ravel().tolist()
        cost2 = np.sqrt(d0 / det).ravel().tolist()
        dd0 = d0.ravel().tolist()
        dd1 = d1.ravel().tolist()
        dd2 = d2.ravel().tolist()

        known = (t == 0.0).ravel().tolist()
        tt = np.where(t == 0.0, 0.0, math.inf).ravel().tolist()
        mm = m.ravel().tolist()

        heap = [(0.0, k) for k in range(n1 * n2) if known[k]]
        heapq.heapify(heap)
        logger.debug(f"Marching from {len(heap)} seeds on a {n1}x{n2} grid.")

        while heap:
            tk, k = heapq.heappop(heap)
            if tk > tt[k]:
                continue
            k2, k1 = divmod(k, n1)
            for j1, j2 in ((k1 - 1, k2), (k1 + 1, k2), (k1, k2 - 1), (k1, k2 + 1)):
                if j1 < 0 or j1 >= n1 or j2 < 0 or j2 >= n2:
                    continue
                j = j2 * n1 + j1
                if known[j]:
                    continue
                tj, mj = self._update(
                    j1, j2, tt, mm, dd0[j], dd1[j], dd2[j], cost1[j], cost2[j]
                )
                if tj < tt[j] * (1.0 - RELATIVE_DECREASE):
                    tt[j] = tj
                    mm[j] = mj
                    heapq.heappush(heap, (tj, j))

        t[...] = np.array(tt, dtype=np.float64).reshape(n2, n1)
        m[...] = np.array(mm, dtype=np.int64).reshape(n2, n1)

    def _update(
        self,
        i1: int,
        i2: int,
        tt: list[float],
        mm: list[int],
        d0: float,
        d1: float,
        d2: float,
        cost1: float,
        cost2: float,
    ) -> tuple[float, int]:
        """Smallest time (and its mark) for one sample from its neighbors."""
        n1, n2 = self.n1, self.n2
        tbest = math.inf
        mbest = -1

        # (index, sign) of neighbors; sign is +1 for a neighbor on the minus side
        axis1 = []
        if i1 > 0:
            axis1.append((i2 * n1 + i1 - 1, 1.0))
        if i1 < n1 - 1:
            axis1.append((i2 * n1 + i1 + 1, -1.0))
        axis2 = []
        if i2 > 0:
            axis2.append(((i2 - 1) * n1 + i1, 1.0))
        if i2 < n2 - 1:
            axis2.append(((i2 + 1) * n1 + i1, -1.0))

        for a, _ in axis1:
            ta = tt[a]
            if ta + cost1 < tbest:
                tbest = ta + cost1
                mbest = mm[a]
        for b, _ in axis2:
            tb = tt[b]
            if tb + cost2 < tbest:
                tbest = tb + cost2
                mbest = mm[b]

        for a, sa in axis1:
            ta = tt[a]
            if ta == math.inf:
                continue
            for b, sb in axis2:
                tb = tt[b]
                if tb == math.inf:
                    continue
                ti = _solve_triangle(ta, tb, sa * sb, d0, d1, d2)
                if ti < tbest:
                    tbest = ti
                    mbest = mm[a] if ta <= tb else mm[b]

        return tbest, mbest


def _solve_triangle(ta: float, tb: float, sign: float, d0: float, d1: float, d2: float) -> float:
    """
    Solve d0*(t-ta)^2 + 2*sign*d1*(t-ta)*(t-tb) + d2*(t-tb)^2 = 1 for t.

    Returns infinity if there is no real root or if the characteristic
    direction D*grad(t) does not pass through the triangle.
    """
    sd1 = sign * d1
    a = d0 + 2.0 * sd1 + d2
    b = -2.0 * (d0 * ta + sd1 * (ta + tb) + d2 * tb)
    c = d0 * ta * ta + 2.0 * sd1 * ta * tb + d2 * tb * tb - 1.0
    disc = b * b - 4.0 * a * c
    if disc < 0.0:
        return math.inf
    t = (-b + math.sqrt(disc)) / (2.0 * a)
    ga = t - ta
    gb = t - tb
    eps = 1.0e-12 * (1.0 + abs(t))
    if d0 * ga + sd1 * gb < -eps or sd1 * ga + d2 * gb < -eps:
        return math.inf
    return t
