"""
Blended Neighbor Gridder
========================
Tensor-guided blended-neighbor gridding in 2D (Hale, 2009, Image-guided
blended neighbor interpolation, CWP-634).

Gridding is done in two steps:
1. Nearest: compute for every sample the time to the nearest known sample,
   and the value of that known sample. Time is distance measured in the
   metric of a tensor field, so "nearest" means nearest in time.
2. Blend: smooth the nearest-neighbor interpolant with an anisotropic
   filter whose extent is proportional to the squared time.

With the default homogeneous isotropic tensors time equals distance, and
the result resembles Sibson's natural neighbor interpolant.

Note: Both steps assume a single caller; a gridder instance must not be
used from several threads at once.
"""
from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING, Type

import numpy as np

from blendedgridding.config import GridderSettings
from blendedgridding.model.result import GriddedResult
from blendedgridding.pre.scatter import SimpleGridder2
from blendedgridding.pre.tensors import IsotropicTensors
from blendedgridding.solvers.diffusion_kernel import LocalDiffusionKernel, Stencil
from blendedgridding.solvers.smoothing import LocalSmoothingFilter
from blendedgridding.solvers.time_marker import TimeMarker2
from blendedgridding.utils import FLOAT_NULL, TIME_TINY, block_average, neighborhood_max

if TYPE_CHECKING:
    import numpy.typing as npt

    from blendedgridding.pre.sampling import Sampling
    from blendedgridding.pre.tensors import Tensors2

logger = logging.getLogger(__name__)


class BlendedGridder2:
    """
    Class for tensor-guided blended-neighbor gridding.

    Scattered sample arrays are referenced, not copied.
    """

    def __init__(
        self,
        tensors: Tensors2 | None = None,
        f: npt.ArrayLike | None = None,
        x1: npt.ArrayLike | None = None,
        x2: npt.ArrayLike | None = None,
    ) -> None:
        """
        Initialize the gridder.

        Args:
            tensors: Tensor field; None for homogeneous isotropic tensors.
            f: Sample values f(x1, x2).
            x1: Sample x1 coordinates.
            x2: Sample x2 coordinates.
        """
        self._f: npt.ArrayLike | None = None
        self._x1: npt.ArrayLike | None = None
        self._x2: npt.ArrayLike | None = None

        self.tensors: Tensors2 = IsotropicTensors()
        self.blending: bool = True
        self.smoothness: float = 0.5
        self.c: float = 0.5
        self.tmax: float = math.inf
        self.kernel = LocalDiffusionKernel(Stencil.D22)
        self.small: float = 0.01
        self.niter: int = 10000
        self.time_marker_class: Type[TimeMarker2] = TimeMarker2

        # Wall-clock seconds spent in the last time marker call
        self.time_marker_seconds: float = 0.0

        self.set_tensors(tensors)
        if f is not None and x1 is not None and x2 is not None:
            self.set_scattered(f, x1, x2)

    def set_tensors(self, tensors: Tensors2 | None) -> None:
        """
        Sets the tensor field used by this gridder.

        Args:
            tensors: The tensors; None for homogeneous isotropic tensors.
        """
        self.tensors = tensors if tensors is not None else IsotropicTensors()

    def set_blending(self, blending: bool) -> None:
        """
        Enables or disables blending in :meth:`grid`.

        If disabled, :meth:`grid` returns the nearest-neighbor interpolant.
        """
        self.blending = bool(blending)

    def set_blending_kernel(self, kernel: LocalDiffusionKernel) -> None:
        """Sets the local diffusion kernel used to perform blending."""
        self.kernel = kernel

    def set_smoothness(self, smoothness: float) -> None:
        """
        Sets the smoothness of the interpolation of gridded values.

        The default 0.5 yields an interpolant with linear precision. Larger
        values yield smoother interpolants with plateaus at known samples.

        Raises:
            ValueError: If smoothness is not positive.
        """
        if smoothness <= 0.0:
            raise ValueError(f"Smoothness must be positive, got {smoothness}.")
        self.smoothness = float(smoothness)
        self.c = 0.25 / self.smoothness

    def set_time_max(self, tmax: float) -> None:
        """
        Sets the maximum time computed by this gridder.

        The gridder has linear precision where times are less than tmax.

        Raises:
            ValueError: If tmax is negative.
        """
        if tmax < 0.0:
            raise ValueError(f"Maximum time must be non-negative, got {tmax}.")
        self.tmax = float(tmax)

    def set_smoothing_limits(self, small: float, niter: int) -> None:
        """
        Sets the stopping criteria of the smoothing solve.

        Args:
            small: Relative residual at which iterations stop.
            niter: Maximum number of iterations.
        """
        self.small = float(small)
        self.niter = int(niter)

    def set_time_marker(self, marker_class: Type[TimeMarker2] | None) -> None:
        """
        Sets the class used to compute times and marks.

        The class is constructed with (n1, n2, tensors) and must provide
        apply(t, m). None restores the default.
        """
        self.time_marker_class = marker_class if marker_class is not None else TimeMarker2

    @property
    def settings(self) -> GridderSettings:
        return GridderSettings(
            blending=self.blending,
            smoothness=self.smoothness,
            time_max=self.tmax,
            stencil=self.kernel.get_stencil(),
            small=self.small,
            niter=self.niter,
        )

    def apply_settings(self, settings: GridderSettings) -> None:
        """Configure this gridder from settings; tensors are not changed."""
        self.set_blending(settings.blending)
        self.set_smoothness(settings.smoothness)
        self.set_time_max(settings.time_max)
        self.set_blending_kernel(LocalDiffusionKernel(settings.stencil))
        self.set_smoothing_limits(settings.small, settings.niter)

    def set_scattered(self, f: npt.ArrayLike, x1: npt.ArrayLike, x2: npt.ArrayLike) -> None:
        """
        Sets the scattered samples. The arrays are referenced, not copied.

        Args:
            f: Sample values f(x1, x2).
            x1: Sample x1 coordinates.
            x2: Sample x2 coordinates.
        """
        self._f = f
        self._x1 = x1
        self._x2 = x2

    def grid(self, s1: Sampling, s2: Sampling) -> npt.NDArray[np.float64]:
        """
        Compute gridded values for the scattered samples.

        Args:
            s1: Uniform sampling of the first dimension.
            s2: Uniform sampling of the second dimension.

        Raises:
            ValueError: If either sampling is not uniform.
            RuntimeError: If scattered samples have not been set.

        Returns:
            Array of gridded values with shape (n2, n1).
        """
        return self.grid_result(s1, s2).q

    def grid_result(self, s1: Sampling, s2: Sampling) -> GriddedResult:
        """
        Like :meth:`grid`, but also return the times and nearest values.
        """
        if not s1.is_uniform:
            raise ValueError("s1 must be uniform.")
        if not s2.is_uniform:
            raise ValueError("s2 must be uniform.")
        if self._f is None or self._x1 is None or self._x2 is None:
            raise RuntimeError("Scattered samples have not been set.")

        logger.info(f"Gridding {np.size(self._f)} scattered samples onto a {s1.count}x{s2.count} grid.")

        sg = SimpleGridder2(self._f, self._x1, self._x2)
        sg.set_null_value(FLOAT_NULL)
        p = sg.grid(s1, s2)
        t = np.where(p != FLOAT_NULL, 0.0, FLOAT_NULL)

        self.grid_nearest(t, p)
        q = p
        if self.blending and np.any(t == 0.0):
            q = self.grid_blended(t, p)

        return GriddedResult(s1=s1, s2=s2, q=q, t=t, p=p)

    def grid_nearest_null(self, pnull: float, p: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Compute gridded values using nearest neighbors.

        Only samples in p equal to pnull are gridded; known (non-null)
        values are not changed.

        Args:
            pnull: Null value representing unknown samples.
            p: Array of sample values, modified in place.

        Returns:
            Array of times to nearest known samples; zero for known samples.
        """
        t = np.where(p == pnull, FLOAT_NULL, 0.0)
        self.grid_nearest(t, p)
        return t

    def grid_nearest(self, t: npt.NDArray[np.float64], p: npt.NDArray[np.float64]) -> npt.NDArray[np.int64]:
        """
        Compute gridded values using nearest neighbors.

        Samples with zero time in t are known; their values in p are not
        changed. Values at all other samples are replaced by the value of
        the nearest known sample, and t by the time to that sample.

        Args:
            t: Array of times, modified in place.
            p: Array of values, modified in place.

        Returns:
            Array of marks, indices of the nearest known samples in raster
            order.
        """
        if t.shape != p.shape:
            raise ValueError(f"Times shape {t.shape} does not match values shape {p.shape}.")
        n2, n1 = t.shape

        # Marks index the known values in raster order
        known = t == 0.0
        nmark = int(np.count_nonzero(known))
        values = p[known]
        m = np.zeros((n2, n1), dtype=np.int64)
        m[known] = np.arange(nmark, dtype=np.int64)
        logger.debug(f"Marked {nmark} known samples on a {n1}x{n2} grid.")

        if nmark == 0:
            logger.warning("No known samples; nearest-neighbor gridding skipped.")
            if math.isfinite(self.tmax):
                t[...] = self.tmax
            return m

        marker = self.time_marker_class(n1, n2, self.tensors)
        start = time.perf_counter()
        marker.apply(t, m)
        self.time_marker_seconds = time.perf_counter() - start
        logger.debug(f"Time marker finished in {self.time_marker_seconds:.3f} s.")

        adjust_times(nmark, m, t)

        unknown = t != 0.0
        p[unknown] = values[m[unknown]]
        np.minimum(t, self.tmax, out=t)
        return m

    def grid_blended(self, t: npt.NDArray[np.float64], p: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Compute gridded values using blended neighbors.

        Blending can be performed only after nearest-neighbor gridding.
        It does not change the values of known samples with zero times.

        Args:
            t: Array of times to nearest known samples.
            p: Array of nearest-neighbor gridded values.

        Returns:
            Array of blended-neighbor gridded values.
        """
        stencil = self.kernel.get_stencil()

        # Squared times, shifted for stencils that place derivatives at
        # the centers of 2x2 blocks
        s = t * t
        if stencil != Stencil.D21:
            s = block_average(s)

        lsf = LocalSmoothingFilter(self.small, self.niter, self.kernel)
        lsf.set_preconditioner(True)
        pavg = float(np.mean(p))
        r = p - pavg

        # Attenuate finite-difference errors near Nyquist. Not needed for D21,
        # where it would also change values next to adjacent known samples.
        if stencil != Stencil.D21:
            r = lsf.apply_smooth_s(r)

        q = lsf.apply(self.tensors, self.c, s, r)
        q += pavg

        # Smoothing may have changed known values
        known = t == 0.0
        q[known] = p[known]
        return q


def adjust_times(nmark: int, m: npt.NDArray[np.int64], t: npt.NDArray[np.float64]) -> None:
    """
    Adjust times to be nearly zero next to known samples.

    The first update away from a known sample yields a positive time at its
    neighbors. The largest of those times is subtracted from all times that
    share the same mark; times of unknown samples stay positive.

    Args:
        nmark: Number of known samples.
        m: Array of marks.
        t: Array of times, modified in place.
    """
    known = t == 0.0
    offsets = np.zeros(nmark, dtype=np.float64)
    offsets[m[known]] = neighborhood_max(t)[known]

    positive = t > 0.0
    t[positive] = np.maximum(TIME_TINY, t[positive] - offsets[m[positive]])
