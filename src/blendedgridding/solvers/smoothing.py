from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import scipy as sp
import scipy.ndimage
import scipy.sparse.linalg

from blendedgridding.solvers.diffusion_kernel import LocalDiffusionKernel

if TYPE_CHECKING:
    import numpy.typing as npt

    from blendedgridding.pre.tensors import Tensors2

logger = logging.getLogger(__name__)

# Separable 3-point smoother; attenuates the Nyquist frequency completely
SMOOTH_S_WEIGHTS = np.array([0.25, 0.5, 0.25])


class SmoothingConvergenceError(RuntimeError):
    """Raised when the conjugate-gradient solve does not converge."""


class LocalSmoothingFilter:
    """
    Local smoothing filter y = (I + G'WG)^-1 x.

    The matrix G'WG comes from a :class:`LocalDiffusionKernel`, with
    W = c*s*D per flux point. The system is solved iteratively with
    conjugate gradients.
    """

    def __init__(
        self,
        small: float = 0.01,
        niter: int = 10000,
        kernel: LocalDiffusionKernel | None = None,
    ) -> None:
        """
        Initialize the filter.

        Args:
            small: Stop when the residual norm falls below small times the
                norm of the right-hand side.
            niter: Maximum number of iterations.
            kernel: Diffusion kernel; None for the default 2x2 stencil.
        """
        self.small = small
        self.niter = niter
        self.kernel = kernel if kernel is not None else LocalDiffusionKernel()
        self.preconditioner = False

    def set_preconditioner(self, preconditioner: bool) -> None:
        """Enables or disables the Jacobi preconditioner."""
        self.preconditioner = preconditioner

    def apply(
        self,
        tensors: Tensors2,
        c: float,
        s: npt.NDArray[np.float64] | None,
        x: npt.NDArray[np.float64],
    ) -> npt.NDArray[np.float64]:
        """
        Apply the filter.

        Args:
            tensors: Tensor field guiding the smoothing.
            c: Scalar smoothness constant.
            s: Per-sample diffusivity, or None for ones.
            x: Input array of shape (n2, n1).

        Raises:
            ValueError: If s has the wrong shape or has negative or
                non-finite values.
            SmoothingConvergenceError: If the solve does not converge.

        Returns:
            Smoothed array with the shape of x.
        """
        x = np.asarray(x, dtype=np.float64)
        n2, n1 = x.shape
        if s is None:
            s = np.ones_like(x)
        s = np.asarray(s, dtype=np.float64)
        if s.shape != x.shape:
            raise ValueError(f"Diffusivity shape {s.shape} does not match input shape {x.shape}.")
        if not np.all(np.isfinite(s)) or np.any(s < 0.0):
            raise ValueError("Diffusivity must be finite and non-negative.")

        d0, d1, d2 = tensors.get_tensor_arrays(n1, n2)
        a = self.kernel.build_matrix(d0, d1, d2, c, s)
        a = sp.sparse.identity(n1 * n2, dtype=np.float64, format="csr") + a

        b = x.ravel()
        if not np.any(b):
            return np.zeros_like(x)

        m = None
        if self.preconditioner:
            inv_diag = 1.0 / a.diagonal()
            m = sp.sparse.linalg.LinearOperator(
                a.shape, matvec=lambda v: inv_diag * v, dtype=np.float64
            )

        iterations = 0

        def count(_xk) -> None:
            nonlocal iterations
            iterations += 1

        y, info = sp.sparse.linalg.cg(
            a, b, rtol=self.small, atol=0.0, maxiter=self.niter, M=m, callback=count
        )
        if info != 0:
            raise SmoothingConvergenceError(
                f"Conjugate gradients did not converge (info={info}, "
                f"small={self.small}, niter={self.niter})."
            )
        logger.debug(f"Smoothing converged in {iterations} iterations.")
        return y.reshape(n2, n1)

    @staticmethod
    def apply_smooth_s(x: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Apply a simple separable 3x3 smoother with weights [1/4, 1/2, 1/4].

        Edges are reflected, so the sum of the array is preserved.

        Args:
            x: Input array of shape (n2, n1).

        Returns:
            Smoothed copy of x.
        """
        y = np.asarray(x, dtype=np.float64)
        for axis in range(y.ndim):
            y = sp.ndimage.correlate1d(y, SMOOTH_S_WEIGHTS, axis=axis, mode="reflect")
        return y
