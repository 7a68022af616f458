from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np
import scipy as sp
import scipy.sparse

if TYPE_CHECKING:
    import numpy.typing as npt


class Stencil(StrEnum):
    """Finite-difference stencils used to approximate gradients."""
    D21 = "D21"
    D22 = "D22"


class LocalDiffusionKernel:
    """
    Sparse discretization of the anisotropic diffusion operator G'WG.

    Every flux point contributes ``c*s*g'Dg`` to the quadratic form, where g is
    the finite-difference gradient at that point and D the local tensor.
    The assembled matrix is therefore symmetric positive semi-definite and
    annihilates constant fields.

    D22 evaluates both derivatives at the center of every 2x2 block of
    samples, so the diffusivity it reads at index (i2, i1) belongs to the
    block with upper-left sample (i2-1, i1-1). D21 splits every cell into two
    triangles and uses two-point differences, reading the diffusivity at the
    right-angle corner of each triangle.
    """

    def __init__(self, stencil: Stencil = Stencil.D22) -> None:
        """
        Initialize the kernel.

        Args:
            stencil: Stencil used to compute derivatives.
        """
        self.stencil = Stencil(stencil)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(stencil={self.stencil})"

    def get_stencil(self) -> Stencil:
        return self.stencil

    def build_matrix(
        self,
        d0: npt.NDArray[np.float64],
        d1: npt.NDArray[np.float64],
        d2: npt.NDArray[np.float64],
        c: float,
        s: npt.NDArray[np.float64],
    ) -> sp.sparse.csr_matrix:
        """
        Assemble the diffusion matrix for a grid of shape ``s.shape``.

        Args:
            d0: Tensor component D11 per sample.
            d1: Tensor component D12 per sample.
            d2: Tensor component D22 per sample.
            c: Scalar smoothness constant.
            s: Non-negative diffusivity per sample.

        Returns:
            Sparse (n x n) matrix with n = n1*n2.
        """
        n2, n1 = s.shape
        index = np.arange(n1 * n2, dtype=np.int64).reshape(n2, n1)

        if n1 == 1 or n2 == 1:
            blocks = [self._line_flux(index, d0, d2, c, s)]
        elif self.stencil == Stencil.D21:
            blocks = self._triangle_fluxes(index, d0, d1, d2, c, s)
        else:
            blocks = [self._center_flux(index, d0, d1, d2, c, s)]

        rows: list[npt.NDArray[np.int64]] = []
        cols: list[npt.NDArray[np.int64]] = []
        data: list[npt.NDArray[np.float64]] = []
        for nodes, g1, g2, w11, w12, w22 in blocks:
            # Contribution of one flux point: sum_jk (g_j' W g_k) x_j x_k
            k = nodes.shape[1]
            coef = (
                w11[:, None, None] * g1[None, :, None] * g1[None, None, :]
                + w12[:, None, None] * (g1[None, :, None] * g2[None, None, :]
                                        + g2[None, :, None] * g1[None, None, :])
                + w22[:, None, None] * g2[None, :, None] * g2[None, None, :]
            )
            rows.append(np.repeat(nodes, k, axis=1).ravel())
            cols.append(np.tile(nodes, (1, k)).ravel())
            data.append(coef.ravel())

        n = n1 * n2
        # COO tolerates duplicates; .tocsr() sums them
        return sp.sparse.coo_matrix(
            (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
            shape=(n, n),
            dtype=np.float64,
        ).tocsr()

    @staticmethod
    def _center_flux(index, d0, d1, d2, c, s):
        # Nodes ordered [(i2-1,i1-1), (i2-1,i1), (i2,i1-1), (i2,i1)]
        nodes = np.stack([
            index[:-1, :-1].ravel(),
            index[:-1, 1:].ravel(),
            index[1:, :-1].ravel(),
            index[1:, 1:].ravel(),
        ], axis=1)
        g1 = np.array([-0.5, 0.5, -0.5, 0.5])
        g2 = np.array([-0.5, -0.5, 0.5, 0.5])
        cs = c * s[1:, 1:].ravel()
        return (
            nodes, g1, g2,
            cs * d0[1:, 1:].ravel(),
            cs * d1[1:, 1:].ravel(),
            cs * d2[1:, 1:].ravel(),
        )

    @staticmethod
    def _triangle_fluxes(index, d0, d1, d2, c, s):
        # Lower triangle: corner (i2-1,i1-1), neighbors (i2-1,i1) and (i2,i1-1)
        lower = np.stack([
            index[:-1, :-1].ravel(),
            index[:-1, 1:].ravel(),
            index[1:, :-1].ravel(),
        ], axis=1)
        cs_lower = 0.5 * c * s[:-1, :-1].ravel()
        # Upper triangle: corner (i2,i1), neighbors (i2,i1-1) and (i2-1,i1)
        upper = np.stack([
            index[1:, 1:].ravel(),
            index[1:, :-1].ravel(),
            index[:-1, 1:].ravel(),
        ], axis=1)
        cs_upper = 0.5 * c * s[1:, 1:].ravel()
        return [
            (
                lower, np.array([-1.0, 1.0, 0.0]), np.array([-1.0, 0.0, 1.0]),
                cs_lower * d0[:-1, :-1].ravel(),
                cs_lower * d1[:-1, :-1].ravel(),
                cs_lower * d2[:-1, :-1].ravel(),
            ),
            (
                upper, np.array([1.0, -1.0, 0.0]), np.array([1.0, 0.0, -1.0]),
                cs_upper * d0[1:, 1:].ravel(),
                cs_upper * d1[1:, 1:].ravel(),
                cs_upper * d2[1:, 1:].ravel(),
            ),
        ]

    @staticmethod
    def _line_flux(index, d0, d2, c, s):
        # Degenerate grid with a single row or column
        flat = index.ravel()
        nodes = np.stack([flat[:-1], flat[1:]], axis=1)
        n2, n1 = s.shape
        dd = d0 if n2 == 1 else d2
        weights = c * s.ravel()[1:] * dd.ravel()[1:]
        zeros = np.zeros_like(weights)
        return nodes, np.array([-1.0, 1.0]), np.array([0.0, 0.0]), weights, zeros, zeros
