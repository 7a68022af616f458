"""
Tensor Fields
=============
Symmetric positive-definite 2x2 tensors per grid sample.

A tensor is stored as three components (d0, d1, d2) of the matrix
[[d0, d1], [d1, d2]]. The same field is used as a metric by the time marker
and as a diffusion tensor by the smoothing filter.

Classes:
    Tensors2: Abstract field with a single per-sample query.
    IsotropicTensors: Homogeneous identity field (the default).
    ArrayTensors: Field backed by three arrays.
    EigenTensors2: Field built from eigenvectors and eigenvalues.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


class Tensors2(ABC):
    """
    Abstract base class for 2D tensor fields.
    """

    @abstractmethod
    def get_tensor(self, i1: int, i2: int) -> tuple[float, float, float]:
        """
        Get the tensor at a given sample.

        Args:
            i1: Sample index in the first (fastest) dimension.
            i2: Sample index in the second dimension.

        Returns:
            Tensor components (d0, d1, d2).
        """
        pass

    def get_tensor_arrays(
        self,
        n1: int,
        n2: int,
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """
        Get all tensor components for an (n2, n1) grid.

        Subclasses backed by arrays should override this to avoid the
        per-sample calls.
        """
        d = np.empty((3, n2, n1), dtype=np.float64)
        for i2 in range(n2):
            for i1 in range(n1):
                d[:, i2, i1] = self.get_tensor(i1, i2)
        return d[0], d[1], d[2]


class IsotropicTensors(Tensors2):
    """
    Homogeneous field with a scaled identity tensor everywhere.
    """

    def __init__(self, scale: float = 1.0) -> None:
        self.scale = float(scale)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(scale={self.scale})"

    def get_tensor(self, i1: int, i2: int) -> tuple[float, float, float]:
        return self.scale, 0.0, self.scale

    def get_tensor_arrays(self, n1: int, n2: int):
        d0 = np.full((n2, n1), self.scale, dtype=np.float64)
        return d0, np.zeros((n2, n1), dtype=np.float64), d0.copy()


class ArrayTensors(Tensors2):
    """
    Tensor field backed by three arrays of shape (n2, n1).
    """

    def __init__(
        self,
        d0: npt.ArrayLike,
        d1: npt.ArrayLike,
        d2: npt.ArrayLike,
    ) -> None:
        """
        Initialize the field.

        Args:
            d0: Components D11.
            d1: Components D12.
            d2: Components D22.

        Raises:
            ValueError: If the arrays differ in shape or any tensor is not
                positive definite.
        """
        self.d0 = np.asarray(d0, dtype=np.float64)
        self.d1 = np.asarray(d1, dtype=np.float64)
        self.d2 = np.asarray(d2, dtype=np.float64)
        if not (self.d0.shape == self.d1.shape == self.d2.shape) or self.d0.ndim != 2:
            raise ValueError("Tensor components must be 2D arrays of equal shape.")
        if np.any(self.d0 <= 0.0) or np.any(self.d0 * self.d2 - self.d1 * self.d1 <= 0.0):
            raise ValueError("Tensors must be symmetric positive definite.")

    @property
    def shape(self) -> tuple[int, int]:
        return self.d0.shape

    def get_tensor(self, i1: int, i2: int) -> tuple[float, float, float]:
        return float(self.d0[i2, i1]), float(self.d1[i2, i1]), float(self.d2[i2, i1])

    def get_tensor_arrays(self, n1: int, n2: int):
        if self.shape != (n2, n1):
            raise ValueError(f"Tensor field shape {self.shape} does not match grid shape {(n2, n1)}.")
        return self.d0, self.d1, self.d2


class EigenTensors2(ArrayTensors):
    """
    Tensor field D = au*u*u' + av*v*v' from unit vectors u and eigenvalues.

    The vector v is perpendicular to u, so only the components (u1, u2) are
    required. Directions with smaller eigenvalues are slower for the time
    marker and are smoothed less by the smoothing filter.
    """

    def __init__(
        self,
        u1: npt.ArrayLike,
        u2: npt.ArrayLike,
        au: npt.ArrayLike,
        av: npt.ArrayLike,
    ) -> None:
        u1 = np.asarray(u1, dtype=np.float64)
        u2 = np.asarray(u2, dtype=np.float64)
        norm = np.hypot(u1, u2)
        if np.any(norm == 0.0):
            raise ValueError("Eigenvectors must be non-zero.")
        u1 = u1 / norm
        u2 = u2 / norm
        au = np.broadcast_to(np.asarray(au, dtype=np.float64), u1.shape)
        av = np.broadcast_to(np.asarray(av, dtype=np.float64), u1.shape)

        # v = (-u2, u1)
        super().__init__(
            d0=au * u1 * u1 + av * u2 * u2,
            d1=(au - av) * u1 * u2,
            d2=au * u2 * u2 + av * u1 * u1,
        )
        self.u1 = u1
        self.u2 = u2
        self.au = au
        self.av = av
