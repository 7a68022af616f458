from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


class Sampling:
    """
    Sampling of one grid axis.

    A uniform sampling is described by count, delta (spacing) and first
    (origin). A sampling built from explicit values is uniform only if the
    values are equally spaced.
    """

    # Relative tolerance when testing explicit values for uniformity
    TINY = 1.0e-6

    def __init__(self, count: int, delta: float = 1.0, first: float = 0.0) -> None:
        """
        Initialize a uniform sampling.

        Args:
            count: Number of samples, at least 1.
            delta: Spacing between samples, positive.
            first: Value of the first sample.

        Raises:
            ValueError: If count < 1 or delta <= 0.
        """
        if count < 1:
            raise ValueError(f"Sampling count must be at least 1, got {count}.")
        if delta <= 0.0:
            raise ValueError(f"Sampling delta must be positive, got {delta}.")
        self.count = int(count)
        self.delta = float(delta)
        self.first = float(first)
        self._values: npt.NDArray[np.float64] | None = None

    @classmethod
    def from_values(cls, values: npt.ArrayLike) -> Sampling:
        """
        Create a sampling from increasing sample values.

        Args:
            values: Strictly increasing sample values.

        Raises:
            ValueError: If values are empty or not strictly increasing.
        """
        values = np.asarray(values, dtype=np.float64).ravel()
        if values.size == 0:
            raise ValueError("Sampling values must not be empty.")
        if values.size > 1 and np.any(np.diff(values) <= 0.0):
            raise ValueError("Sampling values must be strictly increasing.")
        delta = (values[-1] - values[0]) / (values.size - 1) if values.size > 1 else 1.0
        sampling = cls(values.size, delta, values[0])
        sampling._values = values.copy()
        return sampling

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(count={self.count}, delta={self.delta}, "
                f"first={self.first}, uniform={self.is_uniform})")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sampling):
            return NotImplemented
        return self.count == other.count and np.array_equal(self.values, other.values)

    @property
    def is_uniform(self) -> bool:
        """True if the samples are equally spaced."""
        if self._values is None:
            return True
        uniform = self.first + self.delta * np.arange(self.count)
        return bool(np.all(np.abs(self._values - uniform) <= self.TINY * self.delta))

    @property
    def last(self) -> float:
        return float(self.values[-1])

    @property
    def values(self) -> npt.NDArray[np.float64]:
        """All sample values."""
        if self._values is not None:
            return self._values.copy()
        return self.first + self.delta * np.arange(self.count, dtype=np.float64)

    def index_of_nearest(self, x: npt.ArrayLike) -> npt.NDArray[np.int64]:
        """
        Index of the nearest sample for each value, assuming uniform sampling.

        Indices are not clamped, so values outside the sampling yield
        indices outside [0, count).
        """
        x = np.asarray(x, dtype=np.float64)
        # Ties halfway between two samples round up
        return np.floor((x - self.first) / self.delta + 0.5).astype(np.int64)
