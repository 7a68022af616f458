from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


# Null value for unknown samples and unsolved times
FLOAT_NULL = -float(np.finfo(np.float32).max)

# Smallest positive time for samples that are not known
TIME_TINY = float(np.finfo(np.float64).tiny)


def neighborhood_max(a: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Maximum over the 8 neighbors of every sample, and zero.

    At the edges of the array the edge samples are replicated, so an edge
    sample may see itself; there is no wraparound.

    :var a: A 2D array.

    :return: Array with the shape of a.

    **Example**:

        a = np.array([[0., 1.], [2., 3.]])
        neighborhood_max(a)
        # Output:
        # [[3. 3.]
        # [3. 3.]]
    """
    n2, n1 = a.shape
    padded = np.pad(a, 1, mode="edge")
    out = np.zeros_like(a)
    for j2 in (0, 1, 2):
        for j1 in (0, 1, 2):
            if j1 == 1 and j2 == 1:
                continue
            np.maximum(out, padded[j2:j2 + n2, j1:j1 + n1], out=out)
    return out


def block_average(s: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Average every sample with its neighbors at smaller indices.

    For a 2D array this is the mean of the 2x2 block whose last sample is
    (i2, i1). The first row and column reuse the nearest interior values.
    An axis with a single sample is not averaged.

    :var s: A 2D array.

    :return: Averaged copy of s.
    """
    out = np.array(s, dtype=np.float64)
    n2, n1 = out.shape
    if n1 > 1:
        out[:, 1:] = 0.5 * (out[:, 1:] + out[:, :-1])
        out[:, 0] = out[:, 1]
    if n2 > 1:
        out[1:, :] = 0.5 * (out[1:, :] + out[:-1, :])
        out[0, :] = out[1, :]
    return out
