from __future__ import annotations

from typing import TYPE_CHECKING

import matplotlib.pyplot as plt

if TYPE_CHECKING:
    from matplotlib.axes import Axes
    from matplotlib.image import AxesImage

    from blendedgridding.model.result import GriddedResult

FIELD_TITLES = {
    "blended": "Blended neighbor",
    "nearest": "Nearest neighbor",
    "time": "Time to nearest known sample",
}


def plot_result(
    result: GriddedResult,
    field: str = "blended",
    ax: Axes | None = None,
    show_known: bool = True,
    cmap: str = "jet",
) -> AxesImage:
    """
    Plot one field of a gridded result in world coordinates.

    Args:
        result: The gridded result.
        field: One of "blended", "nearest" or "time".
        ax: Axes to draw into; a new figure is created if None.
        show_known: Mark the known samples with black dots.
        cmap: Name of the colormap.

    Raises:
        ValueError: If field is unknown.

    Returns:
        The image artist.
    """
    arrays = {"blended": result.q, "nearest": result.p, "time": result.t}
    if field not in arrays:
        raise ValueError(f"Unknown field '{field}', expected one of {sorted(arrays)}.")

    if ax is None:
        plt.rcParams["figure.constrained_layout.use"] = True
        fig, ax = plt.subplots(figsize=(7, 5))

    s1, s2 = result.s1, result.s2
    # Pixel edges are half a sample outside the first and last samples
    extent = (
        s1.first - 0.5 * s1.delta, s1.last + 0.5 * s1.delta,
        s2.first - 0.5 * s2.delta, s2.last + 0.5 * s2.delta,
    )
    image = ax.imshow(arrays[field], origin="lower", extent=extent, cmap=cmap, interpolation="nearest")
    ax.figure.colorbar(image, ax=ax)

    if show_known:
        i2, i1 = result.known.nonzero()
        ax.plot(s1.first + s1.delta * i1, s2.first + s2.delta * i2, "k.", ms=3)

    ax.set_title(FIELD_TITLES[field])
    ax.set_xlabel("x1")
    ax.set_ylabel("x2")
    ax.set_aspect("equal")
    return image
