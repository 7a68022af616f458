"""
Input/Output Manager (HDF5)
Handles saving and loading gridded results to .h5 files.
"""
import logging
from importlib.metadata import version, PackageNotFoundError
from typing import Optional

import h5py
import numpy as np

from blendedgridding.config import GridderSettings
from blendedgridding.model.result import GriddedResult
from blendedgridding.pre.sampling import Sampling

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("blendedgridding")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


def save_result(
    result: GriddedResult,
    filepath: str,
    settings: Optional[GridderSettings] = None,
) -> None:
    """
    Save a gridded result, and optionally the settings used, to HDF5.

    Args:
        result: The result to save.
        filepath: Path of the .h5 file; overwritten if it exists.
        settings: Gridder settings stored as a JSON attribute.
    """
    logger.info(f"Saving gridded result to: {filepath}")
    with h5py.File(filepath, "w") as f:
        f.attrs["version"] = APP_VERSION

        # --- 1. SAMPLINGS ---
        grp_samp = f.create_group("sampling")
        for name, s in (("s1", result.s1), ("s2", result.s2)):
            grp_samp.attrs[f"{name}_count"] = s.count
            grp_samp.attrs[f"{name}_delta"] = s.delta
            grp_samp.attrs[f"{name}_first"] = s.first

        # --- 2. FIELDS ---
        grp_res = f.create_group("results")
        grp_res.create_dataset("blended", data=result.q, compression="gzip")
        grp_res.create_dataset("time", data=result.t, compression="gzip")
        grp_res.create_dataset("nearest", data=result.p, compression="gzip")

        # --- 3. SETTINGS ---
        if settings is not None:
            f.attrs["settings_json"] = settings.to_json()

    logger.debug(f"Saved {result.shape[1]}x{result.shape[0]} result.")


def load_result(filepath: str) -> tuple[GriddedResult, Optional[GridderSettings]]:
    """
    Load a gridded result saved by :func:`save_result`.

    Raises:
        ValueError: If the file is not a valid HDF5 file.

    Returns:
        The result, and the stored settings or None.
    """
    logger.info(f"Loading gridded result from: {filepath}")
    if not h5py.is_hdf5(filepath):
        msg = f"File '{filepath}' is not a valid HDF5 file."
        logger.error(msg)
        raise ValueError(msg)

    with h5py.File(filepath, "r") as f:
        grp_samp = f["sampling"]
        samplings = []
        for name in ("s1", "s2"):
            samplings.append(Sampling(
                int(grp_samp.attrs[f"{name}_count"]),
                float(grp_samp.attrs[f"{name}_delta"]),
                float(grp_samp.attrs[f"{name}_first"]),
            ))

        grp_res = f["results"]
        q = np.array(grp_res["blended"], dtype=np.float64)
        t = np.array(grp_res["time"], dtype=np.float64)
        p = np.array(grp_res["nearest"], dtype=np.float64)

        settings = None
        if "settings_json" in f.attrs:
            text = f.attrs["settings_json"]
            if isinstance(text, bytes):
                text = text.decode("utf-8")
            settings = GridderSettings.from_json(text)

    result = GriddedResult(s1=samplings[0], s2=samplings[1], q=q, t=t, p=p)
    return result, settings
