"""
Tensor-guided blended-neighbor gridding of scattered 2D samples.
"""
from blendedgridding.analysis.gridder import BlendedGridder2, adjust_times
from blendedgridding.config import GridderSettings
from blendedgridding.model.result import GriddedResult
from blendedgridding.pre.sampling import Sampling
from blendedgridding.pre.scatter import SimpleGridder2
from blendedgridding.pre.tensors import ArrayTensors, EigenTensors2, IsotropicTensors, Tensors2
from blendedgridding.solvers.diffusion_kernel import LocalDiffusionKernel, Stencil
from blendedgridding.solvers.smoothing import LocalSmoothingFilter, SmoothingConvergenceError
from blendedgridding.solvers.time_marker import TimeMarker2

__version__ = "0.1.0"

__all__ = [
    "ArrayTensors",
    "BlendedGridder2",
    "EigenTensors2",
    "GriddedResult",
    "GridderSettings",
    "IsotropicTensors",
    "LocalDiffusionKernel",
    "LocalSmoothingFilter",
    "Sampling",
    "SimpleGridder2",
    "SmoothingConvergenceError",
    "Stencil",
    "Tensors2",
    "TimeMarker2",
    "adjust_times",
]
