"""
Gridder Configuration
=====================
Default parameters for blended-neighbor gridding, grouped in one dataclass
so that a configuration can be stored next to gridded results and restored.

Exports:
    GridderSettings: Blending flag, smoothness, time cap, stencil and the
        limits of the smoothing solve.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict

from blendedgridding.solvers.diffusion_kernel import Stencil

DEFAULT_SMOOTHNESS: float = 0.5
DEFAULT_SMALL: float = 0.01
DEFAULT_NITER: int = 10000


@dataclass
class GridderSettings:
    blending: bool = True
    # 0.5 yields an interpolant with linear precision
    smoothness: float = DEFAULT_SMOOTHNESS
    time_max: float = math.inf
    stencil: Stencil = Stencil.D22
    small: float = DEFAULT_SMALL
    niter: int = DEFAULT_NITER

    def __post_init__(self) -> None:
        self.stencil = Stencil(self.stencil)
        if self.smoothness <= 0.0:
            raise ValueError(f"Smoothness must be positive, got {self.smoothness}.")
        if self.time_max < 0.0:
            raise ValueError(f"Maximum time must be non-negative, got {self.time_max}.")
        if self.small <= 0.0 or self.niter < 1:
            raise ValueError("Smoothing tolerance must be positive and iterations at least 1.")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["stencil"] = str(self.stencil)
        # JSON has no infinity
        if math.isinf(self.time_max):
            data["time_max"] = None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GridderSettings:
        """Build settings from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        if kwargs.get("time_max", 0.0) is None:
            kwargs["time_max"] = math.inf
        return cls(**kwargs)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> GridderSettings:
        return cls.from_dict(json.loads(text))
