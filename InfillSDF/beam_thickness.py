"""
Beam and Wall Thickness Providers
=================================

Thickness providers map query points to a local wall (TPMS) or strut
(lattice) thickness. Like parametrization functions they are
``torch.nn.Module`` subclasses: calling one with points of shape (N, 3)
returns thicknesses of shape (N, 1), and scalar settings are stored as
``nn.Parameter`` so they are discoverable for gradient-based tuning.

Besides ``forward`` every provider offers two hooks used by the lattice
driver:

- ``on_cell_visited(cell)`` is called once per unit cell before its beams
  are emitted and lets a provider precompute cell-scoped state.
- ``bind(boundary)`` attaches the bounding solid for boundary-relative
  variants.

Classes
-------
ConstantThickness
    Same thickness everywhere.
GlobalFunctionThickness
    Linear ramp along x, clamped between a minimum and a maximum.
BoundaryThickness
    Smooth transition from thick at the boundary to thin in the interior.
CellBasedThickness
    One random thickness per unit cell.

Examples
--------
>>> from InfillSDF.beam_thickness import GlobalFunctionThickness
>>> import torch
>>>
>>> thickness = GlobalFunctionThickness(0.5, 2.0)
>>> thickness(torch.tensor([[0.0, 0.0, 0.0], [50.0, 0.0, 0.0]]))
tensor([[0.5000], [2.0000]])
"""

import logging

import torch
import torch.nn as nn

import InfillSDF
from InfillSDF.boundary import as_boundary
from InfillSDF.unit_cell import UnitCell
from InfillSDF.utils import limit_value, position_rng, trans_fixed, trans_smooth

logger = logging.getLogger(InfillSDF.__name__)


def _check_min_max(min_thickness, max_thickness):
    if min_thickness < 0 or max_thickness < 0:
        raise ValueError(
            f"Thicknesses must be non-negative, got {min_thickness} and "
            f"{max_thickness}"
        )


class BeamThickness(nn.Module):
    """Base class of all thickness providers."""

    def on_cell_visited(self, cell: UnitCell):
        pass

    def bind(self, boundary):
        pass


class ConstantThickness(BeamThickness):
    """Spatially-constant thickness.

    Parameters
    ----------
    value : float
        The thickness returned for every query point.
    """

    def __init__(self, value: float, device=None, dtype=None):
        super().__init__()
        if value < 0:
            raise ValueError(f"Thickness must be non-negative, got {value}")
        self.param = nn.Parameter(torch.tensor(value, device=device, dtype=dtype))

    def forward(self, queries: torch.Tensor) -> torch.Tensor:
        N = queries.shape[0]
        return self.param.to(queries.dtype).expand(N, 1)


class GlobalFunctionThickness(BeamThickness):
    """Linear thickness ramp along x.

    ``ratio = clamp(slope * x, 0, 1)`` interpolates between
    ``min_thickness`` (ratio 0) and ``max_thickness`` (ratio 1).
    """

    def __init__(self, min_thickness: float, max_thickness: float, slope=0.02):
        super().__init__()
        _check_min_max(min_thickness, max_thickness)
        self.min_thickness = min_thickness
        self.max_thickness = max_thickness
        self.slope = slope

    def forward(self, queries: torch.Tensor) -> torch.Tensor:
        ratio = limit_value(self.slope * queries[:, 0], 0.0, 1.0)
        thickness = trans_fixed(self.min_thickness, self.max_thickness, ratio)
        return thickness.reshape(-1, 1)


class BoundaryThickness(BeamThickness):
    """Thickness driven by the distance to the bounding surface.

    The distance ``d`` from a query point to its closest surface point is
    mapped through a logistic transition: at the surface the thickness tends
    to ``max_thickness``, beyond ``transition`` it falls towards
    ``min_thickness``. ``smoothing`` sets the width of the falloff.

    A boundary has to be attached with :meth:`bind` before querying.
    """

    def __init__(
        self,
        min_thickness: float,
        max_thickness: float,
        transition: float = 15.0,
        smoothing: float = 5.0,
    ):
        super().__init__()
        _check_min_max(min_thickness, max_thickness)
        if smoothing <= 0:
            raise ValueError(f"Smoothing must be positive, got {smoothing}")
        self.min_thickness = min_thickness
        self.max_thickness = max_thickness
        self.transition = transition
        self.smoothing = smoothing
        self.boundary = None

    def bind(self, boundary):
        self.boundary = as_boundary(boundary)
        logger.debug(f"Bound thickness to {type(self.boundary).__name__}")

    def forward(self, queries: torch.Tensor) -> torch.Tensor:
        if self.boundary is None:
            raise RuntimeError(
                "No boundary specified. Call bind() before querying "
                "BoundaryThickness."
            )
        surface_points = self.boundary.nearest_surface_point(queries)
        distance = torch.linalg.norm(surface_points - queries, dim=1)
        thickness = trans_smooth(
            self.max_thickness,
            self.min_thickness,
            distance,
            self.transition,
            self.smoothing,
        )
        return thickness.reshape(-1, 1)


class CellBasedThickness(BeamThickness):
    """One thickness per unit cell, drawn uniformly from the given range.

    The draw is keyed on the cell centre and ``seed``, so revisiting a cell
    reproduces its thickness.
    """

    def __init__(self, min_thickness: float, max_thickness: float, seed: int = 0):
        super().__init__()
        _check_min_max(min_thickness, max_thickness)
        self.min_thickness = min_thickness
        self.max_thickness = max_thickness
        self.seed = seed
        self._cell_thickness = None

    def on_cell_visited(self, cell: UnitCell):
        rng = position_rng(cell.centre.tolist(), seed=self.seed)
        self._cell_thickness = float(
            rng.uniform(self.min_thickness, self.max_thickness)
        )

    def forward(self, queries: torch.Tensor) -> torch.Tensor:
        if self._cell_thickness is None:
            raise RuntimeError(
                "CellBasedThickness has no current cell. "
                "Call on_cell_visited() before querying."
            )
        return torch.full(
            (queries.shape[0], 1),
            self._cell_thickness,
            dtype=queries.dtype,
            device=queries.device,
        )
