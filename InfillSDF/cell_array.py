"""
Cell Arrays
===========

Decompositions of space into hexahedral unit cells, the first stage of the
lattice pipeline.

Classes
-------
RegularCellArray
    Rectilinear grid covering the bounding box of a boundary, optionally
    with position-keyed vertex noise.
RegularUnitCell
    A single regular cell centred on the z-axis.
ConformalCellArray
    Grid mapped onto a parametric base shape so the cells follow its
    curved boundary.

Neighbouring cells share their vertices, so a perturbed vertex moves all
cells that touch it. The noise of a vertex is drawn from a generator keyed
on its unperturbed position, which makes it reproducible across instances.
"""

from abc import ABC, abstractmethod
import logging

import gustaf
import numpy as np
import torch
import trimesh

import InfillSDF
from InfillSDF.SDF import SDFBase
from InfillSDF.base_shapes import BaseShape
from InfillSDF.unit_cell import UnitCell
from InfillSDF.utils import as_bounds, limit_value, position_rng

logger = logging.getLogger(InfillSDF.__name__)

# lower face in winding order, then the matching upper face
_REGULAR_CORNER_OFFSETS = [
    (0, 0, 0),
    (0, 1, 0),
    (1, 1, 0),
    (1, 0, 0),
    (0, 0, 1),
    (0, 1, 1),
    (1, 1, 1),
    (1, 0, 1),
]
_CONFORMAL_CORNER_OFFSETS = [
    (0, 0, 0),
    (1, 0, 0),
    (1, 1, 0),
    (0, 1, 0),
    (0, 0, 1),
    (1, 0, 1),
    (1, 1, 1),
    (0, 1, 1),
]

MAX_NOISE_LEVEL = 0.3


def bounds_of(boundary) -> torch.Tensor:
    """Axis-aligned bounding box (2, 3) of an SDF, a mesh or explicit bounds."""
    if isinstance(boundary, SDFBase):
        bounds = boundary._get_domain_bounds()
    elif isinstance(boundary, trimesh.Trimesh):
        bounds = boundary.bounds
    elif isinstance(boundary, gustaf.faces.Faces):
        vertices = np.asarray(boundary.vertices)
        bounds = np.vstack([vertices.min(axis=0), vertices.max(axis=0)])
    elif hasattr(boundary, "bounds"):
        bounds = boundary.bounds
    else:
        bounds = boundary
    if isinstance(bounds, torch.Tensor):
        bounds = bounds.detach().cpu()
    return as_bounds(np.asarray(bounds, dtype=np.float64), dtype=torch.float64)


def _cells_from_vertex_grid(vertices: torch.Tensor, offsets) -> torch.Tensor:
    """Gather corners (M, 8, 3) of all cells of a vertex grid (I, J, K, 3)."""
    nx, ny, nz = (n - 1 for n in vertices.shape[:3])
    corners = [
        vertices[a : a + nx, b : b + ny, c : c + nz] for (a, b, c) in offsets
    ]
    return torch.stack(corners, dim=3).reshape(-1, 8, 3)


def _noisy_vertex_grid(origin, spacing, counts, noise_level, seed=None):
    """Vertex grid ``origin + k * spacing`` with position-keyed noise."""
    axes = [origin[i] + spacing[i] * np.arange(counts[i]) for i in range(3)]
    grid = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1)
    if noise_level > 0:
        amplitude = noise_level * np.asarray(spacing, dtype=np.float64)
        flat = grid.reshape(-1, 3)
        noise = np.empty_like(flat)
        for i, vertex in enumerate(flat):
            rng = position_rng(vertex, seed=seed)
            noise[i] = rng.uniform(-amplitude, amplitude)
        grid = (flat + noise).reshape(grid.shape)
    return grid


class CellArray(ABC):
    """Ordered, stable collection of unit cells."""

    @abstractmethod
    def cells(self) -> list[UnitCell]:
        pass

    def __len__(self):
        return len(self.cells())

    def __iter__(self):
        return iter(self.cells())

    def __getitem__(self, index):
        return self.cells()[index]


class _CornerCellArray(CellArray):
    def __init__(self, corners: torch.Tensor):
        self.corners = corners
        self._cells = [UnitCell(c) for c in corners]

    def cells(self) -> list[UnitCell]:
        return self._cells


class RegularCellArray(_CornerCellArray):
    """Rectilinear grid of cells covering the bounding box of ``boundary``.

    The first cell origin sits half a cell below the box minimum and origins
    repeat with spacing ``(dx, dy, dz)`` until the box maximum plus half a
    cell is covered.

    Parameters
    ----------
    boundary : SDFBase, trimesh.Trimesh, gustaf.faces.Faces or array-like
        Solid (or bounds of shape (2, 3)) the grid has to cover.
    dx, dy, dz : float
        Cell dimensions.
    noise_level : float, default 0
        Relative vertex noise, clamped to ``[0, 0.3]``. Every vertex moves
        by at most ``noise_level * d`` along each axis.
    seed : int, optional
        Mixed into the position-keyed generator to get a different but
        still reproducible noise pattern.
    """

    def __init__(
        self,
        boundary,
        dx: float,
        dy: float,
        dz: float,
        noise_level: float = 0.0,
        seed: int | None = None,
        dtype=torch.float32,
    ):
        if min(dx, dy, dz) <= 0:
            raise ValueError(f"Cell sizes must be positive, got ({dx}, {dy}, {dz})")
        self.spacing = (float(dx), float(dy), float(dz))
        self.noise_level = limit_value(abs(noise_level), 0.0, MAX_NOISE_LEVEL)
        self.bounds = bounds_of(boundary)

        size = (self.bounds[1] - self.bounds[0]).numpy()
        spacing = np.asarray(self.spacing)
        origin = self.bounds[0].numpy() - 0.5 * spacing
        n_cells = np.floor((size + spacing) / spacing).astype(np.int64) + 1
        self.n_cells = tuple(int(n) for n in n_cells)

        vertices = _noisy_vertex_grid(
            origin, spacing, n_cells + 1, self.noise_level, seed
        )
        corners = _cells_from_vertex_grid(
            torch.tensor(vertices, dtype=dtype), _REGULAR_CORNER_OFFSETS
        )
        super().__init__(corners)
        logger.debug(
            "Regular cell array with {}x{}x{} cells".format(*self.n_cells)
            + f", noise level {self.noise_level}"
        )


class RegularUnitCell(_CornerCellArray):
    """A single regular cell spanning ``[-dx/2, dx/2] x [-dy/2, dy/2] x [0, dz]``."""

    def __init__(
        self,
        dx: float,
        dy: float,
        dz: float,
        noise_level: float = 0.0,
        seed: int | None = None,
        dtype=torch.float32,
    ):
        if min(dx, dy, dz) <= 0:
            raise ValueError(f"Cell sizes must be positive, got ({dx}, {dy}, {dz})")
        self.spacing = (float(dx), float(dy), float(dz))
        self.noise_level = limit_value(abs(noise_level), 0.0, MAX_NOISE_LEVEL)
        origin = np.array([-0.5 * dx, -0.5 * dy, 0.0])
        vertices = _noisy_vertex_grid(
            origin, np.asarray(self.spacing), (2, 2, 2), self.noise_level, seed
        )
        corners = _cells_from_vertex_grid(
            torch.tensor(vertices, dtype=dtype), _REGULAR_CORNER_OFFSETS
        )
        super().__init__(corners)


class ConformalCellArray(_CornerCellArray):
    """``nx x ny x nz`` cells conforming to a parametric base shape.

    Grid indices are turned into shape ratios by
    ``shape.cell_corner_point``; see ``InfillSDF.base_shapes`` for the
    mapping of each shape.
    """

    def __init__(self, shape: BaseShape, nx: int, ny: int, nz: int):
        for n in (nx, ny, nz):
            if int(n) != n or n < 1:
                raise ValueError(
                    f"Cell counts must be positive integers, got ({nx}, {ny}, {nz})"
                )
        self.shape = shape
        self.n_cells = (int(nx), int(ny), int(nz))
        ix, iy, iz = torch.meshgrid(
            torch.arange(nx + 1),
            torch.arange(ny + 1),
            torch.arange(nz + 1),
            indexing="ij",
        )
        vertices = shape.cell_corner_point(ix, iy, iz, nx, ny, nz)
        corners = _cells_from_vertex_grid(vertices, _CONFORMAL_CORNER_OFFSETS)
        super().__init__(corners)
        logger.debug(
            "Conformal cell array with {}x{}x{} cells on {}".format(
                *self.n_cells, type(shape).__name__
            )
        )
