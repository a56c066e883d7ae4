"""
Lattice Types
=============

Connectivity rules that turn a hexahedral unit cell into beams. A lattice
type reads the corners of the cell, asks the thickness provider for the
local thickness at every beam end point and appends the beams to a
``BeamNetwork``. The beam radius is half the thickness.

Classes
-------
BodyCentredLattice
    8 beams from the corners to the cell centre.
OctahedronLattice
    12 beams between the centres of adjacent faces.
RandomSplineLattice
    Curved beams from every corner to a random other corner through a
    jittered cell centre.

All rules expect cells with exactly 8 corners.

Examples
--------
>>> from InfillSDF.lattice_types import BodyCentredLattice
>>> from InfillSDF.beam_network import BeamNetwork
>>> from InfillSDF.beam_thickness import ConstantThickness
>>> from InfillSDF.unit_cell import UnitCell
>>> import itertools
>>>
>>> cube = UnitCell([list(c) for c in itertools.product([-0.5, 0.5], repeat=3)])
>>> network = BeamNetwork()
>>> BodyCentredLattice().emit(network, cube, ConstantThickness(0.2))
>>> len(network)
8
"""

from abc import ABC, abstractmethod
from enum import Enum
import logging

import numpy as np
import splinepy
import torch

import InfillSDF
from InfillSDF.beam_network import BeamNetwork
from InfillSDF.beam_thickness import BeamThickness
from InfillSDF.unit_cell import UnitCell

logger = logging.getLogger(InfillSDF.__name__)

SPLINE_JITTER = 0.3


def check_n_sub_samples(n_sub_samples: int):
    if int(n_sub_samples) != n_sub_samples or n_sub_samples < 2:
        raise ValueError(
            f"n_sub_samples must be an integer of at least 2, got {n_sub_samples}"
        )


def add_beams(
    network: BeamNetwork,
    starts: torch.Tensor,
    ends: torch.Tensor,
    thickness: BeamThickness,
    n_sub_samples: int = 2,
):
    """Add straight beams from ``starts`` (B, 3) to ``ends`` (B, 3).

    Each beam is split into ``n_sub_samples - 1`` segments of equal length,
    and the thickness is sampled at every segment end point, so the radius
    can vary along the beam.
    """
    check_n_sub_samples(n_sub_samples)
    t = torch.linspace(0.0, 1.0, int(n_sub_samples), dtype=starts.dtype)
    # lerp is exact at t == 1, the last sample hits the end point
    points = torch.lerp(starts[:, None, :], ends[:, None, :], t[None, :, None])
    add_beam_chains(network, points, thickness)


def add_beam_chains(
    network: BeamNetwork, points: torch.Tensor, thickness: BeamThickness
):
    """Add polylines (B, S, 3) as ``S - 1`` consecutive beams each."""
    n_chains, n_points = points.shape[0], points.shape[1]
    with torch.no_grad():
        radii = 0.5 * thickness(points.reshape(-1, 3)).reshape(n_chains, n_points)
    network.add_beams(
        points[:, :-1].reshape(-1, 3),
        radii[:, :-1].reshape(-1),
        points[:, 1:].reshape(-1, 3),
        radii[:, 1:].reshape(-1),
    )


class LatticeTypeName(Enum):
    BodyCentred = "body_centred"
    Octahedron = "octahedron"
    RandomSpline = "random_spline"


class LatticeType(ABC):
    def emit(
        self,
        network: BeamNetwork,
        cell: UnitCell,
        thickness: BeamThickness,
        n_sub_samples: int = 2,
    ):
        """Append the beams of ``cell`` to ``network``.

        Raises
        ------
        ValueError
            If the cell does not have 8 corners or ``n_sub_samples < 2``.
        """
        if cell.n_corners != 8:
            raise ValueError(
                f"{type(self).__name__} only supports unit cells with 8 corners, "
                f"got {cell.n_corners}"
            )
        check_n_sub_samples(n_sub_samples)
        self._emit(network, cell, thickness, int(n_sub_samples))

    @abstractmethod
    def _emit(self, network, cell, thickness, n_sub_samples):
        pass


class BodyCentredLattice(LatticeType):
    """Connects every corner with the cell centre."""

    def _emit(self, network, cell, thickness, n_sub_samples):
        centres = cell.centre.expand(8, 3)
        add_beams(network, cell.corners, centres, thickness, n_sub_samples)


class OctahedronLattice(LatticeType):
    """Connects the centres of adjacent faces."""

    connections = [
        ("lower", "right"),
        ("lower", "left"),
        ("lower", "front"),
        ("lower", "back"),
        ("upper", "right"),
        ("upper", "left"),
        ("upper", "front"),
        ("upper", "back"),
        ("front", "right"),
        ("front", "left"),
        ("back", "right"),
        ("back", "left"),
    ]

    def _emit(self, network, cell, thickness, n_sub_samples):
        faces = cell.face_centres()
        starts = torch.stack([faces[a] for a, _ in self.connections])
        ends = torch.stack([faces[b] for _, b in self.connections])
        add_beams(network, starts, ends, thickness, n_sub_samples)


class RandomSplineLattice(LatticeType):
    """Curved beams between random corner pairs.

    In every pass each corner is connected to a uniformly chosen other
    corner. The connection is a quadratic Bezier curve through the corner,
    the cell centre shifted by up to ``0.3`` of the cell size per axis and
    the other corner, sampled at ``n_spline_points`` points and emitted as a
    chain of beams. ``n_sub_samples`` is not used, the spline sampling
    already sets the resolution.

    Parameters
    ----------
    passes : int, default 1
        Number of connections per corner.
    seed : int, optional
        Seed of the generator owned by this lattice type.
    n_spline_points : int, default 20
        Samples along each curve.
    """

    def __init__(self, passes: int = 1, seed: int | None = None, n_spline_points=20):
        if int(passes) != passes or passes < 1:
            raise ValueError(f"passes must be a positive integer, got {passes}")
        if n_spline_points < 2:
            raise ValueError(
                f"n_spline_points must be at least 2, got {n_spline_points}"
            )
        self.passes = int(passes)
        self.n_spline_points = int(n_spline_points)
        self.rng = np.random.default_rng(seed)
        logger.debug(f"Random spline lattice with {self.passes} passes, seed {seed}")

    def _curve(self, start, middle, end) -> np.ndarray:
        # middle control point such that the curve passes through ``middle``
        control = 2.0 * middle - 0.5 * (start + end)
        bezier = splinepy.Bezier(
            degrees=[2], control_points=np.vstack([start, control, end])
        )
        params = np.linspace(0.0, 1.0, self.n_spline_points).reshape(-1, 1)
        return bezier.evaluate(params)

    def _emit(self, network, cell, thickness, n_sub_samples):
        corners = cell.corners.detach().cpu().numpy().astype(np.float64)
        centre = cell.centre.detach().cpu().numpy().astype(np.float64)
        size = cell.size.detach().cpu().numpy().astype(np.float64)
        n_corners = corners.shape[0]

        chains = []
        for _ in range(self.passes):
            for i in range(n_corners):
                j = int(self.rng.integers(0, n_corners - 1))
                if j >= i:
                    j += 1
                jitter = self.rng.uniform(-SPLINE_JITTER * size, SPLINE_JITTER * size)
                chains.append(self._curve(corners[i], centre + jitter, corners[j]))
        points = torch.tensor(np.stack(chains), dtype=cell.corners.dtype)
        add_beam_chains(network, points, thickness)


_LATTICE_REGISTRY = {
    LatticeTypeName.BodyCentred: BodyCentredLattice,
    LatticeTypeName.Octahedron: OctahedronLattice,
    LatticeTypeName.RandomSpline: RandomSplineLattice,
}


def get_lattice_type(lattice: str | LatticeTypeName, **kwargs) -> LatticeType:
    if isinstance(lattice, str):
        try:
            lattice = LatticeTypeName(lattice)
        except ValueError:
            raise ValueError(f"Unknown lattice type name: {lattice}")
    return _LATTICE_REGISTRY[lattice](**kwargs)
