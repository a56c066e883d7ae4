import logging

import gustaf as gus
import numpy as np
import torch

import InfillSDF

logger = logging.getLogger(InfillSDF.__name__)


class BeamNetwork:
    """Unordered collection of tapered beams.

    Each beam runs from ``start`` to ``end`` and carries an independent
    radius at both ends. Duplicate and overlapping beams are kept, merging
    them is left to the geometry kernel that rasterises the network.
    """

    def __init__(self):
        self._starts = []
        self._ends = []
        self._start_radii = []
        self._end_radii = []

    def add_beam(self, start, start_radius, end, end_radius):
        self.add_beams(
            torch.as_tensor(start).reshape(1, 3),
            torch.as_tensor(start_radius).reshape(1),
            torch.as_tensor(end).reshape(1, 3),
            torch.as_tensor(end_radius).reshape(1),
        )

    def add_beams(
        self,
        starts: torch.Tensor,
        start_radii: torch.Tensor,
        ends: torch.Tensor,
        end_radii: torch.Tensor,
    ):
        """Append M beams given as (M, 3) end points and (M,) radii."""
        starts = torch.as_tensor(starts).detach().reshape(-1, 3)
        ends = torch.as_tensor(ends).detach().reshape(-1, 3)
        start_radii = torch.as_tensor(start_radii).detach().reshape(-1)
        end_radii = torch.as_tensor(end_radii).detach().reshape(-1)
        n = starts.shape[0]
        if ends.shape[0] != n or start_radii.shape[0] != n or end_radii.shape[0] != n:
            raise ValueError(
                f"Inconsistent beam counts: {n} starts, {ends.shape[0]} ends, "
                f"{start_radii.shape[0]} start radii, {end_radii.shape[0]} end radii"
            )
        if torch.any(start_radii < 0) or torch.any(end_radii < 0):
            raise ValueError("Beam radii must be non-negative")
        self._starts.append(starts)
        self._ends.append(ends)
        self._start_radii.append(start_radii)
        self._end_radii.append(end_radii)

    def extend(self, other: "BeamNetwork"):
        self._starts.extend(other._starts)
        self._ends.extend(other._ends)
        self._start_radii.extend(other._start_radii)
        self._end_radii.extend(other._end_radii)

    def _cat(self, parts, shape):
        if not parts:
            return torch.empty(shape)
        return torch.cat(parts, dim=0)

    @property
    def starts(self) -> torch.Tensor:
        return self._cat(self._starts, (0, 3))

    @property
    def ends(self) -> torch.Tensor:
        return self._cat(self._ends, (0, 3))

    @property
    def start_radii(self) -> torch.Tensor:
        return self._cat(self._start_radii, (0,))

    @property
    def end_radii(self) -> torch.Tensor:
        return self._cat(self._end_radii, (0,))

    def __len__(self):
        return sum(s.shape[0] for s in self._starts)

    def to_gus(self) -> gus.Edges:
        """Network as gustaf Edges with the radius as vertex data.

        Every beam gets its own two vertices, so vertex ``2 * i`` is the
        start and ``2 * i + 1`` the end of beam ``i``.
        """
        starts = self.starts.cpu().numpy()
        ends = self.ends.cpu().numpy()
        n = starts.shape[0]
        vertices = np.empty((2 * n, 3), dtype=np.float64)
        vertices[0::2] = starts
        vertices[1::2] = ends
        radii = np.empty(2 * n, dtype=np.float64)
        radii[0::2] = self.start_radii.cpu().numpy()
        radii[1::2] = self.end_radii.cpu().numpy()
        edges = np.arange(2 * n, dtype=np.int64).reshape(-1, 2)

        gus_edges = gus.Edges(vertices=vertices, edges=edges)
        gus_edges.vertex_data["radius"] = radii.reshape(-1, 1)
        logger.debug(f"Exported {n} beams to gustaf")
        return gus_edges
