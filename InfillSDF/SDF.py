from abc import ABC, abstractmethod
import logging

import numpy as np
import torch

import InfillSDF
from InfillSDF.utils import as_bounds

logger = logging.getLogger(InfillSDF.__name__)


def get_equidistant_grid_sample(
    bounds: torch.Tensor | np.ndarray,
    grid_spacing: float,
    dtype=torch.float32,
    device="cpu",
) -> torch.Tensor:
    """
    Regular lattice of sample points covering a box, both ends included.

    Parameters
    ----------
    bounds : torch.Tensor or np.ndarray
        Box of shape (2, 3) as ``[[xmin, ymin, zmin], [xmax, ymax, zmax]]``.
    grid_spacing : float
        Upper limit for the distance between neighbouring samples.

    Returns
    -------
    torch.Tensor
        Sample points of shape (N, 3), x varying slowest.
    """
    bounds = as_bounds(bounds, dtype=dtype).to(device=device, dtype=dtype)
    if grid_spacing <= 0:
        raise ValueError(f"Grid spacing must be positive, got {grid_spacing}")
    lower, upper = bounds[0], bounds[1]

    counts = torch.ceil((upper - lower) / grid_spacing).to(torch.int64) + 1
    axes = [
        torch.linspace(lower[i], upper[i], int(counts[i]), dtype=dtype, device=device)
        for i in range(3)
    ]
    points = torch.stack(torch.meshgrid(*axes, indexing="ij"), dim=-1).reshape(-1, 3)
    logger.debug(f"Equidistant grid with {counts.tolist()} points per axis")
    return points


class SDFBase(ABC):
    """Signed distance callback evaluated on batches of points.

    An ``SDFBase`` is what the geometry kernel samples when it voxelises an
    infill: it hands over an (N, 3) tensor of positions and receives one
    signed value per position, negative inside the solid.

    ``_compute`` must not write to shared state, so separate batches may
    be evaluated from several threads at once.

    Subclasses provide ``_compute(queries)`` and ``_get_domain_bounds()``.

    Examples
    --------
    >>> import torch
    >>> from InfillSDF.sdf_primitives import SphereSDF
    >>> ball = SphereSDF(center=[0, 0, 0], radius=1.0)
    >>> ball(torch.tensor([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]]))
    tensor([[-1.],
            [ 1.]])
    """

    def __call__(self, queries: torch.Tensor) -> torch.Tensor:
        """Signed distances of shape (N, 1) for ``queries`` of shape (N, 3).

        Raises
        ------
        ValueError
            ``queries`` is not an (N, 3) tensor.
        RuntimeError
            The implementation produced no values.
        """
        self._validate_input(queries)
        values = self._compute(queries)
        if values is None:
            raise RuntimeError(f"{type(self).__name__} returned no SDF values")
        return values

    def _validate_input(self, queries: torch.Tensor):
        if not isinstance(queries, torch.Tensor):
            raise ValueError(f"Expected a torch.Tensor, got {type(queries)}")
        if queries.ndim != 2 or queries.shape[1] != 3:
            raise ValueError(f"Expected input of shape (N, 3), got {queries.shape}")

    @abstractmethod
    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        """Return the (N, 1) signed distances of validated queries."""

    @abstractmethod
    def _get_domain_bounds(self) -> torch.Tensor:
        """Return the (2, 3) box enclosing the geometry."""

    def __add__(self, other):
        return SummedSDF(self, other)


class SummedSDF(SDFBase):
    """Union of two SDFs, e.g. both halves of a split wall pattern."""

    def __init__(self, obj1: SDFBase, obj2: SDFBase):
        self.obj1 = obj1
        self.obj2 = obj2

    def _compute(self, queries):
        return torch.minimum(self.obj1._compute(queries), self.obj2._compute(queries))

    def _get_domain_bounds(self):
        first = self.obj1._get_domain_bounds()
        second = self.obj2._get_domain_bounds()
        return torch.stack(
            [torch.minimum(first[0], second[0]), torch.maximum(first[1], second[1])]
        )
