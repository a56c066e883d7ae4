"""
Random Deformation Field
========================

A regular 3D grid of random displacement vectors over a bounding box. The
field is queried with trilinear interpolation and is used to warp query
points before a periodic pattern is evaluated, which breaks up the perfect
regularity of a TPMS.

The random vectors are drawn once at construction from a ``torch.Generator``
and never change afterwards, so repeated queries on the same instance are
reproducible and may run concurrently.

Examples
--------
>>> from InfillSDF.deformation_field import RandomDeformationField
>>> import torch
>>>
>>> bounds = torch.tensor([[0.0, 0.0, 0.0], [50.0, 50.0, 50.0]])
>>> field = RandomDeformationField(bounds, 10.0, -2.0, 2.0, seed=42)
>>> field.vectors.shape
torch.Size([6, 6, 6, 3])
>>> field(torch.rand(100, 3) * 50).shape
torch.Size([100, 3])
"""

import logging

import torch

import InfillSDF
from InfillSDF.utils import as_bounds

logger = logging.getLogger(InfillSDF.__name__)


class RandomDeformationField:
    """Trilinearly interpolated grid of random 3D vectors.

    Parameters
    ----------
    bounds : array-like
        Bounding box of shape (2, 3).
    resolution : float
        Target grid spacing. Each axis gets ``floor(size / resolution) + 1``
        samples (at least 2), evenly spaced from min to max.
    min_value, max_value : float
        Range of the uniformly drawn vector components.
    seed : int, optional
        Seed of the generator. Without a seed the generator is seeded
        non-deterministically.
    """

    def __init__(
        self,
        bounds,
        resolution: float,
        min_value: float,
        max_value: float,
        seed: int | None = None,
        dtype=torch.float32,
    ):
        if resolution <= 0:
            raise ValueError(f"Resolution must be positive, got {resolution}")
        self.bounds = as_bounds(bounds, dtype=dtype).to(dtype)
        self.resolution = resolution
        self.min_value = min_value
        self.max_value = max_value

        size = self.bounds[1] - self.bounds[0]
        n_samples = torch.clamp(
            torch.floor(size / resolution).to(torch.int64) + 1, min=2
        )
        self.n_samples = tuple(int(n) for n in n_samples)
        # a flat axis gets unit spacing, all queries then sit on index 0
        self.cell_size = torch.where(
            size > 0, size / (n_samples - 1).to(dtype), torch.ones_like(size)
        )

        axes = [
            self.bounds[0, i] + self.cell_size[i] * torch.arange(n, dtype=dtype)
            for i, n in enumerate(self.n_samples)
        ]
        grid = torch.meshgrid(*axes, indexing="ij")
        self.grid_points = torch.stack(grid, dim=-1)

        generator = torch.Generator()
        if seed is None:
            generator.seed()
        else:
            generator.manual_seed(seed)
        self.vectors = min_value + (max_value - min_value) * torch.rand(
            (*self.n_samples, 3), generator=generator, dtype=dtype
        )
        logger.debug(
            "Deformation field with {}x{}x{} grid points".format(*self.n_samples)
        )

    def __call__(self, points: torch.Tensor) -> torch.Tensor:
        """Interpolated displacement vectors at ``points`` (N, 3)."""
        bounds = self.bounds.to(device=points.device, dtype=points.dtype)
        cell_size = self.cell_size.to(device=points.device, dtype=points.dtype)
        vectors = self.vectors.to(device=points.device, dtype=points.dtype)
        upper_index = torch.tensor(
            [n - 2 for n in self.n_samples], device=points.device
        )

        clamped = torch.clamp(points, min=bounds[0], max=bounds[1])
        offset = clamped - bounds[0]
        position = offset / cell_size
        # queries on a grid plane must land exactly on its index
        nearest = torch.round(position)
        position = torch.where(
            torch.abs(position - nearest) < 1e-5, nearest, position
        )
        lower = torch.floor(position).to(torch.int64)
        lower = torch.clamp(lower, min=torch.zeros_like(upper_index), max=upper_index)
        ratio = torch.clamp(position - lower, 0.0, 1.0)

        ix, iy, iz = lower[:, 0], lower[:, 1], lower[:, 2]
        rx, ry, rz = ratio[:, 0:1], ratio[:, 1:2], ratio[:, 2:3]

        # along x at the four edges, then y, then z
        v00 = torch.lerp(vectors[ix, iy, iz], vectors[ix + 1, iy, iz], rx)
        v10 = torch.lerp(vectors[ix, iy + 1, iz], vectors[ix + 1, iy + 1, iz], rx)
        v01 = torch.lerp(vectors[ix, iy, iz + 1], vectors[ix + 1, iy, iz + 1], rx)
        v11 = torch.lerp(
            vectors[ix, iy + 1, iz + 1], vectors[ix + 1, iy + 1, iz + 1], rx
        )
        v0 = torch.lerp(v00, v10, ry)
        v1 = torch.lerp(v01, v11, ry)
        return torch.lerp(v0, v1, rz)
