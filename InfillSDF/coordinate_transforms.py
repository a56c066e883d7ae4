"""
Coordinate Transforms
=====================

Transforms remap query points into the coordinate space a raw TPMS pattern
is evaluated in. All transforms act on batches of shape (N, 3) and return a
new tensor of the same shape; the input is never modified.

Classes
-------
IdentityTransform
    Leaves points unchanged.
ScaleTransform
    Divides each axis by an independent unit length.
FunctionalScaleTransform
    Unit length in x/y ramps with z, z collapses to a constant.
RadialTransform
    Cartesian to unrolled cylindrical coordinates.
CombinedTransform
    Chains transforms, feeding each one the previous output.
"""

from abc import ABC, abstractmethod

import torch

from InfillSDF.utils import limit_value, trans_fixed


class CoordinateTransform(ABC):
    def __call__(self, points: torch.Tensor) -> torch.Tensor:
        return self.apply(points)

    @abstractmethod
    def apply(self, points: torch.Tensor) -> torch.Tensor:
        """Map points (N, 3) into pattern coordinates (N, 3)."""
        pass


class IdentityTransform(CoordinateTransform):
    def apply(self, points: torch.Tensor) -> torch.Tensor:
        return points


class ScaleTransform(CoordinateTransform):
    """Anisotropic rescale, one unit length per axis.

    A raw pattern with unit period evaluated on ``ScaleTransform(10, 10, 10)``
    repeats every 10 units in world space.
    """

    def __init__(self, unit_x: float, unit_y: float, unit_z: float):
        if min(unit_x, unit_y, unit_z) <= 0:
            raise ValueError(
                f"Unit sizes must be positive, got ({unit_x}, {unit_y}, {unit_z})"
            )
        self.unit_x = unit_x
        self.unit_y = unit_y
        self.unit_z = unit_z

    def apply(self, points: torch.Tensor) -> torch.Tensor:
        return torch.stack(
            [
                points[:, 0] / self.unit_x,
                points[:, 1] / self.unit_y,
                points[:, 2] / self.unit_z,
            ],
            dim=1,
        )


class FunctionalScaleTransform(CoordinateTransform):
    """Unit length in x and y varies linearly with z.

    ``ratio = clamp(z / z_range, 0, 1)`` blends the unit size from
    ``unit_bottom`` to ``unit_top``. The output z is pinned to ``z_value``,
    which removes periodicity along z and keeps the pattern two-dimensional.
    """

    def __init__(
        self,
        z_range: float = 50.0,
        unit_bottom: float = 20.0,
        unit_top: float = 5.0,
        z_value: float = 10.0,
    ):
        if z_range <= 0:
            raise ValueError(f"z_range must be positive, got {z_range}")
        if unit_bottom <= 0 or unit_top <= 0:
            raise ValueError("Unit sizes must be positive")
        self.z_range = z_range
        self.unit_bottom = unit_bottom
        self.unit_top = unit_top
        self.z_value = z_value

    def apply(self, points: torch.Tensor) -> torch.Tensor:
        ratio = limit_value(points[:, 2] / self.z_range, 0.0, 1.0)
        unit = trans_fixed(self.unit_bottom, self.unit_top, ratio)
        return torch.stack(
            [
                points[:, 0] / unit,
                points[:, 1] / unit,
                torch.full_like(points[:, 2], self.z_value),
            ],
            dim=1,
        )


class RadialTransform(CoordinateTransform):
    """Cartesian to unrolled cylindrical coordinates.

    Output x is the radius, output y is
    ``samples_per_round * (phi + twist_rate * z)`` and output z is z.
    ``samples_per_round`` has to be a whole number, otherwise the pattern
    shows a seam where phi wraps around.
    """

    def __init__(self, samples_per_round: int, twist_rate: float = 0.0):
        if float(samples_per_round) != int(samples_per_round):
            raise ValueError(
                f"samples_per_round must be a whole number, got {samples_per_round}"
            )
        if int(samples_per_round) < 1:
            raise ValueError(
                f"samples_per_round must be at least 1, got {samples_per_round}"
            )
        self.samples_per_round = int(samples_per_round)
        self.twist_rate = twist_rate

    def apply(self, points: torch.Tensor) -> torch.Tensor:
        x, y, z = points[:, 0], points[:, 1], points[:, 2]
        radius = torch.sqrt(x**2 + y**2)
        phi = torch.atan2(y, x) + self.twist_rate * z
        return torch.stack([radius, self.samples_per_round * phi, z], dim=1)


class CombinedTransform(CoordinateTransform):
    """Applies ``transforms`` in order; each consumes the previous output."""

    def __init__(self, transforms: list[CoordinateTransform]):
        self.transforms = list(transforms)

    def apply(self, points: torch.Tensor) -> torch.Tensor:
        for transform in self.transforms:
            points = transform(points)
        return points
