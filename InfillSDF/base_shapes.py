"""
Parametric Base Shapes
======================

Host shapes for conformal cell arrays. Each shape maps three ratios in its
native parametrisation to a point inside the shape with ``surface_point``,
and maps the integer corner indices of a conformal grid to those ratios
with ``cell_corner_point``. Both are vectorised over torch tensors.

Dimensions that vary over the shape (box width, lens heights, pipe radii)
are given as modulations: either a constant or a callable on tensors.

Classes
-------
BaseBox
    Box along z with width and depth modulated over the length.
BaseLens
    Ring between two radii whose lower and upper heights vary with the
    angle and the radius.
BasePipeSegment
    Angular segment of a pipe along z with modulated radii and opening.
SplineBaseShape
    Any trivariate splinepy spline.

Examples
--------
>>> from InfillSDF.base_shapes import BaseBox
>>> import torch
>>>
>>> box = BaseBox(
...     100.0,
...     width=lambda lr: 60 + 20 * torch.cos(5.0 * lr),
...     depth=lambda lr: 80 - 40 * torch.cos(3.0 * lr),
... )
>>> box.surface_point(1.0, 1.0, 0.0)
tensor([40., 20., 0.])
"""

from abc import ABC, abstractmethod
import math

import numpy as np
import torch


def _modulate(modulation, *ratios: torch.Tensor) -> torch.Tensor:
    if callable(modulation):
        value = modulation(*ratios)
        if not isinstance(value, torch.Tensor):
            value = torch.as_tensor(value, dtype=ratios[0].dtype)
        return torch.broadcast_to(value, ratios[0].shape)
    return torch.full_like(ratios[0], float(modulation))


def _as_ratio(value) -> torch.Tensor:
    if isinstance(value, torch.Tensor):
        if not torch.is_floating_point(value):
            value = value.to(torch.float32)
        return value
    return torch.as_tensor(value, dtype=torch.float32)


class BaseShape(ABC):
    @abstractmethod
    def surface_point(self, a, b, c) -> torch.Tensor:
        """Points of shape (..., 3) for the native ratios ``a, b, c``."""
        pass

    @abstractmethod
    def cell_corner_point(self, ix, iy, iz, nx: int, ny: int, nz: int):
        """Corner points of a conformal grid with ``nx x ny x nz`` cells."""
        pass


class BaseBox(BaseShape):
    """Box standing on the xy-plane and extending along z.

    ``surface_point(width_ratio, depth_ratio, length_ratio)`` with width
    and depth ratios in [-1, 1] and the length ratio in [0, 1]. ``width``
    and ``depth`` are constants or functions of the length ratio.
    """

    def __init__(self, length: float, width=None, depth=None):
        if length <= 0:
            raise ValueError(f"Length must be positive, got {length}")
        self.length = length
        self.width = width if width is not None else length
        self.depth = depth if depth is not None else length

    def surface_point(self, width_ratio, depth_ratio, length_ratio):
        width_ratio, depth_ratio, length_ratio = torch.broadcast_tensors(
            _as_ratio(width_ratio), _as_ratio(depth_ratio), _as_ratio(length_ratio)
        )
        width = _modulate(self.width, length_ratio)
        depth = _modulate(self.depth, length_ratio)
        return torch.stack(
            [
                0.5 * width * width_ratio,
                0.5 * depth * depth_ratio,
                self.length * length_ratio,
            ],
            dim=-1,
        )

    def cell_corner_point(self, ix, iy, iz, nx, ny, nz):
        length_ratio = _as_ratio(iz) / nz
        width_ratio = 2.0 * _as_ratio(ix) / nx - 1.0
        depth_ratio = 2.0 * _as_ratio(iy) / ny - 1.0
        return self.surface_point(width_ratio, depth_ratio, length_ratio)


class BaseLens(BaseShape):
    """Ring around the z-axis between ``inner_radius`` and ``outer_radius``.

    ``lower`` and ``upper`` give the bottom and top heights as constants or
    functions ``f(phi, radius_ratio)``.
    ``surface_point(height_ratio, phi_ratio, radius_ratio)``, all in [0, 1].
    """

    def __init__(
        self, inner_radius: float, outer_radius: float, lower=0.0, upper=1.0
    ):
        if inner_radius < 0 or outer_radius < inner_radius:
            raise ValueError(
                f"Invalid radii: inner {inner_radius}, outer {outer_radius}"
            )
        self.inner_radius = inner_radius
        self.outer_radius = outer_radius
        self.lower = lower
        self.upper = upper

    def surface_point(self, height_ratio, phi_ratio, radius_ratio):
        height_ratio, phi_ratio, radius_ratio = torch.broadcast_tensors(
            _as_ratio(height_ratio), _as_ratio(phi_ratio), _as_ratio(radius_ratio)
        )
        phi = 2.0 * math.pi * phi_ratio
        radius = self.inner_radius + radius_ratio * (
            self.outer_radius - self.inner_radius
        )
        lower = _modulate(self.lower, phi, radius_ratio)
        upper = _modulate(self.upper, phi, radius_ratio)
        z = lower + height_ratio * (upper - lower)
        return torch.stack(
            [radius * torch.cos(phi), radius * torch.sin(phi), z], dim=-1
        )

    def cell_corner_point(self, ix, iy, iz, nx, ny, nz):
        phi_ratio = _as_ratio(iz) / nz
        height_ratio = _as_ratio(ix) / nx
        radius_ratio = _as_ratio(iy) / ny
        return self.surface_point(height_ratio, phi_ratio, radius_ratio)


class BasePipeSegment(BaseShape):
    """Angular segment of a pipe along z.

    The opening is centred on ``phi_mid`` and spans ``phi_range``, both
    constants or functions of the length ratio. The radii are constants or
    functions ``f(phi, length_ratio)``.
    ``surface_point(length_ratio, phi_ratio, radius_ratio)``, all in [0, 1].
    """

    def __init__(
        self,
        length: float,
        inner_radius=20.0,
        outer_radius=40.0,
        phi_mid=0.0,
        phi_range=math.pi,
    ):
        if length <= 0:
            raise ValueError(f"Length must be positive, got {length}")
        self.length = length
        self.inner_radius = inner_radius
        self.outer_radius = outer_radius
        self.phi_mid = phi_mid
        self.phi_range = phi_range

    def surface_point(self, length_ratio, phi_ratio, radius_ratio):
        length_ratio, phi_ratio, radius_ratio = torch.broadcast_tensors(
            _as_ratio(length_ratio), _as_ratio(phi_ratio), _as_ratio(radius_ratio)
        )
        phi_mid = _modulate(self.phi_mid, length_ratio)
        phi_range = _modulate(self.phi_range, length_ratio)
        phi = phi_mid - 0.5 * phi_range + phi_ratio * phi_range
        inner = _modulate(self.inner_radius, phi, length_ratio)
        outer = _modulate(self.outer_radius, phi, length_ratio)
        radius = inner + radius_ratio * (outer - inner)
        return torch.stack(
            [
                radius * torch.cos(phi),
                radius * torch.sin(phi),
                self.length * length_ratio,
            ],
            dim=-1,
        )

    def cell_corner_point(self, ix, iy, iz, nx, ny, nz):
        phi_ratio = _as_ratio(iz) / nz
        length_ratio = _as_ratio(ix) / nx
        radius_ratio = _as_ratio(iy) / ny
        return self.surface_point(length_ratio, phi_ratio, radius_ratio)


class SplineBaseShape(BaseShape):
    """Trivariate splinepy spline used as a conformal host.

    The unit cube of ratios is mapped onto the spline's parametric bounds.
    """

    def __init__(self, spline):
        if spline.para_dim != 3 or spline.dim != 3:
            raise ValueError(
                "SplineBaseShape needs a spline with para_dim 3 and dim 3, "
                f"got para_dim {spline.para_dim} and dim {spline.dim}"
            )
        self.spline = spline
        self._parametric_bounds = np.asarray(spline.parametric_bounds)

    def surface_point(self, u, v, w):
        u, v, w = torch.broadcast_tensors(_as_ratio(u), _as_ratio(v), _as_ratio(w))
        ratios = torch.stack([u, v, w], dim=-1)
        shape = ratios.shape
        ratios_np = ratios.reshape(-1, 3).detach().cpu().numpy().astype(np.float64)
        lower, upper = self._parametric_bounds
        queries = lower + ratios_np * (upper - lower)
        points = self.spline.evaluate(queries)
        return torch.tensor(points, dtype=u.dtype).reshape(shape)

    def cell_corner_point(self, ix, iy, iz, nx, ny, nz):
        return self.surface_point(
            _as_ratio(ix) / nx, _as_ratio(iy) / ny, _as_ratio(iz) / nz
        )
